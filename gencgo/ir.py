"""
ir.py — Declaration model for gencgo

This module defines the layer that sits between parsing and code generation:
an immutable, queryable view of one C translation unit.  It is created fresh
for every run by `ir_builder.IRBuilder` and read (never written) by the rest
of the pipeline.

The model consists of:
  - CType: a C type with pointer levels and opaque-handle / scalar flags
  - Declarations: EnumDecl, FunctionDecl, TypeDecl (discriminated by DeclKind)
  - DeclarationModel: header-ordered storage with filter and name lookup
"""

from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union


# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------


class DeclKind(Enum):
    """Discriminator for Declaration union."""

    ENUM = auto()
    FUNCTION = auto()
    TYPE = auto()


# ---------------------------------------------------------------------------
# Type system
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CType:
    """
    A C type reduced to what the generator needs.

    `name` has qualifiers stripped ("const float *" -> "float"); pointer
    levels are counted separately.
    """

    name: str
    pointers: int = 0
    is_const: bool = False
    is_scalar: bool = False  # integer, floating point, bool or enum
    is_handle: bool = False  # opaque struct / pointer-to-struct typedef

    @property
    def key(self) -> str:
        """Table key: the bare name followed by one '*' per pointer level."""
        return self.name + "*" * self.pointers

    @property
    def spelling(self) -> str:
        const = "const " if self.is_const else ""
        stars = " " + "*" * self.pointers if self.pointers else ""
        return f"{const}{self.name}{stars}"

    @property
    def is_void(self) -> bool:
        return self.name == "void" and self.pointers == 0

    def pointee(self) -> "CType":
        """The type one pointer level down."""
        return replace(self, pointers=max(self.pointers - 1, 0))

    def __str__(self) -> str:
        return self.spelling


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Param:
    """A function parameter."""

    name: str
    type: CType
    position: int


@dataclass(frozen=True)
class Enumerator:
    """A single named constant within an enum."""

    name: str
    position: int
    value: Optional[int] = None


@dataclass(frozen=True)
class EnumDecl:
    name: str
    enumerators: Tuple[Enumerator, ...] = ()
    is_tag: bool = False
    kind: DeclKind = field(default=DeclKind.ENUM, init=False)

    @property
    def names(self) -> List[str]:
        return [e.name for e in self.enumerators]

    @property
    def cgo_name(self) -> str:
        """How cgo spells the type: C.enum_foo for tagged enums."""
        return f"enum_{self.name}" if self.is_tag else self.name


@dataclass(frozen=True)
class FunctionDecl:
    name: str
    return_type: CType
    params: Tuple[Param, ...] = ()
    source_location: Optional[str] = None
    kind: DeclKind = field(default=DeclKind.FUNCTION, init=False)

    def c_signature(self) -> str:
        params = ", ".join(f"{p.type.spelling} {p.name}" for p in self.params)
        return f"{self.return_type.spelling} {self.name}({params})"


@dataclass(frozen=True)
class TypeDecl:
    name: str
    underlying: str
    is_handle: bool = False
    kind: DeclKind = field(default=DeclKind.TYPE, init=False)


Declaration = Union[EnumDecl, FunctionDecl, TypeDecl]
Filter = Callable[[Declaration], bool]


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass
class GenConfig:
    """Per-run configuration for the generated Go package."""

    package_name: str
    header_include: str  # the `// #include <...>` in every generated file
    symbol_prefix: str = ""  # stripped from C function names, e.g. "cudnn"
    generator_name: str = "gencgo"


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


def is_enum(decl: Declaration) -> bool:
    return decl.kind == DeclKind.ENUM


def is_function(decl: Declaration) -> bool:
    return decl.kind == DeclKind.FUNCTION


def is_type(decl: Declaration) -> bool:
    return decl.kind == DeclKind.TYPE


def named(names: Iterable[str]) -> Filter:
    """Filter accepting declarations whose name is in `names`."""
    wanted = frozenset(names)
    return lambda decl: decl.name in wanted


# ---------------------------------------------------------------------------
# Declaration model - the central lookup structure
# ---------------------------------------------------------------------------


class DeclarationModel:
    """
    Holds every declaration of one parsed header.

    Declarations keep header order; lookup by raw C name is exact and returns
    every match (an enum tag and a typedef may share a name).
    """

    def __init__(self, config: GenConfig):
        self.config = config
        self._decls: List[Declaration] = []
        self._by_name: Dict[str, List[Declaration]] = {}

    def add(self, decl: Declaration) -> None:
        """Add a declaration to the model."""
        self._decls.append(decl)
        self._by_name.setdefault(decl.name, []).append(decl)

    def get(self, *filters: Filter) -> List[Declaration]:
        """All declarations accepted by every filter, in header order."""
        return [d for d in self._decls if all(f(d) for f in filters)]

    def lookup(self, name: str) -> List[Declaration]:
        """All declarations whose name is exactly `name`."""
        return list(self._by_name.get(name, ()))

    def function(self, name: str) -> Optional[FunctionDecl]:
        """The first function called `name`, or None."""
        for decl in self._by_name.get(name, ()):
            if is_function(decl):
                return decl
        return None

    def all(self) -> List[Declaration]:
        return list(self._decls)

    def __len__(self) -> int:
        return len(self._decls)
