"""
parser.py — Extract enum, function and typedef declarations from C headers
using libclang.

WHY LIBCLANG:
Vendor headers describing a native ABI are full of macros, typedef chains and
`typedef enum { ... } foo_t;` idioms.  Libclang gives us the same AST a real C
compiler sees, so the generator never mis-parses a declaration.

The parser produces plain dataclasses (`CHeaderAST`) that `ir_builder` turns
into the immutable declaration model.  Parsing is all-or-nothing: any libclang
error aborts the run with `HeaderParseError`.
"""

import json
import re
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional

from clang.cindex import (
    Index,
    CursorKind,
    Diagnostic,
    TypeKind,
    TranslationUnit,
    TranslationUnitLoadError,
)

from .errors import HeaderParseError


# ---------------------------------------------------------------------------
# Raw declarations, before any classification
# ---------------------------------------------------------------------------


@dataclass
class CTypeRef:
    """A C type as written, with its pointer levels peeled off."""

    spelling: str  # e.g. "const float *"
    base: str  # e.g. "float", "cudnnTensorDescriptor_t"
    pointers: int = 0
    is_const: bool = False
    base_kind: str = ""  # canonical TypeKind name of the base, e.g. "FLOAT"
    base_pointee_kind: Optional[str] = None  # for typedef'd pointers: "RECORD"


@dataclass
class CParam:
    """A parameter; unnamed ones are called arg<i>."""

    name: str
    type: CTypeRef


@dataclass
class CFuncDecl:
    """A function prototype and where it was declared."""

    name: str
    return_type: CTypeRef
    params: list[CParam] = field(default_factory=list)
    source_file: Optional[str] = None
    line: int = 0


@dataclass
class CEnumerator:
    """One constant of an enum."""

    name: str
    value: int
    position: int


@dataclass
class CEnumDecl:
    """An enum, named after its tag or, for anonymous enums, its typedef."""

    name: str
    enumerators: list[CEnumerator] = field(default_factory=list)
    is_tag: bool = False  # named by `enum tag`, not by a typedef


@dataclass
class CTypedefDecl:
    """A typedef, flagged when it names an opaque handle."""

    name: str  # e.g. "cudnnHandle_t"
    underlying_type: str  # e.g. "struct cudnnContext *"
    underlying_kind: str  # canonical kind, e.g. "POINTER"
    is_struct_typedef: bool = False  # `typedef struct X X;`
    is_handle: bool = False  # struct typedef or pointer-to-struct typedef


@dataclass
class CHeaderAST:
    """Everything kept from one translation unit, in header order."""

    header_path: str
    functions: list[CFuncDecl] = field(default_factory=list)
    enums: list[CEnumDecl] = field(default_factory=list)
    typedefs: list[CTypedefDecl] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Type helpers
# ---------------------------------------------------------------------------

_QUALIFIERS = re.compile(r"\b(const|volatile|restrict|struct|enum|union)\b")
_ARRAY_KINDS = (TypeKind.CONSTANTARRAY, TypeKind.INCOMPLETEARRAY)


def _strip_qualifiers(spelling: str) -> str:
    return " ".join(_QUALIFIERS.sub(" ", spelling).split())


def _resolve_type(clang_type) -> CTypeRef:
    """
    Peel pointer and array levels off a clang Type.
    Typedef'd pointers (opaque handles) are kept as the base type.
    """
    spelling = clang_type.spelling
    base = clang_type
    pointers = 0
    while base.kind == TypeKind.POINTER or base.kind in _ARRAY_KINDS:
        if base.kind == TypeKind.POINTER:
            base = base.get_pointee()
        else:
            base = base.element_type
        pointers += 1

    canonical = base.get_canonical()
    pointee_kind = None
    if canonical.kind == TypeKind.POINTER:
        pointee_kind = canonical.get_pointee().get_canonical().kind.name

    return CTypeRef(
        spelling=spelling,
        base=_strip_qualifiers(base.spelling),
        pointers=pointers,
        is_const=base.is_const_qualified(),
        base_kind=canonical.kind.name,
        base_pointee_kind=pointee_kind,
    )


def _is_anonymous(cursor) -> bool:
    spelling = cursor.spelling
    return not spelling or "(unnamed" in spelling or "(anonymous" in spelling


def _enumerators(enum_cursor) -> list[CEnumerator]:
    return [
        CEnumerator(name=c.spelling, value=c.enum_value, position=i)
        for i, c in enumerate(
            c for c in enum_cursor.get_children()
            if c.kind == CursorKind.ENUM_CONSTANT_DECL
        )
    ]


# ---------------------------------------------------------------------------
# Parsing logic
# ---------------------------------------------------------------------------


def _check_diagnostics(tu, header: str) -> None:
    errors = [
        f"{d.location.file}:{d.location.line}: {d.spelling}"
        if d.location.file
        else d.spelling
        for d in tu.diagnostics
        if d.severity >= Diagnostic.Error
    ]
    if errors:
        raise HeaderParseError(header, errors)


def _wanted(cursor, main_file: str, follow_includes: bool) -> bool:
    location = cursor.location
    if location.file is None:
        return False
    if follow_includes:
        return not location.is_in_system_header
    return location.file.name == main_file


def _collect(tu, header: str, main_file: str, follow_includes: bool) -> CHeaderAST:
    ast = CHeaderAST(header_path=header)

    for cursor in tu.cursor.get_children():
        # declarations pulled in from other headers are not ours
        if not _wanted(cursor, main_file, follow_includes):
            continue

        if cursor.kind == CursorKind.ENUM_DECL:
            if not _is_anonymous(cursor):
                ast.enums.append(
                    CEnumDecl(
                        name=cursor.spelling,
                        enumerators=_enumerators(cursor),
                        is_tag=True,
                    )
                )

        elif cursor.kind == CursorKind.TYPEDEF_DECL:
            underlying = cursor.underlying_typedef_type
            canonical = underlying.get_canonical()
            pointee_kind = None
            if canonical.kind == TypeKind.POINTER:
                pointee_kind = canonical.get_pointee().get_canonical().kind
            is_struct = canonical.kind == TypeKind.RECORD
            ast.typedefs.append(
                CTypedefDecl(
                    name=cursor.spelling,
                    underlying_type=underlying.spelling,
                    underlying_kind=canonical.kind.name,
                    is_struct_typedef=is_struct,
                    is_handle=is_struct or pointee_kind == TypeKind.RECORD,
                )
            )
            # typedef enum { ... } name_t;
            if canonical.kind == TypeKind.ENUM:
                enum_cursor = canonical.get_declaration()
                # `typedef enum x { ... } x;` and anonymous enums that some
                # libclang versions spell with the typedef name
                ast.enums = [e for e in ast.enums if e.name != cursor.spelling]
                ast.enums.append(
                    CEnumDecl(name=cursor.spelling, enumerators=_enumerators(enum_cursor))
                )

        elif cursor.kind == CursorKind.FUNCTION_DECL:
            params = [
                CParam(name=arg.spelling or f"arg{i}", type=_resolve_type(arg.type))
                for i, arg in enumerate(cursor.get_arguments())
            ]
            ast.functions.append(
                CFuncDecl(
                    name=cursor.spelling,
                    return_type=_resolve_type(cursor.result_type),
                    params=params,
                    source_file=cursor.location.file.name,
                    line=cursor.location.line,
                )
            )

    return ast


def parse_header(
    header_path: str | Path,
    extra_args: list[str] | None = None,
    follow_includes: bool = False,
) -> CHeaderAST:
    """
    Parse a C header file and return its structured AST.

    Parameters
    ----------
    header_path     : path to the .h file
    extra_args      : optional extra clang arguments, e.g. ["-I", "include/"]
    follow_includes : keep declarations from included (non-system) headers too

    Raises FileNotFoundError, or HeaderParseError when libclang cannot load
    the file or reports errors; both abort the run.
    """
    header_path = Path(header_path).resolve()
    if not header_path.exists():
        raise FileNotFoundError(f"Header not found: {header_path}")

    index = Index.create()
    try:
        tu = index.parse(
            str(header_path),
            args=["-x", "c", *(extra_args or [])],
            options=TranslationUnit.PARSE_SKIP_FUNCTION_BODIES,
        )
    except TranslationUnitLoadError as e:
        raise HeaderParseError(str(header_path), [str(e)]) from e
    _check_diagnostics(tu, str(header_path))
    return _collect(tu, str(header_path), str(header_path), follow_includes)


def parse_header_text(
    text: str,
    filename: str = "input.h",
    extra_args: list[str] | None = None,
    follow_includes: bool = False,
) -> CHeaderAST:
    """Parse header source held in memory, as if it were saved at `filename`."""
    index = Index.create()
    try:
        tu = index.parse(
            filename,
            args=["-x", "c", *(extra_args or [])],
            unsaved_files=[(filename, text)],
            options=TranslationUnit.PARSE_SKIP_FUNCTION_BODIES,
        )
    except TranslationUnitLoadError as e:
        raise HeaderParseError(filename, [str(e)]) from e
    _check_diagnostics(tu, filename)
    return _collect(tu, filename, filename, follow_includes)


# ---------------------------------------------------------------------------
# --dump-ast
# ---------------------------------------------------------------------------


def ast_to_json(ast: CHeaderAST, pretty: bool = True) -> str:
    """The raw declarations as JSON."""
    return json.dumps(asdict(ast), indent=2 if pretty else None)


def dump_ast_json(ast: CHeaderAST, out_path: str | Path) -> Path:
    """Write ast_to_json() output to out_path, creating its directory."""
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(ast_to_json(ast))
    return out_path
