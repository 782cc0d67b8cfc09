"""
type_mapper.py — Map C types to Go types

This module decides how a C type from the declaration model is spelled in the
generated Go code and how a Go value is handed back to C. It consults, in
order:
  - the curated go_types table (by pointer-aware key, then by bare name)
  - the curated enum_names table
  - the built-in scalar table (mapper.TYPE_MAP)

A miss is not an error here: callers record it as a TODO and carry on.
"""

from dataclasses import dataclass
from typing import Optional, Dict

from .ir import CType
from .mapper import TYPE_MAP
from .tables import Tables


@dataclass(frozen=True)
class GoTypeInfo:
    """
    How a C type maps to Go.

    Fields
    ------
    go_type    : The Go type name, without any pointer star
    is_wrapper : One of the generated wrapper structs; passed as *T
    is_enum    : A generated enum type with a C() conversion method
    cgo_type   : For built-in scalars, the cgo conversion, e.g. "C.int"
    """

    go_type: str
    is_wrapper: bool = False
    is_enum: bool = False
    cgo_type: Optional[str] = None


class TypeMapper:
    """
    Maps CTypes to Go equivalents using the curated tables.

    Maintains a cache keyed by (name, pointers).
    """

    def __init__(self, tables: Tables):
        self.tables = tables
        self._cache: Dict[tuple, Optional[GoTypeInfo]] = {}

    def go_type_of(self, ctype: CType) -> Optional[GoTypeInfo]:
        """
        Map a C type to its Go equivalent.

        Returns None if no table knows the type.
        """
        cache_key = (ctype.name, ctype.pointers)
        if cache_key in self._cache:
            return self._cache[cache_key]

        result = self._lookup(ctype)
        self._cache[cache_key] = result
        return result

    def _lookup(self, ctype: CType) -> Optional[GoTypeInfo]:
        mapping = self.tables.go_types.get(ctype.key)
        if mapping is None and ctype.pointers == 0:
            mapping = self.tables.go_types.get(ctype.name)
        if mapping is not None:
            return GoTypeInfo(
                go_type=mapping.go_type,
                is_wrapper=mapping.is_wrapper,
                is_enum=ctype.name in self.tables.enum_names,
            )

        if ctype.pointers == 0 and ctype.name in self.tables.enum_names:
            return GoTypeInfo(go_type=self.tables.enum_names[ctype.name], is_enum=True)

        builtin = TYPE_MAP.get(ctype.key)
        if builtin is not None:
            return GoTypeInfo(go_type=builtin.go_type, cgo_type=builtin.cgo_type)

        return None

    def go_name_of(self, ctype: CType) -> Optional[str]:
        """The Go type name for a C type, or None."""
        info = self.go_type_of(ctype)
        return info.go_type if info else None

    def go_name_of_str(self, c_name: str) -> Optional[str]:
        """The Go type name for a bare C type name (handles, receivers)."""
        return self.go_name_of(CType(name=c_name))

    def c_arg(self, name: str, ctype: CType) -> str:
        """
        The cgo expression passing Go value `name` where C expects `ctype`.

        Wrappers hand over their internal handle, enums and other curated
        types convert through their C() method, and built-in scalars use the
        cgo conversion.
        """
        info = self.go_type_of(ctype)
        if info is None:
            return name
        if info.is_wrapper:
            return f"{name}.internal"
        if info.cgo_type is not None:
            if not info.cgo_type:
                return name
            return f"{info.cgo_type}({name})"
        return f"{name}.C()"
