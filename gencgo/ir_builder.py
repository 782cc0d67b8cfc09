"""
ir_builder.py — Build the declaration model from the parsed Clang AST

This module converts the Clang-specific parser output (CHeaderAST) into
the immutable DeclarationModel. It:
  - Discovers opaque handle typedefs
  - Classifies parameter and return types (scalar / handle, pointer depth)
  - Creates EnumDecl, FunctionDecl and TypeDecl nodes in header order
"""

from typing import Dict, Set

from .ir import (
    DeclarationModel,
    GenConfig,
    CType,
    Param,
    Enumerator,
    EnumDecl,
    FunctionDecl,
    TypeDecl,
)
from .parser import CHeaderAST, CFuncDecl, CTypeRef

# Canonical clang TypeKind names that are passed by value as plain numbers.
SCALAR_KINDS = frozenset(
    {
        "BOOL",
        "CHAR_S",
        "CHAR_U",
        "SCHAR",
        "UCHAR",
        "SHORT",
        "USHORT",
        "INT",
        "UINT",
        "LONG",
        "ULONG",
        "LONGLONG",
        "ULONGLONG",
        "FLOAT",
        "DOUBLE",
        "LONGDOUBLE",
        "ENUM",
    }
)


class IRBuilder:
    """
    Converts parsed AST to the declaration model.

    Strategy:
      1. Process typedefs to discover opaque handle names
      2. Add enums, then functions, then typedefs
      3. Cache type conversions so equal C types share one CType
    """

    def __init__(self, config: GenConfig):
        self.model = DeclarationModel(config)

        # Names of typedefs for structs or pointers to structs
        self._handle_names: Set[str] = set()

        # Cache: (spelling, base) -> CType
        self._type_cache: Dict[tuple, CType] = {}

    def build(self, ast: CHeaderAST) -> DeclarationModel:
        """
        Build the complete model from a parsed AST.

        Parameters
        ----------
        ast : The parsed C header AST from parser.py

        Returns
        -------
        Populated DeclarationModel, read-only from here on
        """
        for td in ast.typedefs:
            if td.is_handle:
                self._handle_names.add(td.name)

        for enum in ast.enums:
            self.model.add(
                EnumDecl(
                    name=enum.name,
                    enumerators=tuple(
                        Enumerator(name=e.name, position=e.position, value=e.value)
                        for e in enum.enumerators
                    ),
                    is_tag=enum.is_tag,
                )
            )

        for func in ast.functions:
            self.model.add(self._convert_function(func))

        for td in ast.typedefs:
            self.model.add(
                TypeDecl(name=td.name, underlying=td.underlying_type, is_handle=td.is_handle)
            )

        return self.model

    def _convert_function(self, func: CFuncDecl) -> FunctionDecl:
        params = tuple(
            Param(name=p.name, type=self.convert_type(p.type), position=i)
            for i, p in enumerate(func.params)
        )
        location = f"{func.source_file}:{func.line}" if func.source_file else None
        return FunctionDecl(
            name=func.name,
            return_type=self.convert_type(func.return_type),
            params=params,
            source_location=location,
        )

    def convert_type(self, ref: CTypeRef) -> CType:
        """Convert a parsed type reference, classifying its base type."""
        cache_key = (ref.spelling, ref.base, ref.pointers)
        if cache_key in self._type_cache:
            return self._type_cache[cache_key]

        is_handle = ref.base in self._handle_names or (
            ref.base_kind == "POINTER" and ref.base_pointee_kind == "RECORD"
        )
        ctype = CType(
            name=ref.base,
            pointers=ref.pointers,
            is_const=ref.is_const,
            is_scalar=ref.base_kind in SCALAR_KINDS,
            is_handle=is_handle,
        )
        self._type_cache[cache_key] = ctype
        return ctype


def build_model(ast: CHeaderAST, config: GenConfig) -> DeclarationModel:
    """Convenience wrapper around IRBuilder."""
    return IRBuilder(config).build(ast)
