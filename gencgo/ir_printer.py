"""
ir_printer.py — Explore the declaration model

Prints what the parser found, so the curated tables can be written (and
corrected) by hand before generating.  Useful for:
  - Finding the create/destroy/set functions of each handle
  - Spotting enums whose prefixes derive badly
  - Implementing --explore
"""

from typing import List

from .ir import (
    DeclarationModel,
    Declaration,
    EnumDecl,
    FunctionDecl,
    TypeDecl,
    Filter,
)


class DeclarationPrinter:
    """
    Pretty-prints declarations to text format.

    Output format:
      Enum cudnnDataType_t
        CUDNN_DATA_FLOAT = 0
      Function cudnnStatus_t cudnnCreate(cudnnHandle_t * handle)
      Type cudnnHandle_t = struct cudnnContext * (handle)
    """

    def __init__(self, model: DeclarationModel):
        self.model = model

    def print_all(self, *filters: Filter) -> str:
        """Print every declaration accepted by all filters, in header order."""
        lines: List[str] = []

        lines.append("=" * 70)
        lines.append(f"Declarations for {self.model.config.header_include}")
        lines.append("=" * 70)

        decls = self.model.get(*filters)
        for decl in decls:
            lines.extend(self._format(decl))
        if not decls:
            lines.append("  (none)")
        lines.append("")

        return "\n".join(lines)

    def _format(self, decl: Declaration) -> List[str]:
        if isinstance(decl, EnumDecl):
            out = [f"Enum {decl.name}"]
            out.extend(
                f"  {e.name} = {e.value if e.value is not None else e.position}"
                for e in decl.enumerators
            )
            return out
        if isinstance(decl, FunctionDecl):
            return [f"Function {decl.c_signature()}"]
        if isinstance(decl, TypeDecl):
            handle = " (handle)" if decl.is_handle else ""
            return [f"Type {decl.name} = {decl.underlying}{handle}"]
        return [f"{type(decl).__name__} {decl.name}"]


def explore(model: DeclarationModel, *filters: Filter) -> str:
    """Convenience function to print the declaration model."""
    return DeclarationPrinter(model).print_all(*filters)
