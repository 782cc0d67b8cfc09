"""
grouping.py — Group C functions by the opaque handle they operate on.

For every handle in the curated setters table the resolver finds the setter
declaration used to guess the wrapper's fields, and the functions that create
and destroy the handle.  A handle without both a create and a destroy
function gets no generated code at all: a constructor with no matching
destructor would leak the native object.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .ir import DeclarationModel, FunctionDecl, is_function, named
from .tables import Tables
from .type_mapper import TypeMapper

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReceiverGroup:
    """Everything needed to emit the wrapper for one handle type."""

    c_type: str  # e.g. "cudnnTensorDescriptor_t"
    go_type: str  # e.g. "TensorDescriptor"
    setters: Tuple[str, ...]
    create: Optional[str]
    destroy: Optional[str]
    setter_decl: FunctionDecl
    create_returns_handle: bool = False  # `h = create()` vs `create(&h)`

    @property
    def multi_setter(self) -> bool:
        """More than one setter: the canonical constructor shape is ambiguous."""
        return len(self.setters) > 1


def _first(table: dict, key: str) -> Optional[str]:
    names = table.get(key)
    return names[0] if names else None


def _setter_decl(model: DeclarationModel, setters: List[str]) -> Optional[FunctionDecl]:
    """The first of the setters in header order."""
    decls = model.get(is_function, named(setters))
    return decls[0] if decls else None


def _create_returns_handle(model: DeclarationModel, create: str, handle: str) -> bool:
    decl = model.function(create)
    if decl is None:
        logger.warning(
            "Create function %r for %s not found in header; assuming it takes an out-parameter",
            create, handle,
        )
        return False
    return decl.return_type.name == handle and decl.return_type.pointers == 0


def resolve_group(
    model: DeclarationModel, tables: Tables, mapper: TypeMapper, handle: str
) -> Optional[ReceiverGroup]:
    """Resolve one handle; None (after logging why) if it must be skipped."""
    setters = tables.setters.get(handle, [])

    go_type = mapper.go_name_of_str(handle)
    if go_type is None:
        logger.warning("Cannot generate for %r: no Go type mapping", handle)
        return None

    for name in setters:
        if tables.is_ignored(name):
            logger.info("Skipped generating for %r: setter %r is ignored", handle, name)
            return None

    decl = _setter_decl(model, setters)
    if decl is None:
        logger.warning("Skipped %s: none of its setters %s is declared", handle, setters)
        return None

    create = _first(tables.creations, handle)
    destroy = _first(tables.destructions, handle)
    if create is None or destroy is None:
        logger.info("Skipped %s - No Create/Destroy", handle)
        return None

    return ReceiverGroup(
        c_type=handle,
        go_type=go_type,
        setters=tuple(setters),
        create=create,
        destroy=destroy,
        setter_decl=decl,
        create_returns_handle=_create_returns_handle(model, create, handle),
    )


def resolve_groups(
    model: DeclarationModel, tables: Tables, mapper: TypeMapper
) -> List[ReceiverGroup]:
    """All emittable groups, in setters-table order."""
    groups = []
    for handle in tables.setters:
        group = resolve_group(model, tables, mapper, handle)
        if group is not None:
            groups.append(group)
    return groups
