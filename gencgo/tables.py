"""
tables.py — Curated mapping tables consumed by the generator.

The tables are maintained by hand between runs: which declarations to ignore,
what Go name each C enum or type gets, which functions create, configure and
destroy each opaque handle, and which functions become methods on which
receiver.  They are loaded once per run into a `Tables` object that is passed
explicitly through the pipeline.

JSON layout (every key optional):

    {
      "ignored": ["cudnnGetVersion"],
      "enum_names": {"cudnnDataType_t": "DataType"},
      "go_types": {
        "cudnnTensorDescriptor_t": {"go": "TensorDescriptor", "wrapper": true},
        "cudnnDataType_t": "DataType"
      },
      "methods": {"cudnnHandle_t": ["cudnnAddTensor"]},
      "fn_names": {"cudnnAddTensor": "AddTensor"},
      "setters": {"cudnnTensorDescriptor_t": ["cudnnSetTensor4dDescriptor"]},
      "creations": {"cudnnTensorDescriptor_t": ["cudnnCreateTensorDescriptor"]},
      "destructions": {"cudnnTensorDescriptor_t": ["cudnnDestroyTensorDescriptor"]},
      "return_positions": {"cudnnGetVersion": [0]},
      "status_type": "cudnnStatus_t"
    }
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Set

from .errors import TableError


@dataclass(frozen=True)
class TypeMapping:
    """How one C type name maps to a Go type name."""

    go_type: str
    is_wrapper: bool = False  # one of the generated opaque wrapper structs


@dataclass
class Tables:
    """All curated tables for one run. Read-only once constructed."""

    ignored: Set[str] = field(default_factory=set)
    enum_names: Dict[str, str] = field(default_factory=dict)
    go_types: Dict[str, TypeMapping] = field(default_factory=dict)
    methods: Dict[str, List[str]] = field(default_factory=dict)
    fn_names: Dict[str, str] = field(default_factory=dict)
    setters: Dict[str, List[str]] = field(default_factory=dict)
    creations: Dict[str, List[str]] = field(default_factory=dict)
    destructions: Dict[str, List[str]] = field(default_factory=dict)
    return_positions: Dict[str, FrozenSet[int]] = field(default_factory=dict)
    status_type: Optional[str] = None

    def is_ignored(self, name: str) -> bool:
        return name in self.ignored

    def positions_for(self, fn_name: str) -> FrozenSet[int]:
        """Output-parameter positions of a function (empty if none listed)."""
        return self.return_positions.get(fn_name, frozenset())

    @classmethod
    def from_dict(cls, data: dict) -> "Tables":
        """Build tables from the decoded JSON document."""
        if not isinstance(data, dict):
            raise TableError("tables document must be a JSON object")
        try:
            return cls(
                ignored=set(data.get("ignored", [])),
                enum_names=dict(data.get("enum_names", {})),
                go_types={
                    k: _type_mapping(k, v) for k, v in data.get("go_types", {}).items()
                },
                methods={k: list(v) for k, v in data.get("methods", {}).items()},
                fn_names=dict(data.get("fn_names", {})),
                setters={k: list(v) for k, v in data.get("setters", {}).items()},
                creations={k: list(v) for k, v in data.get("creations", {}).items()},
                destructions={
                    k: list(v) for k, v in data.get("destructions", {}).items()
                },
                return_positions={
                    k: frozenset(int(i) for i in v)
                    for k, v in data.get("return_positions", {}).items()
                },
                status_type=data.get("status_type"),
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise TableError(f"malformed tables document: {e}") from e


def _type_mapping(c_name: str, value) -> TypeMapping:
    if isinstance(value, str):
        return TypeMapping(go_type=value)
    if isinstance(value, dict) and "go" in value:
        return TypeMapping(go_type=value["go"], is_wrapper=bool(value.get("wrapper")))
    raise TableError(f"go_types[{c_name!r}] must be a string or {{'go': ..., 'wrapper': ...}}")


def load_tables(path: str | Path) -> Tables:
    """Load the curated tables from a JSON file. Any failure is fatal."""
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except OSError as e:
        raise TableError(f"cannot read tables {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise TableError(f"invalid JSON in {path}: {e}") from e
    return Tables.from_dict(data)
