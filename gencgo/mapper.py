"""
mapper.py — Name derivation and built-in C -> Go scalar mappings.

Everything here is a pure function over plain strings, so the naming
heuristics can be tested against literal fixtures without touching libclang.

Naming conventions of the generated Go code:
  - enum constants drop the longest common prefix of their enum and become
    exported CamelCase ("CUDNN_DATA_FLOAT" -> "Float")
  - parameters keep their C names unless they collide with a Go keyword
  - methods drop the library's symbol prefix ("cudnnAddTensor" -> "AddTensor")
"""

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class GoTypeMapping:
    """How a C scalar maps to Go + its cgo counterpart."""

    go_type: str  # e.g. "int32"
    cgo_type: str  # e.g. "C.int"


# ---------------------------------------------------------------------------
# The built-in table
# ---------------------------------------------------------------------------
# Keys are CType.key spellings (qualifiers stripped, one '*' per pointer).
# The curated go_types table is consulted first, so any entry here can be
# overridden per library.

TYPE_MAP: dict[str, GoTypeMapping] = {
    # --- integers ---
    "char": GoTypeMapping("byte", "C.char"),
    "signed char": GoTypeMapping("int8", "C.schar"),
    "unsigned char": GoTypeMapping("byte", "C.uchar"),
    "short": GoTypeMapping("int16", "C.short"),
    "unsigned short": GoTypeMapping("uint16", "C.ushort"),
    "int": GoTypeMapping("int", "C.int"),
    "unsigned int": GoTypeMapping("uint", "C.uint"),
    "long": GoTypeMapping("int64", "C.long"),
    "unsigned long": GoTypeMapping("uint64", "C.ulong"),
    "long long": GoTypeMapping("int64", "C.longlong"),
    "unsigned long long": GoTypeMapping("uint64", "C.ulonglong"),
    "int32_t": GoTypeMapping("int32", "C.int32_t"),
    "uint32_t": GoTypeMapping("uint32", "C.uint32_t"),
    "int64_t": GoTypeMapping("int64", "C.int64_t"),
    "uint64_t": GoTypeMapping("uint64", "C.uint64_t"),
    "size_t": GoTypeMapping("uintptr", "C.size_t"),
    # --- floating point ---
    "float": GoTypeMapping("float32", "C.float"),
    "double": GoTypeMapping("float64", "C.double"),
    # --- opaque memory ---
    "void*": GoTypeMapping("unsafe.Pointer", ""),
}

GO_KEYWORDS = frozenset(
    {
        "break", "case", "chan", "const", "continue", "default", "defer",
        "else", "fallthrough", "for", "func", "go", "goto", "if", "import",
        "interface", "map", "package", "range", "return", "select", "struct",
        "switch", "type", "var",
    }
)


# ---------------------------------------------------------------------------
# Enum constant names
# ---------------------------------------------------------------------------


def longest_common_prefix(names: Iterable[str]) -> str:
    """
    The longest string every name starts with (character-wise).

    >>> longest_common_prefix(["FOO_FOO_BAR", "FOO_FOO_BAZ"])
    'FOO_FOO_BA'
    """
    names = list(names)
    if not names:
        return ""
    lo, hi = min(names), max(names)
    n = 0
    while n < len(lo) and lo[n] == hi[n]:
        n += 1
    return lo[:n]


def enum_constant_name(prefix: str, name: str) -> str:
    """
    Derive an exported Go constant name from an enumerator token.

    The prefix is cut back to its last '_' so whole words are stripped
    ("FOO_FOO_BA" strips "FOO_FOO_" from "FOO_FOO_BAR", giving "Bar").  If
    what remains is empty or doesn't start with a letter, the last letter of
    the stripped prefix is kept in front of it.
    """
    cut = prefix[: prefix.rfind("_") + 1]
    trimmed = name[len(cut):] if name.startswith(cut) else name
    if not trimmed.lstrip("_")[:1].isalpha():
        letters = [c for c in cut if c.isalpha()]
        if not letters:
            return name
        trimmed = letters[-1] + trimmed.lstrip("_")
    return snake_to_camel(trimmed)


def snake_to_camel(name: str) -> str:
    """
    SNAKE_CASE / snake_case -> CamelCase, leaving mixedCase words alone
    apart from their first letter.

    >>> snake_to_camel("LOAD_ACTION")
    'LoadAction'
    >>> snake_to_camel("LoadAction")
    'LoadAction'
    """
    out = []
    for part in name.split("_"):
        if not part:
            continue
        if part.isupper() or part.islower():
            out.append(part.capitalize())
        else:
            out.append(part[0].upper() + part[1:])
    return "".join(out)


# ---------------------------------------------------------------------------
# Identifier helpers
# ---------------------------------------------------------------------------


def exported(name: str) -> str:
    """Upper-case the first letter: "dataType" -> "DataType"."""
    return name[:1].upper() + name[1:]


def go_param_name(name: str, position: int) -> str:
    """A Go-safe parameter/field name for a C parameter."""
    if not name:
        return f"arg{position}"
    if name in GO_KEYWORDS:
        return name + "_"
    return name


def receiver_name(go_type: str) -> str:
    """Receiver variable for a Go type: "TensorDescriptor" -> "t"."""
    return go_type.lstrip("*")[:1].lower() or "r"


def method_name(c_name: str, prefix: str = "") -> str:
    """Default Go method name for a C function: strip the symbol prefix."""
    if prefix and c_name.startswith(prefix) and len(c_name) > len(prefix):
        c_name = c_name[len(prefix):]
    return exported(snake_to_camel(c_name) if "_" in c_name else c_name)
