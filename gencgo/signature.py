"""
signature.py — Translate C function declarations into Go signatures.

The translation is a pure step: FunctionDecl in, GoSignature out.  Rendering
a GoSignature to text is deterministic and depends only on the signature's
own ordered lists.

Problems with a single declaration (an unmapped parameter type, say) never
raise.  They are recorded on the signature and later surface as TODO
comments in the generated code.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .ir import CType, FunctionDecl
from .mapper import go_param_name
from .type_mapper import TypeMapper

logger = logging.getLogger(__name__)

# named results a translated signature may carry
RESERVED_NAMES = frozenset({"retVal", "cRetVal", "err"})


@dataclass
class GoParam:
    """A Go parameter, receiver or return value."""

    name: str = ""
    type: str = ""
    is_ptr: bool = False
    position: Optional[int] = None  # index of the C parameter it came from
    c_type: Optional[CType] = None

    @property
    def type_str(self) -> str:
        return ("*" if self.is_ptr else "") + self.type

    def __str__(self) -> str:
        if self.name:
            return f"{self.name} {self.type_str}"
        return self.type_str


@dataclass
class GoSignature:
    """A Go function or method signature."""

    name: str = ""
    receiver: GoParam = field(default_factory=GoParam)
    params: List[GoParam] = field(default_factory=list)
    ret_vals: List[GoParam] = field(default_factory=list)
    receiver_position: Optional[int] = None
    errors: List[str] = field(default_factory=list)

    @property
    def todo(self) -> str:
        return "; ".join(self.errors)

    def __str__(self) -> str:
        out = "func "
        if self.receiver.type:
            out += f"({self.receiver}) "
        out += f"{self.name}({', '.join(str(p) for p in self.params)})"
        if len(self.ret_vals) == 1 and not self.ret_vals[0].name:
            out += f" {self.ret_vals[0]}"
        elif self.ret_vals:
            out += f" ({', '.join(str(r) for r in self.ret_vals)})"
        return out


def unmapped_message(fn: FunctionDecl, position: int, name: str, ctype: CType) -> str:
    return f"{fn.name}: Parameter {position} Skipped \"{name}\" of {ctype} - unmapped type"


def is_output_candidate(ctype: CType, mapper: TypeMapper) -> bool:
    """A single pointer to a scalar or to an opaque handle."""
    if ctype.pointers != 1:
        return False
    pointee = ctype.pointee()
    if pointee.is_scalar or pointee.is_handle:
        return True
    info = mapper.go_type_of(pointee)
    return info is not None and info.is_wrapper


def translate(
    fn: FunctionDecl,
    mapper: TypeMapper,
    sig: Optional[GoSignature] = None,
    receiver: Optional[str] = None,
    positions: Iterable[int] = (),
    ret_type: Optional[GoParam] = None,
    returns_err: Optional[bool] = None,
    status_type: Optional[str] = None,
) -> GoSignature:
    """
    Fill in a GoSignature from a C declaration.

    Parameters
    ----------
    fn          : the C function
    mapper      : type lookups
    sig         : signature to complete (name/receiver may be preset)
    receiver    : C type name; the first parameter of this type becomes the
                  receiver and is left out of the Go parameters
    positions   : parameter indices that are output parameters; only those
                  that are pointers to scalars or handles are returned
    ret_type    : a leading return value (constructors return the wrapper)
    returns_err : force (True) or suppress (False) a trailing `err error`;
                  None means "if the C function returns status_type"
    status_type : the library's status/error-code type
    """
    sig = sig if sig is not None else GoSignature()
    outputs = frozenset(positions)
    if ret_type is not None:
        sig.ret_vals.append(ret_type)
    # names the Go parameters must not shadow
    taken = set(RESERVED_NAMES)
    taken.update(r.name for r in sig.ret_vals)
    if sig.receiver.name:
        taken.add(sig.receiver.name)

    for p in fn.params:
        is_output = p.position in outputs and is_output_candidate(p.type, mapper)

        if (
            receiver is not None
            and sig.receiver_position is None
            and not is_output
            and p.type.name == receiver
            and p.type.pointers == 0
        ):
            sig.receiver_position = p.position
            continue

        ctype = p.type.pointee() if is_output else p.type
        info = mapper.go_type_of(ctype)
        if info is None:
            msg = unmapped_message(fn, p.position, p.name, p.type)
            logger.debug(msg)
            sig.errors.append(msg)
            continue

        name = go_param_name(p.name, p.position)
        while name in taken:
            name += "_"
        taken.add(name)
        go_param = GoParam(
            name=name,
            type=info.go_type,
            is_ptr=info.is_wrapper,
            position=p.position,
            c_type=ctype,
        )
        if is_output:
            sig.ret_vals.append(go_param)
        else:
            if p.position in outputs:
                logger.debug(
                    "%s: parameter %d (%s) listed as output but is not a pointer "
                    "to a scalar or handle; treating it as input",
                    fn.name, p.position, p.type,
                )
            sig.params.append(go_param)

    rtype = fn.return_type
    is_status = status_type is not None and rtype.key == status_type
    if not rtype.is_void and not is_status:
        info = mapper.go_type_of(rtype)
        if info is None:
            sig.errors.append(f"{fn.name}: return type {rtype} - unmapped type")
        else:
            sig.ret_vals.insert(
                1 if ret_type is not None else 0,
                GoParam(
                    name="retVal" if ret_type is None else "cRetVal",
                    type=info.go_type,
                    is_ptr=info.is_wrapper,
                    c_type=rtype,
                ),
            )

    if returns_err is None:
        returns_err = is_status
    if returns_err:
        sig.ret_vals.append(GoParam(name="err", type="error"))

    return sig
