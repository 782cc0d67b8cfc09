"""
codegen.py — Render Go source for enums, handle wrappers and method stubs.

Rendering is split in two:
  - `render_*` methods are pure: declaration/group in, Go source text out
  - `emit_*` methods append rendered text to an output stream

A unit (enum, handle group, receiver) is rendered completely before anything
is written, so a unit that fails to render is logged and skipped without
leaving half a declaration in the output.
"""

import logging
from typing import List, Optional, TextIO

from jinja2 import Environment, StrictUndefined

from .errors import GenerationError
from .grouping import ReceiverGroup
from .ir import CType, DeclarationModel, EnumDecl, FunctionDecl, is_enum
from .mapper import (
    enum_constant_name,
    exported,
    go_param_name,
    longest_common_prefix,
    method_name,
    receiver_name,
)
from .signature import GoParam, GoSignature, translate, unmapped_message
from .tables import Tables
from .type_mapper import TypeMapper

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

PREAMBLE = """\
package {{ package }}

/* Generated by {{ generator }}. DO NOT EDIT */

// #include <{{ include }}>
import "C"
"""

ENUM = """\

type {{ go_type }} int

const (
{% for name, raw in constants %}
\t{{ name }} {{ go_type }} = C.{{ raw }}
{% endfor %}
)

// C returns the C representation of {{ go_type }}.
func (e {{ go_type }}) C() C.{{ c_type }} { return C.{{ c_type }}(e) }
"""

STRUCT = """\

{% for todo in todos %}
// TODO: {{ todo }}
{% endfor %}
type {{ go_type }} struct {
\tinternal C.{{ c_type }}
{% for f in fields %}
\t{{ f.name }} {{ f.type_str }}
{% endfor %}
}
"""

CONSTRUCTION = """\

{{ sig }} {
\tvar internal C.{{ c_type }}
{% if create_returns_handle %}
\tinternal = C.{{ create }}()
{% else %}
{{ checked("C." ~ create ~ "(&internal)") }}
{% endif %}
{{ checked("C." ~ setter ~ "(" ~ args | join(", ") ~ ")") }}

\tretVal = &{{ go_type }}{
\t\tinternal: internal,
{% for f in fields %}
\t\t{{ f.name }}: {{ f.name }},
{% endfor %}
\t}
\truntime.SetFinalizer(retVal, destroy{{ go_type }})
\treturn retVal, nil
}
"""

CONSTRUCTION_TODO = """\

{{ sig }} {
\t// TODO: {{ reason }}
{% for s in setters %}
\t// \t{{ s }}
{% endfor %}
\tpanic("TODO")
}
"""

GETTER = """\

func ({{ recv }} *{{ go_type }}) {{ name }}() {{ field.type_str }} { return {{ recv }}.{{ field.name }} }
"""

GETTERS_TODO = """\

// TODO: Getters for {{ go_type }}
"""

DESTRUCTOR = """\

func destroy{{ go_type }}(obj *{{ go_type }}) { C.{{ destroy }}(obj.internal) }
"""

METHOD = """\

{% for todo in todos %}
// TODO: {{ todo }}
{% endfor %}
{{ sig }} {}
"""


def _make_env() -> Environment:
    return Environment(
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        autoescape=False,
    )


# ---------------------------------------------------------------------------
# Code generator
# ---------------------------------------------------------------------------


class CodeGenerator:
    """
    Renders Go wrappers from the declaration model and the curated tables.

    Usage:
        codegen = CodeGenerator(model, tables, mapper)
        codegen.emit_preamble(out)
        codegen.emit_enums(out)
        for group in resolve_groups(model, tables, mapper):
            codegen.emit_group(group, out)
    """

    def __init__(self, model: DeclarationModel, tables: Tables, mapper: TypeMapper):
        self.model = model
        self.config = model.config
        self.tables = tables
        self.mapper = mapper

        env = _make_env()
        env.globals["checked"] = self._checked
        self._templates = {
            name: env.from_string(src)
            for name, src in (
                ("preamble", PREAMBLE),
                ("enum", ENUM),
                ("struct", STRUCT),
                ("construction", CONSTRUCTION),
                ("construction_todo", CONSTRUCTION_TODO),
                ("getter", GETTER),
                ("getters_todo", GETTERS_TODO),
                ("destructor", DESTRUCTOR),
                ("method", METHOD),
            )
        }

    def _render(self, template: str, **context) -> str:
        return self._templates[template].render(**context)

    def _checked(self, call: str) -> str:
        """A C call statement, wrapped in a status check if the API has one."""
        if self.tables.status_type is None:
            return f"\t{call}"
        return f"\tif err = result({call}); err != nil {{\n\t\treturn nil, err\n\t}}"

    # ---- Preamble ----

    def render_preamble(self) -> str:
        return self._render(
            "preamble",
            package=self.config.package_name,
            generator=self.config.generator_name,
            include=self.config.header_include,
        )

    # ---- Enums ----

    def render_enum(self, decl: EnumDecl) -> Optional[str]:
        """
        Go type, constants and C() conversion for one enum.

        Returns None for enums that are ignored or have no Go name.
        """
        if self.tables.is_ignored(decl.name):
            logger.info("Skipped enum %s: ignored", decl.name)
            return None
        go_type = self.tables.enum_names.get(decl.name)
        if go_type is None:
            logger.warning("Skipped enum %s: no Go type name mapping", decl.name)
            return None
        if not decl.enumerators:
            logger.info("Skipped enum %s: no enumerators", decl.name)
            return None

        lcp = longest_common_prefix(decl.names)
        constants = [(enum_constant_name(lcp, n), n) for n in decl.names]
        derived = [c[0] for c in constants]
        if len(set(derived)) != len(derived):
            raise GenerationError(f"enum {decl.name}: derived constant names collide: {derived}")

        return self._render(
            "enum", go_type=go_type, c_type=decl.cgo_name, constants=constants
        )

    # ---- Handle groups ----

    def constructor_signature(self, group: ReceiverGroup) -> GoSignature:
        """New<T> translated from the group's setter."""
        sig = GoSignature(name=f"New{group.go_type}")
        return translate(
            group.setter_decl,
            self.mapper,
            sig=sig,
            receiver=group.c_type,
            positions=self.tables.positions_for(group.setter_decl.name),
            ret_type=GoParam(name="retVal", type=group.go_type, is_ptr=True),
            returns_err=True,
            status_type=self.tables.status_type,
        )

    def render_group(self, group: ReceiverGroup) -> str:
        """Struct, constructor, getters and destructor for one handle."""
        if not group.go_type:
            raise GenerationError(f"{group.c_type}: empty Go type name")

        decl = group.setter_decl
        sig = self.constructor_signature(group)
        outputs = [r for r in sig.ret_vals if r.position is not None]
        parts = [
            self._render(
                "struct",
                go_type=group.go_type,
                c_type=group.c_type,
                fields=sig.params,
                todos=sig.errors,
            )
        ]

        # constructor
        reason = None
        if group.multi_setter:
            reason = 'available "Set" methods:'
        elif sig.errors:
            reason = sig.todo
        elif outputs:
            reason = f"{decl.name} has output parameters; write the constructor by hand"
        elif sig.receiver_position is None:
            reason = f"{decl.name} takes no {group.c_type} to configure"

        if reason is not None:
            logger.info("%s: constructor left as TODO (%s)", group.go_type, reason)
            parts.append(
                self._render(
                    "construction_todo",
                    sig=sig,
                    reason=reason,
                    setters=group.setters if group.multi_setter else (),
                )
            )
        else:
            parts.append(
                self._render(
                    "construction",
                    sig=sig,
                    c_type=group.c_type,
                    go_type=group.go_type,
                    create=group.create,
                    create_returns_handle=group.create_returns_handle,
                    setter=decl.name,
                    args=self._call_args(decl, sig),
                    fields=sig.params,
                )
            )

        # getters
        if group.multi_setter:
            parts.append(self._render("getters_todo", go_type=group.go_type))
        else:
            parts.extend(self._render_getters(group, sig))

        parts.append(
            self._render("destructor", go_type=group.go_type, destroy=group.destroy)
        )
        return "".join(parts)

    def _call_args(self, decl: FunctionDecl, sig: GoSignature) -> List[str]:
        """Arguments of the setter call, in C parameter order."""
        by_position = {p.position: p for p in sig.params}
        args = []
        for p in decl.params:
            if p.position == sig.receiver_position:
                args.append("internal")
            else:
                go = by_position[p.position]
                args.append(self.mapper.c_arg(go.name, go.c_type))
        return args

    def _render_getters(self, group: ReceiverGroup, sig: GoSignature) -> List[str]:
        decl = group.setter_decl
        outputs = {r.position for r in sig.ret_vals if r.position is not None}
        fields = {f.position: f.name for f in sig.params}
        recv = receiver_name(group.go_type)
        getters = []
        for p in decl.params:
            if p.position in outputs:
                continue
            # the receiver itself, and any other parameter of the same type
            if p.position == sig.receiver_position or p.type.name == group.c_type:
                continue
            info = self.mapper.go_type_of(p.type)
            if info is None:
                getters.append(
                    f"\n// TODO: {unmapped_message(decl, p.position, p.name, p.type)}\n"
                )
                continue
            if info.go_type == group.go_type:
                continue
            name = fields.get(p.position) or go_param_name(p.name, p.position)
            getters.append(
                self._render(
                    "getter",
                    recv=recv,
                    go_type=group.go_type,
                    name=exported(name.rstrip("_")),
                    field=GoParam(name=name, type=info.go_type, is_ptr=info.is_wrapper),
                )
            )
        return getters

    # ---- Methods ----

    def method_signature(self, receiver: str, fn_name: str) -> Optional[GoSignature]:
        """The stub signature of one method, or None if it can't be found."""
        decl = self.model.function(fn_name)
        if decl is None:
            logger.warning("Method %s on %s: no such function in header", fn_name, receiver)
            return None

        info = self.mapper.go_type_of(CType(name=receiver))
        sig = GoSignature(
            name=self.tables.fn_names.get(fn_name)
            or method_name(fn_name, self.config.symbol_prefix),
            receiver=GoParam(
                name=receiver_name(info.go_type),
                type=info.go_type,
                is_ptr=info.is_wrapper,
            ),
        )
        return translate(
            decl,
            self.mapper,
            sig=sig,
            receiver=receiver,
            positions=self.tables.positions_for(fn_name),
            status_type=self.tables.status_type,
        )

    def render_methods(self, receiver: str, fn_names: List[str]) -> str:
        """Empty-bodied method stubs for one receiver, in table order."""
        if self.mapper.go_name_of_str(receiver) is None:
            logger.warning("Cannot generate methods for %r: no Go type mapping", receiver)
            return f"\n// TODO: receiver {receiver} has no Go type mapping\n"

        logger.info("Receiver : %s. Functions: %d", receiver, len(fn_names))
        parts = []
        for fn_name in fn_names:
            if self.tables.is_ignored(fn_name):
                logger.debug("Skipped method %s: ignored", fn_name)
                continue
            sig = self.method_signature(receiver, fn_name)
            if sig is None:
                continue
            parts.append(self._render("method", sig=sig, todos=sig.errors))
        return "".join(parts)

    # ---- Streams ----

    def emit_preamble(self, out: TextIO) -> None:
        out.write(self.render_preamble())

    def emit_enums(self, out: TextIO) -> int:
        """Append every mapped enum; returns how many were written."""
        count = 0
        for decl in self.model.get(is_enum):
            try:
                text = self.render_enum(decl)
            except Exception:
                logger.exception("Failed to render enum %s; skipping it", decl.name)
                continue
            if text is not None:
                out.write(text)
                count += 1
        return count

    def emit_group(self, group: ReceiverGroup, out: TextIO) -> bool:
        try:
            text = self.render_group(group)
        except Exception:
            logger.exception("Failed to render wrapper for %s; skipping this group", group.c_type)
            return False
        out.write(text)
        return True

    def emit_methods(self, out: TextIO) -> int:
        """Append method stubs for every receiver in the method table."""
        count = 0
        for receiver, fn_names in self.tables.methods.items():
            try:
                text = self.render_methods(receiver, fn_names)
            except Exception:
                logger.exception("Failed to render methods of %s; skipping them", receiver)
                continue
            out.write(text)
            count += 1
        return count
