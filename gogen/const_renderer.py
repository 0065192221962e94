"""Literal Renderer - turns typed constant value trees into Go initializer syntax"""

import math
from typing import Optional

from .common import go_quote
from .errors import NoLiteralForType
from .names import FreshNames
from .type_mapper import TypeMapper
from .types import (
    Base, BaseType, Enum, Struct, ListType, SetType, MapType,
    IntValue, DoubleValue, StringValue, ListValue, MapValue,
    ConstValue, Type, true_type,
)


class ConstRenderer:
    """Renders constant values; trusts that values were type checked upstream.

    Record literals whose fields hold records or containers are built in two
    phases: the outer record is bound first, each nested value goes into a
    fresh temporary which is then assigned into the record. Every render call
    therefore yields setup statements plus the final expression.
    """

    def __init__(self, mapper: TypeMapper, names: FreshNames):
        self.mapper = mapper
        self.names = names

    def render(self, ttype: Type, value: ConstValue, indent: str = "") -> str:
        """Single expression; fails if the value needs setup statements"""
        setup, expr = self.render_value(ttype, value, indent)
        if setup:
            raise NoLiteralForType(f"constant of type {ttype.name} needs setup statements")
        return expr

    def render_assignment(self, target: str, ttype: Type, value: ConstValue,
                          indent: str = "\t") -> list[str]:
        """Statements assigning the value to an already declared target"""
        setup, expr = self.render_value(ttype, value, indent, target=target)
        if expr == target:
            return setup
        return setup + [f"{indent}{target} = {expr}"]

    def render_value(self, ttype: Type, value: ConstValue, indent: str = "",
                     target: Optional[str] = None,
                     stmt: Optional[str] = None) -> tuple[list[str], str]:
        """Setup statements (indented by `stmt`) and the final expression"""
        if stmt is None:
            stmt = indent
        resolved = true_type(ttype)
        if isinstance(resolved, BaseType):
            return [], self._render_base(resolved, value)
        if isinstance(resolved, Enum):
            return [], str(self._integer(resolved, value))
        if isinstance(resolved, Struct):
            return self._render_struct(resolved, value, indent, target, stmt)
        if isinstance(resolved, MapType):
            return self._render_map(resolved, value, indent, stmt)
        if isinstance(resolved, ListType):
            return self._render_list(resolved, value, indent, stmt)
        if isinstance(resolved, SetType):
            return self._render_set(resolved, value, indent, stmt)
        raise NoLiteralForType(f"cannot generate constant for type {ttype.name}")

    def _integer(self, ttype: Type, value: ConstValue) -> int:
        if not isinstance(value, IntValue):
            raise NoLiteralForType(f"no {ttype.name} literal for {value!r}")
        return value.value

    def _render_base(self, ttype: BaseType, value: ConstValue) -> str:
        base = ttype.base
        if base in (Base.STRING, Base.BINARY):
            if not isinstance(value, StringValue):
                raise NoLiteralForType(f"no {ttype.name} literal for {value!r}")
            if base is Base.BINARY:
                return f"[]byte({go_quote(value.value)})"
            return go_quote(value.value)
        if base is Base.BOOL:
            return "true" if self._integer(ttype, value) > 0 else "false"
        if base in (Base.BYTE, Base.I16, Base.I32, Base.I64):
            return str(self._integer(ttype, value))
        if base is Base.DOUBLE:
            if isinstance(value, IntValue):
                return str(value.value)
            if isinstance(value, DoubleValue) and math.isfinite(value.value):
                return repr(value.value)
            raise NoLiteralForType(f"no double literal for {value!r}")
        raise NoLiteralForType(f"no constant of base type {ttype.name}")

    def _render_struct(self, tstruct: Struct, value: ConstValue, indent: str,
                       target: Optional[str], stmt: str) -> tuple[list[str], str]:
        if not isinstance(value, MapValue):
            raise NoLiteralForType(f"no {tstruct.name} literal for {value!r}")
        inner = indent + "\t"
        inline = []
        deferred = []
        for key, val in value.pairs:
            fname = key.value if isinstance(key, StringValue) else None
            f = tstruct.field_named(fname) if fname is not None else None
            if f is None:
                raise NoLiteralForType(f"type error: {tstruct.name} has no field {fname or key!r}")
            ftype = true_type(f.type)
            if isinstance(ftype, (BaseType, Enum)):
                inline.append(f"{inner}{TypeMapper.field_name(f.name)}: {self.render(f.type, val)},")
            else:
                deferred.append((f, val))

        name = self.mapper.publicize(self.mapper.type_name(tstruct))
        if inline:
            literal = "&" + name + "{\n" + "\n".join(inline) + "\n" + indent + "}"
        else:
            literal = "&" + name + "{}"
        if not deferred:
            return [], literal

        setup = []
        if target is None:
            target = self.names.next("tmp")
            setup.append(f"{stmt}{target} := {literal}")
        else:
            setup.append(f"{stmt}{target} = {literal}")
        for f, val in deferred:
            v = self.names.next("v")
            nested_setup, expr = self.render_value(f.type, val, stmt)
            setup.extend(nested_setup)
            setup.append(f"{stmt}{v} := {expr}")
            setup.append(f"{stmt}{target}.{TypeMapper.field_name(f.name)} = {v}")
        return setup, target

    def _render_map(self, tmap: MapType, value: ConstValue, indent: str, stmt: str) -> tuple[list[str], str]:
        if not isinstance(value, MapValue):
            raise NoLiteralForType(f"no {tmap.name} literal for {value!r}")
        go_type = self.mapper.to_go(tmap)
        inner = indent + "\t"
        setup = []
        entries = []
        for k, v in value.pairs:
            key_setup, key_expr = self.render_value(tmap.key_type, k, inner, stmt=stmt)
            val_setup, val_expr = self.render_value(tmap.val_type, v, inner, stmt=stmt)
            setup.extend(key_setup)
            setup.extend(val_setup)
            entries.append(f"{inner}{key_expr}: {val_expr},")
        return setup, self._composite(go_type, entries, indent)

    def _render_list(self, tlist: ListType, value: ConstValue, indent: str, stmt: str) -> tuple[list[str], str]:
        if not isinstance(value, ListValue):
            raise NoLiteralForType(f"no {tlist.name} literal for {value!r}")
        go_type = self.mapper.to_go(tlist)
        inner = indent + "\t"
        setup = []
        entries = []
        for item in value.items:
            item_setup, expr = self.render_value(tlist.elem_type, item, inner, stmt=stmt)
            setup.extend(item_setup)
            entries.append(f"{inner}{expr},")
        return setup, self._composite(go_type, entries, indent)

    def _render_set(self, tset: SetType, value: ConstValue, indent: str, stmt: str) -> tuple[list[str], str]:
        if not isinstance(value, ListValue):
            raise NoLiteralForType(f"no {tset.name} literal for {value!r}")
        go_type = self.mapper.to_go(tset)
        inner = indent + "\t"
        setup = []
        entries = []
        for item in value.items:
            item_setup, expr = self.render_value(tset.elem_type, item, inner, stmt=stmt)
            setup.extend(item_setup)
            entries.append(f"{inner}{expr}: true,")
        return setup, self._composite(go_type, entries, indent)

    @staticmethod
    def _composite(go_type: str, entries: list[str], indent: str) -> str:
        if not entries:
            return go_type + "{}"
        return go_type + "{\n" + "\n".join(entries) + "\n" + indent + "}"
