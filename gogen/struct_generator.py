"""Struct/Codec Generator - record declarations with their wire read/write code"""

from .common import doc_comment, go_quote
from .const_renderer import ConstRenderer
from .errors import InvalidType
from .names import FreshNames
from .type_mapper import TypeMapper
from .types import (
    Base, BaseType, Enum, Struct, Typedef, ListType, SetType, MapType,
    Field, ListValue, MapValue, Type, true_type,
)


class StructGenerator:
    """Generates a Go record type: definition, constructor, IsSet queries, Read and Write"""

    def __init__(self, mapper: TypeMapper, renderer: ConstRenderer, names: FreshNames):
        self.mapper = mapper
        self.renderer = renderer
        self.names = names

    def generate(self, tstruct: Struct, is_result: bool = False, with_doc: bool = True) -> list[str]:
        """Generate the complete record; `is_result` selects the one-of writer"""
        name = self.mapper.publicize(tstruct.name)
        lines = []
        if with_doc:
            lines.extend(doc_comment(tstruct.doc, tstruct))
        lines.extend(self._generate_definition(tstruct, name))
        lines.extend(self._generate_constructor(tstruct, name))
        lines.extend(self._generate_isset_helpers(tstruct, name))
        lines.extend(self._generate_reader(tstruct, name))
        lines.extend(self._generate_writer(tstruct, name, is_result))
        lines.extend(self._generate_string(tstruct, name))
        return lines

    # Method naming

    @staticmethod
    def read_method(f: Field) -> str:
        return f"ReadField{TypeMapper.method_suffix(f.key)}"

    @staticmethod
    def write_method(f: Field) -> str:
        return f"WriteField{TypeMapper.method_suffix(f.key)}"

    # Definition and constructor

    def _generate_definition(self, tstruct: Struct, name: str) -> list[str]:
        lines = [f"type {name} struct {{"]
        sorted_fields = tstruct.sorted_fields
        if not sorted_fields or sorted_fields[0].key >= 0:
            position = 0
            for f in sorted_fields:
                while position != f.key:
                    if position != 0:
                        lines.append(f"\t// unused field # {position}")
                    position += 1
                tag = f"{f.name},{f.key}"
                if f.is_required:
                    tag += ",required"
                lines.append(f"\t{self.mapper.field_name(f.name)} {self.mapper.to_go(f.type)} `thrift:\"{tag}\"`")
                position += 1
        else:
            # Negative keys: declaration order, zero values only
            for f in tstruct.fields:
                lines.append(f"\t{self.mapper.field_name(f.name)} {self.mapper.to_go(f.type)}")
        lines.append("}")
        lines.append("")
        return lines

    def _generate_constructor(self, tstruct: Struct, name: str) -> list[str]:
        setup = []
        inits = []
        for f in tstruct.fields:
            member = self.mapper.field_name(f.name)
            if f.value is not None:
                field_setup, expr = self.renderer.render_value(f.type, f.value, "\t\t", stmt="\t")
                setup.extend(field_setup)
                inits.append(f"\t\t{member}: {expr},")
            elif isinstance(true_type(f.type), Enum):
                inits.append(f"\t\t{member}: {self.mapper.SENTINEL}, // unset sentinal value")

        lines = [f"func New{name}() *{name} {{"]
        lines.extend(setup)
        if inits:
            lines.append(f"\treturn &{name}{{")
            lines.extend(inits)
            lines.append("\t}")
        else:
            lines.append(f"\treturn &{name}{{}}")
        lines.append("}")
        lines.append("")
        return lines

    # Presence queries

    def _generate_isset_helpers(self, tstruct: Struct, name: str) -> list[str]:
        lines = []
        for f in tstruct.fields:
            if not self.mapper.needs_isset(f):
                continue
            member = self.mapper.field_name(f.name)
            lines.append(f"func (p *{name}) IsSet{member}() bool {{")
            lines.append(f"\treturn {self._isset_condition(f, member)}")
            lines.append("}")
            lines.append("")
        return lines

    def _isset_condition(self, f: Field, member: str) -> str:
        ttype = true_type(f.type)
        value = f.value
        target = f"p.{member}"
        if isinstance(ttype, BaseType):
            base = ttype.base
            if base is Base.BINARY:
                return f"{target} != nil"
            if base is Base.STRING:
                check = '""' if value is None else self.renderer.render(ttype, value)
            elif base is Base.BOOL:
                check = "false" if value is None else self.renderer.render(ttype, value)
            elif base in (Base.BYTE, Base.I16, Base.I32, Base.I64, Base.DOUBLE):
                check = "0" if value is None else self.renderer.render(ttype, value)
            else:
                raise InvalidType(f"cannot generate IsSet query for field {f.name} of type {ttype.name}")
            return f"{target} != {check}"
        if isinstance(ttype, Enum):
            return f"int64({target}) != {self.mapper.SENTINEL}"
        if isinstance(ttype, Struct):
            return f"{target} != nil"
        if isinstance(ttype, (ListType, SetType, MapType)):
            if self._non_empty(value):
                return f"{target} != nil"
            return f"{target} != nil && len({target}) > 0"
        raise InvalidType(f"cannot generate IsSet query for field {f.name} of type {ttype.name}")

    @staticmethod
    def _non_empty(value) -> bool:
        if isinstance(value, ListValue):
            return len(value.items) > 0
        if isinstance(value, MapValue):
            return len(value.pairs) > 0
        return False

    # Reader

    def _generate_reader(self, tstruct: Struct, name: str) -> list[str]:
        lines = [
            f"func (p *{name}) Read(iprot thrift.TProtocol) error {{",
            "\tif _, err := iprot.ReadStructBegin(); err != nil {",
            '\t\treturn fmt.Errorf("%T read error: %s", p, err)',
            "\t}",
            "\tfor {",
            "\t\t_, fieldTypeId, fieldId, err := iprot.ReadFieldBegin()",
            "\t\tif err != nil {",
            '\t\t\treturn fmt.Errorf("%T field %d read error: %s", p, fieldId, err)',
            "\t\t}",
            "\t\tif fieldTypeId == thrift.STOP {",
            "\t\t\tbreak",
            "\t\t}",
        ]
        if tstruct.fields:
            lines.append("\t\tswitch fieldId {")
            for f in tstruct.fields:
                lines.extend([
                    f"\t\tcase {f.key}:",
                    f"\t\t\tif err := p.{self.read_method(f)}(iprot); err != nil {{",
                    "\t\t\t\treturn err",
                    "\t\t\t}",
                ])
            lines.extend([
                "\t\tdefault:",
                "\t\t\tif err := iprot.Skip(fieldTypeId); err != nil {",
                "\t\t\t\treturn err",
                "\t\t\t}",
                "\t\t}",
            ])
        else:
            lines.extend([
                "\t\tif err := iprot.Skip(fieldTypeId); err != nil {",
                "\t\t\treturn err",
                "\t\t}",
            ])
        lines.extend([
            "\t\tif err := iprot.ReadFieldEnd(); err != nil {",
            "\t\t\treturn err",
            "\t\t}",
            "\t}",
            "\tif err := iprot.ReadStructEnd(); err != nil {",
            '\t\treturn fmt.Errorf("%T read struct end error: %s", p, err)',
            "\t}",
            "\treturn nil",
            "}",
            "",
        ])
        for f in tstruct.fields:
            lines.append(f"func (p *{name}) {self.read_method(f)}(iprot thrift.TProtocol) error {{")
            lines.extend(self.deserialize(f.type, f"p.{self.mapper.field_name(f.name)}", "\t", f.key))
            lines.append("\treturn nil")
            lines.append("}")
            lines.append("")
        return lines

    def deserialize(self, ttype: Type, target: str, indent: str, key: int,
                    declare: bool = False) -> list[str]:
        """Statements reading one value of `ttype` from `iprot` into `target`"""
        resolved = true_type(ttype)
        if isinstance(resolved, BaseType) and resolved.is_void:
            raise InvalidType(f"cannot generate deserialize code for void type: {target}")
        if isinstance(resolved, Struct):
            return self._deserialize_struct(resolved, target, indent, declare)
        if isinstance(resolved, (ListType, SetType, MapType)):
            return self._deserialize_container(resolved, target, indent, key, declare)
        if isinstance(resolved, (BaseType, Enum)):
            return self._deserialize_scalar(ttype, resolved, target, indent, key, declare)
        raise InvalidType(f"invalid type in deserialize for {target}: {ttype.name}")

    def _deserialize_scalar(self, ttype: Type, resolved: Type, target: str, indent: str,
                            key: int, declare: bool) -> list[str]:
        lines = []
        if declare:
            lines.append(f"{indent}var {target} {self.mapper.to_go(ttype)}")
        if isinstance(resolved, Enum):
            call = "ReadI32"
        else:
            call = "Read" + self.mapper.PROTOCOL_CALLS[resolved.base]

        wrap = None
        if isinstance(resolved, Enum) or isinstance(ttype, Typedef):
            wrap = self.mapper.to_go(ttype)
        elif resolved.base is Base.BYTE:
            wrap = "int8"
        value = f"{wrap}(v)" if wrap else "v"

        lines.extend([
            f"{indent}if v, err := iprot.{call}(); err != nil {{",
            f'{indent}\treturn fmt.Errorf("error reading field {key}: %s", err)',
            f"{indent}}} else {{",
            f"{indent}\t{target} = {value}",
            f"{indent}}}",
        ])
        return lines

    def _deserialize_struct(self, tstruct: Struct, target: str, indent: str, declare: bool) -> list[str]:
        op = ":=" if declare else "="
        constructor = self.mapper.new_prefix(self.mapper.type_name(tstruct))
        return [
            f"{indent}{target} {op} {constructor}()",
            f"{indent}if err := {target}.Read(iprot); err != nil {{",
            f'{indent}\treturn fmt.Errorf("%T error reading struct: %s", {target}, err)',
            f"{indent}}}",
        ]

    def _deserialize_container(self, ttype: Type, target: str, indent: str, key: int,
                               declare: bool) -> list[str]:
        op = ":=" if declare else "="
        size = self.names.next("size")
        lines = []
        if isinstance(ttype, MapType):
            kind = "map"
            lines.append(f"{indent}_, _, {size}, err := iprot.ReadMapBegin()")
            make = f"make({self.mapper.to_go(ttype)}, {size})"
        elif isinstance(ttype, SetType):
            kind = "set"
            lines.append(f"{indent}_, {size}, err := iprot.ReadSetBegin()")
            make = f"make({self.mapper.to_go(ttype)}, {size})"
        else:
            kind = "list"
            lines.append(f"{indent}_, {size}, err := iprot.ReadListBegin()")
            make = f"make({self.mapper.to_go(ttype)}, 0, {size})"
        lines.extend([
            f"{indent}if err != nil {{",
            f'{indent}\treturn fmt.Errorf("error reading {kind} begin: %s", err)',
            f"{indent}}}",
            f"{indent}{target} {op} {make}",
        ])

        i = self.names.next("i")
        inner = indent + "\t"
        lines.append(f"{indent}for {i} := 0; {i} < {size}; {i}++ {{")
        if isinstance(ttype, MapType):
            k = self.names.next("_key")
            v = self.names.next("_val")
            lines.extend(self.deserialize(ttype.key_type, k, inner, key, declare=True))
            lines.extend(self.deserialize(ttype.val_type, v, inner, key, declare=True))
            lines.append(f"{inner}{target}[{k}] = {v}")
        elif isinstance(ttype, SetType):
            elem = self.names.next("_elem")
            lines.extend(self.deserialize(ttype.elem_type, elem, inner, key, declare=True))
            lines.append(f"{inner}{target}[{elem}] = true")
        else:
            elem = self.names.next("_elem")
            lines.extend(self.deserialize(ttype.elem_type, elem, inner, key, declare=True))
            lines.append(f"{inner}{target} = append({target}, {elem})")
        lines.append(f"{indent}}}")

        end = kind.capitalize()
        lines.extend([
            f"{indent}if err := iprot.Read{end}End(); err != nil {{",
            f'{indent}\treturn fmt.Errorf("error reading {kind} end: %s", err)',
            f"{indent}}}",
        ])
        return lines

    # Writer

    def _generate_writer(self, tstruct: Struct, name: str, is_result: bool) -> list[str]:
        sorted_fields = tstruct.sorted_fields
        lines = [
            f"func (p *{name}) Write(oprot thrift.TProtocol) error {{",
            f"\tif err := oprot.WriteStructBegin({go_quote(tstruct.name)}); err != nil {{",
            '\t\treturn fmt.Errorf("%T write struct begin error: %s", p, err)',
            "\t}",
        ]
        if is_result and sorted_fields:
            # Exactly one populated field per response, highest key tested first
            lines.append("\tswitch {")
            for f in reversed(sorted_fields):
                if self.mapper.can_be_nil(f.type) and f.key != 0:
                    lines.append(f"\tcase p.{self.mapper.field_name(f.name)} != nil:")
                else:
                    lines.append("\tdefault:")
                lines.extend([
                    f"\t\tif err := p.{self.write_method(f)}(oprot); err != nil {{",
                    "\t\t\treturn err",
                    "\t\t}",
                ])
            lines.append("\t}")
        else:
            for f in sorted_fields:
                lines.extend([
                    f"\tif err := p.{self.write_method(f)}(oprot); err != nil {{",
                    "\t\treturn err",
                    "\t}",
                ])
        lines.extend([
            "\tif err := oprot.WriteFieldStop(); err != nil {",
            '\t\treturn fmt.Errorf("%T write field stop error: %s", p, err)',
            "\t}",
            "\tif err := oprot.WriteStructEnd(); err != nil {",
            '\t\treturn fmt.Errorf("%T write struct stop error: %s", p, err)',
            "\t}",
            "\treturn nil",
            "}",
            "",
        ])
        for f in sorted_fields:
            lines.extend(self._generate_field_writer(f, name))
        return lines

    def _generate_field_writer(self, f: Field, name: str) -> list[str]:
        member = self.mapper.field_name(f.name)
        lines = [f"func (p *{name}) {self.write_method(f)}(oprot thrift.TProtocol) (err error) {{"]
        indent = "\t"
        guards = 0
        if self.mapper.can_be_nil(f.type):
            lines.append(f"{indent}if p.{member} != nil {{")
            indent += "\t"
            guards += 1
        if self.mapper.needs_isset(f):
            lines.append(f"{indent}if p.IsSet{member}() {{")
            indent += "\t"
            guards += 1

        wire = self.mapper.wire_type(f.type)
        quoted = go_quote(f.name)
        lines.extend([
            f"{indent}if err := oprot.WriteFieldBegin({quoted}, {wire}, {f.key}); err != nil {{",
            f'{indent}\treturn fmt.Errorf("%T write field begin error {f.key}:{f.name}: %s", p, err)',
            f"{indent}}}",
        ])
        lines.extend(self.serialize(f.type, f"p.{member}", indent, f))
        lines.extend([
            f"{indent}if err := oprot.WriteFieldEnd(); err != nil {{",
            f'{indent}\treturn fmt.Errorf("%T write field end error {f.key}:{f.name}: %s", p, err)',
            f"{indent}}}",
        ])
        for _ in range(guards):
            indent = indent[:-1]
            lines.append(f"{indent}}}")
        lines.append("\treturn err")
        lines.append("}")
        lines.append("")
        return lines

    def serialize(self, ttype: Type, source: str, indent: str, f: Field) -> list[str]:
        """Statements writing the value held in `source` to `oprot`"""
        resolved = true_type(ttype)
        if isinstance(resolved, BaseType) and resolved.is_void:
            raise InvalidType(f"cannot generate serialize code for void type: {source}")
        if isinstance(resolved, Struct):
            return [
                f"{indent}if err := {source}.Write(oprot); err != nil {{",
                f'{indent}\treturn fmt.Errorf("%T error writing struct: %s", {source}, err)',
                f"{indent}}}",
            ]
        if isinstance(resolved, (ListType, SetType, MapType)):
            return self._serialize_container(resolved, source, indent, f)
        if isinstance(resolved, (BaseType, Enum)):
            return self._serialize_scalar(resolved, source, indent, f)
        raise InvalidType(f"invalid type in serialize for {source}: {ttype.name}")

    def _serialize_scalar(self, resolved: Type, source: str, indent: str, f: Field) -> list[str]:
        if isinstance(resolved, Enum):
            call = f"WriteI32(int32({source}))"
        elif resolved.base is Base.BINARY:
            call = f"WriteBinary({source})"
        else:
            conversions = {
                Base.BOOL: "bool",
                Base.BYTE: "byte",
                Base.I16: "int16",
                Base.I32: "int32",
                Base.I64: "int64",
                Base.DOUBLE: "float64",
                Base.STRING: "string",
            }
            method = self.mapper.PROTOCOL_CALLS[resolved.base]
            call = f"Write{method}({conversions[resolved.base]}({source}))"
        return [
            f"{indent}if err := oprot.{call}; err != nil {{",
            f'{indent}\treturn fmt.Errorf("%T.{f.name} ({f.key}) field write error: %s", p, err)',
            f"{indent}}}",
        ]

    def _serialize_container(self, ttype: Type, source: str, indent: str, f: Field) -> list[str]:
        inner = indent + "\t"
        if isinstance(ttype, MapType):
            kind = "map"
            begin = (f"WriteMapBegin({self.mapper.wire_type(ttype.key_type)}, "
                     f"{self.mapper.wire_type(ttype.val_type)}, len({source}))")
        elif isinstance(ttype, SetType):
            kind = "set"
            begin = f"WriteSetBegin({self.mapper.wire_type(ttype.elem_type)}, len({source}))"
        else:
            kind = "list"
            begin = f"WriteListBegin({self.mapper.wire_type(ttype.elem_type)}, len({source}))"
        lines = [
            f"{indent}if err := oprot.{begin}; err != nil {{",
            f'{indent}\treturn fmt.Errorf("error writing {kind} begin: %s", err)',
            f"{indent}}}",
        ]

        if isinstance(ttype, MapType):
            k = self.names.next("k")
            v = self.names.next("v")
            lines.append(f"{indent}for {k}, {v} := range {source} {{")
            lines.extend(self.serialize(ttype.key_type, k, inner, f))
            lines.extend(self.serialize(ttype.val_type, v, inner, f))
        elif isinstance(ttype, SetType):
            v = self.names.next("v")
            lines.append(f"{indent}for {v} := range {source} {{")
            lines.extend(self.serialize(ttype.elem_type, v, inner, f))
        else:
            v = self.names.next("v")
            lines.append(f"{indent}for _, {v} := range {source} {{")
            lines.extend(self.serialize(ttype.elem_type, v, inner, f))
        lines.append(f"{indent}}}")

        end = kind.capitalize()
        lines.extend([
            f"{indent}if err := oprot.Write{end}End(); err != nil {{",
            f'{indent}\treturn fmt.Errorf("error writing {kind} end: %s", err)',
            f"{indent}}}",
        ])
        return lines

    # Formatting

    def _generate_string(self, tstruct: Struct, name: str) -> list[str]:
        lines = [
            f"func (p *{name}) String() string {{",
            "\tif p == nil {",
            '\t\treturn "<nil>"',
            "\t}",
            f'\treturn fmt.Sprintf("{name}(%+v)", *p)',
            "}",
            "",
        ]
        if tstruct.is_exception:
            lines.extend([
                f"func (p *{name}) Error() string {{",
                "\treturn p.String()",
                "}",
                "",
            ])
        return lines
