"""Identifier and type mapping from IDL to Go"""

from typing import Optional
from .errors import InvalidKeyType, InvalidType
from .types import (
    Base, BaseType, Enum, Struct, Typedef, ListType, SetType, MapType,
    Program, Type, true_type,
)


class TypeMapper:
    """Maps IDL identifiers and types to Go identifiers and type expressions"""

    # Go keywords plus the predeclared `error`, which generated code relies on
    GO_RESERVED = frozenset({
        'break', 'case', 'chan', 'const', 'continue',
        'default', 'defer', 'else', 'error',
        'fallthrough', 'for', 'func', 'go', 'goto',
        'if', 'import', 'interface', 'map', 'package',
        'range', 'return', 'select', 'struct', 'switch',
        'type', 'var',
    })

    GO_TYPES = {
        Base.BOOL: 'bool',
        Base.BYTE: 'int8',
        Base.I16: 'int16',
        Base.I32: 'int32',
        Base.I64: 'int64',
        Base.DOUBLE: 'float64',
        Base.STRING: 'string',
        Base.BINARY: '[]byte',
    }

    # Binary shares the STRING tag on the wire
    WIRE_TYPES = {
        Base.BOOL: 'thrift.BOOL',
        Base.BYTE: 'thrift.BYTE',
        Base.I16: 'thrift.I16',
        Base.I32: 'thrift.I32',
        Base.I64: 'thrift.I64',
        Base.DOUBLE: 'thrift.DOUBLE',
        Base.STRING: 'thrift.STRING',
        Base.BINARY: 'thrift.STRING',
    }

    # Name of the protocol read/write call suffix per base type
    PROTOCOL_CALLS = {
        Base.BOOL: 'Bool',
        Base.BYTE: 'Byte',
        Base.I16: 'I16',
        Base.I32: 'I32',
        Base.I64: 'I64',
        Base.DOUBLE: 'Double',
        Base.STRING: 'String',
        Base.BINARY: 'Binary',
    }

    SENTINEL = 'math.MinInt32 - 1'

    def __init__(self, program: Optional[Program] = None):
        self.program = program

    @classmethod
    def publicize(cls, value: str) -> str:
        """Exported Go name: upper-case initial, `_x` becomes `X`.

        A module prefix (up to the last dot) is kept as is.
        """
        if not value:
            return value
        prefix, dot, name = value.rpartition('.')
        if not name:
            return value
        chars = list(name)
        if not chars[0].isupper():
            chars[0] = chars[0].upper()
        i = 1
        while i < len(chars) - 1:
            if chars[i] == '_' and chars[i + 1].islower():
                chars[i:i + 2] = [chars[i + 1].upper()]
            i += 1
        return prefix + dot + ''.join(chars)

    @classmethod
    def privatize(cls, value: str) -> str:
        """Unexported Go name: lower-case initial, `_x` becomes `X`"""
        if not value:
            return value
        chars = list(value)
        if not chars[0].islower():
            chars[0] = chars[0].lower()
        i = 1
        while i < len(chars) - 1:
            if chars[i] == '_' and chars[i + 1].isalpha():
                chars[i:i + 2] = [chars[i + 1].upper()]
            i += 1
        return cls.keyword_safe(''.join(chars))

    @classmethod
    def new_prefix(cls, value: str) -> str:
        """Constructor name for a (possibly module qualified) type"""
        if not value:
            return value
        prefix, dot, name = value.rpartition('.')
        return f"{prefix}{dot}New{cls.publicize(name)}"

    @classmethod
    def keyword_safe(cls, value: str) -> str:
        """Rename identifiers that would collide with a Go reserved word"""
        lowered = value.lower()
        if lowered in cls.GO_RESERVED:
            return lowered + '_a1'
        return value

    @classmethod
    def field_name(cls, name: str) -> str:
        """Go struct member name for an IDL field"""
        return cls.publicize(cls.keyword_safe(name))

    @classmethod
    def underscore(cls, value: str) -> str:
        """CamelCase to snake_case, used for file names"""
        if not value:
            return value
        out = [value[0].lower()]
        for ch in value[1:]:
            if ch.isupper():
                out.append('_')
                out.append(ch.lower())
            else:
                out.append(ch)
        return ''.join(out)

    @classmethod
    def method_suffix(cls, key: int) -> str:
        """Suffix of per-field codec methods; negative keys get a leading underscore"""
        if key < 0:
            return f"_{-key}"
        return str(key)

    def type_name(self, ttype: Type) -> str:
        """IDL name of a named type, qualified by its Go package when foreign"""
        program = ttype.program
        if program is not None and self.program is not None and program is not self.program:
            module = program.go_module.rsplit('.', 1)[-1]
            return f"{module}.{ttype.name}"
        return ttype.name

    def to_go(self, ttype: Type) -> str:
        """Go type expression for an IDL type"""
        if isinstance(ttype, BaseType):
            if ttype.is_void:
                raise InvalidType("void has no Go type")
            return self.GO_TYPES[ttype.base]
        if isinstance(ttype, (Enum, Typedef)):
            return self.publicize(self.type_name(ttype))
        if isinstance(ttype, Struct):
            return '*' + self.publicize(self.type_name(ttype))
        if isinstance(ttype, MapType):
            return f"map[{self.to_go_key(ttype.key_type)}]{self.to_go(ttype.val_type)}"
        if isinstance(ttype, SetType):
            return f"map[{self.to_go_key(ttype.elem_type)}]bool"
        if isinstance(ttype, ListType):
            return '[]' + self.to_go(ttype.elem_type)
        raise InvalidType(f"invalid type: {ttype!r}")

    def to_go_key(self, ttype: Type) -> str:
        """Go type usable as a map key; containers are rejected"""
        if isinstance(true_type(ttype), (ListType, SetType, MapType)):
            raise InvalidKeyType(self.to_go(ttype))
        return self.to_go(ttype)

    @classmethod
    def wire_type(cls, ttype: Type) -> str:
        """Wire type tag constant of the runtime library"""
        ttype = true_type(ttype)
        if isinstance(ttype, BaseType):
            if ttype.is_void:
                raise InvalidType("void has no wire type")
            return cls.WIRE_TYPES[ttype.base]
        if isinstance(ttype, Enum):
            return 'thrift.I32'
        if isinstance(ttype, Struct):
            return 'thrift.STRUCT'
        if isinstance(ttype, MapType):
            return 'thrift.MAP'
        if isinstance(ttype, SetType):
            return 'thrift.SET'
        if isinstance(ttype, ListType):
            return 'thrift.LIST'
        raise InvalidType(f"invalid type: {ttype!r}")

    @classmethod
    def can_be_nil(cls, ttype: Type) -> bool:
        """Whether the Go representation has a nil (absent) state"""
        ttype = true_type(ttype)
        if isinstance(ttype, BaseType):
            if ttype.is_void:
                raise InvalidType("void cannot be nil-checked")
            return ttype.is_binary
        if isinstance(ttype, Enum):
            return False
        if isinstance(ttype, (Struct, ListType, SetType, MapType)):
            return True
        raise InvalidType(f"invalid type: {ttype!r}")

    @classmethod
    def needs_isset(cls, f) -> bool:
        """Optional fields and enum fields get an IsSet query"""
        return f.is_optional or isinstance(true_type(f.type), Enum)

    def argument_list(self, struct: Struct) -> str:
        """Go parameter list for the fields of a record"""
        return ", ".join(
            f"{self.keyword_safe(f.name)} {self.to_go(f.type)}" for f in struct.fields
        )

