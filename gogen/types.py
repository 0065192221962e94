"""Data types for the parsed IDL program consumed by the generators"""

from dataclasses import dataclass, field
from enum import Enum as _PyEnum
from typing import Optional, Union


class Base(_PyEnum):
    """IDL base types"""
    VOID = 'void'
    BOOL = 'bool'
    BYTE = 'byte'
    I16 = 'i16'
    I32 = 'i32'
    I64 = 'i64'
    DOUBLE = 'double'
    STRING = 'string'
    BINARY = 'binary'


class Requiredness(_PyEnum):
    """Field requiredness"""
    REQUIRED = 'required'
    OPTIONAL = 'optional'
    DEFAULT = 'default'


@dataclass(frozen=True)
class BaseType:
    """Builtin scalar type"""
    base: Base

    @property
    def name(self) -> str:
        return self.base.value

    @property
    def program(self):
        return None

    @property
    def is_void(self) -> bool:
        return self.base is Base.VOID

    @property
    def is_binary(self) -> bool:
        return self.base is Base.BINARY


VOID = BaseType(Base.VOID)
BOOL = BaseType(Base.BOOL)
BYTE = BaseType(Base.BYTE)
I16 = BaseType(Base.I16)
I32 = BaseType(Base.I32)
I64 = BaseType(Base.I64)
DOUBLE = BaseType(Base.DOUBLE)
STRING = BaseType(Base.STRING)
BINARY = BaseType(Base.BINARY)


@dataclass(frozen=True)
class ListType:
    elem_type: 'Type'

    @property
    def name(self) -> str:
        return f"list<{self.elem_type.name}>"

    @property
    def program(self):
        return None


@dataclass(frozen=True)
class SetType:
    elem_type: 'Type'

    @property
    def name(self) -> str:
        return f"set<{self.elem_type.name}>"

    @property
    def program(self):
        return None


@dataclass(frozen=True)
class MapType:
    key_type: 'Type'
    val_type: 'Type'

    @property
    def name(self) -> str:
        return f"map<{self.key_type.name},{self.val_type.name}>"

    @property
    def program(self):
        return None


# Constant value tree

@dataclass(frozen=True)
class IntValue:
    value: int


@dataclass(frozen=True)
class DoubleValue:
    value: float


@dataclass(frozen=True)
class StringValue:
    value: str


@dataclass(frozen=True)
class ListValue:
    """Elements of a list or set literal"""
    items: tuple = ()


@dataclass(frozen=True)
class MapValue:
    """Ordered (key, value) pairs of a map or record literal"""
    pairs: tuple = ()


ConstValue = Union[IntValue, DoubleValue, StringValue, ListValue, MapValue]


@dataclass(eq=False)
class Field:
    """Record field"""
    key: int
    name: str
    type: 'Type'
    req: Requiredness = Requiredness.DEFAULT
    value: Optional[ConstValue] = None
    doc: Optional[str] = None

    @property
    def is_required(self) -> bool:
        return self.req is Requiredness.REQUIRED

    @property
    def is_optional(self) -> bool:
        return self.req is Requiredness.OPTIONAL


@dataclass(eq=False)
class Struct:
    """Struct or exception definition, also used for RPC envelopes"""
    name: str
    fields: list[Field] = field(default_factory=list)
    is_exception: bool = False
    program: Optional['Program'] = None
    doc: Optional[str] = None

    @property
    def sorted_fields(self) -> list[Field]:
        """Fields in ascending wire key order"""
        return sorted(self.fields, key=lambda f: f.key)

    def field_named(self, name: str) -> Optional[Field]:
        return next((f for f in self.fields if f.name == name), None)


@dataclass(eq=False)
class EnumValue:
    name: str
    value: Optional[int] = None
    doc: Optional[str] = None


@dataclass(eq=False)
class Enum:
    """IDL enum definition"""
    name: str
    values: list[EnumValue] = field(default_factory=list)
    program: Optional['Program'] = None
    doc: Optional[str] = None

    def resolved_values(self) -> list[tuple[str, int]]:
        """Pair every constant with its value; implicit values count up from the previous one"""
        resolved = []
        value = -1
        for v in self.values:
            value = v.value if v.value is not None else value + 1
            resolved.append((v.name, value))
        return resolved


@dataclass(eq=False)
class Typedef:
    """Named alias of another type"""
    name: str
    type: 'Type'
    program: Optional['Program'] = None
    doc: Optional[str] = None


Type = Union[BaseType, Enum, Struct, Typedef, ListType, SetType, MapType]


@dataclass(eq=False)
class Const:
    name: str
    type: Type
    value: ConstValue
    doc: Optional[str] = None


@dataclass(eq=False)
class Function:
    """Service method; args and exceptions are synthesized records"""
    name: str
    args: Struct
    returntype: Type = VOID
    exceptions: Optional[Struct] = None
    oneway: bool = False
    doc: Optional[str] = None

    def __post_init__(self):
        if self.exceptions is None:
            self.exceptions = Struct(name=f"{self.name}_exceptions", program=self.args.program)


@dataclass(eq=False)
class Service:
    name: str
    functions: list[Function] = field(default_factory=list)
    extends: Optional['Service'] = None
    program: Optional['Program'] = None
    doc: Optional[str] = None

    def all_functions(self) -> list[Function]:
        """Own functions followed by every inherited one, nearest parent first"""
        functions = list(self.functions)
        parent = self.extends
        while parent is not None:
            functions.extend(parent.functions)
            parent = parent.extends
        return functions


@dataclass(eq=False)
class Program:
    """Complete parsed IDL program"""
    name: str
    namespace: str = ""
    includes: list['Program'] = field(default_factory=list)
    typedefs: list[Typedef] = field(default_factory=list)
    enums: list[Enum] = field(default_factory=list)
    consts: list[Const] = field(default_factory=list)
    structs: list[Struct] = field(default_factory=list)
    services: list[Service] = field(default_factory=list)

    @property
    def go_module(self) -> str:
        """Dotted Go module: the go namespace, else the program name"""
        return self.namespace or self.name


def true_type(ttype: Type) -> Type:
    """Follow typedefs down to the underlying shape"""
    while isinstance(ttype, Typedef):
        ttype = ttype.type
    return ttype
