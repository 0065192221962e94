"""
Go Code Generator Package

Turns a parsed IDL program (typedefs, enums, constants, structs, exceptions
and services) into Go source that speaks the Thrift wire protocol:
  1. Record types with their Read/Write codecs
  2. Constants
  3. Service interfaces, clients and processors
  4. A command line invoker per service
"""

__version__ = "0.9.1"

from .types import (
    Base, BaseType, Requiredness, ListType, SetType, MapType,
    Field, Struct, Enum, EnumValue, Typedef, Const, Function, Service, Program,
    IntValue, DoubleValue, StringValue, ListValue, MapValue,
)
from .errors import GenerationError, InvalidKeyType, NoLiteralForType, InvalidType, ConfigError, LoadError
from .config import GoOptions
from .names import FreshNames
from .type_mapper import TypeMapper
from .const_renderer import ConstRenderer
from .struct_generator import StructGenerator
from .service_generator import ServiceGenerator
from .remote_generator import RemoteGenerator
from .program_generator import GoGenerator
from .loader import ProgramLoader, load_program

__all__ = [
    'Base', 'BaseType', 'Requiredness', 'ListType', 'SetType', 'MapType',
    'Field', 'Struct', 'Enum', 'EnumValue', 'Typedef', 'Const', 'Function', 'Service', 'Program',
    'IntValue', 'DoubleValue', 'StringValue', 'ListValue', 'MapValue',
    'GenerationError', 'InvalidKeyType', 'NoLiteralForType', 'InvalidType', 'ConfigError', 'LoadError',
    'GoOptions', 'FreshNames', 'TypeMapper', 'ConstRenderer',
    'StructGenerator', 'ServiceGenerator', 'RemoteGenerator', 'GoGenerator',
    'ProgramLoader', 'load_program',
]
