import pytest

from gogen import (
    Enum, Field, InvalidKeyType, InvalidType, ListType, MapType, Program, SetType, Struct, Typedef,
    TypeMapper,
)
from gogen.types import BINARY, BOOL, BYTE, DOUBLE, I16, I32, I64, STRING, VOID


def test_publicize_joins_underscored_words() -> None:
    assert TypeMapper.publicize("my_field_name") == "MyFieldName"
    assert TypeMapper.publicize("num1") == "Num1"
    assert TypeMapper.publicize("DEFAULT_WORK") == "DEFAULT_WORK"


def test_publicize_keeps_module_prefix() -> None:
    assert TypeMapper.publicize("shared.shared_struct") == "shared.SharedStruct"
    assert TypeMapper.publicize("a.b.c_d") == "a.b.CD"


def test_publicize_is_a_single_pass() -> None:
    assert TypeMapper.publicize("a_b_c") == "ABC"
    assert TypeMapper.publicize("trailing_") == "Trailing_"


def test_privatize_disambiguates_reserved_words() -> None:
    assert TypeMapper.privatize("Type") == "type_a1"
    assert TypeMapper.privatize("Calculator") == "calculator"
    assert TypeMapper.privatize("My_Service") == "myService"


def test_keyword_safe() -> None:
    assert TypeMapper.keyword_safe("range") == "range_a1"
    assert TypeMapper.keyword_safe("Type") == "type_a1"
    assert TypeMapper.keyword_safe("Types") == "Types"
    assert TypeMapper.keyword_safe("num1") == "num1"


def test_field_name_of_reserved_word() -> None:
    assert TypeMapper.field_name("type") == "TypeA1"
    assert TypeMapper.field_name("what_op") == "WhatOp"


def test_method_suffix() -> None:
    assert TypeMapper.method_suffix(3) == "3"
    assert TypeMapper.method_suffix(0) == "0"
    assert TypeMapper.method_suffix(-2) == "_2"


def test_underscore() -> None:
    assert TypeMapper.underscore("Calculator") == "calculator"
    assert TypeMapper.underscore("SharedService") == "shared_service"


def test_base_types() -> None:
    mapper = TypeMapper()
    assert mapper.to_go(BOOL) == "bool"
    assert mapper.to_go(BYTE) == "int8"
    assert mapper.to_go(I16) == "int16"
    assert mapper.to_go(I32) == "int32"
    assert mapper.to_go(I64) == "int64"
    assert mapper.to_go(DOUBLE) == "float64"
    assert mapper.to_go(STRING) == "string"
    assert mapper.to_go(BINARY) == "[]byte"


def test_void_has_no_go_type() -> None:
    with pytest.raises(InvalidType):
        TypeMapper().to_go(VOID)


def test_containers(program: Program) -> None:
    mapper = TypeMapper(program)
    work = Struct(name="Work", program=program)
    assert mapper.to_go(ListType(I32)) == "[]int32"
    assert mapper.to_go(SetType(STRING)) == "map[string]bool"
    assert mapper.to_go(MapType(STRING, work)) == "map[string]*Work"
    assert mapper.to_go(ListType(ListType(BINARY))) == "[][][]byte"


def test_named_types(program: Program, color: Enum) -> None:
    mapper = TypeMapper(program)
    assert mapper.to_go(color) == "Color"
    assert mapper.to_go(Struct(name="work_item", program=program)) == "*WorkItem"
    assert mapper.to_go(Typedef(name="MyInteger", type=I32, program=program)) == "MyInteger"


def test_foreign_types_are_qualified(program: Program) -> None:
    shared = Program(name="shared", namespace="com.example.shared")
    mapper = TypeMapper(program)
    assert mapper.to_go(Struct(name="SharedStruct", program=shared)) == "*shared.SharedStruct"
    assert mapper.type_name(Struct(name="Local", program=program)) == "Local"


def test_container_map_key_is_rejected() -> None:
    mapper = TypeMapper()
    with pytest.raises(InvalidKeyType) as excinfo:
        mapper.to_go(MapType(ListType(I32), STRING))
    assert "[]int32" in str(excinfo.value)
    with pytest.raises(InvalidKeyType):
        mapper.to_go(SetType(MapType(STRING, STRING)))


def test_typedef_of_container_is_rejected_as_key(program: Program) -> None:
    alias = Typedef(name="Ids", type=ListType(I32), program=program)
    with pytest.raises(InvalidKeyType):
        TypeMapper(program).to_go_key(alias)


def test_wire_types(color: Enum) -> None:
    assert TypeMapper.wire_type(BINARY) == "thrift.STRING"
    assert TypeMapper.wire_type(STRING) == "thrift.STRING"
    assert TypeMapper.wire_type(color) == "thrift.I32"
    assert TypeMapper.wire_type(Struct(name="Work")) == "thrift.STRUCT"
    assert TypeMapper.wire_type(Typedef(name="Ids", type=ListType(I32))) == "thrift.LIST"
    assert TypeMapper.wire_type(MapType(STRING, I32)) == "thrift.MAP"


def test_can_be_nil(color: Enum) -> None:
    assert TypeMapper.can_be_nil(BINARY)
    assert TypeMapper.can_be_nil(Struct(name="Work"))
    assert TypeMapper.can_be_nil(SetType(I32))
    assert not TypeMapper.can_be_nil(STRING)
    assert not TypeMapper.can_be_nil(color)


def test_argument_list(program: Program) -> None:
    args = Struct(name="f_args", fields=[Field(1, "num1", I32), Field(2, "type", STRING)])
    assert TypeMapper(program).argument_list(args) == "num1 int32, type_a1 string"
