import json
from pathlib import Path

import pytest

from gogen import (
    Enum, IntValue, ListType, ListValue, LoadError, MapValue, ProgramLoader, StringValue, load_program,
)
from gogen.types import I32, STRING


def write_doc(directory: Path, name: str, document: dict) -> Path:
    path = directory / name
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


def test_tutorial(tutorial) -> None:
    assert tutorial.name == "tutorial"
    assert [inc.name for inc in tutorial.includes] == ["shared"]
    assert tutorial.typedefs[0].type == I32
    work = tutorial.structs[0]
    assert work.field_named("num1").value == IntValue(0)
    assert work.field_named("tags").type == ListType(STRING)
    assert work.field_named("comment").is_optional
    assert isinstance(work.field_named("op").type, Enum)
    assert work.field_named("op").type is tutorial.enums[0]


def test_tutorial_constants(tutorial) -> None:
    consts = {c.name: c for c in tutorial.consts}
    assert consts["INT32CONSTANT"].value == IntValue(9853)
    assert consts["MAPCONSTANT"].value == MapValue((
        (StringValue("hello"), StringValue("world")),
        (StringValue("goodnight"), StringValue("moon")),
    ))
    assert consts["DEFAULT_WORK"].value == MapValue((
        (StringValue("num1"), IntValue(1)),
        (StringValue("op"), IntValue(1)),
        (StringValue("tags"), ListValue((StringValue("a"), StringValue("b")))),
    ))


def test_tutorial_services(tutorial) -> None:
    calculator = tutorial.services[0]
    shared = tutorial.includes[0]
    assert calculator.extends is shared.services[0]
    assert [f.name for f in calculator.all_functions()] == ["ping", "add", "calculate", "zip", "getStruct"]
    calculate = calculator.functions[2]
    assert calculate.exceptions.fields[0].type is tutorial.structs[1]
    assert calculate.args.name == "calculate_args"
    assert calculator.functions[3].oneway


def test_includes_are_loaded_once(tutorial_path) -> None:
    loader = ProgramLoader()
    tutorial = loader.load(tutorial_path)
    shared = loader.load(tutorial_path.parent / "shared.json")
    assert tutorial.includes[0] is shared


def test_name_defaults_to_file_stem(tmp_path) -> None:
    assert load_program(write_doc(tmp_path, "billing.json", {})).name == "billing"


def test_enum_values(tmp_path) -> None:
    path = write_doc(tmp_path, "e.json", {
        "enums": [{"name": "Level", "values": [{"name": "LOW"}, {"name": "HIGH", "value": 10}, {"name": "TOP"}]}],
        "consts": [{"name": "DEFAULT_LEVEL", "type": "Level", "value": "Level.TOP"}],
    })
    program = load_program(path)
    assert program.enums[0].resolved_values() == [("LOW", 0), ("HIGH", 10), ("TOP", 11)]
    assert program.consts[0].value == IntValue(11)


def test_default_may_name_a_later_record(tmp_path) -> None:
    path = write_doc(tmp_path, "d.json", {"structs": [
        {"name": "A", "fields": [{"key": 1, "name": "b", "type": "B", "default": {"x": 2}}]},
        {"name": "B", "fields": [{"key": 1, "name": "x", "type": "i32"}]},
    ]})
    a = load_program(path).structs[0]
    assert a.fields[0].value == MapValue(((StringValue("x"), IntValue(2)),))


def test_numeric_map_keys(tmp_path) -> None:
    path = write_doc(tmp_path, "m.json", {"consts": [
        {"name": "NAMES", "type": {"map": ["i32", "string"]}, "value": {"1": "one"}},
        {"name": "PAIRS", "type": {"map": ["i32", "string"]}, "value": [[2, "two"]]},
    ]})
    consts = load_program(path).consts
    assert consts[0].value == MapValue(((IntValue(1), StringValue("one")),))
    assert consts[1].value == MapValue(((IntValue(2), StringValue("two")),))


@pytest.mark.parametrize("document, message", [
    ({"structs": [{"name": "A", "fields": [{"key": 1, "name": "x", "type": "Missing"}]}]},
     "unknown type Missing"),
    ({"structs": [{"name": "A", "fields": [{"key": 1, "name": "x", "type": "i32"},
                                           {"key": 1, "name": "y", "type": "i32"}]}]},
     "duplicate field key 1"),
    ({"structs": [{"name": "A"}], "enums": [{"name": "A"}]},
     "duplicate declaration A"),
    ({"structs": [{"name": "A", "fields": [{"key": 1, "name": "x", "type": "i32", "required": "maybe"}]}]},
     "invalid requiredness"),
    ({"structs": [{"fields": []}]},
     "missing key"),
    ({"services": [{"name": "A", "extends": "B"}, {"name": "B", "extends": "A"}]},
     "cyclic extends chain"),
    ({"services": [{"name": "A", "functions": [{"name": "f", "oneway": True, "returns": "i32"}]}]},
     "oneway functions cannot return values or throw"),
    ({"structs": [{"name": "A", "fields": [{"key": 1, "name": "x", "type": "i32"}]}],
      "consts": [{"name": "C", "type": "A", "value": {"y": 1}}]},
     "A has no field y"),
    ({"consts": [{"name": "C", "type": "i32", "value": "seven"}]},
     "is not a valid i32"),
    ({"structs": [{"name": "A", "fields": [{"key": 1, "name": "x", "type": "other.Thing"}]}]},
     "unknown include other"),
])
def test_invalid_documents(tmp_path, document, message) -> None:
    path = write_doc(tmp_path, "bad.json", document)
    with pytest.raises(LoadError, match=message):
        load_program(path)


def test_include_cycle(tmp_path) -> None:
    write_doc(tmp_path, "a.json", {"includes": ["b.json"]})
    write_doc(tmp_path, "b.json", {"includes": ["a.json"]})
    with pytest.raises(LoadError, match="include cycle"):
        load_program(tmp_path / "a.json")


def test_unreadable_documents(tmp_path) -> None:
    with pytest.raises(LoadError, match="cannot read"):
        load_program(tmp_path / "missing.json")
    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(LoadError, match="invalid JSON"):
        load_program(broken)
    with pytest.raises(LoadError, match="document must be an object"):
        load_program(write_doc(tmp_path, "list.json", []))
