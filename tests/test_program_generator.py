import logging
import subprocess

import pytest

from gogen import (
    Const, Enum, EnumValue, Field, GenerationError, GoGenerator, GoOptions, IntValue,
    InvalidKeyType, ListType, MapType, NoLiteralForType, Program, StringValue, Struct, __version__,
)
from gogen.types import BINARY, I32, STRING

TUTORIAL_FILES = [
    "gen-go/tutorial/ttypes.go",
    "gen-go/tutorial/constants.go",
    "gen-go/tutorial/calculator.go",
    "gen-go/tutorial/calculator-remote/calculator-remote.go",
]


@pytest.fixture
def bad_program(program: Program) -> Program:
    program.structs.append(Struct(
        name="Bad",
        fields=[Field(1, "m", MapType(ListType(I32), STRING))],
        program=program,
    ))
    return program


def test_file_layout(tutorial) -> None:
    assert list(GoGenerator(tutorial).generate()) == TUTORIAL_FILES


def test_dotted_namespace(program: Program) -> None:
    program.namespace = "com.example.demo"
    files = GoGenerator(program).generate()
    assert list(files)[:2] == ["gen-go/com/example/demo/ttypes.go", "gen-go/com/example/demo/constants.go"]
    assert "\npackage demo\n" in files["gen-go/com/example/demo/ttypes.go"]


def test_output_root_option(program: Program) -> None:
    files = GoGenerator(program, GoOptions(out_dir_base="out")).generate()
    assert "out/demo/ttypes.go" in files


def test_generation_is_repeatable(tutorial) -> None:
    assert GoGenerator(tutorial).generate() == GoGenerator(tutorial).generate()


def test_preamble(tutorial) -> None:
    ttypes = GoGenerator(tutorial).generate()["gen-go/tutorial/ttypes.go"]
    assert ttypes.startswith(f"// Autogenerated by gogen ({__version__})\n")
    assert '\t"git.apache.org/thrift.git/lib/go/thrift"' in ttypes
    assert '\t"shared"' in ttypes
    assert "var _ = shared.GoUnusedProtection__" in ttypes
    assert "var GoUnusedProtection__ int" in ttypes
    assert "goerr" not in ttypes


def test_service_unit_imports_error_package(tutorial) -> None:
    service = GoGenerator(tutorial).generate()["gen-go/tutorial/calculator.go"]
    assert '\tgoerr "github.com/bugsnag/bugsnag-go/errors"' in service
    assert "var _ = goerr.New" in service


def test_thrift_import_option(program: Program) -> None:
    files = GoGenerator(program, GoOptions(thrift_import="github.com/apache/thrift/lib/go/thrift")).generate()
    assert '\t"github.com/apache/thrift/lib/go/thrift"' in files["gen-go/demo/ttypes.go"]


def test_enum(program: Program, color: Enum) -> None:
    program.enums.append(color)
    ttypes = GoGenerator(program).generate()["gen-go/demo/ttypes.go"]
    assert "type Color int64" in ttypes
    assert "\tColor_RED Color = 0\n\tColor_GREEN Color = 1\n\tColor_BLUE Color = 5\n" in ttypes
    assert '\tcase Color_GREEN:\n\t\treturn "Color_GREEN"' in ttypes
    assert '\treturn "<UNSET>"' in ttypes
    assert '\tcase "Color_BLUE", "BLUE":\n\t\treturn Color_BLUE, nil' in ttypes
    assert 'return Color(math.MinInt32 - 1), fmt.Errorf("not a valid Color string: %s", s)' in ttypes


def test_enum_aliases_share_a_string_case(program: Program) -> None:
    program.enums.append(Enum(name="Dup", values=[EnumValue("A", 1), EnumValue("B", 1)], program=program))
    ttypes = GoGenerator(program).generate()["gen-go/demo/ttypes.go"]
    assert "\tcase Dup_A:" in ttypes
    assert "\tcase Dup_B:" not in ttypes
    assert '\tcase "Dup_B", "B":' in ttypes


def test_typedef(tutorial) -> None:
    ttypes = GoGenerator(tutorial).generate()["gen-go/tutorial/ttypes.go"]
    assert "// Typedefs rename a type for readability.\ntype MyInteger int32\n" in ttypes


def test_constants(tutorial) -> None:
    constants = GoGenerator(tutorial).generate()["gen-go/tutorial/constants.go"]
    assert "const INT32CONSTANT = 9853" in constants
    assert "var MAPCONSTANT map[string]string" in constants
    assert "var DEFAULT_WORK *Work" in constants
    assert "\nfunc init() {\n" in constants
    assert '\tMAPCONSTANT = map[string]string{\n\t\t"hello": "world",\n\t\t"goodnight": "moon",\n\t}' in constants
    assert "\tDEFAULT_WORK = &Work{\n\t\tNum1: 1,\n\t\tOp: 1,\n\t}" in constants
    assert "\tDEFAULT_WORK.Tags = v" in constants
    assert constants.endswith("}\n")


def test_enum_constant_is_a_go_const(program: Program, color: Enum) -> None:
    program.enums.append(color)
    program.consts.append(Const(name="FAVOURITE", type=color, value=IntValue(5)))
    constants = GoGenerator(program).generate()["gen-go/demo/constants.go"]
    assert "const FAVOURITE = 5" in constants


def test_errors_name_the_declaration(bad_program: Program) -> None:
    with pytest.raises(InvalidKeyType) as excinfo:
        GoGenerator(bad_program).generate()
    assert str(excinfo.value) == "struct Bad: cannot produce a valid Go map key type from []int32"


def test_constant_errors_name_the_constant(program: Program) -> None:
    program.consts.append(Const(name="BROKEN", type=STRING, value=IntValue(1)))
    with pytest.raises(NoLiteralForType) as excinfo:
        GoGenerator(program).generate()
    assert excinfo.value.declaration == "const BROKEN"


def test_write(tutorial, tmp_path) -> None:
    written = GoGenerator(tutorial).write(tmp_path)
    assert written == [tmp_path / name for name in TUTORIAL_FILES]
    remote = tmp_path / TUTORIAL_FILES[3]
    assert remote.stat().st_mode & 0o777 == 0o755
    assert (tmp_path / TUTORIAL_FILES[0]).read_text(encoding="utf-8").startswith("// Autogenerated by gogen")


def test_failed_generation_writes_nothing(bad_program: Program, tmp_path) -> None:
    with pytest.raises(GenerationError):
        GoGenerator(bad_program).write(tmp_path)
    assert list(tmp_path.iterdir()) == []


def test_gofmt_runs_per_file(tutorial, tmp_path, monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(subprocess, "run", lambda cmd, **kwargs: calls.append(cmd))
    written = GoGenerator(tutorial, GoOptions(gofmt=True)).write(tmp_path)
    assert calls == [["gofmt", "-w", str(path)] for path in written]


def test_gofmt_failure_keeps_output(tutorial, tmp_path, monkeypatch, caplog) -> None:
    def missing(cmd, **kwargs):
        raise FileNotFoundError("gofmt")
    monkeypatch.setattr(subprocess, "run", missing)
    with caplog.at_level(logging.WARNING, logger="gogen.program_generator"):
        written = GoGenerator(tutorial, GoOptions(gofmt=True)).write(tmp_path)
    assert all(path.exists() for path in written)
    assert "gofmt failed" in caplog.text


def test_repeated_runs_on_one_generator_match(tutorial) -> None:
    generator = GoGenerator(tutorial)
    assert generator.generate() == generator.generate()


def test_written_files_match_the_render(tutorial, tmp_path) -> None:
    generator = GoGenerator(tutorial)
    files = generator.generate()
    generator.write(tmp_path)
    for relative, content in files.items():
        assert (tmp_path / relative).read_text(encoding="utf-8") == content


def test_write_uses_given_render(program: Program, tmp_path) -> None:
    generator = GoGenerator(program)
    written = generator.write(tmp_path, {"gen-go/demo/ttypes.go": "package demo\n"})
    assert written == [tmp_path / "gen-go/demo/ttypes.go"]
    assert written[0].read_text(encoding="utf-8") == "package demo\n"


def test_binary_constant_is_assigned_in_init(program: Program) -> None:
    program.consts.append(Const(name="MAGIC", type=BINARY, value=StringValue("ab")))
    constants = GoGenerator(program).generate()["gen-go/demo/constants.go"]
    assert "var MAGIC []byte" in constants
    assert '\tMAGIC = []byte("ab")' in constants
    assert "const MAGIC" not in constants
