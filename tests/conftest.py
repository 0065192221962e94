"""Shared fixtures: the sample programs and small programs built in code"""

from pathlib import Path

import pytest

from gogen import (
    ConstRenderer, Enum, EnumValue, FreshNames, Program, ServiceGenerator,
    StructGenerator, TypeMapper, load_program,
)

SAMPLES = Path(__file__).resolve().parent.parent / "samples"


@pytest.fixture
def tutorial_path() -> Path:
    return SAMPLES / "tutorial.json"


@pytest.fixture
def tutorial(tutorial_path):
    return load_program(tutorial_path)


@pytest.fixture
def program() -> Program:
    return Program(name="demo", namespace="demo")


@pytest.fixture
def color(program) -> Enum:
    return Enum(
        name="Color",
        values=[EnumValue("RED"), EnumValue("GREEN"), EnumValue("BLUE", 5)],
        program=program,
    )


@pytest.fixture
def render_struct(program):
    """Render one record of `program` to Go text"""
    def render(struct, is_result=False) -> str:
        mapper = TypeMapper(program)
        names = FreshNames()
        generator = StructGenerator(mapper, ConstRenderer(mapper, names), names)
        return "\n".join(generator.generate(struct, is_result=is_result))
    return render


@pytest.fixture
def render_service(program):
    """Render one service of `program` to Go text"""
    def render(service) -> str:
        mapper = TypeMapper(program)
        names = FreshNames()
        structs = StructGenerator(mapper, ConstRenderer(mapper, names), names)
        return "\n".join(ServiceGenerator(mapper, structs, names).generate(service))
    return render
