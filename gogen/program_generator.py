"""Program Generator - drives one generation run and owns the output buffers"""

import logging
import subprocess
from contextlib import contextmanager
from pathlib import Path

from .common import CommonGenerator, doc_comment, go_quote
from .config import GoOptions
from .const_renderer import ConstRenderer
from .errors import GenerationError
from .names import FreshNames
from .remote_generator import RemoteGenerator
from .service_generator import ServiceGenerator
from .struct_generator import StructGenerator
from .type_mapper import TypeMapper
from .types import BaseType, Const, Enum, Program, Typedef, true_type

logger = logging.getLogger(__name__)


class GoGenerator:
    """Generates every Go file of one program.

    Each unit is rendered into a named in-memory buffer; nothing touches the
    filesystem until the whole program has generated without error.
    """

    def __init__(self, program: Program, options: GoOptions = None):
        self.program = program
        self.options = options or GoOptions()
        self.mapper = TypeMapper(program)
        self.common = CommonGenerator(program, self.options)
        self._reset()

    def _reset(self):
        """Start a run: temporaries are numbered from zero again"""
        self.names = FreshNames()
        self.renderer = ConstRenderer(self.mapper, self.names)
        self.structs = StructGenerator(self.mapper, self.renderer, self.names)
        self.services = ServiceGenerator(self.mapper, self.structs, self.names)
        self.remote = RemoteGenerator(self.common, self.mapper, self.names)

    @property
    def package_dir(self) -> str:
        """Output directory of the program, relative to the output root"""
        return f"{self.options.out_dir_base}/{self.program.go_module.replace('.', '/')}"

    @contextmanager
    def _declaration(self, label: str):
        """Attach the declaration label to errors raised while generating it"""
        logger.debug("Generating %s", label)
        try:
            yield
        except GenerationError as e:
            if e.declaration is None:
                e.declaration = label
            raise

    def generate(self) -> dict[str, str]:
        """Render all units; maps relative file path to content"""
        self._reset()
        logger.info("Generating Go package %s", self.program.go_module)
        files = {
            f"{self.package_dir}/ttypes.go": self.generate_types(),
            f"{self.package_dir}/constants.go": self.generate_constants(),
        }
        for service in self.program.services:
            with self._declaration(f"service {service.name}"):
                base = self.mapper.underscore(service.name)
                files[f"{self.package_dir}/{base}.go"] = self.generate_service(service)
                files[f"{self.package_dir}/{base}-remote/{base}-remote.go"] = self.remote.generate(service)
        return files

    def write(self, output_dir: str, files: dict[str, str] = None) -> list[Path]:
        """Write rendered `files` (generated now when omitted) below `output_dir`"""
        if files is None:
            files = self.generate()
        written = []
        for relative, content in files.items():
            path = Path(output_dir) / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
            if path.name.endswith("-remote.go"):
                path.chmod(0o755)
            logger.info("Wrote %s", path)
            written.append(path)
        if self.options.gofmt:
            for path in written:
                self._format(path)
        return written

    def _format(self, path: Path):
        try:
            subprocess.run(["gofmt", "-w", str(path)], check=True, capture_output=True)
        except (OSError, subprocess.CalledProcessError) as e:
            logger.warning("gofmt failed for %s, keeping unformatted output: %s", path, e)

    # Types unit

    def generate_types(self) -> str:
        lines = self.common.preamble()
        lines.extend(self.common.import_protection())
        for typedef in self.program.typedefs:
            with self._declaration(f"typedef {typedef.name}"):
                lines.extend(self.generate_typedef(typedef))
        for enum in self.program.enums:
            with self._declaration(f"enum {enum.name}"):
                lines.extend(self.generate_enum(enum))
        for struct in self.program.structs:
            kind = "exception" if struct.is_exception else "struct"
            with self._declaration(f"{kind} {struct.name}"):
                lines.extend(self.structs.generate(struct))
        return "\n".join(lines) + "\n"

    def generate_typedef(self, typedef: Typedef) -> list[str]:
        name = self.mapper.publicize(typedef.name)
        base = self.mapper.to_go(typedef.type)
        if base == name:
            return []
        lines = doc_comment(typedef.doc)
        lines.append(f"type {name} {base}")
        lines.append("")
        return lines

    def generate_enum(self, enum: Enum) -> list[str]:
        name = self.mapper.publicize(enum.name)
        values = enum.resolved_values()
        lines = doc_comment(enum.doc)
        lines.append(f"type {name} int64")
        lines.append("")
        lines.append("const (")
        for value_name, value in values:
            lines.append(f"\t{name}_{value_name} {name} = {value}")
        lines.append(")")
        lines.append("")

        lines.append(f"func (p {name}) String() string {{")
        lines.append("\tswitch p {")
        seen = set()
        for value_name, value in values:
            # Aliased values share a case
            if value in seen:
                continue
            seen.add(value)
            lines.append(f"\tcase {name}_{value_name}:")
            lines.append(f"\t\treturn {go_quote(f'{name}_{value_name}')}")
        lines.append("\t}")
        lines.append('\treturn "<UNSET>"')
        lines.append("}")
        lines.append("")

        lines.append(f"func {name}FromString(s string) ({name}, error) {{")
        lines.append("\tswitch s {")
        for value_name, _ in values:
            lines.append(f"\tcase {go_quote(f'{name}_{value_name}')}, {go_quote(value_name)}:")
            lines.append(f"\t\treturn {name}_{value_name}, nil")
        lines.append("\t}")
        lines.append(f'\treturn {name}({self.mapper.SENTINEL}), fmt.Errorf("not a valid {name} string: %s", s)')
        lines.append("}")
        lines.append("")
        return lines

    # Constants unit

    def generate_constants(self) -> str:
        lines = self.common.preamble()
        init = []
        for const in self.program.consts:
            with self._declaration(f"const {const.name}"):
                lines.extend(self.generate_const(const, init))
        lines.append("")
        lines.append("func init() {")
        lines.extend(init)
        lines.append("}")
        return "\n".join(lines) + "\n"

    def generate_const(self, const: Const, init: list[str]) -> list[str]:
        """Declaration lines; binary, record and container values append their assignment to `init`"""
        name = self.mapper.publicize(const.name)
        resolved = true_type(const.type)
        if isinstance(resolved, Enum) or (isinstance(resolved, BaseType) and not resolved.is_binary):
            return doc_comment(const.doc) + [f"const {name} = {self.renderer.render(const.type, const.value)}"]
        init.extend(self.renderer.render_assignment(name, const.type, const.value, indent="\t"))
        init.append("")
        return doc_comment(const.doc) + [f"var {name} {self.mapper.to_go(const.type)}"]

    # Service unit

    def generate_service(self, service) -> str:
        lines = self.common.preamble(include_error_package=True)
        lines.extend(self.services.generate(service))
        return "\n".join(lines) + "\n"
