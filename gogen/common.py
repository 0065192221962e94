"""Common Generator - shared preamble and comment fragments for generated Go files"""

import json
from typing import Optional

from . import __version__
from .config import GoOptions
from .type_mapper import TypeMapper
from .types import Program, Struct

BUGSNAG_ERRORS_IMPORT = "github.com/bugsnag/bugsnag-go/errors"


def go_quote(value: str) -> str:
    """Go interpreted string literal"""
    # JSON string escapes are a subset of Go's
    return json.dumps(value, ensure_ascii=False)


def doc_comment(doc: Optional[str], fields: Optional[Struct] = None,
                subheader: str = "Attributes", indent: str = "") -> list[str]:
    """Render doc text and a field listing as `//` comment lines"""
    text = []
    if doc:
        text.extend(doc.strip().splitlines())
    if fields is not None and fields.fields:
        if text:
            text.append("")
        text.append(f"{subheader}:")
        for f in fields.fields:
            entry = f" - {TypeMapper.field_name(f.name)}"
            if f.doc:
                entry += f": {f.doc.strip()}"
            text.append(entry)
    return [f"{indent}// {line}".rstrip() for line in text]


class CommonGenerator:
    """Generates the preamble shared by every Go file of a program"""

    def __init__(self, program: Program, options: GoOptions):
        self.program = program
        self.options = options
        self.package_name = program.go_module.rsplit('.', 1)[-1]

    def autogen_comment(self) -> list[str]:
        return [
            f"// Autogenerated by gogen ({__version__})",
            "// DO NOT EDIT UNLESS YOU ARE SURE THAT YOU KNOW WHAT YOU ARE DOING",
            "",
        ]

    def package_clause(self, name: Optional[str] = None) -> list[str]:
        return [f"package {name or self.package_name}", ""]

    def include_path(self, program: Program) -> str:
        return self.options.package_prefix + program.go_module.replace('.', '/')

    def imports(self, include_error_package: bool = False) -> list[str]:
        """Import block, the blank uses that keep it compiling, and include protection"""
        lines = [
            "import (",
            '\t"fmt"',
            '\t"math"',
            f'\t"{self.options.thrift_import}"',
        ]
        if include_error_package:
            lines.append(f'\tgoerr "{BUGSNAG_ERRORS_IMPORT}"')
        if self.program.includes:
            lines.append("")
            for inc in self.program.includes:
                lines.append(f'\t"{self.include_path(inc)}"')
        lines.extend([
            ")",
            "",
            "// (needed to ensure safety because of naive import list construction.)",
            "var _ = math.MinInt32",
            "var _ = thrift.ZERO",
            "var _ = fmt.Printf",
        ])
        if include_error_package:
            lines.append("var _ = goerr.New")
        lines.append("")
        for inc in self.program.includes:
            module = inc.go_module.rsplit('.', 1)[-1]
            lines.append(f"var _ = {module}.GoUnusedProtection__")
        if self.program.includes:
            lines.append("")
        return lines

    def preamble(self, include_error_package: bool = False) -> list[str]:
        lines = self.autogen_comment()
        lines.extend(self.package_clause())
        lines.extend(self.imports(include_error_package))
        return lines

    def import_protection(self) -> list[str]:
        return ["var GoUnusedProtection__ int", ""]
