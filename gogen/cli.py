"""Command line front end: AST document in, Go package out"""

import argparse
import logging
import sys
import time

from .config import GoOptions
from .errors import GenerationError
from .loader import ProgramLoader
from .program_generator import GoGenerator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gogen", description="Generate Go code from a parsed IDL program")
    parser.add_argument("ast_file", nargs="?", help="Path to the program AST document (positional)")
    parser.add_argument("--ast", help="Path to the program AST document (alternative)")
    parser.add_argument("--output-dir", "-o", default=".", help="Output directory")
    parser.add_argument("--options", default="", help="Generator options, e.g. package_prefix=x/,thrift_import=y")
    parser.add_argument("--package-prefix", help="Prefix for the import paths of generated packages")
    parser.add_argument("--thrift-import", help="Import path of the Thrift Go runtime")
    parser.add_argument("--out", dest="out_dir_base", help="Output root below the output directory (default gen-go)")
    parser.add_argument("--gofmt", action="store_true", default=None, help="Run gofmt on every generated file")
    parser.add_argument("--recurse", "-r", action="store_true", help="Also generate included programs")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every declaration")
    return parser


def main(argv=None) -> int:
    start_time = time.perf_counter()

    parser = build_parser()
    args = parser.parse_args(argv)

    ast_file = args.ast_file or args.ast
    if not ast_file:
        parser.error("AST document is required (positional or --ast)")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        options = GoOptions.from_option_string(args.options).merged(
            package_prefix=args.package_prefix,
            thrift_import=args.thrift_import,
            out_dir_base=args.out_dir_base,
            gofmt=args.gofmt,
        )
        program = ProgramLoader().load(ast_file)
        programs = [program]
        if args.recurse:
            pending = list(program.includes)
            while pending:
                include = pending.pop(0)
                if all(include is not p for p in programs):
                    programs.append(include)
                    pending.extend(include.includes)

        # Render everything before writing anything
        rendered = []
        for p in programs:
            generator = GoGenerator(p, options)
            rendered.append((generator, generator.generate()))
        written = []
        for generator, files in rendered:
            written.extend(generator.write(args.output_dir, files))
    except GenerationError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    for path in written:
        print(f"Generated: {path}")

    elapsed = time.perf_counter() - start_time
    print(f"Generation completed in {elapsed*1000:.2f} ms")
    return 0


if __name__ == "__main__":
    sys.exit(main())
