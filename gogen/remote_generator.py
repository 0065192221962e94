"""Remote Generator - per-service command line invoker (`package main`)"""

from .common import CommonGenerator, go_quote
from .errors import InvalidType
from .names import FreshNames
from .type_mapper import TypeMapper
from .types import (
    Base, BaseType, Enum, Struct, Typedef, ListType, SetType, MapType,
    Field, Function, Program, Service, Type, true_type,
)


class RemoteGenerator:
    """Generates a small client executable that calls one RPC from the command line.

    Arguments are positional strings coerced per declared type: integers via
    base-10 parsing, booleans by comparing to "true", records and containers by
    decoding the literal argument with the simple JSON protocol.
    """

    def __init__(self, common: CommonGenerator, mapper: TypeMapper, names: FreshNames):
        self.common = common
        self.mapper = mapper
        self.names = names

    def collect_functions(self, service: Service) -> list[tuple[Function, Service]]:
        """Own and inherited functions, each with the service that declares it"""
        collected = []
        current = service
        while current is not None:
            collected.extend((function, current) for function in current.functions)
            current = current.extends
        return collected

    def _module(self, program: Program) -> str:
        return program.go_module.rsplit('.', 1)[-1]

    def _qualified(self, ttype: Type, fallback: Program) -> str:
        """Go name of a named type as seen from the `main` package"""
        program = ttype.program or fallback
        return f"{self._module(program)}.{self.mapper.publicize(ttype.name)}"

    def _imported_programs(self, service: Service, functions) -> list[Program]:
        programs = [service.program or self.common.program]
        for function, owner in functions:
            candidates = [owner.program]
            for f in function.args.fields:
                candidates.extend((f.type.program, true_type(f.type).program))
            for program in candidates:
                if program is not None and all(program is not p for p in programs):
                    programs.append(program)
        return programs

    def generate(self, service: Service) -> str:
        functions = self.collect_functions(service)
        programs = self._imported_programs(service, functions)
        name = self.mapper.publicize(service.name)
        module = self._module(programs[0])

        lines = self.common.autogen_comment()
        lines.extend(self.common.package_clause("main"))
        lines.extend([
            "import (",
            '\t"flag"',
            '\t"fmt"',
            '\t"math"',
            '\t"net"',
            '\t"net/url"',
            '\t"os"',
            '\t"strconv"',
            '\t"strings"',
            f'\t"{self.common.options.thrift_import}"',
        ])
        for program in programs:
            lines.append(f'\t"{self.common.include_path(program)}"')
        lines.append(")")
        lines.append("")
        for program in programs:
            lines.append(f"var _ = {self._module(program)}.GoUnusedProtection__")
        lines.extend([
            "",
            "func Usage() {",
            '\tfmt.Fprintln(os.Stderr, "Usage of ", os.Args[0], " [-h host:port] [-u url] [-f[ramed]] function [arg1 [arg2...]]:")',
            "\tflag.PrintDefaults()",
            '\tfmt.Fprintln(os.Stderr, "\\nFunctions:")',
        ])
        for function, _ in functions:
            params = ", ".join(f"{f.type.name} {f.name}" for f in function.args.fields)
            usage = f"  {function.returntype.name} {function.name}({params})"
            lines.append(f"\tfmt.Fprintln(os.Stderr, {go_quote(usage)})")
        lines.extend([
            "\tfmt.Fprintln(os.Stderr)",
            "\tos.Exit(1)",
            "}",
            "",
        ])
        lines.extend(self._generate_main(name, module, functions))
        return "\n".join(lines)

    def _generate_main(self, name: str, module: str, functions) -> list[str]:
        lines = [
            "func main() {",
            "\tflag.Usage = Usage",
            "\tvar host string",
            "\tvar port int",
            "\tvar protocol string",
            "\tvar urlString string",
            "\tvar framed bool",
            "\tvar useHttp bool",
            "\tvar parsedUrl *url.URL",
            "\tvar trans thrift.TTransport",
            "\tvar err error",
            "\t_ = math.MinInt32",
            "\t_ = strconv.Atoi",
            '\tflag.StringVar(&host, "h", "localhost", "Specify host and port")',
            '\tflag.IntVar(&port, "p", 9090, "Specify port")',
            '\tflag.StringVar(&protocol, "P", "binary", "Specify the protocol (binary, compact, simplejson, json)")',
            '\tflag.StringVar(&urlString, "u", "", "Specify the url")',
            '\tflag.BoolVar(&framed, "framed", false, "Use framed transport")',
            '\tflag.BoolVar(&useHttp, "http", false, "Use http")',
            "\tflag.Parse()",
            "",
            "\tif len(urlString) > 0 {",
            "\t\tparsedUrl, err = url.Parse(urlString)",
            "\t\tif err != nil {",
            '\t\t\tfmt.Fprintln(os.Stderr, "Error parsing URL: ", err)',
            "\t\t\tflag.Usage()",
            "\t\t}",
            "\t\thost = parsedUrl.Host",
            '\t\tuseHttp = len(parsedUrl.Scheme) <= 0 || parsedUrl.Scheme == "http"',
            "\t} else if useHttp {",
            '\t\tparsedUrl, err = url.Parse(fmt.Sprint("http://", host, ":", port))',
            "\t\tif err != nil {",
            '\t\t\tfmt.Fprintln(os.Stderr, "Error parsing URL: ", err)',
            "\t\t\tflag.Usage()",
            "\t\t}",
            "\t}",
            "",
            "\tcmd := flag.Arg(0)",
            "\tif useHttp {",
            "\t\ttrans, err = thrift.NewTHttpClient(parsedUrl.String())",
            "\t} else {",
            "\t\tportStr := fmt.Sprint(port)",
            '\t\tif strings.Contains(host, ":") {',
            "\t\t\thost, portStr, err = net.SplitHostPort(host)",
            "\t\t\tif err != nil {",
            '\t\t\t\tfmt.Fprintln(os.Stderr, "error with host:", err)',
            "\t\t\t\tos.Exit(1)",
            "\t\t\t}",
            "\t\t}",
            "\t\ttrans, err = thrift.NewTSocket(net.JoinHostPort(host, portStr))",
            "\t\tif err != nil {",
            '\t\t\tfmt.Fprintln(os.Stderr, "error resolving address:", err)',
            "\t\t\tos.Exit(1)",
            "\t\t}",
            "\t\tif framed {",
            "\t\t\ttrans = thrift.NewTFramedTransport(trans)",
            "\t\t}",
            "\t}",
            "\tif err != nil {",
            '\t\tfmt.Fprintln(os.Stderr, "Error creating transport", err)',
            "\t\tos.Exit(1)",
            "\t}",
            "\tdefer trans.Close()",
            "\tvar protocolFactory thrift.TProtocolFactory",
            "\tswitch protocol {",
            '\tcase "compact":',
            "\t\tprotocolFactory = thrift.NewTCompactProtocolFactory()",
            '\tcase "simplejson":',
            "\t\tprotocolFactory = thrift.NewTSimpleJSONProtocolFactory()",
            '\tcase "json":',
            "\t\tprotocolFactory = thrift.NewTJSONProtocolFactory()",
            '\tcase "binary", "":',
            "\t\tprotocolFactory = thrift.NewTBinaryProtocolFactoryDefault()",
            "\tdefault:",
            '\t\tfmt.Fprintln(os.Stderr, "Invalid protocol specified: ", protocol)',
            "\t\tUsage()",
            "\t}",
            f"\tclient := {module}.New{name}ClientFactory(trans, protocolFactory)",
            "\tif err := trans.Open(); err != nil {",
            '\t\tfmt.Fprintln(os.Stderr, "Error opening socket to ", host, ":", port, " ", err)',
            "\t\tos.Exit(1)",
            "\t}",
            "",
            "\tswitch cmd {",
        ]
        for function, owner in functions:
            lines.extend(self._generate_case(function, owner))
        lines.extend([
            '\tcase "":',
            "\t\tUsage()",
            "\tdefault:",
            '\t\tfmt.Fprintln(os.Stderr, "Invalid function ", cmd)',
            "\t\tos.Exit(1)",
            "\t}",
            "}",
            "",
        ])
        return lines

    def _generate_case(self, function: Function, owner: Service) -> list[str]:
        fields = function.args.fields
        pub = self.mapper.publicize(function.name)
        lines = [
            f"\tcase {go_quote(function.name)}:",
            f"\t\tif flag.NArg()-1 != {len(fields)} {{",
            f"\t\t\tfmt.Fprintln(os.Stderr, {go_quote(f'{pub} requires {len(fields)} args')})",
            "\t\t\tflag.Usage()",
            "\t\t}",
        ]
        owner_program = owner.program or self.common.program
        values = []
        for i, f in enumerate(fields):
            lines.extend(self._coerce_argument(i, f, function, owner_program))
            value = f"value{i}"
            if isinstance(f.type, Typedef):
                lines.append(f"\t\t{value} := {self._qualified(f.type, owner_program)}(argvalue{i})")
            else:
                lines.append(f"\t\t{value} := argvalue{i}")
            values.append(value)
        lines.extend([
            f"\t\tfmt.Print(client.{pub}({', '.join(values)}))",
            '\t\tfmt.Print("\\n")',
        ])
        return lines

    def _coerce_argument(self, i: int, f: Field, function: Function, owner_program: Program) -> list[str]:
        """Statements binding `argvalue<i>` from the string in `flag.Arg(i + 1)`"""
        arg = f"flag.Arg({i + 1})"
        target = f"argvalue{i}"
        resolved = true_type(f.type)

        if isinstance(resolved, Enum):
            err = self.names.next("err")
            return [
                f"\t\ttmp{i}, {err} := strconv.Atoi({arg})",
                f"\t\tif {err} != nil {{",
                "\t\t\tUsage()",
                "\t\t\treturn",
                "\t\t}",
                f"\t\t{target} := {self._qualified(resolved, owner_program)}(tmp{i})",
            ]
        if isinstance(resolved, BaseType):
            return self._coerce_base(i, resolved, arg, target)
        if isinstance(resolved, Struct):
            lines, protocol = self._json_protocol(arg)
            err = self.names.next("err")
            constructor = self.mapper.new_prefix(self._qualified(resolved, owner_program))
            lines.extend([
                f"\t\t{target} := {constructor}()",
                f"\t\t{err} := {target}.Read({protocol})",
                f"\t\tif {err} != nil {{",
                "\t\t\tUsage()",
                "\t\t\treturn",
                "\t\t}",
            ])
            return lines
        if isinstance(resolved, (ListType, SetType, MapType)):
            # Decoded through the Args record, which knows the element types
            lines, protocol = self._json_protocol(arg)
            err = self.names.next("err")
            module = owner_program.go_module.rsplit('.', 1)[-1]
            holder = f"containerStruct{i}"
            method = f"ReadField{TypeMapper.method_suffix(f.key)}"
            lines.extend([
                f"\t\t{holder} := {module}.New{self.mapper.publicize(function.name)}Args()",
                f"\t\t{err} := {holder}.{method}({protocol})",
                f"\t\tif {err} != nil {{",
                "\t\t\tUsage()",
                "\t\t\treturn",
                "\t\t}",
                f"\t\t{target} := {holder}.{self.mapper.field_name(f.name)}",
            ])
            return lines
        raise InvalidType(f"invalid argument type for remote invoker: {f.type.name}")

    def _coerce_base(self, i: int, ttype: BaseType, arg: str, target: str) -> list[str]:
        base = ttype.base
        if base is Base.STRING:
            return [f"\t\t{target} := {arg}"]
        if base is Base.BINARY:
            return [f"\t\t{target} := []byte({arg})"]
        if base is Base.BOOL:
            return [f'\t\t{target} := {arg} == "true"']

        err = self.names.next("err")
        failure = [
            f"\t\tif {err} != nil {{",
            "\t\t\tUsage()",
            "\t\t\treturn",
            "\t\t}",
        ]
        narrowing = {Base.BYTE: "int8", Base.I16: "int16", Base.I32: "int32"}
        if base in narrowing:
            return [f"\t\ttmp{i}, {err} := strconv.Atoi({arg})"] + failure + [
                f"\t\t{target} := {narrowing[base]}(tmp{i})",
            ]
        if base is Base.I64:
            return [f"\t\t{target}, {err} := strconv.ParseInt({arg}, 10, 64)"] + failure
        if base is Base.DOUBLE:
            return [f"\t\t{target}, {err} := strconv.ParseFloat({arg}, 64)"] + failure
        raise InvalidType(f"invalid base type for remote invoker: {ttype.name}")

    def _json_protocol(self, arg: str) -> tuple[list[str], str]:
        """Memory buffer holding the literal argument, read via the simple JSON protocol"""
        value = self.names.next("arg")
        buffer = self.names.next("mbTrans")
        err = self.names.next("err")
        factory = self.names.next("factory")
        protocol = self.names.next("jsProt")
        return [
            f"\t\t{value} := {arg}",
            f"\t\t{buffer} := thrift.NewTMemoryBufferLen(len({value}))",
            f"\t\tdefer {buffer}.Close()",
            f"\t\t_, {err} := {buffer}.WriteString({value})",
            f"\t\tif {err} != nil {{",
            "\t\t\tUsage()",
            "\t\t\treturn",
            "\t\t}",
            f"\t\t{factory} := thrift.NewTSimpleJSONProtocolFactory()",
            f"\t\t{protocol} := {factory}.GetProtocol({buffer})",
        ], protocol
