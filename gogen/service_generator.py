"""Service Generator - interface, client stub, processor and envelope records per service"""

from typing import Optional

from .common import doc_comment, go_quote
from .names import FreshNames
from .struct_generator import StructGenerator
from .type_mapper import TypeMapper
from .types import BaseType, Field, Function, Service, Struct


class ServiceGenerator:
    """Generates the Go code of one service"""

    def __init__(self, mapper: TypeMapper, structs: StructGenerator, names: FreshNames):
        self.mapper = mapper
        self.structs = structs
        self.names = names

    def generate(self, service: Service) -> list[str]:
        lines = []
        lines.extend(self.generate_interface(service))
        lines.extend(self.generate_client(service))
        lines.extend(self.generate_processor(service))
        lines.extend(self.generate_helpers(service))
        return lines

    # Envelope records

    @staticmethod
    def args_struct(function: Function) -> Struct:
        """Request body of a call"""
        return Struct(
            name=f"{function.name}_args",
            fields=list(function.args.fields),
            program=function.args.program,
        )

    @staticmethod
    def result_struct(function: Function) -> Optional[Struct]:
        """Reply body: success at key 0 followed by the declared exceptions; none for oneway"""
        if function.oneway:
            return None
        fields = []
        if not _is_void(function):
            fields.append(Field(key=0, name="success", type=function.returntype))
        fields.extend(function.exceptions.fields)
        return Struct(name=f"{function.name}_result", fields=fields, program=function.args.program)

    def args_name(self, function: Function) -> str:
        return self.mapper.publicize(function.name) + "Args"

    def result_name(self, function: Function) -> str:
        return self.mapper.publicize(function.name) + "Result"

    # Signatures

    def signature(self, function: Function) -> str:
        """`Name(args) (r T, excs..., err error)` as used by the interface and client"""
        results = []
        if not _is_void(function):
            results.append(f"r {self.mapper.to_go(function.returntype)}")
        errs = self.mapper.argument_list(function.exceptions)
        if errs:
            results.append(errs)
        results.append("err error")
        name = self.mapper.publicize(function.name)
        return f"{name}({self.mapper.argument_list(function.args)}) ({', '.join(results)})"

    def _parent(self, service: Service) -> Optional[tuple[str, str]]:
        """(qualified exported name, qualified constructor prefix) of the parent service"""
        if service.extends is None:
            return None
        qualified = self.mapper.type_name(service.extends)
        return self.mapper.publicize(qualified), self.mapper.new_prefix(qualified)

    # Interface

    def generate_interface(self, service: Service) -> list[str]:
        name = self.mapper.publicize(service.name)
        lines = doc_comment(service.doc)
        lines.append(f"type {name} interface {{")
        parent = self._parent(service)
        if parent is not None:
            lines.append(f"\t{parent[0]}")
            if service.functions:
                lines.append("")
        for function in service.functions:
            lines.extend(doc_comment(function.doc, function.args, "Parameters", indent="\t"))
            lines.append(f"\t{self.signature(function)}")
        lines.append("}")
        lines.append("")
        return lines

    # Client

    def generate_client(self, service: Service) -> list[str]:
        name = self.mapper.publicize(service.name)
        client = f"{name}Client"
        parent = self._parent(service)
        lines = doc_comment(service.doc)
        lines.append(f"type {client} struct {{")
        if parent is not None:
            parent_client = f"{parent[0]}Client"
            embedded = parent_client.rsplit('.', 1)[-1]
            lines.append(f"\t*{parent_client}")
        else:
            lines.extend([
                "\tTransport       thrift.TTransport",
                "\tProtocolFactory thrift.TProtocolFactory",
                "\tInputProtocol   thrift.TProtocol",
                "\tOutputProtocol  thrift.TProtocol",
                "\tSeqId           int32",
            ])
        lines.append("}")
        lines.append("")

        lines.append(f"func New{client}Factory(t thrift.TTransport, f thrift.TProtocolFactory) *{client} {{")
        if parent is not None:
            lines.append(f"\treturn &{client}{{{embedded}: {parent[1]}ClientFactory(t, f)}}")
        else:
            lines.extend([
                f"\treturn &{client}{{Transport: t,",
                "\t\tProtocolFactory: f,",
                "\t\tInputProtocol:   f.GetProtocol(t),",
                "\t\tOutputProtocol:  f.GetProtocol(t),",
                "\t\tSeqId:           0,",
                "\t}",
            ])
        lines.append("}")
        lines.append("")

        lines.append(f"func New{client}Protocol(t thrift.TTransport, iprot thrift.TProtocol, "
                     f"oprot thrift.TProtocol) *{client} {{")
        if parent is not None:
            lines.append(f"\treturn &{client}{{{embedded}: {parent[1]}ClientProtocol(t, iprot, oprot)}}")
        else:
            lines.extend([
                f"\treturn &{client}{{Transport: t,",
                "\t\tProtocolFactory: nil,",
                "\t\tInputProtocol:   iprot,",
                "\t\tOutputProtocol:  oprot,",
                "\t\tSeqId:           0,",
                "\t}",
            ])
        lines.append("}")
        lines.append("")

        for function in service.functions:
            lines.extend(self._generate_client_call(client, function))
            lines.extend(self._generate_send(client, function))
            if not function.oneway:
                lines.extend(self._generate_recv(client, function))
        return lines

    def _generate_client_call(self, client: str, function: Function) -> list[str]:
        fname = self.mapper.publicize(function.name)
        args = ", ".join(self.mapper.keyword_safe(f.name) for f in function.args.fields)
        lines = doc_comment(function.doc, function.args, "Parameters")
        lines.extend([
            f"func (p *{client}) {self.signature(function)} {{",
            f"\tif err = p.send{fname}({args}); err != nil {{",
            "\t\treturn",
            "\t}",
        ])
        if function.oneway:
            lines.append("\treturn")
        else:
            lines.append(f"\treturn p.recv{fname}()")
        lines.append("}")
        lines.append("")
        return lines

    def _generate_send(self, client: str, function: Function) -> list[str]:
        fname = self.mapper.publicize(function.name)
        message_type = "thrift.ONEWAY" if function.oneway else "thrift.CALL"
        args = self.names.next("args")
        lines = [
            f"func (p *{client}) send{fname}({self.mapper.argument_list(function.args)}) (err error) {{",
            "\toprot := p.OutputProtocol",
            "\tif oprot == nil {",
            "\t\toprot = p.ProtocolFactory.GetProtocol(p.Transport)",
            "\t\tp.OutputProtocol = oprot",
            "\t}",
            "\tp.SeqId++",
            f"\tif err = oprot.WriteMessageBegin({go_quote(function.name)}, {message_type}, p.SeqId); err != nil {{",
            "\t\treturn",
            "\t}",
            f"\t{args} := New{self.args_name(function)}()",
        ]
        for f in function.args.fields:
            lines.append(f"\t{args}.{self.mapper.field_name(f.name)} = {self.mapper.keyword_safe(f.name)}")
        lines.extend([
            f"\tif err = {args}.Write(oprot); err != nil {{",
            "\t\treturn",
            "\t}",
            "\tif err = oprot.WriteMessageEnd(); err != nil {",
            "\t\treturn",
            "\t}",
            "\treturn oprot.Flush()",
            "}",
            "",
        ])
        return lines

    def _generate_recv(self, client: str, function: Function) -> list[str]:
        fname = self.mapper.publicize(function.name)
        results = []
        if not _is_void(function):
            results.append(f"value {self.mapper.to_go(function.returntype)}")
        errs = self.mapper.argument_list(function.exceptions)
        if errs:
            results.append(errs)
        results.append("err error")

        result = self.names.next("result")
        error1 = self.names.next("error")
        error2 = self.names.next("error")
        lines = [
            f"func (p *{client}) recv{fname}() ({', '.join(results)}) {{",
            "\tiprot := p.InputProtocol",
            "\tif iprot == nil {",
            "\t\tiprot = p.ProtocolFactory.GetProtocol(p.Transport)",
            "\t\tp.InputProtocol = iprot",
            "\t}",
            "\t_, mTypeId, seqId, err := iprot.ReadMessageBegin()",
            "\tif err != nil {",
            "\t\treturn",
            "\t}",
            "\tif mTypeId == thrift.EXCEPTION {",
            f'\t\t{error1} := thrift.NewTApplicationException(thrift.UNKNOWN_APPLICATION_EXCEPTION, "Unknown Exception")',
            f"\t\tvar {error2} error",
            f"\t\t{error2}, err = {error1}.Read(iprot)",
            "\t\tif err != nil {",
            "\t\t\treturn",
            "\t\t}",
            "\t\tif err = iprot.ReadMessageEnd(); err != nil {",
            "\t\t\treturn",
            "\t\t}",
            f"\t\terr = {error2}",
            "\t\treturn",
            "\t}",
            "\tif p.SeqId != seqId {",
            f'\t\terr = thrift.NewTApplicationException(thrift.BAD_SEQUENCE_ID, '
            f'{go_quote(function.name + " failed: out of sequence response")})',
            "\t\treturn",
            "\t}",
            f"\t{result} := New{self.result_name(function)}()",
            f"\tif err = {result}.Read(iprot); err != nil {{",
            "\t\treturn",
            "\t}",
            "\tif err = iprot.ReadMessageEnd(); err != nil {",
            "\t\treturn",
            "\t}",
        ]
        for x in function.exceptions.fields:
            member = self.mapper.field_name(x.name)
            lines.extend([
                f"\tif {result}.{member} != nil {{",
                f"\t\t{self.mapper.keyword_safe(x.name)} = {result}.{member}",
                "\t\treturn",
                "\t}",
            ])
        if not _is_void(function):
            lines.append(f"\tvalue = {result}.Success")
        lines.append("\treturn")
        lines.append("}")
        lines.append("")
        return lines

    # Processor

    def generate_processor(self, service: Service) -> list[str]:
        name = self.mapper.publicize(service.name)
        processor = f"{name}Processor"
        private = self.mapper.privatize(name)
        parent = self._parent(service)
        this = self.names.next("self")
        lines = []
        if parent is None:
            x = self.names.next("x")
            lines.extend([
                f"type {processor} struct {{",
                "\tprocessorMap map[string]thrift.TProcessorFunction",
                f"\thandler      {name}",
                "\tlistener     thrift.THandlerListener",
                "}",
                "",
                f"func (p *{processor}) AddToProcessorMap(key string, processor thrift.TProcessorFunction) {{",
                "\tp.processorMap[key] = processor",
                "}",
                "",
                f"func (p *{processor}) GetProcessorFunction(key string) (processor thrift.TProcessorFunction, ok bool) {{",
                "\tprocessor, ok = p.processorMap[key]",
                "\treturn processor, ok",
                "}",
                "",
                f"func (p *{processor}) ProcessorMap() map[string]thrift.TProcessorFunction {{",
                "\treturn p.processorMap",
                "}",
                "",
                f"func New{processor}(handler {name}, listener thrift.THandlerListener) *{processor} {{",
                f"\t{this} := &{processor}{{handler: handler, listener: listener, "
                f"processorMap: make(map[string]thrift.TProcessorFunction)}}",
            ])
            for function in service.functions:
                lines.append(f"\t{this}.processorMap[{go_quote(function.name)}] = "
                             f"&{private}Processor{self.mapper.publicize(function.name)}"
                             f"{{handler: handler, listener: listener}}")
            lines.extend([
                f"\treturn {this}",
                "}",
                "",
                f"func (p *{processor}) Receive(request thrift.Request) (success bool, err thrift.TException) {{",
                "\tname := request.Name()",
                "\tseqId := request.SeqId()",
                "\tiprot := request.In()",
                "\toprot := request.Out()",
                "\tif processor, ok := p.GetProcessorFunction(name); ok {",
                "\t\treturn processor.Process(request)",
                "\t}",
                "\tiprot.Skip(thrift.STRUCT)",
                "\tiprot.ReadMessageEnd()",
                f'\t{x} := thrift.NewTApplicationException(thrift.UNKNOWN_METHOD, "Unknown function "+name)',
                "\toprot.WriteMessageBegin(name, thrift.EXCEPTION, seqId)",
                f"\t{x}.Write(oprot)",
                "\toprot.WriteMessageEnd()",
                "\toprot.Flush()",
                f"\treturn false, {x}",
                "}",
                "",
            ])
        else:
            parent_processor = f"{parent[0]}Processor"
            lines.extend([
                f"type {processor} struct {{",
                f"\t*{parent_processor}",
                "}",
                "",
                f"func New{processor}(handler {name}, listener thrift.THandlerListener) *{processor} {{",
                f"\t{this} := &{processor}{{{parent[1]}Processor(handler, listener)}}",
            ])
            for function in service.functions:
                lines.append(f"\t{this}.AddToProcessorMap({go_quote(function.name)}, "
                             f"&{private}Processor{self.mapper.publicize(function.name)}"
                             f"{{handler: handler, listener: listener}})")
            lines.extend([
                f"\treturn {this}",
                "}",
                "",
            ])

        for function in service.functions:
            lines.extend(self._generate_process_function(service, function))
        return lines

    def _generate_process_function(self, service: Service, function: Function) -> list[str]:
        name = self.mapper.publicize(service.name)
        processor = f"{self.mapper.privatize(name)}Processor{self.mapper.publicize(function.name)}"
        quoted = go_quote(function.name)
        call_args = ", ".join(f"args.{self.mapper.field_name(f.name)}" for f in function.args.fields)

        lines = [
            f"type {processor} struct {{",
            f"\thandler  {name}",
            "\tlistener thrift.THandlerListener",
            "}",
            "",
            f"func (p *{processor}) Process(request thrift.Request) (success bool, err thrift.TException) {{",
            "\tseqId := request.SeqId()",
            "\tiprot := request.In()",
            "\toprot := request.Out()",
            f"\targs := New{self.args_name(function)}()",
            "\tif err2 := args.Read(iprot); err2 != nil {",
            "\t\tiprot.ReadMessageEnd()",
            "\t\tx := thrift.NewTApplicationException(thrift.PROTOCOL_ERROR, err2.Error())",
        ]
        if not function.oneway:
            lines.extend([
                f"\t\toprot.WriteMessageBegin({quoted}, thrift.EXCEPTION, seqId)",
                "\t\tx.Write(oprot)",
                "\t\toprot.WriteMessageEnd()",
                "\t\toprot.Flush()",
            ])
        lines.extend([
            "\t\treturn false, x",
            "\t}",
            "\tiprot.ReadMessageEnd()",
            "\tif p.listener != nil {",
            f"\t\tp.listener.PreHandle(request{', ' + call_args if call_args else ''})",
            "\t}",
        ])

        # Handler results land in temporaries; at most one goes into the reply
        returns = []
        if not function.oneway:
            if not _is_void(function):
                lines.append(f"\tvar retval {self.mapper.to_go(function.returntype)}")
                returns.append(("retval", None))
            for x in function.exceptions.fields:
                temp = self.names.next("ex")
                lines.append(f"\tvar {temp} {self.mapper.to_go(x.type)}")
                returns.append((temp, x))
        captured = "".join(f"{temp}, " for temp, _ in returns)

        lines.extend([
            "\tvar callbackError error",
            "\t(func() {",
            "\t\tdefer (func() {",
            "\t\t\tif r := recover(); r != nil {",
            "\t\t\t\tcallbackError = goerr.New(r, 0)",
            "\t\t\t}",
            "\t\t})()",
            f"\t\t{captured}callbackError = p.handler.{self.mapper.publicize(function.name)}({call_args})",
            "\t})()",
            "\tif p.listener != nil {",
            f"\t\tp.listener.PostHandle(request, {captured}callbackError)",
            "\t\tdefer p.listener.Completed(request, callbackError)",
            "\t}",
        ])
        internal = go_quote(f"Internal error processing {function.name}: ")

        if function.oneway:
            lines.extend([
                "\tif callbackError != nil {",
                f"\t\treturn false, thrift.NewTApplicationException(thrift.INTERNAL_ERROR, {internal}+callbackError.Error())",
                "\t}",
                "\treturn true, nil",
                "}",
                "",
            ])
            return lines

        lines.extend([
            "\tif callbackError != nil {",
            f"\t\tx := thrift.NewTApplicationException(thrift.INTERNAL_ERROR, {internal}+callbackError.Error())",
            f"\t\toprot.WriteMessageBegin({quoted}, thrift.EXCEPTION, seqId)",
            "\t\tx.Write(oprot)",
            "\t\toprot.WriteMessageEnd()",
            "\t\toprot.Flush()",
            "\t\treturn false, x",
            "\t}",
            f"\tresult := New{self.result_name(function)}()",
        ])
        lines.extend(self._fill_result(returns))
        lines.extend([
            "\tvar err2 error",
            f"\tif err2 = oprot.WriteMessageBegin({quoted}, thrift.REPLY, seqId); err2 != nil {{",
            "\t\terr = thrift.NewTTransportExceptionFromError(err2)",
            "\t}",
            "\tif err2 = result.Write(oprot); err == nil && err2 != nil {",
            "\t\terr = thrift.NewTTransportExceptionFromError(err2)",
            "\t}",
            "\tif err2 = oprot.WriteMessageEnd(); err == nil && err2 != nil {",
            "\t\terr = thrift.NewTTransportExceptionFromError(err2)",
            "\t}",
            "\tif err2 = oprot.Flush(); err == nil && err2 != nil {",
            "\t\terr = thrift.NewTTransportExceptionFromError(err2)",
            "\t}",
            "\tif err != nil {",
            "\t\treturn",
            "\t}",
            "\treturn true, err",
            "}",
            "",
        ])
        return lines

    def _fill_result(self, returns: list) -> list[str]:
        """First non-nil exception in declaration order, otherwise the success value"""
        exceptions = [(temp, x) for temp, x in returns if x is not None]
        success = [temp for temp, x in returns if x is None]
        if not exceptions:
            return [f"\tresult.Success = {temp}" for temp in success]
        lines = ["\tswitch {"]
        for temp, x in exceptions:
            lines.append(f"\tcase {temp} != nil:")
            lines.append(f"\t\tresult.{self.mapper.field_name(x.name)} = {temp}")
        for temp in success:
            lines.append("\tdefault:")
            lines.append(f"\t\tresult.Success = {temp}")
        lines.append("\t}")
        return lines

    # Helpers

    def generate_helpers(self, service: Service) -> list[str]:
        lines = ["// HELPER FUNCTIONS AND STRUCTURES", ""]
        for function in service.functions:
            lines.extend(self.structs.generate(self.args_struct(function), with_doc=False))
            result = self.result_struct(function)
            if result is not None:
                lines.extend(self.structs.generate(result, is_result=True, with_doc=False))
        return lines


def _is_void(function: Function) -> bool:
    return isinstance(function.returntype, BaseType) and function.returntype.is_void
