"""Program loader - builds the IDL program tree from its JSON document form"""

import json
import logging
from pathlib import Path

from .errors import LoadError
from .types import (
    Base, BaseType, Enum, EnumValue, Struct, Typedef, ListType, SetType, MapType,
    Field, Const, Function, Service, Program, Requiredness, Type,
    IntValue, DoubleValue, StringValue, ListValue, MapValue, ConstValue,
    true_type,
)

logger = logging.getLogger(__name__)

BASE_TYPES = {base.value: BaseType(base) for base in Base}


class ProgramLoader:
    """Loads a program document and, recursively, the documents it includes"""

    def __init__(self):
        self._loaded: dict[Path, Program] = {}
        self._loading: set[Path] = set()

    def load(self, path) -> Program:
        path = Path(path).resolve()
        if path in self._loaded:
            return self._loaded[path]
        if path in self._loading:
            raise LoadError(f"include cycle through {path}")

        logger.debug("Loading %s", path)
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise LoadError(f"cannot read {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise LoadError(f"{path}: invalid JSON: {e}") from e
        if not isinstance(document, dict):
            raise LoadError(f"{path}: document must be an object")

        self._loading.add(path)
        try:
            includes = [self.load(path.parent / inc) for inc in document.get("includes", [])]
            program = ProgramBuilder(document, includes, default_name=path.stem).build()
        finally:
            self._loading.discard(path)
        self._loaded[path] = program
        return program


def load_program(path) -> Program:
    """Load a program document and everything it includes"""
    return ProgramLoader().load(path)


class ProgramBuilder:
    """Two passes over one document: declare every named type, then resolve references"""

    def __init__(self, document: dict, includes: list[Program], default_name: str = "program"):
        self.document = document
        self.program = Program(
            name=document.get("name", default_name),
            namespace=document.get("namespace", ""),
            includes=includes,
        )
        self.symbols: dict[str, object] = {}
        self.services: dict[str, Service] = {}
        self._defaults: list[tuple[Field, object]] = []

    def build(self) -> Program:
        doc = self.document
        try:
            self._declare(doc)
            for raw, typedef in zip(doc.get("typedefs", []), self.program.typedefs):
                typedef.type = self.resolve_type(raw["type"])
            for raw, struct in zip(doc.get("structs", []), self.program.structs):
                struct.fields = self._fields(raw.get("fields", []), f"struct {struct.name}")
            self._convert_defaults()
            for raw in doc.get("consts", []):
                ctype = self.resolve_type(raw["type"])
                self.program.consts.append(Const(
                    name=raw["name"],
                    type=ctype,
                    value=self.convert_value(ctype, raw["value"]),
                    doc=raw.get("doc"),
                ))
            for raw, service in zip(doc.get("services", []), self.program.services):
                self._resolve_service(raw, service)
            self._convert_defaults()
        except KeyError as e:
            raise LoadError(f"program {self.program.name}: missing key {e}") from e
        self._check_extends()
        return self.program

    def _declare(self, doc: dict):
        program = self.program
        for raw in doc.get("typedefs", []):
            typedef = Typedef(name=raw["name"], type=None, program=program, doc=raw.get("doc"))
            self._register(typedef.name, typedef)
            program.typedefs.append(typedef)
        for raw in doc.get("enums", []):
            enum = Enum(
                name=raw["name"],
                values=[EnumValue(name=v["name"], value=v.get("value"), doc=v.get("doc"))
                        for v in raw.get("values", [])],
                program=program,
                doc=raw.get("doc"),
            )
            self._register(enum.name, enum)
            program.enums.append(enum)
        for raw in doc.get("structs", []):
            struct = Struct(
                name=raw["name"],
                is_exception=bool(raw.get("exception", False)),
                program=program,
                doc=raw.get("doc"),
            )
            self._register(struct.name, struct)
            program.structs.append(struct)
        for raw in doc.get("services", []):
            service = Service(name=raw["name"], program=program, doc=raw.get("doc"))
            if raw["name"] in self.services:
                raise LoadError(f"duplicate service {raw['name']}")
            self.services[service.name] = service
            program.services.append(service)

    def _register(self, name: str, declaration):
        if name in self.symbols:
            raise LoadError(f"duplicate declaration {name}")
        self.symbols[name] = declaration

    # Types

    def resolve_type(self, raw) -> Type:
        if isinstance(raw, str):
            if raw in BASE_TYPES:
                return BASE_TYPES[raw]
            return self._lookup(raw)
        if isinstance(raw, dict) and len(raw) == 1:
            (kind, inner), = raw.items()
            if kind == "list":
                return ListType(self.resolve_type(inner))
            if kind == "set":
                return SetType(self.resolve_type(inner))
            if kind == "map" and isinstance(inner, list) and len(inner) == 2:
                return MapType(self.resolve_type(inner[0]), self.resolve_type(inner[1]))
        raise LoadError(f"malformed type {raw!r}")

    def _lookup(self, name: str):
        module, dot, local = name.rpartition('.')
        if not dot:
            if name not in self.symbols:
                raise LoadError(f"unknown type {name}")
            return self.symbols[name]
        program = self._include(module)
        for declaration in (*program.typedefs, *program.enums, *program.structs):
            if declaration.name == local:
                return declaration
        raise LoadError(f"unknown type {name}")

    def _include(self, module: str) -> Program:
        for program in self.program.includes:
            if program.name == module:
                return program
        raise LoadError(f"unknown include {module}")

    # Fields and services

    def _fields(self, raws: list, owner: str) -> list[Field]:
        fields = []
        keys = set()
        for raw in raws:
            key = int(raw["key"])
            if key in keys:
                raise LoadError(f"{owner}: duplicate field key {key}")
            keys.add(key)
            ftype = self.resolve_type(raw["type"])
            try:
                req = Requiredness(raw.get("required", "default"))
            except ValueError as e:
                raise LoadError(f"{owner}: invalid requiredness {raw['required']!r}") from e
            f = Field(key=key, name=raw["name"], type=ftype, req=req, doc=raw.get("doc"))
            if raw.get("default") is not None:
                self._defaults.append((f, raw["default"]))
            fields.append(f)
        return fields

    def _convert_defaults(self):
        """Default values may name fields of records declared later, so they go last"""
        for f, raw in self._defaults:
            f.value = self.convert_value(f.type, raw)
        self._defaults.clear()

    def _resolve_service(self, raw: dict, service: Service):
        extends = raw.get("extends")
        if extends:
            module, dot, local = extends.rpartition('.')
            if dot:
                parent = next((s for s in self._include(module).services if s.name == local), None)
            else:
                parent = self.services.get(extends)
            if parent is None:
                raise LoadError(f"service {service.name} extends unknown service {extends}")
            service.extends = parent

        for fraw in raw.get("functions", []):
            name = fraw["name"]
            owner = f"function {service.name}.{name}"
            function = Function(
                name=name,
                args=Struct(name=f"{name}_args", fields=self._fields(fraw.get("args", []), owner),
                            program=self.program),
                returntype=self.resolve_type(fraw.get("returns", "void")),
                exceptions=Struct(name=f"{name}_exceptions",
                                  fields=self._fields(fraw.get("throws", []), owner),
                                  program=self.program),
                oneway=bool(fraw.get("oneway", False)),
                doc=fraw.get("doc"),
            )
            if function.oneway:
                returns_value = not (isinstance(function.returntype, BaseType) and function.returntype.is_void)
                if returns_value or function.exceptions.fields:
                    raise LoadError(f"{owner}: oneway functions cannot return values or throw")
            service.functions.append(function)

    def _check_extends(self):
        for service in self.program.services:
            seen = {id(service)}
            parent = service.extends
            while parent is not None:
                if id(parent) in seen:
                    raise LoadError(f"service {service.name} has a cyclic extends chain")
                seen.add(id(parent))
                parent = parent.extends

    # Constant values

    def convert_value(self, ttype: Type, raw) -> ConstValue:
        """Convert a JSON value to the constant tree, guided by the declared type"""
        resolved = true_type(ttype)
        if isinstance(resolved, BaseType):
            return self._convert_base(resolved, raw)
        if isinstance(resolved, Enum):
            return IntValue(self._enum_value(resolved, raw))
        if isinstance(resolved, Struct):
            if not isinstance(raw, dict):
                raise LoadError(f"value {raw!r} is not a {resolved.name} literal")
            pairs = []
            for name, value in raw.items():
                f = resolved.field_named(name)
                if f is None:
                    raise LoadError(f"{resolved.name} has no field {name}")
                pairs.append((StringValue(name), self.convert_value(f.type, value)))
            return MapValue(tuple(pairs))
        if isinstance(resolved, MapType):
            if isinstance(raw, dict):
                items = [(self._convert_key(resolved.key_type, k), v) for k, v in raw.items()]
            elif isinstance(raw, list) and all(isinstance(p, list) and len(p) == 2 for p in raw):
                items = [(self.convert_value(resolved.key_type, k), v) for k, v in raw]
            else:
                raise LoadError(f"value {raw!r} is not a map literal")
            return MapValue(tuple((k, self.convert_value(resolved.val_type, v)) for k, v in items))
        if isinstance(resolved, (ListType, SetType)):
            if not isinstance(raw, list):
                raise LoadError(f"value {raw!r} is not a {resolved.name} literal")
            return ListValue(tuple(self.convert_value(resolved.elem_type, item) for item in raw))
        raise LoadError(f"no constant value for type {ttype.name}")

    def _convert_base(self, ttype: BaseType, raw) -> ConstValue:
        base = ttype.base
        if base in (Base.STRING, Base.BINARY) and isinstance(raw, str):
            return StringValue(raw)
        if base is Base.BOOL and isinstance(raw, (bool, int)):
            return IntValue(int(raw))
        if base in (Base.BYTE, Base.I16, Base.I32, Base.I64) and isinstance(raw, int) and not isinstance(raw, bool):
            return IntValue(raw)
        if base is Base.DOUBLE and isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return IntValue(raw) if isinstance(raw, int) else DoubleValue(raw)
        raise LoadError(f"value {raw!r} is not a valid {ttype.name}")

    def _convert_key(self, ttype: Type, raw: str) -> ConstValue:
        """JSON object keys are strings; numeric key types are parsed back"""
        resolved = true_type(ttype)
        if isinstance(resolved, BaseType) and resolved.base in (Base.BYTE, Base.I16, Base.I32, Base.I64):
            try:
                return IntValue(int(raw))
            except ValueError as e:
                raise LoadError(f"map key {raw!r} is not a valid {resolved.name}") from e
        if isinstance(resolved, BaseType) and resolved.base is Base.DOUBLE:
            try:
                return DoubleValue(float(raw))
            except ValueError as e:
                raise LoadError(f"map key {raw!r} is not a valid double") from e
        if isinstance(resolved, BaseType) and resolved.base is Base.BOOL:
            return IntValue(1 if raw == "true" else 0)
        return self.convert_value(ttype, raw)

    @staticmethod
    def _enum_value(enum: Enum, raw) -> int:
        if isinstance(raw, int) and not isinstance(raw, bool):
            return raw
        if isinstance(raw, str):
            name = raw.rsplit('.', 1)[-1]
            for value_name, value in enum.resolved_values():
                if value_name == name:
                    return value
        raise LoadError(f"value {raw!r} is not a member of enum {enum.name}")

