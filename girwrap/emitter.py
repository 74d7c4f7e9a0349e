"""
Writes the python sources of one package.

Every generated package has the layout::

    <package>/__init__.py
    <package>/types.py       constants, enums, aliases, ctypes structs, callbacks
    <package>/c.py           the native library and the function prototypes
    <package>/functions.py   package level functions
    <package>/<Class>.py     one wrapper class per class, interface or record
"""
from typing import Dict, Iterable, List, NamedTuple, Optional, Set, Tuple
import contextlib
import re
import io
import logging

from .gir import GirField, GirFunction, GirParam, GirStruct
from .marshal import (
    CType,
    Marshaller,
    signal_argtypes,
    signal_restype,
    struct_c_name,
    types_module,
)
from .package import Package
from . import names

LOGGER = logging.getLogger(__name__)

INTEGER_CTYPES = (
    "ctypes.c_int",
    "ctypes.c_uint",
    "ctypes.c_byte",
    "ctypes.c_ubyte",
    "ctypes.c_short",
    "ctypes.c_ushort",
    "ctypes.c_long",
    "ctypes.c_ulong",
    "ctypes.c_int8",
    "ctypes.c_uint8",
    "ctypes.c_int16",
    "ctypes.c_uint16",
    "ctypes.c_int32",
    "ctypes.c_uint32",
    "ctypes.c_int64",
    "ctypes.c_uint64",
)


class Settings(NamedTuple):
    license: str = ""
    include_comments: bool = True


class CodeWriter:
    def __init__(self, indent="    ") -> None:
        self.sio = io.StringIO()
        self.indent = indent
        self.level = 0

    def write(self, line: str = ""):
        if line:
            self.sio.write(f"{self.indent * self.level}{line}\n")
        else:
            self.sio.write("\n")

    def write_lines(self, lines: Iterable[str]):
        for line in lines:
            self.write(line)

    @contextlib.contextmanager
    def block(self):
        self.level += 1
        try:
            yield
        finally:
            self.level -= 1

    def getvalue(self) -> str:
        return self.sio.getvalue()


def escape_doc(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')


def doc_lines(doc: Optional[str]) -> List[str]:
    if not doc:
        return []
    lines = [line.strip() for line in doc.splitlines()]
    while lines and not lines[0]:
        lines.pop(0)
    while lines and not lines[-1]:
        lines.pop()
    return lines


def write_docstring(w: CodeWriter, lines: List[str]):
    if not lines:
        return
    if len(lines) == 1:
        text = escape_doc(lines[0])
        if text.endswith('"'):
            text = text[:-1] + '\\"'
        w.write(f'"""{text}"""')
        return
    w.write(f'"""{escape_doc(lines[0])}')
    for line in lines[1:]:
        w.write(escape_doc(line))
    w.write('"""')


class PackageEmitter:
    def __init__(self, package: Package, settings: Settings) -> None:
        self.package = package
        self.settings = settings
        self.marshaller = Marshaller(package, package.name)

    @property
    def name(self) -> str:
        return self.package.name

    def header(self) -> str:
        return self.settings.license

    def docs(self, *docs: Optional[str]) -> List[str]:
        if not self.settings.include_comments:
            return []
        lines: List[str] = []
        for doc in docs:
            current = doc_lines(doc)
            if current and lines:
                lines.append("")
            lines.extend(current)
        return lines

    def emit_all(self) -> Dict[str, str]:
        """file name => source"""
        sources = {
            "__init__.py": self.emit_init(),
            "types.py": self.emit_types(),
            "c.py": self.emit_c(),
        }
        functions = self.emit_functions()
        if functions:
            sources["functions.py"] = functions
        for struct in self.package.wrapped_structs():
            sources[f"{struct.class_name}.py"] = self.emit_class(struct)
        return sources

    #
    # __init__.py
    #
    def emit_init(self) -> str:
        w = CodeWriter()
        sources = ", ".join(f"{ns.name}-{ns.version}.gir" for ns in self.package.namespaces)
        write_docstring(w, [f"{self.name} package, generated from {sources}"])
        return self.header() + w.getvalue()

    #
    # types.py
    #
    def emit_types(self) -> str:
        self.marshaller.referenced = set()
        body = CodeWriter()

        if self.package.constants:
            body.write("# constants")
            for constant in self.package.constants.values():
                body.write(f"{names.constant_name(constant.name)} = {constant_value(constant.value, constant.type.name)}")
            body.write()

        for enum in self.package.enums.values():
            body.write()
            base = "IntFlag" if enum.is_flags else "IntEnum"
            body.write(f"class {enum.name}({base}):")
            with body.block():
                write_docstring(body, self.docs(enum.doc))
                if not enum.members:
                    body.write("pass")
                seen = set()
                for member in enum.members:
                    member_name = names.enum_member_name(member.name)
                    if member_name in seen:
                        continue
                    seen.add(member_name)
                    body.write(f"{member_name} = {member.value}")
            body.write()

        if self.package.callbacks:
            body.write()
            body.write("# callbacks")
            for callback in self.package.callbacks.values():
                restype = signal_restype(self.marshaller, callback)
                argtypes = []
                for param in callback.params:
                    ct = self.marshaller.describe(param.type)
                    argtypes.append(ct.ctype if ct.is_value and param.direction == "in" else "ctypes.c_void_p")
                body.write(f"{callback.name} = ctypes.CFUNCTYPE({', '.join([restype] + argtypes)})")
            body.write()

        declared = [s for s in self.package.structs.values() if not s.no_struct]
        for struct in declared:
            body.write()
            kind = "ctypes.Union" if struct.kind == "union" else "ctypes.Structure"
            body.write(f"class {struct_c_name(struct)}({kind}):")
            with body.block():
                lines = self.docs(struct.doc)
                if lines:
                    write_docstring(body, lines)
                else:
                    body.write("pass")
            body.write()

        for struct in self.sorted_by_value(declared):
            if not struct.fields:
                continue
            body.write()
            self.write_fields(body, struct_c_name(struct), struct.fields)

        if self.package.aliases:
            body.write()
            body.write("# aliases")
            for alias in self.package.aliases.values():
                ctype = self.marshaller.field_ctype(alias.target)
                body.write(f"{alias.c_type or alias.name} = {ctype}")

        if self.package.add_types:
            body.write()
            body.write_lines(self.package.add_types)

        w = CodeWriter()
        write_docstring(w, [f"constants, enums, callbacks and struct declarations of the {self.name} package"])
        w.write("import ctypes")
        w.write("from enum import IntEnum, IntFlag")
        others = sorted(p for p in self.marshaller.referenced if p != self.name)
        if others:
            w.write()
            for other in others:
                w.write(f"from {other} import types as {types_module(other)}")
        w.write()
        return self.header() + w.getvalue() + body.getvalue()

    def sorted_by_value(self, structs: List[GirStruct]) -> List[GirStruct]:
        """fields of a struct are assigned after the structs it embeds by value"""
        local = {struct_c_name(s): s for s in structs}
        result: List[GirStruct] = []
        done: Set[str] = set()

        def visit(struct: GirStruct):
            key = struct_c_name(struct)
            if key in done:
                return
            done.add(key)
            for dep in self.field_dependencies(struct.fields):
                if dep in local:
                    visit(local[dep])
            result.append(struct)

        for struct in structs:
            visit(struct)
        return result

    def field_dependencies(self, fields: List[GirField]) -> List[str]:
        deps = []
        for field in fields:
            if field.union:
                deps.extend(self.field_dependencies(field.union.fields))
            elif field.record:
                deps.extend(self.field_dependencies(field.record.fields))
            elif not field.callback:
                ct = self.marshaller.describe(field.type)
                if ct.kind == "struct" and ct.package == self.name:
                    deps.append(struct_c_name(ct.target))
                elif ct.kind == "array" and field.type.element_type:
                    inner = self.marshaller.describe(field.type.element_type)
                    if inner.kind == "struct" and inner.package == self.name:
                        deps.append(struct_c_name(inner.target))
        return deps

    def write_fields(self, w: CodeWriter, owner: str, fields: List[GirField]):
        entries = []
        anonymous = []
        for i, field in enumerate(fields):
            field_name = names.escape_identifier(field.name) if field.name else f"_anon{i}"
            if field.callback:
                entries.append(f'("{field_name}", ctypes.c_void_p)')
            elif field.union or field.record:
                nested = f"{owner}_{field_name.strip('_')}"
                kind = "ctypes.Union" if field.union else "ctypes.Structure"
                inner_fields = field.union.fields if field.union else field.record.fields  # type: ignore
                w.write(f"class {nested}({kind}):")
                with w.block():
                    w.write("pass")
                w.write()
                w.write()
                self.write_fields(w, nested, inner_fields)
                entries.append(f'("{field_name}", {nested})')
                if not field.name:
                    anonymous.append(field_name)
            elif field.bits > 0:
                ctype = self.marshaller.field_ctype(field.type)
                if ctype not in INTEGER_CTYPES:
                    ctype = "ctypes.c_uint"
                entries.append(f'("{field_name}", {ctype}, {field.bits})')
            else:
                entries.append(f'("{field_name}", {self.marshaller.field_ctype(field.type)})')

        if anonymous:
            w.write(f"{owner}._anonymous_ = [{', '.join(repr(a) for a in anonymous)}]")
        if entries:
            w.write(f"{owner}._fields_ = [")
            with w.block():
                for entry in entries:
                    w.write(f"{entry},")
            w.write("]")
        w.write()

    #
    # c.py
    #
    def emit_c(self) -> str:
        self.marshaller.referenced = set()
        body = CodeWriter()
        bound: Set[str] = set()

        def bind(func: GirFunction, struct_wrap: Optional[Dict[str, str]]):
            if not self.is_emitted(func) or func.c_identifier in bound:
                return
            bound.add(func.c_identifier)  # type: ignore
            argtypes = [self.marshaller.argtype(p, struct_wrap) for p in func.params]
            if func.throws:
                argtypes.append("ctypes.c_void_p")
            restype = self.marshaller.restype(func, struct_wrap)
            body.write(f'lib.bind("{func.c_identifier}", {restype}, [{", ".join(argtypes)}])')

        for struct in self.package.wrapped_structs():
            for func in struct.methods():
                bind(func, struct.struct_wrap)
            if struct.free_function and struct.free_function not in bound:
                bound.add(struct.free_function)
                body.write(f'lib.bind("{struct.free_function}", None, [ctypes.c_void_p])')
            if struct.ref_function and struct.ref_function not in bound:
                bound.add(struct.ref_function)
                body.write(f'lib.bind("{struct.ref_function}", ctypes.c_void_p, [ctypes.c_void_p])')
        for func in self.package.functions.values():
            bind(func, None)

        w = CodeWriter()
        write_docstring(w, [f"native entry points of the {self.name} package"])
        w.write("import ctypes")
        w.write()
        w.write("from girwrap.runtime.loader import Library")
        for other in sorted(self.marshaller.referenced):
            w.write(f"from {other} import types as {types_module(other)}")
        w.write()
        libraries = ", ".join(f'"{name}"' for name in self.package.libraries)
        w.write(f'lib = Library("{self.name}", [{libraries}])')
        w.write()
        return self.header() + w.getvalue() + body.getvalue()

    @staticmethod
    def is_emitted(func: GirFunction) -> bool:
        if func.no_code or not func.c_identifier:
            return False
        if any(p.is_varargs for p in func.params):
            LOGGER.debug(f"skip varargs: {func.c_identifier}")
            return False
        return True

    #
    # functions.py
    #
    def emit_functions(self) -> Optional[str]:
        functions = [f for f in self.package.functions.values() if self.is_emitted(f)]
        if not functions:
            return None
        self.marshaller.referenced = set()
        body = CodeWriter()
        for func in functions:
            body.write()
            body.write()
            self.write_function(body, func, None)
        w = CodeWriter()
        write_docstring(w, [f"package level functions of the {self.name} package"])
        self.write_imports(w, body.getvalue(), [])
        return self.header() + w.getvalue() + body.getvalue()

    #
    # <Class>.py
    #
    def emit_class(self, struct: GirStruct) -> str:
        self.marshaller.referenced = set()
        bases, base_imports = self.base_classes(struct)

        body = CodeWriter()
        body.write()
        body.write()
        body.write(f"class {struct.class_name}({', '.join(bases)}):")
        with body.block():
            since = f"Since: {struct.lib_version}" if struct.lib_version else None
            write_docstring(body, self.docs(struct.doc, since))
            body.write()
            if struct.c_type:
                body.write(f'_c_type = "{struct.c_type}"')
            if not struct.is_interface:
                body.write("_library = c.lib")
            if struct.free_function:
                body.write(f'_free_func = "{struct.free_function}"')
            if struct.ref_function:
                body.write(f'_ref_func = "{struct.ref_function}"')
            if struct.is_record and struct.fields and not struct.no_struct and not struct.disguised:
                body.write(f"_struct_type = {self.marshaller.types_ref(self.name)}.{struct_c_name(struct)}")
            body.write()

            parent = self.parent_struct(struct)
            parent_name = parent[1].class_name if parent else None
            body.write(f"def {names.handle_func(struct.class_name, self.name, parent_name)}(self):")
            with body.block():
                write_docstring(body, self.docs("Get the main native struct"))
                body.write("return self.get_struct()")

            code = struct.lookup_interface_code if struct.is_interface else struct.lookup_code
            if struct.is_interface and struct.lookup_code:
                code = code + struct.lookup_code
            if code:
                body.write()
                body.write_lines(code)

            inherited = self.inherited_methods(struct)
            for func in struct.methods():
                if not self.is_emitted(func):
                    continue
                method = func.rename or names.method_name(func.name)
                if method in inherited and not func.override:
                    LOGGER.warning(
                        f"{self.name}.{struct.class_name}.{method} shadows a parent method, add 'override: {func.name}'"
                    )
                body.write()
                self.write_function(body, func, struct)

            for signal in struct.signals():
                if signal.no_code:
                    continue
                body.write()
                self.write_signal(body, signal)

        w = CodeWriter()
        if struct.is_interface:
            write_docstring(w, [f"{struct.class_name} interface of the {self.name} package"])
        else:
            write_docstring(w, [f"{struct.class_name} wrapper of the {self.name} package"])
        self.write_imports(w, body.getvalue(), base_imports + struct.imports)
        return self.header() + w.getvalue() + body.getvalue()

    def write_imports(self, w: CodeWriter, body: str, extra: List[str]):
        w.write("import ctypes")
        typing = [t for t in ("Any", "Callable", "List") if re.search(rf"\b{t}\b", body)]
        if typing:
            w.write(f"from typing import {', '.join(typing)}")
        w.write()
        runtime = [m for m in ("base", "errors", "signals", "strings") if f"{m}." in body]
        if runtime:
            w.write(f"from girwrap.runtime import {', '.join(runtime)}")
        w.write(f"from {self.name} import c")
        for package in sorted(p for p in self.marshaller.referenced if p):
            w.write(f"from {package} import types as {types_module(package)}")
        for line in extra:
            if line.startswith("import ") or line.startswith("from "):
                w.write(line)
            else:
                w.write(f"import {line}")

    def parent_struct(self, struct: GirStruct) -> Optional[Tuple[str, GirStruct]]:
        if not struct.parent:
            return None
        found = self.package.resolve_struct(struct.parent)
        if not found or not self.package.is_wrapped(found[1]):
            LOGGER.debug(f"{struct.name}: parent {struct.parent} is not wrapped")
            return None
        return found

    def base_classes(self, struct: GirStruct) -> Tuple[List[str], List[str]]:
        bases: List[str] = []
        imports: List[str] = []
        parent = self.parent_struct(struct)
        parent_struct = parent[1] if parent else None
        if parent:
            package, parent_struct = parent
            name = parent_struct.class_name
            if name == struct.class_name:
                alias = names.as_pascal_case(package) + name
                imports.append(f"from {package}.{name} import {name} as {alias}")
                name = alias
            else:
                imports.append(f"from {package}.{name} import {name}")
            bases.append(name)
        elif struct.is_interface:
            bases.append("base.Interface")
        elif struct.c_type == "GObject":
            bases.append("base.GObjectWrapper")
        elif struct.fundamental or struct.ref_function:
            # ref counted through its own ref-func and unref-func
            bases.append("base.Wrapper")
        elif struct.kind == "class" and struct.type_name:
            bases.append("base.GObjectWrapper")
        else:
            bases.append("base.Wrapper")

        inherited_interfaces = set(self.all_interfaces(parent_struct)) if parent_struct else set()
        for interface in struct.implements:
            found = self.package.resolve_struct(interface)
            if not found or not self.package.is_wrapped(found[1]):
                LOGGER.debug(f"{struct.name}: interface {interface} is not wrapped")
                continue
            package, iface = found
            if iface.name in inherited_interfaces:
                continue
            imports.append(f"from {package}.{iface.class_name} import {iface.class_name}")
            bases.append(iface.class_name)
        return bases, imports

    def all_interfaces(self, struct: GirStruct) -> List[str]:
        result = []
        current: Optional[GirStruct] = struct
        while current:
            result.extend(names.split_qualified(i)[1] for i in current.implements)
            parent = self.parent_struct(current)
            current = parent[1] if parent else None
        return result

    def inherited_methods(self, struct: GirStruct) -> Set[str]:
        result: Set[str] = set()
        parent = self.parent_struct(struct)
        while parent:
            for func in parent[1].methods():
                if self.is_emitted(func):
                    result.add(func.rename or names.method_name(func.name))
            parent = self.parent_struct(parent[1])
        return result

    #
    # functions and methods
    #
    def write_function(self, w: CodeWriter, func: GirFunction, struct: Optional[GirStruct]):
        m = self.marshaller
        struct_wrap = struct.struct_wrap if struct else None
        is_constructor = func.kind == "constructor" and struct is not None
        method = func.rename or names.method_name(func.name)

        args: List[str] = []
        call: List[str] = []
        pre: List[str] = []
        results: List[Tuple[str, str]] = []
        doc_params: List[str] = []

        if is_constructor:
            args.append("cls")
        elif struct is not None and func.kind == "method":
            args.append("self")

        for param in func.params:
            if param.is_instance:
                call.append("self")
                continue
            name = names.param_name(param.name)
            ct = m.describe_param(param, struct_wrap)
            if param.doc and param.direction != "out":
                doc_params.append(f"    {name} = {doc_lines(param.doc)[0] if doc_lines(param.doc) else ''}")
            if param.direction == "in":
                args.append(f"{name}: {ct.annotation}")
                call.append(m.to_c(name, ct))
                continue

            storage = m.out_ctype(param, struct_wrap)
            var = f"_{name}"
            if param.direction == "inout":
                args.append(f"{name}: {ct.annotation}")
                if ct.is_value:
                    pre.append(f"{var} = {storage}({m.to_c(name, ct)})")
                else:
                    pre.append(f"{var} = ctypes.c_void_p(base.address({name}))")
            else:
                pre.append(f"{var} = {storage}()")
            call.append(f"ctypes.byref({var})")
            results.append((self.out_value(var, ct, storage, param), ct.annotation))

        if func.throws:
            pre.append("_err = errors.new_error()")
            call.append("ctypes.byref(_err)")

        ret = m.describe(func.return_type, struct_wrap)
        if is_constructor:
            annotation = "tuple" if results else f"'{struct.class_name}'"  # type: ignore
        else:
            if ret.kind != "void":
                results.insert(0, (m.from_c("_result", ret, func.return_transfer), ret.annotation))
            if not results:
                annotation = "None"
            elif len(results) == 1:
                annotation = results[0][1]
            else:
                annotation = "tuple"

        if is_constructor:
            w.write("@classmethod")
        elif func.kind in ("function", "constructor") and struct is not None:
            w.write("@staticmethod")
        w.write(f"def {method}({', '.join(args)}) -> {annotation}:")
        with w.block():
            lines = self.docs(func.doc)
            if lines:
                if doc_params:
                    lines += ["", "Params:"] + doc_params
                if func.return_doc and not is_constructor and ret.kind != "void":
                    lines += ["", f"Returns: {' '.join(doc_lines(func.return_doc))}"]
                if func.lib_version:
                    lines += ["", f"Since: {func.lib_version}"]
                if func.throws:
                    lines += ["", "Throws: GLibError on failure."]
                if is_constructor:
                    lines += ["", "Throws: ConstructionError when the native constructor returns NULL."]
            write_docstring(w, lines)

            w.write_lines(pre)
            invocation = f"c.lib.{func.c_identifier}({', '.join(call)})"
            if ret.kind == "void" and not is_constructor:
                w.write(invocation)
            else:
                w.write(f"_result = {invocation}")
            if func.throws:
                w.write("errors.check_error(_err)")

            if is_constructor:
                w.write()
                w.write("if not _result:")
                with w.block():
                    w.write(f'raise errors.ConstructionError("null returned by {func.c_identifier}")')
                owned = "True" if func.return_transfer == "full" else "False"
                if results:
                    w.write(f"return (cls(_result, own_ref={owned}), {', '.join(r[0] for r in results)})")
                else:
                    w.write(f"return cls(_result, own_ref={owned})")
            elif len(results) == 1:
                w.write(f"return {results[0][0]}")
            elif results:
                w.write(f"return ({', '.join(r[0] for r in results)})")

        if struct is None:
            w.write()

    def out_value(self, var: str, ct: CType, storage: str, param: GirParam) -> str:
        if storage != "ctypes.c_void_p" and not ct.is_value:
            # caller allocated struct
            return var
        return self.marshaller.from_c(f"{var}.value", ct, param.transfer)

    def write_signal(self, w: CodeWriter, signal: GirFunction):
        method = names.signal_method_name(signal.name)
        restype = signal_restype(self.marshaller, signal)
        argtypes = signal_argtypes(self.marshaller, signal)
        w.write(f"def {method}(self, callback: Callable[..., Any], after: bool = False) -> int:")
        with w.block():
            lines = self.docs(signal.doc)
            if lines:
                lines += ["", f"The callback receives this {signal.struct_name} and the native signal arguments."]
            write_docstring(w, lines)
            w.write(f'return signals.connect(self, "{signal.name}", callback, {restype}, {argtypes}, after)')


def constant_value(value: str, type_name: Optional[str]) -> str:
    if type_name == "gboolean":
        return "True" if value in ("1", "true", "TRUE") else "False"
    if type_name in ("utf8", "filename"):
        return repr(value)
    try:
        return str(int(value))
    except ValueError:
        pass
    try:
        return repr(float(value))
    except ValueError:
        return repr(value)
