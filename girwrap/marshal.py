"""
Maps gir types to ctypes and writes the marshaling expressions used by the
generated wrappers.
"""
from typing import Any, Dict, NamedTuple, Optional, Protocol, Tuple
import copy
import logging

from .gir import GirAlias, GirEnum, GirFunction, GirParam, GirStruct, GirType

LOGGER = logging.getLogger(__name__)

# gir name => (ctypes, annotation)
FUNDAMENTALS: Dict[str, Tuple[str, str]] = {
    "gboolean": ("ctypes.c_int", "bool"),
    "gchar": ("ctypes.c_byte", "int"),
    "guchar": ("ctypes.c_ubyte", "int"),
    "gint8": ("ctypes.c_int8", "int"),
    "guint8": ("ctypes.c_uint8", "int"),
    "gshort": ("ctypes.c_short", "int"),
    "gushort": ("ctypes.c_ushort", "int"),
    "gint16": ("ctypes.c_int16", "int"),
    "guint16": ("ctypes.c_uint16", "int"),
    "gint": ("ctypes.c_int", "int"),
    "guint": ("ctypes.c_uint", "int"),
    "gint32": ("ctypes.c_int32", "int"),
    "guint32": ("ctypes.c_uint32", "int"),
    "glong": ("ctypes.c_long", "int"),
    "gulong": ("ctypes.c_ulong", "int"),
    "gint64": ("ctypes.c_int64", "int"),
    "guint64": ("ctypes.c_uint64", "int"),
    "gsize": ("ctypes.c_size_t", "int"),
    "gssize": ("ctypes.c_ssize_t", "int"),
    "goffset": ("ctypes.c_int64", "int"),
    "gintptr": ("ctypes.c_ssize_t", "int"),
    "guintptr": ("ctypes.c_size_t", "int"),
    "gfloat": ("ctypes.c_float", "float"),
    "gdouble": ("ctypes.c_double", "float"),
    "long double": ("ctypes.c_longdouble", "float"),
    "gunichar": ("ctypes.c_uint32", "int"),
    "gunichar2": ("ctypes.c_uint16", "int"),
    "GType": ("ctypes.c_size_t", "int"),
    "GQuark": ("ctypes.c_uint32", "int"),
    "gpointer": ("ctypes.c_void_p", "Any"),
    "gconstpointer": ("ctypes.c_void_p", "Any"),
    "va_list": ("ctypes.c_void_p", "Any"),
}

# c types seen without a gir name (fields of private structs, cairo ...)
C_FUNDAMENTALS: Dict[str, str] = {
    "int": "gint",
    "unsigned int": "guint",
    "double": "gdouble",
    "float": "gfloat",
    "char": "gchar",
    "unsigned char": "guchar",
    "long": "glong",
    "unsigned long": "gulong",
    "size_t": "gsize",
    "uint8_t": "guint8",
    "uint16_t": "guint16",
    "uint32_t": "guint32",
    "uint64_t": "guint64",
    "int32_t": "gint32",
    "int64_t": "gint64",
    "void*": "gpointer",
}

STRINGS = ("utf8", "filename")

VOID = "none"


class Resolver(Protocol):
    """what the marshaller needs to know about the wrapped packages"""

    def resolve_struct(self, name: str) -> Optional[Tuple[str, GirStruct]]:
        ...

    def resolve_enum(self, name: str) -> Optional[Tuple[str, GirEnum]]:
        ...

    def resolve_callback(self, name: str) -> Optional[Tuple[str, GirFunction]]:
        ...

    def resolve_alias(self, name: str) -> Optional[Tuple[str, GirAlias]]:
        ...

    def find_class(self, class_name: str) -> Optional[Tuple[str, GirStruct]]:
        ...

    def is_wrapped(self, struct: GirStruct) -> bool:
        ...


class CType(NamedTuple):
    # void, bool, number, pointer, string, strv, wrapped, record, enum, callback
    kind: str
    ctype: str
    annotation: str
    package: Optional[str] = None
    target: Any = None

    @property
    def is_value(self) -> bool:
        """passed by value, not through a pointer"""
        return self.kind in ("bool", "number", "enum")


VOID_TYPE = CType("void", "None", "None")
POINTER_TYPE = CType("pointer", "ctypes.c_void_p", "Any")


def types_module(package: str) -> str:
    """the name a generated module binds another package's types module to"""
    return f"{package}_types"


class Marshaller:
    def __init__(self, resolver: Resolver, package: str) -> None:
        self.resolver = resolver
        self.package = package
        self.unknown: set = set()
        # packages whose types module the current module refers to
        self.referenced: set = set()

    def describe(self, gir_type: Optional[GirType], struct_wrap: Optional[Dict[str, str]] = None) -> CType:
        if gir_type is None:
            return VOID_TYPE
        if struct_wrap and gir_type.c_type and gir_type.c_type in struct_wrap:
            found = self.resolver.find_class(struct_wrap[gir_type.c_type])
            if found:
                package, struct = found
                return CType("wrapped", "ctypes.c_void_p", f"'{struct.class_name}'", package, struct)
        name = gir_type.name
        if gir_type.is_array:
            element = gir_type.element_type
            if element and element.name in STRINGS:
                return CType("strv", "ctypes.c_void_p", "List[str]")
            if gir_type.size > 0 and element:
                inner = self.describe(element)
                return CType("array", f"({inner.ctype} * {gir_type.size})", "Any")
            return POINTER_TYPE
        if name is None:
            if gir_type.c_type in C_FUNDAMENTALS:
                name = C_FUNDAMENTALS[gir_type.c_type]  # type: ignore
            elif gir_type.is_pointer:
                return POINTER_TYPE
            else:
                return self._unknown(gir_type)
        if name == VOID:
            if gir_type.is_pointer:
                return POINTER_TYPE
            return VOID_TYPE
        if name in STRINGS:
            return CType("string", "ctypes.c_char_p", "str")
        if name == "gboolean":
            return CType("bool", "ctypes.c_int", "bool")
        if name in FUNDAMENTALS:
            ctype, annotation = FUNDAMENTALS[name]
            if gir_type.is_pointer and name not in ("gpointer", "gconstpointer"):
                # gint* and friends are buffers the caller owns
                return POINTER_TYPE
            kind = "pointer" if ctype == "ctypes.c_void_p" else "number"
            return CType(kind, ctype, annotation)

        found_enum = self.resolver.resolve_enum(name)
        if found_enum:
            package, enum = found_enum
            ctype = "ctypes.c_uint" if enum.is_flags else "ctypes.c_int"
            return CType("enum", ctype, f"'{enum.name}'", package, enum)

        found_callback = self.resolver.resolve_callback(name)
        if found_callback:
            package, callback = found_callback
            return CType("callback", "ctypes.c_void_p", "Any", package, callback)

        found_struct = self.resolver.resolve_struct(name)
        if found_struct:
            package, struct = found_struct
            if gir_type.c_type and not gir_type.is_pointer and not struct.no_struct:
                # embedded by value, GObject parent_instance and friends
                return CType("struct", self.struct_ref(package, struct), "Any", package, struct)
            if self.resolver.is_wrapped(struct):
                return CType("wrapped", "ctypes.c_void_p", f"'{struct.class_name}'", package, struct)
            return CType("record", "ctypes.c_void_p", "Any", package, struct)

        found_alias = self.resolver.resolve_alias(name)
        if found_alias:
            _, alias = found_alias
            target = alias.target
            if gir_type.is_pointer and not target.is_pointer:
                return POINTER_TYPE
            return self.describe(target, struct_wrap)

        return self._unknown(gir_type)

    def describe_param(self, param: GirParam, struct_wrap: Optional[Dict[str, str]] = None) -> CType:
        """out and inout parameters are described by the type they point to"""
        gir_type = param.type
        if param.direction != "in" and gir_type.c_type and gir_type.c_type.endswith("*"):
            gir_type = copy.copy(gir_type)
            gir_type.c_type = gir_type.c_type[:-1].rstrip()
        return self.describe(gir_type, struct_wrap)

    def _unknown(self, gir_type: GirType) -> CType:
        key = gir_type.name or gir_type.c_type
        if key not in self.unknown:
            self.unknown.add(key)
            LOGGER.debug(f"{self.package}: unknown type {key}, fallback to c_void_p")
        return POINTER_TYPE

    def types_ref(self, package: Optional[str]) -> str:
        self.referenced.add(package)
        return types_module(package)  # type: ignore

    def struct_ref(self, package: str, struct: GirStruct) -> str:
        """reference to a ctypes declaration from inside a types module"""
        c_name = struct_c_name(struct)
        if package == self.package:
            return c_name
        return f"{self.types_ref(package)}.{c_name}"

    def field_ctype(self, gir_type: GirType) -> str:
        ct = self.describe(gir_type)
        match ct.kind:
            case "void":
                return "ctypes.c_void_p"
            case "string":
                return "ctypes.c_char_p"
            case "struct" | "array" | "bool" | "number" | "enum":
                return ct.ctype
            case _:
                return "ctypes.c_void_p"

    def declared(self, ct: CType) -> str:
        """reference to a ctypes declaration from a class, functions or c module"""
        return f"{self.types_ref(ct.package)}.{struct_c_name(ct.target)}"

    def argtype(self, param: GirParam, struct_wrap: Optional[Dict[str, str]] = None) -> str:
        if param.direction != "in":
            return "ctypes.c_void_p"
        ct = self.describe(param.type, struct_wrap)
        match ct.kind:
            case "void":
                return "ctypes.c_void_p"
            case "struct":
                return self.declared(ct)
            case _:
                return ct.ctype

    def restype(self, func: GirFunction, struct_wrap: Optional[Dict[str, str]] = None) -> str:
        ct = self.describe(func.return_type, struct_wrap)
        match ct.kind:
            case "void":
                return "None"
            case "string":
                # keep the pointer so that it can be freed
                return "ctypes.c_void_p"
            case "struct":
                return self.declared(ct)
            case _:
                return ct.ctype

    def to_c(self, value: str, ct: CType) -> str:
        match ct.kind:
            case "string":
                return f"strings.to_c({value})"
            case "strv":
                return f"strings.to_c_array({value})"
            case "bool":
                return f"bool({value})"
            case "enum":
                return f"int({value})"
            case _:
                return value

    def from_c(self, value: str, ct: CType, transfer: str) -> str:
        owned = "True" if transfer == "full" else "False"
        match ct.kind:
            case "string":
                return f"strings.from_c({value}, free={owned})"
            case "strv":
                return f'strings.from_c_array({value}, transfer="{transfer}")'
            case "bool":
                return f"bool({value})"
            case "enum":
                return f"base.to_enum({self.types_ref(ct.package)}.{ct.target.name}, {value})"  # type: ignore
            case "wrapped":
                return f'base.wrap("{class_path(ct.package, ct.target)}", {value}, own_ref={owned})'  # type: ignore
            case "record":
                struct = ct.target
                if struct.no_struct or struct.disguised:  # type: ignore
                    return value
                return f"base.cast({value}, {self.declared(ct)})"
            case _:
                return value

    def out_ctype(self, param: GirParam, struct_wrap: Optional[Dict[str, str]] = None) -> str:
        """the ctypes storage an out parameter writes into"""
        ct = self.describe_param(param, struct_wrap)
        match ct.kind:
            case "bool" | "number" | "enum":
                return ct.ctype
            case "struct":
                return self.declared(ct)
            case _:
                return "ctypes.c_void_p"


def struct_c_name(struct: GirStruct) -> str:
    c_type = struct.c_type or struct.name
    return c_type.replace("*", "").strip()


def class_path(package: Optional[str], struct: GirStruct) -> str:
    """dotted path of a generated wrapper class, resolved lazily at runtime"""
    return f"{package}.{struct.class_name}"


def signal_argtypes(marshaller: Marshaller, signal: GirFunction) -> str:
    argtypes = ["ctypes.c_void_p"]
    for param in signal.params:
        ct = marshaller.describe(param.type)
        argtypes.append(ct.ctype if ct.is_value else "ctypes.c_void_p")
    argtypes.append("ctypes.c_void_p")
    return "[" + ", ".join(argtypes) + "]"


def signal_restype(marshaller: Marshaller, signal: GirFunction) -> str:
    ct = marshaller.describe(signal.return_type)
    if ct.kind == "void":
        return "None"
    if ct.kind in ("bool", "number", "enum"):
        return ct.ctype
    return "ctypes.c_void_p"
