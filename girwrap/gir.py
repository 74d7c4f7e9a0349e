"""
GObject-Introspection (gir) model.

Parses a ``*.gir`` file into plain records. The parser mirrors the XML and
fails fast on tags it does not know.
"""
from typing import Dict, List, Optional
import pathlib
import re
import xml.etree.ElementTree as ET
import logging

LOGGER = logging.getLogger(__name__)

CORE = "http://www.gtk.org/introspection/core/1.0"
NS = {"": CORE}
PATTERN = re.compile(r"\{([^}]+)\}(.+)")

C_TYPE = "{http://www.gtk.org/introspection/c/1.0}type"
C_IDENTIFIER = "{http://www.gtk.org/introspection/c/1.0}identifier"
C_IDENTIFIER_PREFIXES = "{http://www.gtk.org/introspection/c/1.0}identifier-prefixes"
C_SYMBOL_PREFIXES = "{http://www.gtk.org/introspection/c/1.0}symbol-prefixes"
INCLUDE = "{http://www.gtk.org/introspection/core/1.0}include"
C_INCLUDE = "{http://www.gtk.org/introspection/c/1.0}include"
GLIB_TYPE_NAME = "{http://www.gtk.org/introspection/glib/1.0}type-name"
GLIB_IS_GTYPE_STRUCT_FOR = "{http://www.gtk.org/introspection/glib/1.0}is-gtype-struct-for"
GLIB_FUNDAMENTAL = "{http://www.gtk.org/introspection/glib/1.0}fundamental"
GLIB_REF_FUNC = "{http://www.gtk.org/introspection/glib/1.0}ref-func"
GLIB_UNREF_FUNC = "{http://www.gtk.org/introspection/glib/1.0}unref-func"


def get_tag(child: ET.Element) -> str:
    m = PATTERN.match(child.tag)
    assert m, f"tag without namespace: {child.tag}"
    return m.group(2)


def unexpected(owner: str, tag: str):
    assert False, f"{owner}: Unexpected tag: {tag}"


def _is_true(value: Optional[str]) -> bool:
    return value in ("1", "true")


def _doc_text(child: ET.Element) -> str:
    return child.text or ""


class GirType:
    def __init__(self) -> None:
        self.name: Optional[str] = None
        self.c_type: Optional[str] = None
        self.element_type: Optional["GirType"] = None
        self.size = -1
        self.length = -1
        self.is_array = False
        self.zero_terminated = False

    @staticmethod
    def from_element(element: ET.Element) -> "GirType":
        t = GirType()
        tag = get_tag(element)
        t.name = element.attrib.get("name")
        t.c_type = element.attrib.get(C_TYPE)
        match tag:
            case "type":
                # GList, GSList, GHashTable ... carry their element type
                for child in element:
                    if get_tag(child) in ("type", "array"):
                        t.element_type = GirType.from_element(child)
                        break
            case "array":
                t.is_array = True
                t.zero_terminated = _is_true(element.attrib.get("zero-terminated"))
                if "fixed-size" in element.attrib:
                    t.size = int(element.attrib["fixed-size"])
                if "length" in element.attrib:
                    t.length = int(element.attrib["length"])
                for child in element:
                    if get_tag(child) in ("type", "array"):
                        t.element_type = GirType.from_element(child)
                        break
            case "varargs":
                t.name = "varargs"
            case _:
                unexpected("type", tag)
        return t

    @property
    def is_pointer(self) -> bool:
        return bool(self.c_type) and self.c_type.endswith("*")  # type: ignore

    def __repr__(self) -> str:
        return f"GirType({self.name!r}, {self.c_type!r})"


class GirParam:
    def __init__(self, element: ET.Element, is_instance=False) -> None:
        self.is_instance = is_instance
        self.name = element.attrib.get("name", "")
        self.type = GirType()
        self.doc: Optional[str] = None
        self.direction = element.attrib.get("direction", "in")
        self.transfer = element.attrib.get("transfer-ownership", "none")
        self.nullable = _is_true(element.attrib.get("nullable")) or _is_true(
            element.attrib.get("allow-none")
        )
        self.caller_allocates = _is_true(element.attrib.get("caller-allocates"))
        for child in element:
            tag = get_tag(child)
            match tag:
                case "doc":
                    self.doc = _doc_text(child)
                case "type" | "array" | "varargs":
                    self.type = GirType.from_element(child)
                case "attribute":
                    pass
                case _:
                    unexpected(self.name, tag)

    @property
    def is_varargs(self) -> bool:
        return self.name == "..." or self.type.name == "varargs"


class GirFunction:
    def __init__(self, element: ET.Element, struct_name: Optional[str] = None) -> None:
        self.struct_name = struct_name
        self.kind = get_tag(element)
        if self.kind == "virtual-method":
            self.kind = "method"
        self.name = element.attrib["name"]
        self.c_identifier = element.attrib.get(C_IDENTIFIER)
        self.doc: Optional[str] = None
        self.lib_version = element.attrib.get("version")
        self.deprecated = _is_true(element.attrib.get("deprecated"))
        self.throws = _is_true(element.attrib.get("throws"))
        self.introspectable = element.attrib.get("introspectable", "1") != "0"
        self.return_type: Optional[GirType] = None
        self.return_transfer = "none"
        self.return_nullable = False
        self.return_doc: Optional[str] = None
        self.params: List[GirParam] = []
        self.virtual = False
        self.no_code = False
        self.override = False
        self.rename: Optional[str] = None
        # signals
        self.when = element.attrib.get("when")
        for child in element:
            tag = get_tag(child)
            match tag:
                case "return-value":
                    self.parse_return(child)
                case "parameters":
                    self.parse_parameters(child)
                case "doc":
                    self.doc = (self.doc or "") + _doc_text(child)
                case "doc-deprecated":
                    self.doc = (self.doc or "") + "\n\nDeprecated: " + _doc_text(child)
                case "doc-version" | "doc-stability" | "source-position" | "attribute":
                    pass
                case _:
                    unexpected(self.name, tag)

    def parse_return(self, element: ET.Element):
        self.return_transfer = element.attrib.get("transfer-ownership", "none")
        self.return_nullable = _is_true(element.attrib.get("nullable"))
        for child in element:
            tag = get_tag(child)
            match tag:
                case "type" | "array":
                    self.return_type = GirType.from_element(child)
                case "doc":
                    self.return_doc = _doc_text(child)
                case "attribute":
                    pass
                case _:
                    unexpected(self.name, tag)

    def parse_parameters(self, element: ET.Element):
        for child in element:
            tag = get_tag(child)
            if tag == "parameter":
                self.params.append(GirParam(child))
            elif tag == "instance-parameter":
                self.params.append(GirParam(child, True))
            else:
                unexpected(self.name, tag)

    @property
    def returns_void(self) -> bool:
        return self.return_type is None or self.return_type.name == "none"

    @property
    def is_static(self) -> bool:
        return self.kind in ("function", "constructor")

    def __repr__(self) -> str:
        return f"GirFunction({self.kind} {self.name})"


class GirUnion:
    def __init__(self, element: ET.Element) -> None:
        self.name = element.attrib.get("name")
        self.c_type = element.attrib.get(C_TYPE)
        self.doc: Optional[str] = None
        self.fields: List["GirField"] = []
        for child in element:
            tag = get_tag(child)
            match tag:
                case "doc":
                    self.doc = (self.doc or "") + _doc_text(child)
                case "doc-deprecated":
                    self.doc = (self.doc or "") + "\n\nDeprecated: " + _doc_text(child)
                case "field":
                    self.fields.append(GirField(child))
                case "record":
                    # anonymous struct inside a union
                    field = GirField(None)
                    field.name = child.attrib.get("name", f"s{len(self.fields)}")
                    field.record = GirStruct(child)
                    self.fields.append(field)
                case "source-position" | "method" | "function" | "constructor":
                    pass
                case _:
                    unexpected(self.name or "union", tag)


class GirField:
    def __init__(self, element: Optional[ET.Element]) -> None:
        self.name = ""
        self.type = GirType()
        self.doc: Optional[str] = None
        self.bits = -1
        self.private = False
        self.callback: Optional[GirFunction] = None
        self.union: Optional[GirUnion] = None
        self.record: Optional["GirStruct"] = None
        if element is None:
            return
        self.name = element.attrib["name"]
        if "bits" in element.attrib:
            self.bits = int(element.attrib["bits"])
        self.private = _is_true(element.attrib.get("private"))
        for child in element:
            tag = get_tag(child)
            match tag:
                case "doc":
                    self.doc = (self.doc or "") + _doc_text(child)
                case "doc-deprecated":
                    self.doc = (self.doc or "") + "\n\nDeprecated: " + _doc_text(child)
                case "type" | "array":
                    self.type = GirType.from_element(child)
                case "callback":
                    self.callback = GirFunction(child)
                case "attribute":
                    pass
                case _:
                    unexpected(self.name, tag)

    def __repr__(self) -> str:
        return f"GirField({self.name!r})"


class GirStruct:
    """A gir class, interface or record."""

    def __init__(self, element: ET.Element) -> None:
        self.kind = get_tag(element)
        self.name = element.attrib.get("name", "")
        self.c_type = element.attrib.get(C_TYPE)
        self.parent = element.attrib.get("parent")
        self.lib_version = element.attrib.get("version")
        self.doc: Optional[str] = None
        self.type_name = element.attrib.get(GLIB_TYPE_NAME)
        self.is_gtype_struct = GLIB_IS_GTYPE_STRUCT_FOR in element.attrib
        self.disguised = _is_true(element.attrib.get("disguised")) or _is_true(
            element.attrib.get("opaque")
        )
        self.fundamental = _is_true(element.attrib.get(GLIB_FUNDAMENTAL))
        # ref counted type instances outside of GObject release with their unref-func
        self.free_function = element.attrib.get("free-function") or element.attrib.get(GLIB_UNREF_FUNC)
        self.ref_function = element.attrib.get(GLIB_REF_FUNC)
        self.copy_function = element.attrib.get("copy-function")
        self.fields: List[GirField] = []
        self.functions: Dict[str, GirFunction] = {}
        # signals may share a name with a method, activate and friends
        self.signal_map: Dict[str, GirFunction] = {}
        self.virtual_functions: List[str] = []
        self.implements: List[str] = []
        self.prerequisites: List[str] = []

        # filled from the APILookup tables
        self.class_name = self.name
        self.imports: List[str] = []
        self.struct_wrap: Dict[str, str] = {}
        self.aliases: Dict[str, str] = {}
        self.lookup_code: List[str] = []
        self.lookup_interface_code: List[str] = []
        self.no_struct = False
        self.no_code = False
        self.wrapped_by_lookup = False

        for child in element:
            tag = get_tag(child)
            match tag:
                case "doc":
                    self.doc = (self.doc or "") + _doc_text(child)
                case "doc-deprecated":
                    self.doc = (self.doc or "") + "\n\nDeprecated: " + _doc_text(child)
                case "field":
                    self.fields.append(GirField(child))
                case "union":
                    field = GirField(None)
                    field.union = GirUnion(child)
                    field.name = field.union.name or ""
                    self.fields.append(field)
                case "record":
                    field = GirField(None)
                    field.record = GirStruct(child)
                    field.name = field.record.name
                    self.fields.append(field)
                case "constructor" | "function" | "method":
                    func = GirFunction(child, self.name)
                    self.functions[func.name] = func
                case "signal":
                    func = GirFunction(child, self.name)
                    self.signal_map[func.name] = func
                case "virtual-method":
                    # mirrored as regular methods, only collect which are virtual
                    self.virtual_functions.append(child.attrib.get("invoker", child.attrib["name"]))
                case "implements":
                    self.implements.append(child.attrib["name"])
                case "prerequisite":
                    self.prerequisites.append(child.attrib["name"])
                case "property" | "source-position" | "attribute" | "doc-version" | "doc-stability":
                    pass
                case _:
                    unexpected(self.name, tag)

        for name in self.virtual_functions:
            func = self.functions.get(name)
            if func and func.kind == "method":
                func.virtual = True

    @property
    def is_interface(self) -> bool:
        return self.kind == "interface"

    @property
    def is_record(self) -> bool:
        return self.kind in ("record", "union")

    def methods(self) -> List[GirFunction]:
        return list(self.functions.values())

    def signals(self) -> List[GirFunction]:
        return list(self.signal_map.values())

    def __repr__(self) -> str:
        return f"GirStruct({self.kind} {self.name})"


class GirEnumMember:
    def __init__(self, element: ET.Element) -> None:
        self.name = element.attrib["name"]
        self.value = element.attrib["value"]
        self.c_identifier = element.attrib.get(C_IDENTIFIER)
        self.doc: Optional[str] = None
        doc = element.find("doc", NS)
        if doc is not None:
            self.doc = doc.text


class GirEnum:
    def __init__(self, element: ET.Element) -> None:
        self.name = element.attrib["name"]
        self.c_type = element.attrib.get(C_TYPE)
        self.is_flags = get_tag(element) == "bitfield"
        self.doc: Optional[str] = None
        self.members: List[GirEnumMember] = []
        self.functions: List[GirFunction] = []
        for child in element:
            tag = get_tag(child)
            match tag:
                case "doc":
                    self.doc = _doc_text(child)
                case "doc-deprecated" | "doc-version":
                    if not self.doc:
                        self.doc = _doc_text(child)
                case "member":
                    self.members.append(GirEnumMember(child))
                case "function":
                    self.functions.append(GirFunction(child))
                case "source-position" | "attribute":
                    pass
                case _:
                    unexpected(self.name, tag)


class GirConstant:
    def __init__(self, element: ET.Element) -> None:
        self.name = element.attrib["name"]
        self.value = element.attrib["value"]
        self.c_type = element.attrib.get(C_TYPE)
        self.doc: Optional[str] = None
        self.type = GirType()
        for child in element:
            tag = get_tag(child)
            match tag:
                case "type" | "array":
                    self.type = GirType.from_element(child)
                case "doc":
                    self.doc = _doc_text(child)
                case "doc-deprecated" | "source-position" | "attribute":
                    pass
                case _:
                    unexpected(self.name, tag)


class GirAlias:
    def __init__(self, element: ET.Element) -> None:
        self.name = element.attrib["name"]
        self.c_type = element.attrib.get(C_TYPE)
        self.doc: Optional[str] = None
        self.target = GirType()
        for child in element:
            tag = get_tag(child)
            match tag:
                case "type":
                    self.target = GirType.from_element(child)
                case "doc":
                    self.doc = _doc_text(child)
                case "source-position":
                    pass
                case _:
                    unexpected(self.name, tag)


class GirNamespace:
    def __init__(self, root: ET.Element) -> None:
        self.includes: List[str] = []
        self.c_includes: List[str] = []
        for child in root:
            if child.tag == INCLUDE:
                self.includes.append(
                    f"{child.attrib['name']}-{child.attrib.get('version', '')}"
                )
                continue
            if child.tag == C_INCLUDE:
                self.c_includes.append(child.attrib["name"])
                continue
            tag = get_tag(child)
            match tag:
                case "package" | "doc" | "namespace":
                    pass
                case _:
                    unexpected("repository", tag)

        namespace = root.find("namespace", NS)
        assert namespace is not None, "gir without namespace"
        self.name = namespace.attrib["name"]
        self.version = namespace.attrib.get("version", "")
        shared_library = namespace.attrib.get("shared-library")
        self.shared_libraries = shared_library.split(",") if shared_library else []
        self.c_prefix = namespace.attrib.get(C_IDENTIFIER_PREFIXES, "")
        self.symbol_prefix = namespace.attrib.get(C_SYMBOL_PREFIXES, "")

        self.structs: Dict[str, GirStruct] = {}
        self.enums: Dict[str, GirEnum] = {}
        self.functions: Dict[str, GirFunction] = {}
        self.callbacks: Dict[str, GirFunction] = {}
        self.constants: Dict[str, GirConstant] = {}
        self.aliases: Dict[str, GirAlias] = {}

        for child in namespace:
            tag = get_tag(child)
            match tag:
                case "class" | "interface" | "record" | "union":
                    struct = GirStruct(child)
                    self.structs[struct.name] = struct
                case "enumeration" | "bitfield":
                    enum = GirEnum(child)
                    self.enums[enum.name] = enum
                case "constant":
                    constant = GirConstant(child)
                    self.constants[constant.name] = constant
                case "function":
                    func = GirFunction(child)
                    self.functions[func.name] = func
                case "callback":
                    func = GirFunction(child)
                    self.callbacks[func.name] = func
                case "alias":
                    alias = GirAlias(child)
                    self.aliases[alias.name] = alias
                case "boxed" | "function-macro" | "docsection" | "attribute":
                    pass
                case _:
                    unexpected(self.name, tag)

    def __repr__(self) -> str:
        return f"GirNamespace({self.name}-{self.version})"


def parse(source: str) -> GirNamespace:
    """parse gir xml text"""
    return GirNamespace(ET.fromstring(source))


def load(path: pathlib.Path) -> GirNamespace:
    if not path.exists():
        raise FileNotFoundError(f"gir not found: {path}")
    LOGGER.debug(f"parse: {path}")
    tree = ET.parse(path)
    return GirNamespace(tree.getroot())
