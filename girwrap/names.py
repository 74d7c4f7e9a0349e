from typing import Optional
import keyword
import re

CAMEL_PATTERN = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")

# module level names a generated class must not shadow
RESERVED_CLASS_NAMES = ["Object", "List", "Error", "Type", "Enum", "IntFlag", "IntEnum"]

# module names visible inside generated functions
MODULE_LOCALS = ["c", "ctypes", "base", "errors", "signals", "strings"]


def escape_identifier(src: str) -> str:
    if src in keyword.kwlist or src in ("self", "cls", "print", "exec"):
        return src + "_"
    if src and src[0].isdigit():
        return "_" + src
    return src


def param_name(src: str) -> str:
    """parameters must not shadow the modules a generated function uses"""
    if src in MODULE_LOCALS or src.endswith("_types"):
        return src + "_"
    return escape_identifier(src)


def as_snake_case(src: str) -> str:
    """GdkPixbuf => gdk_pixbuf, new-from-file => new_from_file"""
    src = src.replace("-", "_")
    return CAMEL_PATTERN.sub("_", src).lower()


def as_pascal_case(src: str) -> str:
    return "".join(p[:1].upper() + p[1:] for p in re.split(r"[_\-]", src) if p)


def handle_func(name: str, package: str, parent_name: Optional[str] = None) -> str:
    """
    the getter returning the c struct pointer.

    When the parent class has the same name (gdk.Window : gtk.Window)
    the package is prefixed to keep the getters apart.
    """
    if parent_name == name:
        return f"get_{as_snake_case(package)}_{as_snake_case(name)}_struct"
    return f"get_{as_snake_case(name)}_struct"


def method_name(gir_name: str) -> str:
    return escape_identifier(gir_name.replace("-", "_"))


def signal_method_name(signal_name: str) -> str:
    return "add_on_" + signal_name.replace("-", "_").replace("::", "_")


def enum_member_name(name: str) -> str:
    return escape_identifier(name.upper())


def constant_name(name: str) -> str:
    return escape_identifier(name.upper())


def split_qualified(name: str):
    """'GObject.Object' => ('GObject', 'Object'), 'Pixbuf' => (None, 'Pixbuf')"""
    if "." in name:
        ns, local = name.split(".", 1)
        return ns, local
    return None, name
