"""
Base classes of the generated wrappers.
"""
from typing import Any, Dict, Optional, Type
import ctypes
import importlib
import logging
import weakref

from .loader import GOBJECT, Library

LOGGER = logging.getLogger(__name__)


def address(value: Any) -> Optional[int]:
    """the native address of a handle, wrapper or ctypes object"""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, Wrapper):
        return value._handle
    if isinstance(value, ctypes.c_void_p):
        return value.value
    if isinstance(value, ctypes._Pointer):  # type: ignore
        return ctypes.cast(value, ctypes.c_void_p).value
    if isinstance(value, (ctypes.Structure, ctypes.Union, ctypes.Array)):
        return ctypes.addressof(value)
    raise TypeError(f"not a native handle: {value!r}")


def to_enum(enum_type: Any, value: int):
    """the enum member, or the plain int for a value the enum does not declare"""
    try:
        return enum_type(value)
    except ValueError:
        LOGGER.debug(f"{enum_type.__name__}: undeclared value: {value}")
        return value


def cast(value: Any, struct_type: Type[ctypes.Structure]):
    """a native pointer as ctypes.POINTER(struct_type), None for NULL"""
    handle = address(value)
    if not handle:
        return None
    return ctypes.cast(ctypes.c_void_p(handle), ctypes.POINTER(struct_type))


class Wrapper:
    """
    Holds the pointer to the native struct.

    With ``own_ref=True`` the handle is released by ``_free_func`` when the
    wrapper is collected, or when :meth:`free` is called. Types with a
    ``_ref_func`` take a reference of their own on a borrowed handle.
    """

    _c_type: Optional[str] = None
    _library: Optional[Library] = None
    _free_func: Optional[str] = None
    _ref_func: Optional[str] = None
    _struct_type: Optional[Type[ctypes.Structure]] = None

    def __init__(self, handle: Any, own_ref: bool = False) -> None:
        handle = address(handle)
        if not handle:
            raise ValueError(f"{type(self).__name__}: null handle")
        self._handle: int = handle
        self._finalizer: Optional[weakref.finalize] = None
        if not own_ref and self._ref_func:
            ref = self._native_function("_ref_func")
            if ref is not None:
                ref(ctypes.c_void_p(handle))
                own_ref = True
        if own_ref:
            self._take_ownership()

    def _native_function(self, attr: str):
        """
        The function named by a class attribute, from the library of the
        class that declares it. A subclass generated into another package
        has a library of its own.
        """
        for cls in type(self).__mro__:
            name = cls.__dict__.get(attr)
            if name:
                library = cls.__dict__.get("_library") or self._library
                if library is None:
                    return None
                return getattr(library, name)
        return None

    def _take_ownership(self):
        free = self._native_function("_free_func")
        if free is None:
            LOGGER.debug(f"{type(self).__name__}: no free function, not released")
            return
        self._finalizer = weakref.finalize(self, free, ctypes.c_void_p(self._handle))

    @property
    def _as_parameter_(self) -> ctypes.c_void_p:
        return ctypes.c_void_p(self._handle)

    def get_struct(self) -> int:
        """the main native struct as an address"""
        return self._handle

    @property
    def owned(self) -> bool:
        return self._finalizer is not None and self._finalizer.alive

    @property
    def contents(self) -> ctypes.Structure:
        """the fields of a record, when the record is declared in types.py"""
        if self._struct_type is None:
            raise AttributeError(f"{type(self).__name__} has no field declaration")
        return cast(self._handle, self._struct_type).contents  # type: ignore

    def free(self):
        """release an owned handle now"""
        if self._finalizer:
            self._finalizer()

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Wrapper):
            return self._handle == other._handle
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._handle)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._c_type or ''} at 0x{self._handle:x}>"


class GObjectWrapper(Wrapper):
    """
    A GObject instance. The wrapper always holds one reference: a borrowed
    (or floating) handle is ref-sunk, an owned handle is adopted.
    """

    def __init__(self, handle: Any, own_ref: bool = False) -> None:
        super().__init__(handle, own_ref=False)
        if not own_ref:
            GOBJECT.g_object_ref_sink(self._handle)
        self._finalizer = weakref.finalize(self, GOBJECT.g_object_unref, ctypes.c_void_p(self._handle))


class Interface:
    """
    Mixin for generated interfaces. The implementing class provides the
    handle through :class:`Wrapper`.
    """

    pass


_classes: Dict[str, type] = {}


def load_class(path: str) -> type:
    """'gdkpixbuf.Pixbuf' => class Pixbuf of module gdkpixbuf.Pixbuf"""
    cls = _classes.get(path)
    if cls:
        return cls
    module = importlib.import_module(path)
    cls = getattr(module, path.rsplit(".", 1)[-1])
    if issubclass(cls, Interface) and not issubclass(cls, Wrapper):
        # a bare interface pointer, the concrete class is not known here
        cls = type(f"{cls.__name__}Impl", (cls, GObjectWrapper), {})
    _classes[path] = cls
    return cls


def wrap(path: str, handle: Any, own_ref: bool = False):
    """
    Wrap a returned pointer without importing the generated class at module
    level, generated classes refer to each other in cycles.
    """
    handle = address(handle)
    if not handle:
        return None
    return load_class(path)(handle, own_ref=own_ref)
