"""
Native library loading.

Each generated package owns one :class:`Library`. The shared library is
opened on first use, so importing a generated module never fails because a
library is missing.

Search order:

1. directories listed in ``GIRWRAP_LIBRARY_PATH``
2. the names as given (``libgdk_pixbuf-2.0.so.0`` from the gir file)
3. ``ctypes.util.find_library``
"""
from typing import Any, Dict, List, Optional, Sequence, Tuple
import ctypes
import ctypes.util
import logging
import os
import pathlib
import sys

LOGGER = logging.getLogger(__name__)

ENV_LIBRARY_PATH = "GIRWRAP_LIBRARY_PATH"

__all__ = ["Library", "LibraryNotFoundError", "SymbolNotFoundError", "GLIB", "GOBJECT"]


class LibraryNotFoundError(Exception):
    """Raised when none of the names of a library can be loaded."""

    pass


class SymbolNotFoundError(AttributeError):
    """Raised when a loaded library does not export a function."""

    pass


def _platform_name(name: str) -> str:
    if sys.platform == "win32":
        return f"lib{name}-0.dll"
    elif sys.platform == "darwin":
        return f"lib{name}.dylib"
    else:
        return f"lib{name}.so"


def _is_file_name(name: str) -> bool:
    return any(ext in name for ext in (".so", ".dll", ".dylib"))


def _stem(name: str) -> str:
    """libgdk_pixbuf-2.0.so.0 => gdk_pixbuf-2.0"""
    stem = pathlib.Path(name).name
    for ext in (".so", ".dll", ".dylib"):
        if ext in stem:
            stem = stem[: stem.index(ext)]
    if stem.startswith("lib"):
        stem = stem[3:]
    if stem.endswith("-0"):
        stem = stem[:-2]
    return stem


def candidates(name: str) -> List[str]:
    """file names to try for one library name"""
    if _is_file_name(name):
        return [name]
    return [_platform_name(name)]


# path => handle, so that packages sharing a library share the handle
_loaded: Dict[str, ctypes.CDLL] = {}


def _open(path: str) -> Optional[ctypes.CDLL]:
    cdll = _loaded.get(path)
    if cdll:
        return cdll
    try:
        cdll = ctypes.CDLL(path)
    except OSError:
        return None
    _loaded[path] = cdll
    LOGGER.debug(f"loaded: {path}")
    return cdll


def load_library(names: Sequence[str]) -> ctypes.CDLL:
    env_path = os.environ.get(ENV_LIBRARY_PATH)
    search_dirs = [pathlib.Path(p) for p in env_path.split(os.pathsep) if p] if env_path else []

    # 1. GIRWRAP_LIBRARY_PATH
    for directory in search_dirs:
        for name in names:
            for file_name in candidates(name):
                path = directory / file_name
                if path.exists():
                    cdll = _open(str(path.resolve()))
                    if cdll:
                        return cdll

    # 2. system loader
    for name in names:
        for file_name in candidates(name):
            cdll = _open(file_name)
            if cdll:
                return cdll

    # 3. find_library
    for name in names:
        found = ctypes.util.find_library(_stem(name))
        if found:
            cdll = _open(found)
            if cdll:
                return cdll

    raise LibraryNotFoundError(f"library not found: {', '.join(names)}")


class Library:
    """
    Lazily loaded shared library with prototypes.

    ``lib.bind(symbol, restype, argtypes)`` records the prototype,
    ``lib.symbol`` resolves the function and applies it.
    """

    def __init__(self, package: str, names: Sequence[str]) -> None:
        self.package = package
        self.names = list(names)
        self._cdll: Optional[ctypes.CDLL] = None
        self._prototypes: Dict[str, Tuple[Any, List[Any]]] = {}

    def bind(self, symbol: str, restype: Any, argtypes: List[Any]):
        self._prototypes[symbol] = (restype, argtypes)
        # drop a function resolved before the prototype was known
        self.__dict__.pop(symbol, None)

    @property
    def is_loaded(self) -> bool:
        return self._cdll is not None

    def load(self) -> ctypes.CDLL:
        if self._cdll is None:
            if not self.names:
                raise LibraryNotFoundError(f"{self.package}: no library names")
            self._cdll = load_library(self.names)
        return self._cdll

    def __getattr__(self, symbol: str):
        if symbol.startswith("_"):
            raise AttributeError(symbol)
        cdll = self.load()
        try:
            func = getattr(cdll, symbol)
        except AttributeError:
            LOGGER.error(f"{self.package}: symbol not found: {symbol}")
            raise SymbolNotFoundError(f"{self.package}: {symbol}") from None
        prototype = self._prototypes.get(symbol)
        if prototype:
            func.restype, func.argtypes = prototype
        self.__dict__[symbol] = func
        return func

    def __repr__(self) -> str:
        return f"Library({self.package!r}, {self.names!r})"


GLIB = Library("glib", ["glib-2.0", "libglib-2.0.so.0", "libglib-2.0.0.dylib"])
GLIB.bind("g_free", None, [ctypes.c_void_p])
GLIB.bind("g_strfreev", None, [ctypes.c_void_p])
GLIB.bind("g_error_free", None, [ctypes.c_void_p])
GLIB.bind("g_quark_to_string", ctypes.c_char_p, [ctypes.c_uint32])
GLIB.bind("glib_check_version", ctypes.c_char_p, [ctypes.c_uint, ctypes.c_uint, ctypes.c_uint])

GOBJECT = Library("gobject", ["gobject-2.0", "libgobject-2.0.so.0", "libgobject-2.0.0.dylib"])
GOBJECT.bind("g_object_ref_sink", ctypes.c_void_p, [ctypes.c_void_p])
GOBJECT.bind("g_object_unref", None, [ctypes.c_void_p])
GOBJECT.bind(
    "g_signal_connect_data",
    ctypes.c_ulong,
    [ctypes.c_void_p, ctypes.c_char_p, ctypes.c_void_p, ctypes.c_void_p, ctypes.c_void_p, ctypes.c_int],
)
GOBJECT.bind("g_signal_handler_disconnect", None, [ctypes.c_void_p, ctypes.c_ulong])
