"""
utf8 and filename marshaling.
"""
from typing import Any, List, Optional
import ctypes
import os

from .loader import GLIB


def to_c(value: Any) -> Optional[bytes]:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, os.PathLike):
        return os.fsencode(value)
    raise TypeError(f"expected str, bytes or path, got {type(value).__name__}")


def _pointer(value: Any) -> Optional[int]:
    if isinstance(value, ctypes.c_void_p):
        return value.value
    return value


def from_c(value: Any, free: bool = False) -> Optional[str]:
    """a NUL terminated native string, released with g_free when owned"""
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    ptr = _pointer(value)
    if not ptr:
        return None
    text = ctypes.string_at(ptr).decode("utf-8", errors="replace")
    if free:
        GLIB.g_free(ptr)
    return text


def to_c_array(values: Optional[List[Any]]):
    """a NULL terminated gchar** for the duration of the call"""
    if values is None:
        return None
    items = [to_c(v) for v in values]
    return (ctypes.c_char_p * (len(items) + 1))(*items, None)


def from_c_array(value: Any, transfer: str = "none") -> Optional[List[str]]:
    """
    A NULL terminated gchar**. With transfer "full" the strings and the
    array are released (g_strfreev), with "container" only the array.
    """
    ptr = _pointer(value)
    if not ptr:
        return None
    array = ctypes.cast(ptr, ctypes.POINTER(ctypes.c_char_p))
    result = []
    i = 0
    while array[i] is not None:
        result.append(array[i].decode("utf-8", errors="replace"))
        i += 1
    match transfer:
        case "full":
            GLIB.g_strfreev(ptr)
        case "container":
            GLIB.g_free(ptr)
    return result
