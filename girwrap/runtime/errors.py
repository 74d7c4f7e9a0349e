from typing import Optional
import ctypes

from .loader import GLIB


class ConstructionError(Exception):
    """A native constructor returned NULL."""

    pass


class GLibError(Exception):
    """A GError reported by a native function."""

    def __init__(self, domain: Optional[str], code: int, message: str) -> None:
        super().__init__(message)
        self.domain = domain
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.domain}({self.code}): {self.message}"


class GError(ctypes.Structure):
    _fields_ = [
        ("domain", ctypes.c_uint32),
        ("code", ctypes.c_int),
        ("message", ctypes.c_char_p),
    ]


def new_error() -> ctypes.c_void_p:
    """storage for a GError**, pass it with ctypes.byref"""
    return ctypes.c_void_p()


def to_exception(error: GError) -> GLibError:
    domain = GLIB.g_quark_to_string(error.domain)
    message = error.message.decode("utf-8", errors="replace") if error.message else ""
    return GLibError(domain.decode("utf-8") if domain else None, error.code, message)


def check_error(err: ctypes.c_void_p):
    """raise GLibError and free the GError when the native call set one"""
    if not err.value:
        return
    error = ctypes.cast(err, ctypes.POINTER(GError)).contents
    exception = to_exception(error)
    GLIB.g_error_free(err)
    err.value = None
    raise exception
