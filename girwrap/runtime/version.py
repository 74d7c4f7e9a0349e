"""
Version checks against the loaded native libraries.

cairo and pango encode ``major.minor.micro`` into one integer,
``major * 10000 + minor * 100 + micro``. GLib has ``glib_check_version``.
"""
from typing import Optional, Tuple

from .loader import GLIB, Library


def encode_version(major: int, minor: int, micro: int) -> int:
    return major * 10000 + minor * 100 + micro


def decode_version(encoded: int) -> Tuple[int, int, int]:
    return encoded // 10000, (encoded // 100) % 100, encoded % 100


def version_string(encoded: int) -> str:
    return "%d.%d.%d" % decode_version(encoded)


def runtime_version(library: Library, symbol: str) -> int:
    """the encoded version reported by e.g. cairo_version()"""
    return int(getattr(library, symbol)())


def check_version(library: Library, symbol: str, major: int, minor: int, micro: int = 0) -> bool:
    """True when the loaded library is at least major.minor.micro"""
    return runtime_version(library, symbol) >= encode_version(major, minor, micro)


def check_glib_version(major: int, minor: int, micro: int = 0) -> Optional[str]:
    """None when the loaded GLib is compatible, else the reason"""
    message = GLIB.glib_check_version(major, minor, micro)
    if message:
        return message.decode("utf-8")
    return None
