from typing import Any, Callable, Dict, List
import ctypes
import itertools
import logging

from .base import Wrapper
from .loader import GOBJECT

LOGGER = logging.getLogger(__name__)

G_CONNECT_AFTER = 1 << 0

# void (*GClosureNotify)(gpointer data, GClosure *closure)
GClosureNotify = ctypes.CFUNCTYPE(None, ctypes.c_void_p, ctypes.c_void_p)

# user data => C callback, alive until GObject destroys the closure
_handlers: Dict[int, Any] = {}
_next_key = itertools.count(1)


def _release(data, _closure):
    if _handlers.pop(data, None) is None:
        LOGGER.debug(f"release of an unknown handler: {data}")


_release_notify = GClosureNotify(_release)


def connect(
    instance: Wrapper,
    name: str,
    callback: Callable[..., Any],
    restype: Any,
    argtypes: List[Any],
    after: bool = False,
) -> int:
    """
    Connect a python callable to a signal of a GObject wrapper.

    argtypes starts with the emitting instance and ends with the user data
    pointer, the callback receives a wrapper of the emitter and the arguments
    in between. The C callback outlives the wrapper, it is released when
    GObject destroys the closure (disconnect or finalize of the emitter).
    """
    prototype = ctypes.CFUNCTYPE(restype, *argtypes)
    wrapper_class = type(instance)

    def trampoline(emitter, *args):
        return callback(wrapper_class(emitter), *args[:-1])

    cfunc = prototype(trampoline)
    key = next(_next_key)
    _handlers[key] = cfunc
    flags = G_CONNECT_AFTER if after else 0
    handler_id = GOBJECT.g_signal_connect_data(
        instance,
        name.encode("utf-8"),
        ctypes.cast(cfunc, ctypes.c_void_p),
        ctypes.c_void_p(key),
        ctypes.cast(_release_notify, ctypes.c_void_p),
        flags,
    )
    if not handler_id:
        LOGGER.warning(f"{wrapper_class.__name__}: connect failed: {name}")
        _handlers.pop(key, None)
        return 0
    return handler_id


def disconnect(instance: Wrapper, handler_id: int):
    """the C callback is released by the destroy notify of the closure"""
    GOBJECT.g_signal_handler_disconnect(instance, handler_id)
