"""
Checks against the typelibs installed for PyGObject.

A gir file can be present while its compiled typelib is not, in that case
the native library is usually missing too.
"""
from typing import List
import logging

LOGGER = logging.getLogger(__name__)


def require_typelib(name: str, version: str):
    """raises ValueError when name-version is not installed"""
    import gi

    try:
        gi.require_version(name, version)
    except ValueError:
        LOGGER.error(f"{name}-{version}: typelib not found, installed: {installed_versions(name)}")
        raise
    LOGGER.debug(f"typelib: {name}-{version}")


def installed_versions(name: str) -> List[str]:
    import gi

    gi.require_version("GIRepository", "2.0")
    from gi.repository import GIRepository

    repository = GIRepository.Repository.get_default()
    return list(repository.enumerate_versions(name))
