from typing import Dict, List, NamedTuple, Optional, Tuple
import os
import pathlib
import re
import logging

LOGGER = logging.getLogger(__name__)

__version__ = "0.1.0"

ENV_GIR_DIR = "GIRWRAP_GIR_DIR"
GIR_PATTERN = re.compile(r"(.*)-(\d+(?:\.\d+)*)$")


def default_gir_dir() -> pathlib.Path:
    """GIRWRAP_GIR_DIR, PREFIX/share/gir-1.0 from PKG_CONFIG_PATH or /usr/share/gir-1.0"""
    env = os.environ.get(ENV_GIR_DIR)
    if env:
        return pathlib.Path(env)
    pkg_config_path = os.environ.get("PKG_CONFIG_PATH")
    if pkg_config_path:
        # PREFIX/lib/pkgconfig
        prefix = pathlib.Path(pkg_config_path.split(os.pathsep)[0]).parent.parent
        gir_dir = prefix / "share/gir-1.0"
        if gir_dir.exists():
            return gir_dir
    return pathlib.Path("/usr/share/gir-1.0")


class Entry(NamedTuple):
    path: pathlib.Path
    name: str
    version: str = ""

    @property
    def version_key(self) -> Tuple[int, ...]:
        if not self.version:
            return ()
        return tuple(int(v) for v in self.version.split("."))


def find_girs(gir_dir: pathlib.Path) -> Dict[str, List[Entry]]:
    """namespace => entries sorted by version"""
    gir_map: Dict[str, List[Entry]] = {}
    if not gir_dir.exists():
        LOGGER.warning(f"gir dir not exists: {gir_dir}")
        return gir_map

    for e in gir_dir.iterdir():
        if not e.is_file() or e.suffix != ".gir":
            continue
        m = GIR_PATTERN.search(e.stem)
        if m:
            entry = Entry(e, m.group(1), m.group(2))
        else:
            entry = Entry(e, e.stem)
        gir_map.setdefault(entry.name, []).append(entry)

    for values in gir_map.values():
        values.sort(key=lambda x: x.version_key)
    return gir_map


def select_gir(gir_dir: pathlib.Path, name: str, version: Optional[str] = None) -> pathlib.Path:
    """the gir of a namespace, the newest one when version is None"""
    values = find_girs(gir_dir).get(name)
    if not values:
        raise FileNotFoundError(f"{name}: no gir in {gir_dir}")
    if version is None:
        return values[-1].path
    for v in values:
        if v.version == version:
            return v.path
    raise FileNotFoundError(f"{name}-{version}.gir not in {gir_dir}: {[v.version for v in values]}")
