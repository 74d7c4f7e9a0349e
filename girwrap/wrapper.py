from typing import Dict, List, Optional, Tuple
import pathlib
import logging

from .emitter import PackageEmitter, Settings
from .gir import GirNamespace, GirStruct
from .lookup import Lookup, read_lookup
from .package import Package
from . import gir
from . import names
from . import select_gir

LOGGER = logging.getLogger(__name__)


def package_name(namespace: str) -> str:
    """GdkPixbuf => gdkpixbuf"""
    return namespace.lower()


class Wrapper:
    """
    Loads the gir files named by the lookup tables and writes one python
    package per ``wrap:`` entry.
    """

    def __init__(
        self,
        gir_dirs: List[pathlib.Path],
        output_root: Optional[pathlib.Path] = None,
        src_dir: str = "",
        license: str = "",
        include_comments: bool = True,
    ) -> None:
        self.gir_dirs = gir_dirs
        self.output_root = output_root
        self.src_dir = src_dir
        self.license = license
        self.include_comments = include_comments
        self.packages: Dict[str, Package] = {}
        # gir namespace => package
        self.namespaces: Dict[str, Package] = {}

    @staticmethod
    def from_lookup(lookup_file: pathlib.Path, gir_dirs: List[pathlib.Path]) -> "Wrapper":
        lookup = read_lookup(lookup_file)
        wrapper = Wrapper(
            gir_dirs,
            lookup.output_root,
            lookup.src_dir,
            lookup.license,
            lookup.include_comments,
        )
        wrapper.process(lookup)
        return wrapper

    @property
    def settings(self) -> Settings:
        return Settings(self.license, self.include_comments)

    def add_package(self, name: str) -> Package:
        package = self.packages.get(name)
        if not package:
            package = Package(self, name)
            self.packages[name] = package
        return package

    def add_namespace(self, package_name: str, namespace: GirNamespace) -> Package:
        """register a parsed gir, without going through the lookup tables"""
        package = self.add_package(package_name)
        package.add_namespace(namespace)
        self.namespaces[namespace.name] = package
        return package

    def load_gir(
        self, gir_dir: pathlib.Path, name: str, version: Optional[str] = None, with_includes=True
    ) -> Package:
        """load a namespace without lookup tables, one package per namespace"""
        if name in self.namespaces:
            return self.namespaces[name]
        namespace = gir.load(select_gir(gir_dir, name, version))
        package = self.add_namespace(package_name(namespace.name), namespace)
        if with_includes:
            for include in namespace.includes:
                include_name, _, include_version = include.rpartition("-")
                if include_name in self.namespaces:
                    continue
                try:
                    self.load_gir(gir_dir, include_name, include_version or None)
                except FileNotFoundError:
                    LOGGER.warning(f"{namespace.name}: include not found: {include}")
        return package

    def process(self, lookup: Lookup):
        # load every gir first, the directives may refer to other packages
        for package_lookup in lookup.packages:
            package = self.add_package(package_lookup.name)
            for gir_file in package_lookup.files:
                before = len(package.namespaces)
                package.load(gir_file, self.gir_dirs)
                for namespace in package.namespaces[before:]:
                    self.namespaces[namespace.name] = package
        for package_lookup in lookup.packages:
            self.packages[package_lookup.name].apply(package_lookup)

    #
    # name resolution
    #
    def resolve(self, name: str, current: Package, table: str):
        ns, local = names.split_qualified(name)
        if ns:
            package = self.namespaces.get(ns)
            if not package:
                return None
        else:
            package = current
        value = getattr(package, table).get(local)
        if value is None:
            return None
        return package.name, value

    def resolve_struct(self, name: str, current: Package) -> Optional[Tuple[str, GirStruct]]:
        return self.resolve(name, current, "structs")

    def find_class(self, class_name: str, current: Package) -> Optional[Tuple[str, GirStruct]]:
        """by generated class name, 'ListG' or 'glib.ListG'"""
        package_name, local = names.split_qualified(class_name)
        if package_name:
            candidates = [self.packages[package_name]] if package_name in self.packages else []
        else:
            candidates = [current] + [p for p in self.packages.values() if p is not current]
        for package in candidates:
            for struct in package.structs.values():
                if struct.class_name == local:
                    return package.name, struct
        LOGGER.warning(f"{current.name}: structWrap class not found: {class_name}")
        return None

    #
    # output
    #
    def emit(self) -> Dict[pathlib.Path, str]:
        """relative path => source"""
        sources: Dict[pathlib.Path, str] = {}
        for package in self.packages.values():
            emitter = PackageEmitter(package, self.settings)
            for file_name, source in emitter.emit_all().items():
                sources[pathlib.Path(package.name) / file_name] = source
        return sources

    def write(self, output_root: Optional[pathlib.Path] = None) -> List[pathlib.Path]:
        root = output_root or self.output_root
        if not root:
            raise ValueError("no output root, set outputRoot in the lookup file or pass --output-root")
        dst = root / self.src_dir if self.src_dir else root
        written = []
        for relative, source in self.emit().items():
            path = dst / relative
            if not path.parent.exists():
                LOGGER.info(f"mkdir: {path.parent}")
                path.parent.mkdir(exist_ok=True, parents=True)
            path.write_text(source, encoding="utf-8")
            LOGGER.info(f"write: {path}")
            written.append(path)
        return written
