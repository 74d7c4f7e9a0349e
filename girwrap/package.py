from typing import Dict, List, Optional, Tuple, TYPE_CHECKING
import pathlib
import logging

from .gir import GirAlias, GirConstant, GirEnum, GirFunction, GirNamespace, GirStruct
from .lookup import LookupFileError, PackageLookup
from . import gir
from . import names

if TYPE_CHECKING:
    from .wrapper import Wrapper

LOGGER = logging.getLogger(__name__)


class Package:
    """
    One generated python package. Usually one gir namespace, the lookup
    tables may load more than one file into a package.
    """

    def __init__(self, wrapper: "Wrapper", name: str) -> None:
        self.wrapper = wrapper
        self.name = name
        self.namespaces: List[GirNamespace] = []
        self.libraries: List[str] = []
        self.add_types: List[str] = []
        self.structs: Dict[str, GirStruct] = {}
        self.enums: Dict[str, GirEnum] = {}
        self.functions: Dict[str, GirFunction] = {}
        self.callbacks: Dict[str, GirFunction] = {}
        self.constants: Dict[str, GirConstant] = {}
        self.aliases: Dict[str, GirAlias] = {}

    def add_namespace(self, namespace: GirNamespace):
        self.namespaces.append(namespace)
        self.structs.update(namespace.structs)
        self.enums.update(namespace.enums)
        self.functions.update(namespace.functions)
        self.callbacks.update(namespace.callbacks)
        self.constants.update(namespace.constants)
        self.aliases.update(namespace.aliases)
        for library in namespace.shared_libraries:
            if library not in self.libraries:
                self.libraries.append(library)

        for struct in namespace.structs.values():
            if struct.name in names.RESERVED_CLASS_NAMES:
                # Object => ObjectG, List => ListG
                struct.class_name = struct.name + "G"

    def load(self, gir_file: str, gir_dirs: List[pathlib.Path]):
        for gir_dir in gir_dirs:
            path = gir_dir / gir_file
            if path.exists():
                break
        else:
            raise FileNotFoundError(f"{gir_file} not found in {', '.join(str(d) for d in gir_dirs)}")
        self.add_namespace(gir.load(path))

    def apply(self, lookup: PackageLookup):
        if lookup.libraries:
            # the lookup tables win over the gir shared-library attribute
            self.libraries = list(lookup.libraries)
        self.add_types.extend(lookup.add_types)
        for name in lookup.no_alias:
            self.aliases.pop(name, None)
        for name in lookup.no_enum:
            self.enums.pop(name, None)
        for name in lookup.no_callback:
            self.callbacks.pop(name, None)
        for name in lookup.no_constant:
            self.constants.pop(name, None)

        for func_name, struct_name, new_name in lookup.moves:
            self.move_function(func_name, struct_name, new_name, lookup)

        for struct_lookup in lookup.structs.values():
            struct = self.structs.get(struct_lookup.name)
            if not struct:
                raise LookupFileError(
                    f"Unknown struct: {struct_lookup.name}", lookup.path, struct_lookup.line
                )
            struct.wrapped_by_lookup = True
            if struct_lookup.class_name:
                struct.class_name = struct_lookup.class_name
            struct.no_struct = struct_lookup.no_struct
            struct.no_code = struct_lookup.no_code_all
            struct.imports.extend(struct_lookup.imports)
            struct.struct_wrap.update(struct_lookup.struct_wrap)
            struct.aliases.update(struct_lookup.aliases)
            struct.lookup_code.extend(struct_lookup.code)
            struct.lookup_interface_code.extend(struct_lookup.interface_code)
            if struct_lookup.free_function:
                struct.free_function = struct_lookup.free_function

            for func_name in struct_lookup.no_code:
                self.struct_function(struct, func_name, lookup, struct_lookup.line).no_code = True
            for func_name, new_name in struct_lookup.aliases.items():
                self.struct_function(struct, func_name, lookup, struct_lookup.line).rename = new_name
            for func_name in struct_lookup.overrides:
                self.struct_function(struct, func_name, lookup, struct_lookup.line).override = True
            for func_name, directions in struct_lookup.directions.items():
                func = self.struct_function(struct, func_name, lookup, struct_lookup.line)
                for param_name, direction in directions:
                    for param in func.params:
                        if param.name == param_name:
                            param.direction = direction
                            break
                    else:
                        raise LookupFileError(
                            f"{func_name}: Unknown parameter: {param_name}",
                            lookup.path,
                            struct_lookup.line,
                        )

    def move_function(self, func_name: str, struct_name: str, new_name: Optional[str], lookup: PackageLookup):
        func = self.functions.pop(func_name, None)
        if not func:
            raise LookupFileError(f"move: Unknown function: {func_name}", lookup.path)
        found = self.resolve_struct(struct_name)
        if not found:
            raise LookupFileError(f"move: Unknown struct: {struct_name}", lookup.path)
        package, struct = found
        if package != self.name:
            raise LookupFileError(f"move: {struct_name} is not in package {self.name}", lookup.path)
        if new_name:
            func.rename = new_name
        func.struct_name = struct.name
        struct.functions[func.name] = func

    @staticmethod
    def struct_function(struct: GirStruct, func_name: str, lookup: PackageLookup, line: int) -> GirFunction:
        func = struct.functions.get(func_name)
        if not func:
            raise LookupFileError(f"{struct.name}: Unknown function: {func_name}", lookup.path, line)
        return func

    def wrapped_structs(self) -> List[GirStruct]:
        return [s for s in self.structs.values() if self.is_wrapped(s)]

    @staticmethod
    def is_wrapped(struct: GirStruct) -> bool:
        """
        classes and interfaces are always wrapped, records only when they
        have functions or the lookup tables select them.
        """
        if struct.no_code or struct.is_gtype_struct:
            return False
        if struct.kind in ("class", "interface"):
            return True
        if struct.wrapped_by_lookup:
            return True
        return any(not f.no_code for f in struct.methods())

    # resolver
    def resolve_struct(self, name: str) -> Optional[Tuple[str, GirStruct]]:
        return self.wrapper.resolve_struct(name, self)

    def resolve_enum(self, name: str) -> Optional[Tuple[str, GirEnum]]:
        return self.wrapper.resolve(name, self, "enums")  # type: ignore

    def resolve_callback(self, name: str) -> Optional[Tuple[str, GirFunction]]:
        return self.wrapper.resolve(name, self, "callbacks")  # type: ignore

    def resolve_alias(self, name: str) -> Optional[Tuple[str, GirAlias]]:
        return self.wrapper.resolve(name, self, "aliases")  # type: ignore

    def find_class(self, class_name: str) -> Optional[Tuple[str, GirStruct]]:
        return self.wrapper.find_class(class_name, self)

    def __repr__(self) -> str:
        return f"Package({self.name})"
