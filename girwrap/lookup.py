"""
APILookup tables.

A lookup file is line oriented::

    # comment
    wrap: glib
    file: GLib-2.0.gir

    struct: List
    class: ListG
    alias: foreach foreach_
    noCode: free_full
    code: start
        def __len__(self):
            return self.length()
    code: end

Settings are global, ``wrap:`` starts a package and ``struct:`` selects the
struct the following struct keys apply to.
"""
from typing import Dict, List, Optional, Tuple
import pathlib
import logging

LOGGER = logging.getLogger(__name__)

BLOCK_KEYS = ["license", "licence", "addTypes", "code", "interfaceCode"]


class LookupFileError(Exception):
    def __init__(self, message: str, path: Optional[pathlib.Path] = None, line: int = 0) -> None:
        self.path = path
        self.line = line
        if path:
            message = f"{path}:{line}: {message}"
        super().__init__(message)


class StructLookup:
    def __init__(self, name: str, line: int = 0) -> None:
        self.name = name
        self.line = line
        self.class_name: Optional[str] = None
        self.no_code: List[str] = []
        self.no_code_all = False
        self.no_struct = False
        self.imports: List[str] = []
        self.struct_wrap: Dict[str, str] = {}
        self.aliases: Dict[str, str] = {}
        self.overrides: List[str] = []
        self.free_function: Optional[str] = None
        self.code: List[str] = []
        self.interface_code: List[str] = []
        # function => [(param, direction)]
        self.directions: Dict[str, List[Tuple[str, str]]] = {}


class PackageLookup:
    def __init__(self, name: str, path: Optional[pathlib.Path] = None) -> None:
        self.name = name
        self.path = path
        self.files: List[str] = []
        self.libraries: List[str] = []
        self.add_types: List[str] = []
        self.no_alias: List[str] = []
        self.no_enum: List[str] = []
        self.no_callback: List[str] = []
        self.no_constant: List[str] = []
        # (function, struct, new name)
        self.moves: List[Tuple[str, str, Optional[str]]] = []
        self.structs: Dict[str, StructLookup] = {}

    def get_struct(self, name: str, line: int = 0) -> StructLookup:
        struct = self.structs.get(name)
        if not struct:
            struct = StructLookup(name, line)
            self.structs[name] = struct
        return struct


class Lookup:
    """everything read from one root lookup file and its includes"""

    def __init__(self) -> None:
        self.license = ""
        self.include_comments = True
        self.output_root: Optional[pathlib.Path] = None
        self.src_dir = ""
        self.packages: List[PackageLookup] = []
        self.files: List[pathlib.Path] = []

    def get_package(self, name: str) -> Optional[PackageLookup]:
        for package in self.packages:
            if package.name == name:
                return package
        return None


def _parse_bool(value: str) -> bool:
    return value.lower() in ("y", "yes", "true", "1")


class LookupReader:
    def __init__(self, lookup: Lookup, path: pathlib.Path) -> None:
        self.lookup = lookup
        self.path = path
        self.package: Optional[PackageLookup] = None
        self.struct: Optional[StructLookup] = None

    def error(self, message: str, line: int):
        raise LookupFileError(message, self.path, line)

    def read(self, text: str):
        lines = text.splitlines()
        i = 0
        while i < len(lines):
            line_no = i + 1
            line = lines[i]
            i += 1
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                self.error(f"expected 'key: value': {stripped}", line_no)
            key, value = stripped.split(":", 1)
            key = key.strip()
            value = value.strip()

            if key in BLOCK_KEYS:
                if value != "start":
                    self.error(f"{key}: expected start", line_no)
                block: List[str] = []
                while True:
                    if i >= len(lines):
                        self.error(f"{key}: missing end", line_no)
                    current = lines[i]
                    i += 1
                    if current.strip() == f"{key}: end":
                        break
                    block.append(current.rstrip())
                self.block(key, _dedent(block), line_no)
            else:
                self.directive(key, value, line_no)

    def block(self, key: str, block: List[str], line: int):
        match key:
            case "license" | "licence":
                self.lookup.license = "\n".join(block) + "\n"
            case "addTypes":
                self.require_package(key, line).add_types.extend(block)
            case "code":
                self.require_struct(key, line).code.extend(block)
            case "interfaceCode":
                self.require_struct(key, line).interface_code.extend(block)

    def require_package(self, key: str, line: int) -> PackageLookup:
        if not self.package:
            self.error(f"{key}: before wrap", line)
        return self.package  # type: ignore

    def require_struct(self, key: str, line: int) -> StructLookup:
        if not self.struct:
            self.error(f"{key}: before struct", line)
        return self.struct  # type: ignore

    def directive(self, key: str, value: str, line: int):
        match key:
            # global
            case "includeComments":
                self.lookup.include_comments = _parse_bool(value)
            case "outputRoot":
                self.lookup.output_root = self.path.parent / value
            case "srcDir":
                self.lookup.src_dir = value
            case "lookup":
                include = self.path.parent / value
                if not include.exists():
                    self.error(f"lookup not found: {value}", line)
                read_lookup(include, self.lookup)
            # package
            case "wrap":
                self.package = PackageLookup(value, self.path)
                self.struct = None
                self.lookup.packages.append(self.package)
            case "file":
                self.require_package(key, line).files.append(value)
            case "library":
                self.require_package(key, line).libraries.extend(value.split())
            case "noAlias":
                self.require_package(key, line).no_alias.append(value)
            case "noEnum":
                self.require_package(key, line).no_enum.append(value)
            case "noCallback":
                self.require_package(key, line).no_callback.append(value)
            case "noConstant":
                self.require_package(key, line).no_constant.append(value)
            case "move":
                args = value.split()
                if len(args) not in (2, 3):
                    self.error("move: expected 'function struct [new_name]'", line)
                new_name = args[2] if len(args) == 3 else None
                self.require_package(key, line).moves.append((args[0], args[1], new_name))
            # struct
            case "struct":
                package = self.require_package(key, line)
                self.struct = package.get_struct(value, line)
            case "class":
                self.require_struct(key, line).class_name = value
            case "noCode":
                struct = self.require_struct(key, line)
                if value == "true":
                    struct.no_code_all = True
                else:
                    struct.no_code.append(value)
            case "noStruct":
                self.require_struct(key, line).no_struct = _parse_bool(value)
            case "import":
                self.require_struct(key, line).imports.append(value)
            case "structWrap":
                args = value.split()
                if len(args) != 2:
                    self.error("structWrap: expected 'CType* Class'", line)
                self.require_struct(key, line).struct_wrap[args[0]] = args[1]
            case "alias":
                args = value.split()
                if len(args) != 2:
                    self.error("alias: expected 'name new_name'", line)
                self.require_struct(key, line).aliases[args[0]] = args[1]
            case "override":
                self.require_struct(key, line).overrides.append(value)
            case "free":
                self.require_struct(key, line).free_function = value
            case "out" | "inout":
                args = value.split()
                if len(args) != 2:
                    self.error(f"{key}: expected 'function param'", line)
                struct = self.require_struct(key, line)
                struct.directions.setdefault(args[0], []).append((args[1], key))
            case _:
                self.error(f"unknown key: {key}", line)


def _dedent(block: List[str]) -> List[str]:
    indents = [len(line) - len(line.lstrip()) for line in block if line.strip()]
    if not indents:
        return block
    indent = min(indents)
    return [line[indent:] for line in block]


def read_lookup(path: pathlib.Path, lookup: Optional[Lookup] = None) -> Lookup:
    if lookup is None:
        lookup = Lookup()
    path = path.resolve()
    if path in lookup.files:
        raise LookupFileError(f"lookup included twice: {path.name}", path)
    lookup.files.append(path)
    LOGGER.debug(f"lookup: {path}")
    LookupReader(lookup, path).read(path.read_text(encoding="utf-8"))
    return lookup


def parse_lookup(text: str, path: pathlib.Path = pathlib.Path("APILookup.txt")) -> Lookup:
    lookup = Lookup()
    LookupReader(lookup, path).read(text)
    return lookup
