from typing import List, Optional, TextIO
import argparse
import pathlib
import logging
import sys

from . import default_gir_dir, find_girs
from .lookup import LookupFileError
from .wrapper import Wrapper
from . import repository

LOGGER = logging.getLogger(__name__)


def gen(gir_dir: pathlib.Path, module: str, version: Optional[str], out: TextIO, include_comments=True):
    """print the modules of one namespace"""
    wrapper = Wrapper([gir_dir], include_comments=include_comments)
    package = wrapper.load_gir(gir_dir, module, version)
    for relative, source in wrapper.emit().items():
        if relative.parts[0] != package.name:
            continue
        out.write(f"# {relative.as_posix()}\n")
        out.write(source)
        out.write("\n")


def generate_all(
    lookup_file: pathlib.Path,
    gir_dirs: List[pathlib.Path],
    output_root: Optional[pathlib.Path],
    include_comments: Optional[bool] = None,
) -> List[pathlib.Path]:
    wrapper = Wrapper.from_lookup(lookup_file, gir_dirs)
    if include_comments is not None:
        wrapper.include_comments = include_comments
    return wrapper.write(output_root)


def list_girs(gir_dir: pathlib.Path, out: TextIO):
    for name, values in sorted(find_girs(gir_dir).items()):
        versions = ", ".join(v.version for v in values)
        out.write(f"{name}: {versions}\n")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="girwrap",
        description="generate ctypes wrapper classes from {gir_dir}/{module}-{version}.gir",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    subparsers = parser.add_subparsers(dest="subparser_name")

    # gen
    parser_gen = subparsers.add_parser("gen", help="Print the modules of one gir namespace")
    parser_gen.add_argument("gir_dir", help="Path to PREFIX/share/gir-1.0")
    parser_gen.add_argument("module", help="Gtk, GdkPixbuf, cairo ... etc")
    parser_gen.add_argument("version", nargs="?", help="1.0, 2.0, 3.0, 4.0 ... etc. newest if omitted")
    parser_gen.add_argument("--no-comments", action="store_true", help="no docstrings")
    parser_gen.add_argument(
        "--require-typelib",
        action="store_true",
        help="fail unless PyGObject finds the typelib of module-version",
    )

    # all
    parser_all = subparsers.add_parser("all", help="Generate the packages of an APILookup file")
    parser_all.add_argument("lookup", help="Path to APILookup.txt")
    parser_all.add_argument(
        "--gir-dir",
        action="append",
        help=f"gir search directory, repeatable. default: {default_gir_dir()}",
    )
    parser_all.add_argument("--output-root", help="overrides outputRoot of the lookup file")
    parser_all.add_argument("--no-comments", action="store_true", help="no docstrings")

    # list
    parser_list = subparsers.add_parser("list", help="List the gir files of a directory")
    parser_list.add_argument("gir_dir", nargs="?", help="Path to PREFIX/share/gir-1.0")

    # dispatch
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    match args.subparser_name:
        case "gen":
            if args.require_typelib:
                if not args.version:
                    parser.error("--require-typelib needs a version")
                repository.require_typelib(args.module, args.version)
            gen(
                pathlib.Path(args.gir_dir),
                args.module,
                args.version,
                sys.stdout,
                include_comments=not args.no_comments,
            )
        case "all":
            gir_dirs = [pathlib.Path(d) for d in args.gir_dir] if args.gir_dir else [default_gir_dir()]
            try:
                written = generate_all(
                    pathlib.Path(args.lookup),
                    gir_dirs,
                    pathlib.Path(args.output_root) if args.output_root else None,
                    False if args.no_comments else None,
                )
            except LookupFileError as e:
                LOGGER.error(e)
                return 1
            LOGGER.info(f"{len(written)} files")
        case "list":
            gir_dir = pathlib.Path(args.gir_dir) if args.gir_dir else default_gir_dir()
            list_girs(gir_dir, sys.stdout)
        case _:
            parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
