"""
__main__.py — CLI entry point for gencgo.

Usage:
    python -m gencgo path/to/header.h --tables tables.json [-o output_dir]

The usual workflow:
  1. Explore the header (--explore) and write the curated tables by hand
  2. Generate enums, handle wrappers and method stubs
  3. Work through the TODOs in the generated files, fix the tables, rerun

Every run regenerates the output files from scratch.
"""

import argparse
import logging
import sys
from pathlib import Path

from .errors import GenError
from .generator import Generator
from .ir import GenConfig, is_enum, is_function, is_type
from .ir_builder import IRBuilder
from .ir_printer import explore
from .parser import parse_header, dump_ast_json
from .tables import Tables, load_tables

logger = logging.getLogger("gencgo")

STEPS = ("enums", "stubs", "methods")


def _header_to_package(header_path: Path) -> str:
    """
    Derive a Go package name from the header filename.
    e.g. "cudnn_v7.h" → "cudnnv7"
    """
    return header_path.stem.replace("_", "").replace("-", "").lower()


def _parse_only(value: str) -> list[str]:
    steps = [s.strip() for s in value.split(",") if s.strip()]
    unknown = [s for s in steps if s not in STEPS]
    if unknown:
        raise argparse.ArgumentTypeError(
            f"unknown step(s) {', '.join(unknown)}; choose from {', '.join(STEPS)}"
        )
    return steps


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gencgo",
        description="Generate cgo wrapper stubs from a C header and curated tables.",
    )
    parser.add_argument("header", type=Path, help="Path to the C header file (.h)")
    parser.add_argument(
        "-t",
        "--tables",
        type=Path,
        default=None,
        help="JSON file with the curated mapping tables",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("generated"),
        help="Output directory (default: generated/)",
    )
    parser.add_argument(
        "--package",
        default=None,
        help="Go package name (default: derived from header filename)",
    )
    parser.add_argument(
        "--include",
        default=None,
        help="Header named in the cgo preamble (default: the header's filename)",
    )
    parser.add_argument(
        "--prefix",
        default="",
        help="C symbol prefix stripped from method names, e.g. cudnn",
    )
    parser.add_argument(
        "-I",
        action="append",
        default=[],
        dest="includes",
        help="Additional include directories for the C parser",
    )
    parser.add_argument(
        "--follow-includes",
        action="store_true",
        help="Also read declarations from included (non-system) headers",
    )
    parser.add_argument(
        "--only",
        type=_parse_only,
        default=list(STEPS),
        help="Comma-separated steps to run: enums,stubs,methods (default: all)",
    )
    parser.add_argument(
        "--single-file",
        action="store_true",
        help="Write all handle wrappers into one file instead of one per type",
    )
    parser.add_argument(
        "--no-format",
        action="store_true",
        help="Do not run goimports on the generated files",
    )
    parser.add_argument(
        "--dump-ast",
        action="store_true",
        help="Write the parsed header as ast.json into the output directory",
    )
    parser.add_argument(
        "--explore",
        action="store_true",
        help="Print the parsed declarations and exit",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    header: Path = args.header.resolve()
    config = GenConfig(
        package_name=args.package or _header_to_package(header),
        header_include=args.include or header.name,
        symbol_prefix=args.prefix,
    )

    try:
        # Step 1: PARSE
        print(f"[1/4] Parsing {header.name} ...")
        clang_args = []
        for inc in args.includes:
            clang_args.extend(["-I", inc])
        ast = parse_header(
            header, extra_args=clang_args or None, follow_includes=args.follow_includes
        )
        print(
            f"\tFound {len(ast.functions)} function(s), {len(ast.enums)} enum(s), "
            f"{len(ast.typedefs)} typedef(s)"
        )
        if args.dump_ast:
            json_path = dump_ast_json(ast, args.output / "ast.json")
            print(f"\tAST written to {json_path}")

        # Step 2: BUILD the declaration model
        print("[2/4] Building declaration model ...")
        model = IRBuilder(config).build(ast)
        print(f"\t{len(model)} declaration(s)")

        if args.explore:
            print(explore(model, is_enum))
            print(explore(model, is_function))
            print(explore(model, is_type))
            return 0

        # Step 3: TABLES
        if args.tables is None:
            print("[3/4] No tables given; only built-in scalar types are mapped")
            tables = Tables()
        else:
            print(f"[3/4] Loading tables from {args.tables} ...")
            tables = load_tables(args.tables)

        # Step 4: CODEGEN
        print(f"[4/4] Generating {', '.join(args.only)} into {args.output} ...")
        generator = Generator(
            model,
            tables,
            args.output,
            formatter=None if args.no_format else "goimports",
        )
        if "enums" in args.only:
            print(f"\tEnums → {generator.generate_enums()}")
        if "stubs" in args.only:
            for path in generator.generate_stubs(split=not args.single_file):
                print(f"\tWrapper → {path}")
        if "methods" in args.only:
            print(f"\tMethods → {generator.generate_methods()}")
    except (GenError, OSError) as e:
        logger.error("%s", e)
        return 1

    print()
    print("Done! Search the generated files for TODO, fix the tables, and rerun.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
