#!/usr/bin/env python3
"""
Generate call-recording fakes for Python contracts.

Usage:
    mimic [-o <output-path>] [--fake-name <fake-name>] <source-path> <contract-name> [-]
    mimic -p [-o <output-path>] <source-directory> [-]
"""

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from .core.config import DEFAULT_PACKAGE_SUFFIX, LOG_LEVEL
from .core.errors import MimicError
from .core.pipeline import MODE_DERIVE, MODE_LOCATE, generate
from .log import configure_logging, get_logger
from .utils.files import write_source

logger = get_logger(__name__)

EPILOG = """
Arguments:
    source-path      File or directory containing the contract to fake
    contract-name    Name of the class to fake
    '-'              Write code to standard out instead of to a file

Examples:
    # writes "FakeMyContract" to ./fakes/fake_my_contract.py
    mimic -o ./fakes ./mypackage MyContract

    # writes "CoolThing" to ./mypackage/mypackagefakes/cool_thing.py
    mimic --fake-name CoolThing ./mypackage MyContract

    # writes a Protocol of the functions in ./mypackage to ./mypackage.py
    mimic -p ./mypackage
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mimic",
        description="Generate a call-recording, stub-driven fake for a Python contract",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )
    parser.add_argument("args", nargs="+", metavar="ARG", help="<source-path> [<contract-name>] [-]")
    parser.add_argument("-o", "--output", help="File or directory for the generated code")
    parser.add_argument("--fake-name", default="", help="Name of the fake class (default: Fake<Contract>)")
    parser.add_argument("-p", "--generate-interface", action="store_true",
                        help="Derive a Protocol from the exported functions of a directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    return parser


def resolve_output(source_path: Path, output: Optional[str], deriving: bool) -> Tuple[Optional[Path], Path, str]:
    """
    Where to write, and the package name the generated code belongs to.

    Returns:
        (explicit output file or None, output directory, package name)
    """
    if output:
        target = Path(output).resolve()
        if target.suffix == ".py":
            return target, target.parent, target.parent.name
        return None, target, target.name

    source_dir = source_path if source_path.is_dir() else source_path.parent
    if deriving:
        return None, source_dir.parent, source_dir.parent.name
    package = f"{source_dir.name}{DEFAULT_PACKAGE_SUFFIX}"
    return None, source_dir / package, package


def run(argv: Optional[List[str]] = None) -> int:
    options = build_parser().parse_args(argv)
    configure_logging("DEBUG" if options.verbose else LOG_LEVEL)

    positional = list(options.args)
    to_stdout = positional[-1] == "-"
    if to_stdout:
        positional.pop()
    if not positional:
        print("Error: missing <source-path>", file=sys.stderr)
        return 1

    source_path = Path(positional[0]).resolve()
    contract_name = positional[1] if len(positional) > 1 else ""
    if not options.generate_interface and not contract_name:
        print("Error: missing <contract-name>", file=sys.stderr)
        return 1
    if not source_path.exists():
        print(f"Error: No such file or directory: {positional[0]}", file=sys.stderr)
        return 1

    output_file, output_dir, package_name = resolve_output(source_path, options.output, options.generate_interface)

    try:
        result = generate(
            source_path,
            contract_name=contract_name,
            fake_name=options.fake_name,
            package_name=package_name,
            mode=MODE_DERIVE if options.generate_interface else MODE_LOCATE,
        )
    except (MimicError, SyntaxError, ValueError) as e:
        logger.debug("Generation failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if to_stdout:
        print(result["source"], end="")
        return 0

    try:
        path = write_source(result["source"], output_file or output_dir / result["file_name"])
    except OSError as e:
        print(f"Error: Couldn't write fake file - {e}", file=sys.stderr)
        return 1
    print(f"Wrote `{result['name']}` to `{os.path.relpath(path)}`")
    return 0


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
