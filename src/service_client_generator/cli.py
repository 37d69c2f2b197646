"""Command-line interface for generating client modules from *.json service definitions."""

from __future__ import annotations

import argparse
import logging
import os.path
from collections.abc import Sequence

from service_client_generator.run import PyrightValidationError, run
from service_client_generator.writer_dto import DEFAULT_RUNTIME_PACKAGE

logger = logging.getLogger(__name__)


def _add_recursive_argument(parser: argparse.ArgumentParser):
    """Add a recursive argument to a parser.

    Args:
        parser (argparse.ArgumentParser): The parser to add the argument to.
    """
    parser.add_argument(
        "-r",
        "--recursive",
        dest="recursive",
        default=False,
        action="store_true",
        help="recursively search for *.json files with a given glob expression.",
    )


def setup_parser() -> argparse.ArgumentParser:
    """Setup for the parser.

    Returns:
        argparse.ArgumentParser: The parser after setup.
    """
    parser = argparse.ArgumentParser(description="Generate typed client modules for service definitions.")

    parser.add_argument(
        "-c",
        "--clean",
        type=str,
        nargs="+",
        default=[],
        help="path or glob expressions that match files to clean up before generation.",
    )

    parser.add_argument(
        "-p",
        "--paths",
        type=str,
        nargs="+",
        default=["**/*.json"],
        help="path or glob expressions that match *.json service definitions.",
    )

    parser.add_argument(
        "-e",
        "--excludes",
        type=str,
        nargs="+",
        default=[],
        help="path or glob expressions to exclude from path matches.",
    )

    parser.add_argument(
        "-o",
        "--output-dir",
        type=str,
        default="",
        help="directory to write all generated modules; defaults to alongside each definition if omitted.",
    )

    parser.add_argument(
        "-n",
        "--service-name",
        type=str,
        default=None,
        help="explicit service name; only valid with a single definition.",
    )

    parser.add_argument(
        "--runtime-package",
        type=str,
        default=DEFAULT_RUNTIME_PACKAGE,
        help="the module that generated code imports its runtime support from.",
    )

    parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=1,
        help="number of worker processes; 1 generates in the current process.",
    )

    parser.add_argument(
        "--no-format",
        dest="skip_format",
        default=False,
        action="store_true",
        help="skip formatting of generated modules with ruff.",
    )

    parser.add_argument(
        "--no-pyright",
        dest="skip_pyright",
        default=False,
        action="store_true",
        help="skip pyright validation of generated modules.",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        default=False,
        action="store_true",
        help="log debug output.",
    )

    _add_recursive_argument(parser)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point of the client generator.

    Args:
        argv (Sequence[str] | None, optional): Run arguments. Defaults to None.

    Returns:
        int: Error code.
    """
    parser = setup_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    root_directory = os.getcwd()
    logging.info("Working from root directory: %s", root_directory)

    try:
        succeeded = run(args, root_directory)
    except (PyrightValidationError, ValueError) as e:
        logger.error("%s", e)
        return 1

    return 0 if succeeded else 1
