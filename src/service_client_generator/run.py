"""Top-level module for client generation."""

from __future__ import annotations

import argparse
import glob
import logging
import os.path
import subprocess
import tempfile
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from service_client_generator import helper
from service_client_generator.model import GenerationError, Service, load_service_definition
from service_client_generator.writer import generate_source
from service_client_generator.writer_dto import DEFAULT_RUNTIME_PACKAGE, GenerationOptions

logger = logging.getLogger(__name__)

DEFINITION_SUFFIX = ".json"
PY_SUFFIX = ".py"


class PyrightValidationError(Exception):
    """Raised when pyright validation finds type errors in generated modules."""

    pass


@dataclass
class GenerationResult:
    """The outcome of generating one definition file.

    Attributes:
        path: The definition file.
        module_name: The name of the generated module, if the service name could be determined.
        source: The generated source text, or None if generation failed.
        error: The reason of the failure, if any.
    """

    path: str
    module_name: str | None = None
    source: str | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.source is None


def module_name_for(service: Service) -> str:
    """The file name stem of the generated module of a service, e.g. `lex_runtime_service`."""
    return helper.to_snake_case(service.service_type_name)


def validate_with_pyright(output_files: list[str]) -> None:
    """Validate generated modules using pyright.

    Args:
        output_files: The generated files.

    Raises:
        PyrightValidationError: If pyright finds any type errors.
    """
    if not output_files:
        logger.warning("No generated files found to validate")
        return

    logger.info(f"Validating {len(output_files)} generated module(s) with pyright...")

    try:
        result = subprocess.run(
            ["pyright", *sorted(output_files)],
            capture_output=True,
            text=True,
            check=False,
        )

        error_count = result.stdout.count(" error:")

        if error_count > 0 or result.returncode != 0:
            error_msg = f"Pyright validation failed with {error_count} error(s):\n\n{result.stdout}"
            logger.error(error_msg)
            raise PyrightValidationError(error_msg)

        logger.info("Pyright validation passed - no type errors found")

    except FileNotFoundError:
        logger.error("pyright not found. Please install pyright: pip install pyright")
        raise PyrightValidationError("pyright command not found. Please install pyright.")
    except subprocess.SubprocessError as e:
        error_msg = f"Error running pyright: {e}"
        logger.error(error_msg)
        raise PyrightValidationError(error_msg)


def format_outputs(raw_input: str) -> str:
    """Formats raw input using ruff.

    Args:
        raw_input (str): The unformatted input.

    Returns:
        str: The formatted outputs, or the input itself if ruff is unavailable or fails.
    """
    try:
        with tempfile.NamedTemporaryFile(mode="w", suffix=PY_SUFFIX, delete=False, encoding="utf-8") as f:
            temp_path = Path(f.name)
            f.write(raw_input)

        try:
            # Sort the imports that were collected in emission order
            subprocess.run(
                ["ruff", "check", "--fix", "--select", "I", str(temp_path)],
                capture_output=True,
                check=False,
            )

            subprocess.run(
                ["ruff", "format", "--line-length", "120", str(temp_path)],
                capture_output=True,
                check=True,
            )

            return temp_path.read_text(encoding="utf-8")

        finally:
            temp_path.unlink(missing_ok=True)

    except subprocess.CalledProcessError as e:
        logger.error(f"Ruff formatting failed: {e}")
        logger.error(f"Stdout: {e.stdout.decode('utf-8', errors='replace')}")
        logger.error(f"Stderr: {e.stderr.decode('utf-8', errors='replace')}")
        return raw_input
    except OSError as e:
        logger.error(f"Unexpected error during formatting: {e}")
        return raw_input


def generate_service(
    path: str, service_name: str | None = None, runtime_package: str = DEFAULT_RUNTIME_PACKAGE
) -> GenerationResult:
    """Generate the client module of one definition file.

    Failures are reported in the result instead of being raised, so that one broken service does not
    stop a batch. This function runs in worker processes.

    Args:
        path (str): The definition file.
        service_name (str | None): Explicit service name, overriding the one in the metadata.
        runtime_package (str): The module generated code imports its runtime support from.

    Returns:
        GenerationResult: The generated source or the failure.
    """
    result = GenerationResult(path=path)
    try:
        service = Service(load_service_definition(path), service_name)
        result.module_name = module_name_for(service)
        result.source = generate_source(service, GenerationOptions(runtime_package=runtime_package))
    except GenerationError as e:
        result.error = str(e)
    return result


def _find_definitions(paths: list[str], root_directory: str, recursive: bool) -> set[str]:
    search_paths: set[str] = set()
    for path in paths:
        search_path = os.path.join(root_directory, path)

        if recursive and os.path.isdir(search_path):
            for root, _, files in os.walk(search_path):
                for file in files:
                    if file.endswith(DEFINITION_SUFFIX):
                        search_paths.add(os.path.join(root, file))
        elif os.path.isdir(search_path):
            for file in os.listdir(search_path):
                file_path = os.path.join(search_path, file)
                if os.path.isfile(file_path) and file.endswith(DEFINITION_SUFFIX):
                    search_paths.add(file_path)
        else:
            search_paths = search_paths.union(glob.glob(search_path, recursive=recursive))

    return search_paths


def run(args: argparse.Namespace, root_directory: str) -> bool:
    """Run the generator on a set of paths that point to service definitions.

    Uses `generate_service` on each input file.

    Args:
        args (argparse.Namespace): The arguments that were passed when calling the generator.
        root_directory (str): The directory, from which the generator is executed.

    Raises:
        ValueError: If an explicit service name is given for more than one definition.
        PyrightValidationError: If validation of the generated modules fails.

    Returns:
        bool: Whether every service was generated.
    """
    paths: list[str] = args.paths
    excludes: list[str] = args.excludes
    clean: list[str] = args.clean
    output_dir: str = getattr(args, "output_dir", "")
    service_name: str | None = getattr(args, "service_name", None)
    runtime_package: str = getattr(args, "runtime_package", DEFAULT_RUNTIME_PACKAGE)
    jobs: int = getattr(args, "jobs", 1)
    skip_format: bool = getattr(args, "skip_format", False)
    skip_pyright: bool = getattr(args, "skip_pyright", False)

    cleanup_paths: set[str] = set()
    for c in clean:
        cleanup_directory = os.path.join(root_directory, c)
        cleanup_paths = cleanup_paths.union(glob.glob(cleanup_directory, recursive=args.recursive))

    for cleanup_path in cleanup_paths:
        os.remove(cleanup_path)

    excluded_paths: set[str] = set()
    for exclude in excludes:
        exclude_path = os.path.join(root_directory, exclude)
        if os.path.isfile(exclude_path):
            excluded_paths.add(exclude_path)
        else:
            excluded_paths = excluded_paths.union(glob.glob(exclude_path, recursive=args.recursive))

    # The `valid_paths` contain the automatically detected search paths, except for specifically excluded paths.
    valid_paths = sorted(_find_definitions(paths, root_directory, args.recursive) - excluded_paths)

    if service_name and len(valid_paths) > 1:
        raise ValueError("An explicit service name can only be given for a single service definition.")

    if not valid_paths:
        logger.warning("No service definitions found.")
        return True

    if jobs > 1:
        with ProcessPoolExecutor(max_workers=jobs) as executor:
            futures = [executor.submit(generate_service, path, service_name, runtime_package) for path in valid_paths]
            results = [future.result() for future in futures]
    else:
        results = [generate_service(path, service_name, runtime_package) for path in valid_paths]

    output_files: list[str] = []
    for result in results:
        if result.source is None or result.module_name is None:
            logger.error("Failed to generate '%s': %s", result.path, result.error)
            continue

        output_directory = os.path.join(root_directory, output_dir) if output_dir else os.path.dirname(result.path)
        os.makedirs(output_directory, exist_ok=True)

        output_file_path = os.path.join(output_directory, result.module_name + PY_SUFFIX)
        source = result.source if skip_format else format_outputs(result.source)
        with open(output_file_path, "w", encoding="utf8") as output_file:
            output_file.write(source)

        logger.info("Wrote client to '%s'.", output_file_path)
        output_files.append(output_file_path)

    if not skip_pyright:
        validate_with_pyright(output_files)

    failures = sum(result.failed for result in results)
    if failures:
        logger.error("%d of %d service(s) failed.", failures, len(results))
    return failures == 0
