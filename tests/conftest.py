"""Pytest configuration and fixtures for service client generator tests."""

from __future__ import annotations

import sys
import types
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from service_client_generator.model import Service, convert_service_definition, load_service_definition
from service_client_generator.writer import generate_source
from service_client_generator.writer_dto import GenerationOptions

# Test directory structure
TESTS_DIR = Path(__file__).parent
SCHEMAS_DIR = TESTS_DIR / "schemas"

# The module generated clients import their runtime from in tests
FAKE_RUNTIME_PACKAGE = "fake_runtime"


def make_definition(
    protocol: str = "rest-json",
    shapes: dict[str, Any] | None = None,
    operations: dict[str, Any] | None = None,
    **metadata: Any,
) -> dict[str, Any]:
    """Build a raw service definition, with `Foo` as the default service id."""
    return {
        "metadata": {"protocol": protocol, "serviceId": "Foo", "endpointPrefix": "foo", **metadata},
        "shapes": shapes or {},
        "operations": operations or {},
    }


@pytest.fixture
def make_service() -> Callable[..., Service]:
    """Create a service from shapes and operations given as dict literals."""

    def factory(
        shapes: dict[str, Any] | None = None,
        operations: dict[str, Any] | None = None,
        protocol: str = "rest-json",
        name: str | None = None,
        **metadata: Any,
    ) -> Service:
        definition = convert_service_definition(make_definition(protocol, shapes, operations, **metadata))
        return Service(definition, name)

    return factory


def load_service(file_name: str, name: str | None = None) -> Service:
    """Load one of the sample definitions in `tests/schemas`."""
    return Service(load_service_definition(SCHEMAS_DIR / file_name), name)


@pytest.fixture(scope="module")
def widgets_service() -> Service:
    return load_service("widgets.json")


@pytest.fixture(scope="module")
def ledger_service() -> Service:
    return load_service("ledger.json")


@pytest.fixture
def import_client() -> Iterator[Callable[[Service], types.ModuleType]]:
    """Generate the client of a service against the fake runtime and import it as a module."""
    module_names: list[str] = []

    def importer(service: Service) -> types.ModuleType:
        source = generate_source(service, GenerationOptions(runtime_package=FAKE_RUNTIME_PACKAGE))
        module_name = f"generated_{service.service_type_name.lower()}"
        module = types.ModuleType(module_name)
        sys.modules[module_name] = module
        module_names.append(module_name)
        exec(compile(source, f"{module_name}.py", "exec"), module.__dict__)
        return module

    yield importer

    for module_name in module_names:
        sys.modules.pop(module_name, None)
