"""Naming rules for generated types, fields and methods."""

from __future__ import annotations

import re

from service_client_generator import helper, overrides
from service_client_generator.model import Service
from service_client_generator.shape_types import SHAPE_TYPE_TO_PYTHON
from service_client_generator.writer_dto import RUNTIME_NAMES

_TYPE_NAME_SEPARATORS = re.compile(r"[_\-. ]")

STREAMING_PREFIX = "Streaming"

# Names that annotations and defaults in a struct body refer to. A field of the same name would shadow them.
ANNOTATION_NAMES = frozenset({*SHAPE_TYPE_TO_PYTHON.values(), "list", "dict", "msgspec", "Annotated", *RUNTIME_NAMES})


def normalize_type_name(shape_name: str) -> str:
    """Capitalize a shape name and strip separator characters, `foo_bar` becomes `Foobar`."""
    return _TYPE_NAME_SEPARATORS.sub("", helper.capitalize_first(shape_name))


def mutate_type_name(service: Service, shape_name: str) -> str:
    """Map a shape name to the name of its generated type.

    Names that would collide with other names of the generated module are resolved through
    `overrides.TYPE_NAME_OVERRIDES`. A name that equals one of the classes derived from the service
    itself, e.g. the client `WidgetsClient`, gets the `Shape` suffix. Every other name is only normalized.

    Args:
        service (Service): The service that owns the shape.
        shape_name (str): The name of the shape.

    Returns:
        str: The collision-free type name.
    """
    normalized = normalize_type_name(shape_name)
    override = overrides.type_name_override(service.name, normalized, service.service_type_name)
    name = override if override is not None else normalized
    if name in service.generated_type_names:
        return f"{name}{overrides.SHAPE_SUFFIX}"
    return name


def streaming_type_name(type_name: str) -> str:
    """The name of the byte stream alias for a streaming shape, `Body` becomes `StreamingBody`."""
    return f"{STREAMING_PREFIX}{type_name}"


def error_type_name(service: Service, shape_name: str) -> str:
    """The name of the error variant of a shape that also has a data type."""
    return f"{mutate_type_name(service, shape_name)}Error"


def generate_field_name(member_name: str) -> str:
    """Translate a member name to a Python attribute name.

    The name is converted to snake case. Reserved field names get a fixed prefix. Keywords, and names
    that the annotations of a struct body refer to (e.g. `bytes`), get a trailing underscore.
    The wire name of the member is not affected by any of this.

    Args:
        member_name (str): The member name as found in the definition.

    Returns:
        str: The attribute name.
    """
    name = helper.to_snake_case(member_name) or "field"

    if name in overrides.RESERVED_FIELD_NAMES:
        return f"{overrides.RESERVED_FIELD_PREFIX}{name}"

    if name[0].isdigit():
        name = f"_{name}"

    if name in ANNOTATION_NAMES:
        return f"{name}_"

    return helper.sanitize_name(name)


def generate_method_name(operation_name: str) -> str:
    """Translate an operation name to a client method name, `GetWidget` becomes `get_widget`."""
    return helper.sanitize_name(helper.to_snake_case(operation_name))
