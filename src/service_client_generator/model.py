"""In-memory model of a botocore service definition.

The definition is decoded once with msgspec into frozen structs and never mutated afterwards.
The `Service` wrapper adds name derivation, shape lookups that fail loudly on unresolved
references, and the memoized graph-wide scans the generator needs.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from functools import cached_property
from pathlib import Path
from typing import Any

import msgspec

from service_client_generator.shape_types import ShapeType

logger = logging.getLogger(__name__)

_NON_ALPHANUMERIC = re.compile(r"[^0-9A-Za-z]")


class GenerationError(Exception):
    """Base class of all fatal conditions raised while generating a service."""


class MalformedDefinitionError(GenerationError):
    """Raised when a service definition is structurally invalid, e.g. a shape reference cannot be resolved."""

    def __init__(self, message: str, shape_name: str | None = None, member_name: str | None = None):
        """Initialize the error with the identity of the offending shape and member.

        Args:
            message (str): What went wrong.
            shape_name (str | None): The shape in which the problem was found.
            member_name (str | None): The member of that shape, if the problem is member specific.
        """
        location = ".".join(part for part in (shape_name, member_name) if part)
        super().__init__(f"{location}: {message}" if location else message)
        self.shape_name = shape_name
        self.member_name = member_name


class UnrecognizedProtocolError(GenerationError):
    """Raised when a service declares a protocol tag that no generator exists for."""

    def __init__(self, protocol: str, service_name: str):
        super().__init__(f"Unknown protocol '{protocol}' for service '{service_name}'.")
        self.protocol = protocol
        self.service_name = service_name


class DefinitionLoadError(GenerationError):
    """Raised when a service definition file cannot be read or decoded."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Could not load service definition '{path}': {reason}")
        self.path = path


class ErrorInfo(msgspec.Struct, frozen=True, kw_only=True, rename="camel"):
    """Wire details of an exception shape."""

    code: str | None = None
    http_status_code: int | None = None
    sender_fault: bool = False


class XmlNamespace(msgspec.Struct, frozen=True, kw_only=True):
    """The namespace of an XML document element."""

    uri: str
    prefix: str | None = None


class Member(msgspec.Struct, frozen=True, kw_only=True, rename="camel"):
    """A reference to a shape, either as a structure member or as a list/map/operation reference."""

    shape: str
    deprecated: bool = False
    documentation: str | None = None
    streaming: bool = False
    location: str | None = None
    location_name: str | None = None
    query_name: str | None = None
    flattened: bool = False
    result_wrapper: str | None = None
    xml_namespace: XmlNamespace | None = None


class Shape(msgspec.Struct, frozen=True, kw_only=True, rename="camel"):
    """A named schema element: a primitive, a list, a map or a structure."""

    kind: str = msgspec.field(name="type")
    member: Member | None = None
    key: Member | None = None
    value: Member | None = None
    members: dict[str, Member] = msgspec.field(default_factory=dict)
    required: list[str] = msgspec.field(default_factory=list)
    exception: bool = False
    deprecated: bool = False
    documentation: str | None = None
    streaming: bool = False
    payload: str | None = None
    flattened: bool = False
    location_name: str | None = None
    xml_namespace: XmlNamespace | None = None
    error: ErrorInfo | None = None

    def is_required(self, member_name: str) -> bool:
        """Whether the named member is declared as required by this shape."""
        return member_name in self.required


class Http(msgspec.Struct, frozen=True, kw_only=True, rename="camel"):
    """HTTP binding of an operation."""

    method: str = "POST"
    request_uri: str = "/"
    response_code: int | None = None


class Operation(msgspec.Struct, frozen=True, kw_only=True, rename="camel"):
    """A remote action with optional input and output shapes and a list of declared errors."""

    name: str | None = None
    http: Http = msgspec.field(default_factory=Http)
    input: Member | None = None
    output: Member | None = None
    errors: list[Member] = msgspec.field(default_factory=list)
    documentation: str | None = None
    deprecated: bool = False


class Metadata(msgspec.Struct, frozen=True, kw_only=True, rename="camel"):
    """Service level metadata; `protocol` selects the wire protocol family."""

    protocol: str
    service_id: str | None = None
    service_full_name: str | None = None
    service_abbreviation: str | None = None
    endpoint_prefix: str | None = None
    signing_name: str | None = None
    api_version: str | None = None
    target_prefix: str | None = None
    json_version: str | None = None
    xml_namespace: str | None = None


class ServiceDefinition(msgspec.Struct, frozen=True, kw_only=True):
    """The complete schema of one service: metadata, shapes and operations."""

    metadata: Metadata
    shapes: dict[str, Shape] = msgspec.field(default_factory=dict)
    operations: dict[str, Operation] = msgspec.field(default_factory=dict)
    version: str | None = None
    documentation: str | None = None


def decode_service_definition(data: bytes | str) -> ServiceDefinition:
    """Decode a JSON service definition.

    Args:
        data (bytes | str): The raw JSON document.

    Returns:
        ServiceDefinition: The decoded definition.
    """
    return msgspec.json.decode(data, type=ServiceDefinition)


def convert_service_definition(raw: dict[str, Any]) -> ServiceDefinition:
    """Convert an already parsed JSON object (e.g. a dict literal in a test) into a definition."""
    return msgspec.convert(raw, type=ServiceDefinition)


def load_service_definition(path: str | Path) -> ServiceDefinition:
    """Read and decode a service definition file.

    Args:
        path (str | Path): The path of the JSON file.

    Raises:
        DefinitionLoadError: If the file cannot be read or does not match the definition layout.

    Returns:
        ServiceDefinition: The decoded definition.
    """
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise DefinitionLoadError(str(path), str(e)) from e

    try:
        return decode_service_definition(data)
    except msgspec.DecodeError as e:
        raise DefinitionLoadError(str(path), str(e)) from e


class Service:
    """A service definition together with the name it is generated under."""

    def __init__(self, definition: ServiceDefinition, name: str | None = None):
        """Wrap a definition.

        Args:
            definition (ServiceDefinition): The decoded definition.
            name (str | None): Explicit service name. Defaults to the `serviceId`, abbreviation or full
                name from the metadata, in that order.
        """
        self.definition = definition
        self._name = name

    @property
    def name(self) -> str:
        """The service name that override tables are keyed by."""
        metadata = self.definition.metadata
        for candidate in (self._name, metadata.service_id, metadata.service_abbreviation, metadata.service_full_name):
            if candidate:
                return candidate

        raise MalformedDefinitionError("The service has no name and its metadata carries none.")

    @property
    def protocol(self) -> str:
        return self.definition.metadata.protocol

    @property
    def metadata(self) -> Metadata:
        return self.definition.metadata

    @property
    def shapes(self) -> dict[str, Shape]:
        return self.definition.shapes

    @property
    def operations(self) -> dict[str, Operation]:
        return self.definition.operations

    @cached_property
    def service_type_name(self) -> str:
        """The name used for the client interface, e.g. `LexRuntimeService` for `Lex Runtime Service`."""
        stripped = _NON_ALPHANUMERIC.sub("", self.name)
        if not stripped:
            raise MalformedDefinitionError(f"The service name '{self.name}' yields no identifier.")
        return stripped[0].upper() + stripped[1:]

    @property
    def client_type_name(self) -> str:
        return f"{self.service_type_name}Client"

    @property
    def error_type_name(self) -> str:
        return f"{self.service_type_name}ServiceError"

    @property
    def parse_error_type_name(self) -> str:
        return f"{self.service_type_name}ParseError"

    @property
    def unknown_error_type_name(self) -> str:
        return f"{self.service_type_name}UnknownError"

    @cached_property
    def generated_type_names(self) -> frozenset[str]:
        """The class names the generator derives from the service itself."""
        return frozenset(
            {
                self.service_type_name,
                self.client_type_name,
                self.error_type_name,
                self.parse_error_type_name,
                self.unknown_error_type_name,
            }
        )

    @property
    def signing_name(self) -> str:
        metadata = self.definition.metadata
        return metadata.signing_name or metadata.endpoint_prefix or self.service_type_name.lower()

    def get_shape(self, shape_name: str, referrer: str | None = None, member_name: str | None = None) -> Shape:
        """Look up a shape by name.

        Args:
            shape_name (str): The shape to look up.
            referrer (str | None): The shape that holds the reference, for error reporting.
            member_name (str | None): The member that holds the reference, for error reporting.

        Raises:
            MalformedDefinitionError: If no shape of that name exists.

        Returns:
            Shape: The shape.
        """
        try:
            return self.definition.shapes[shape_name]
        except KeyError:
            raise MalformedDefinitionError(
                f"reference to unknown shape '{shape_name}'", referrer or shape_name, member_name
            ) from None

    def shape_for_member(self, member: Member, owner: str | None = None, member_name: str | None = None) -> Shape:
        """Resolve the shape a member refers to; see `get_shape`."""
        return self.get_shape(member.shape, owner, member_name)

    def child_references(self, shape_name: str, shape: Shape) -> Iterator[tuple[str | None, Member]]:
        """Yield `(member name, reference)` for every shape directly referenced by a shape.

        List elements and map keys/values carry no member name.
        """
        if shape.kind == ShapeType.LIST:
            if shape.member is None:
                raise MalformedDefinitionError("list shape without a member reference", shape_name)
            yield None, shape.member

        elif shape.kind == ShapeType.MAP:
            if shape.key is None or shape.value is None:
                raise MalformedDefinitionError("map shape without key or value reference", shape_name)
            yield None, shape.key
            yield None, shape.value

        elif shape.kind == ShapeType.STRUCTURE:
            yield from shape.members.items()

    def member_is_streaming(self, member: Member) -> bool:
        """Whether a member carries its own streaming flag; the flag of the referenced shape does not count."""
        return member.streaming

    @cached_property
    def streaming_shapes(self) -> frozenset[str]:
        """Names of all shapes that are transmitted as byte streams somewhere in the service.

        This scans the whole shape graph once per service.
        """
        names = {name for name, shape in self.definition.shapes.items() if shape.streaming}
        for shape in self.definition.shapes.values():
            for member in shape.members.values():
                if member.streaming:
                    names.add(member.shape)

        logger.debug("Service '%s' has %d streaming shape(s).", self.name, len(names))
        return frozenset(names)

    def is_streaming_shape(self, shape_name: str) -> bool:
        return shape_name in self.streaming_shapes
