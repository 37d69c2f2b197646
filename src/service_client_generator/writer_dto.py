"""Data transfer objects passed between the stages of code generation."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, override

from service_client_generator import helper

if TYPE_CHECKING:
    from service_client_generator.model import Member, Operation, Service
    from service_client_generator.scope import Scope


DEFAULT_RUNTIME_PACKAGE = "service_client_runtime"

# Names every generated module imports from the runtime package.
RUNTIME_NAMES = (
    "Box",
    "BufferedHttpResponse",
    "ByteStream",
    "Client",
    "Region",
    "SerdeBlob",
    "SerdeBlobList",
    "SignedRequest",
)


@dataclass
class GenerationOptions:
    """Knobs of one generation run.

    Attributes:
        runtime_package: The module that generated code imports its runtime support from
        test_hook: Called with the service and the module scope after the client was emitted, for
            appending test scaffolding
    """

    runtime_package: str = DEFAULT_RUNTIME_PACKAGE
    test_hook: Callable[[Service, Scope], None] | None = None


@dataclass
class FieldDeclaration:
    """A single field of a generated struct.

    Attributes:
        name: The attribute name, escaped for Python
        wire_name: The member name exactly as it appears in the definition
        type_hint: The field type, including `Box[...]` and `| None` where applicable
        optional: Whether the field may be absent
        member: The member reference the field was generated from
        documentation: Verbatim documentation of the member
        wire_metadata: Whether the wire name is attached for automatic (de)serialization
        blob_hook: `SerdeBlob` or `SerdeBlobList` for raw binary fields that need transcoding
        boxed: Whether the field breaks a self-reference with `Box`
        streaming: Whether the field holds a byte stream
    """

    name: str
    wire_name: str
    type_hint: str
    optional: bool
    member: Member
    documentation: str | None = None
    wire_metadata: bool = False
    blob_hook: str | None = None
    boxed: bool = False
    streaming: bool = False

    @property
    def annotation(self) -> str:
        """The annotation as written in the class body, e.g. `Annotated[bytes, SerdeBlob] | None`."""
        if self.blob_hook is None:
            return self.type_hint

        base = self.type_hint.removesuffix(" | None")
        annotated = helper.new_group("Annotated", [base, self.blob_hook])
        return helper.new_optional(annotated) if self.optional else annotated

    @property
    def default(self) -> str | None:
        """The right-hand side of the field declaration, if any."""
        arguments: list[str] = []
        if self.wire_metadata:
            arguments.append(f"name={helper.string_literal(self.wire_name)}")

        if self.optional:
            # An empty box holds None.
            arguments.append("default_factory=Box" if self.boxed else "default=None")
            if not self.wire_metadata and not self.boxed:
                return "None"

        if arguments:
            return f"msgspec.field({helper.join_parameters(arguments)})"

        return None

    def declaration(self) -> str:
        """The line declaring the field in the class body."""
        line = f"{self.name}: {self.annotation}"
        default = self.default
        return f"{line} = {default}" if default is not None else line


@dataclass
class StructDeclaration:
    """A generated `msgspec.Struct` class.

    Attributes:
        name: The generated type name
        shape_name: The shape the type was generated from
        fields: The fields in declared member order
        documentation: Verbatim documentation of the shape
        omit_defaults: Whether absent optional fields are left out of encoded output
        eq: Whether instances compare by value; structs holding byte streams do not
    """

    name: str
    shape_name: str
    fields: list[FieldDeclaration] = field(default_factory=list)
    documentation: str | None = None
    omit_defaults: bool = False
    eq: bool = True

    def field_by_wire_name(self, wire_name: str) -> FieldDeclaration | None:
        for declaration in self.fields:
            if declaration.wire_name == wire_name:
                return declaration
        return None

    @property
    def class_parameters(self) -> list[str]:
        parameters = ["msgspec.Struct", "kw_only=True"]
        if self.omit_defaults:
            parameters.append("omit_defaults=True")
        if not self.eq:
            parameters.append("eq=False")
        return parameters

    @override
    def __repr__(self) -> str:
        return f"StructDeclaration(name={self.name}, fields={len(self.fields)})"


@dataclass
class ErrorVariant:
    """One variant of a service's error hierarchy.

    Attributes:
        name: The class name of the variant
        code: The wire error code that selects the variant
        shape_name: The exception shape the variant was generated from
        documentation: Verbatim documentation of the shape
    """

    name: str
    code: str
    shape_name: str
    documentation: str | None = None


@dataclass
class MethodInfo:
    """An operation of the client, with the names derived for it.

    Attributes:
        operation_name: The operation name as found in the definition
        method_name: The client method name
        operation: The operation itself
        input_shape: The name of the input shape, if any
        output_shape: The name of the output shape, if any
        input_type: The generated input type name, if any
        output_type: The generated output type name, or `None` for operations without output
    """

    operation_name: str
    method_name: str
    operation: Operation
    input_shape: str | None
    output_shape: str | None
    input_type: str | None
    output_type: str | None

    @property
    def parameters(self) -> list[str]:
        parameters = ["self"]
        if self.input_type is not None:
            parameters.append(f"input: {self.input_type}")
        return parameters

    @property
    def return_type(self) -> str:
        return self.output_type if self.output_type is not None else "None"
