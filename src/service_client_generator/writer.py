"""Generate the client module of a service definition."""

from __future__ import annotations

import logging

from service_client_generator import helper, naming, overrides
from service_client_generator.model import Service, Shape
from service_client_generator.protocols import protocol_generator_for
from service_client_generator.scope import Scope
from service_client_generator.shape_types import ShapeType
from service_client_generator.struct_builder import StructBuilder
from service_client_generator.type_filter import filter_types, find_shapes_to_generate
from service_client_generator.writer_dto import RUNTIME_NAMES, GenerationOptions, StructDeclaration

logger = logging.getLogger(__name__)


class Writer:
    """A class that handles writing the client module, based on a provided service definition."""

    def __init__(self, service: Service, options: GenerationOptions | None = None):
        """Initialize the writer with a service.

        Args:
            service (Service): The service to write a client module for.
            options (GenerationOptions | None): Generation knobs. Defaults to `GenerationOptions()`.

        Raises:
            UnrecognizedProtocolError: If the protocol of the service is not supported.
            MalformedDefinitionError: If an operation refers to a shape that does not exist.
        """
        self.service = service
        self.options = options or GenerationOptions()
        self.protocol = protocol_generator_for(service)
        self.struct_builder = StructBuilder(service, self.protocol)

        self.scope = Scope(name=service.name)

        self.reachable_shapes = find_shapes_to_generate(service)
        self.serialized_shapes, self.deserialized_shapes = filter_types(service)
        self.error_types = self.protocol.error_types(service, self.reachable_shapes)

        self._imports: list[str] = []
        self._add_import("from __future__ import annotations")
        self._add_import("from abc import ABC, abstractmethod")
        self._add_import("from typing import Annotated, override")

        self.docstring = (
            f'"""Client for the `{helper.escape_docstring(service.name)}` service.\n\n'
            'This module is generated automatically. Do not edit it by hand."""'
        )

    def _add_import(self, import_line: str):
        """Add a full import line.

        E.g. 'import base64'.

        Args:
            import_line (str): The import line to add.
        """
        if import_line not in self._imports:
            self._imports.append(import_line)

    @property
    def imports(self) -> list[str]:
        """Get the full list of import lines, third party and runtime imports last.

        Returns:
            list[str]: The import lines.
        """
        runtime_names = helper.join_parameters(list(RUNTIME_NAMES))
        return [
            *self._imports,
            "import msgspec",
            f"from {self.options.runtime_package} import {runtime_names}",
        ]

    def generate_prelude(self):
        """Generate the module level helpers of the protocol."""
        for import_line in self.protocol.required_imports(self.service):
            self._add_import(import_line)
        self.protocol.generate_prelude(self.service, self.scope)

    def generate_types(self):
        """Generate the types of all reachable shapes, together with their (de)serializers."""
        keep_exceptions = overrides.keeps_exception_structs(self.service.name)

        for shape_name in self.reachable_shapes:
            shape = self.service.get_shape(shape_name)
            if shape.exception and not keep_exceptions:
                # Exception shapes only become error variants.
                continue

            serialized = shape_name in self.serialized_shapes
            deserialized = shape_name in self.deserialized_shapes
            type_name = naming.mutate_type_name(self.service, shape_name)

            if shape.kind == ShapeType.STRUCTURE:
                declaration = self.struct_builder.build(shape_name, shape, type_name, serialized, deserialized)
                self.gen_struct(declaration)

            if self.service.is_streaming_shape(shape_name):
                self.scope.blank(2)
                self.scope.add(f"type {naming.streaming_type_name(type_name)} = ByteStream")

            self.gen_serde(shape_name, shape, serialized, deserialized)

        logger.debug("Generated the types of %d shape(s) of '%s'.", len(self.reachable_shapes), self.service.name)

    def gen_struct(self, declaration: StructDeclaration):
        """Generate the `msgspec.Struct` class of a structure shape.

        Args:
            declaration (StructDeclaration): The struct to write.
        """
        self.scope.blank(2)
        with self.scope.indented(helper.new_class_declaration(declaration.name, declaration.class_parameters)):
            if declaration.documentation:
                self.scope.extend(helper.new_docstring(declaration.documentation))
                if declaration.fields:
                    self.scope.blank()

            for field in declaration.fields:
                if field.documentation:
                    self.scope.extend(helper.new_comment(field.documentation))
                self.scope.add(field.declaration())

    def gen_serde(self, shape_name: str, shape: Shape, serialized: bool, deserialized: bool):
        """Generate the hand written (de)serializers the protocol asks for."""
        if deserialized and not self.protocol.auto_deserialize:
            self.protocol.generate_deserializer(shape_name, shape, self.service, self.scope)

        if serialized and not self.protocol.auto_serialize:
            self.protocol.generate_serializer(shape_name, shape, self.service, self.scope)

    def generate_errors(self):
        """Generate the error hierarchy of the service and the matcher of error responses."""
        for import_line in self.error_types.required_imports():
            self._add_import(import_line)

        self.scope.blank(2)
        self.error_types.generate(self.scope)

    def generate_client(self):
        """Generate the client interface and its implementation."""
        service = self.service
        interface_name = service.service_type_name

        self.scope.blank(2)
        with self.scope.indented(helper.new_class_declaration(interface_name, ["ABC"])):
            if service.definition.documentation:
                self.scope.extend(helper.new_docstring(service.definition.documentation))
            else:
                self.scope.add(f'"""The operations of the {helper.escape_docstring(service.name)} service."""')
            self.scope.blank()
            self.protocol.generate_method_signatures(service, self.scope)

        self.scope.blank(2)
        with self.scope.indented(helper.new_class_declaration(service.client_type_name, [interface_name])):
            self.scope.add(f'"""A client for the {helper.escape_docstring(service.name)} service."""')
            self.scope.blank()
            with self.scope.indented(helper.new_function("__init__", ["self", "region: Region", "client: Client | None = None"])):
                self.scope.add("self.region = region")
                self.scope.add("self.client = client if client is not None else Client.shared()")
            self.scope.blank()
            with self.scope.indented(helper.new_function("_dispatch", ["self", "request: SignedRequest"], "BufferedHttpResponse")):
                self.scope.add("response = self.client.sign_and_dispatch(request)")
                with self.scope.indented("if not 200 <= response.status < 300:"):
                    self.scope.add("raise _error_from_response(response)")
                self.scope.add("return response")

            if service.operations:
                self.scope.blank()
                self.protocol.generate_method_impls(service, self.scope)

    def generate_all(self):
        """Generate the complete module: helpers, types, errors and the client."""
        logger.debug("Generating '%s' with the '%s' protocol.", self.service.name, self.protocol.tag)

        self.generate_prelude()
        self.generate_types()
        self.generate_errors()
        self.generate_client()

        if self.options.test_hook is not None:
            self.options.test_hook(self.service, self.scope)

    def dumps(self) -> str:
        """Generates the source text of the client module.

        Returns:
            str: The output string.
        """
        out: list[str] = []
        out.append(self.docstring)
        out.append("")
        out.extend(self.imports)
        out.extend(self.scope.lines)
        out.append("")
        return "\n".join(out)


def generate_source(service: Service, options: GenerationOptions | None = None) -> str:
    """Generate the client module of a service.

    Args:
        service (Service): The service.
        options (GenerationOptions | None): Generation knobs.

    Raises:
        GenerationError: If the service cannot be generated. Nothing is emitted in that case.

    Returns:
        str: The source text of the module.
    """
    writer = Writer(service, options)
    writer.generate_all()
    return writer.dumps()
