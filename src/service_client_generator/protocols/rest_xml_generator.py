"""The `rest-xml` protocol: REST request layout with XML bodies."""

from __future__ import annotations

from typing import override

from service_client_generator import helper
from service_client_generator.error_types import XmlErrorTypes
from service_client_generator.model import Member, Service, Shape
from service_client_generator.protocols.base import deserializer_name, generate_helpers, serializer_name
from service_client_generator.protocols.rest import RestGenerator
from service_client_generator.protocols.xml_payload import (
    XML_IMPORTS,
    XML_READ_HELPERS,
    XML_WRITE_HELPERS,
    XmlPayloadGenerator,
)
from service_client_generator.scope import Scope
from service_client_generator.shape_types import ProtocolTag
from service_client_generator.struct_builder import StructBuilder
from service_client_generator.writer_dto import MethodInfo, StructDeclaration


class RestXmlGenerator(RestGenerator):
    tag = ProtocolTag.REST_XML
    error_types = XmlErrorTypes
    timestamp_type = "str"
    content_type = "application/xml"

    @override
    def required_imports(self, service: Service) -> list[str]:
        return [*super().required_imports(service), *XML_IMPORTS]

    @override
    def generate_prelude(self, service: Service, scope: Scope) -> None:
        super().generate_prelude(service, scope)
        generate_helpers(scope, XML_READ_HELPERS)
        generate_helpers(scope, XML_WRITE_HELPERS)

    @override
    def generate_deserializer(self, name: str, shape: Shape, service: Service, scope: Scope) -> bool:
        return XmlPayloadGenerator(service, StructBuilder(service, self)).generate_deserializer(name, shape, scope)

    @override
    def generate_serializer(self, name: str, shape: Shape, service: Service, scope: Scope) -> bool:
        return XmlPayloadGenerator(service, StructBuilder(service, self)).generate_serializer(name, shape, scope)

    @staticmethod
    def _namespace(member: Member | None, shape: Shape) -> str:
        namespace = (member.xml_namespace if member is not None else None) or shape.xml_namespace
        return helper.string_literal(namespace.uri) if namespace is not None else "None"

    @override
    def add_request_body(
        self, scope: Scope, service: Service, info: MethodInfo, shape: Shape, declaration: StructDeclaration
    ) -> None:
        payload = self.payload_field(shape, declaration)
        if payload is not None:
            if self.add_request_payload(scope, service, info, payload):
                return

            payload_shape = service.get_shape(payload.member.shape)
            root = payload.member.location_name or payload_shape.location_name or payload.wire_name
            namespace = self._namespace(payload.member, payload_shape)
            value = f"input.{payload.name}"
            document = (
                f"_xml_document({helper.string_literal(root)}, {namespace}, "
                f"{serializer_name(service, payload.member.shape)}, {value})"
            )
            scope.add(f"request.set_content_type({helper.string_literal(self.content_type)})")
            if payload.optional:
                with scope.indented(f"if {value} is not None:"):
                    scope.add(f"request.set_payload({document})")
            else:
                scope.add(f"request.set_payload({document})")
            return

        if not self.body_fields(shape, declaration) or info.input_shape is None:
            return

        operation_input = info.operation.input
        root = (operation_input.location_name if operation_input else None) or shape.location_name or info.input_shape
        namespace = self._namespace(operation_input, shape)
        scope.add(f"request.set_content_type({helper.string_literal(self.content_type)})")
        scope.add(
            f"request.set_payload(_xml_document({helper.string_literal(root)}, {namespace}, "
            f"{serializer_name(service, info.input_shape)}, input))"
        )

    @override
    def add_response_parsing(
        self, scope: Scope, service: Service, info: MethodInfo, shape: Shape, declaration: StructDeclaration
    ) -> None:
        located = self.located_response_values(service, declaration)
        payload = self.payload_field(shape, declaration)

        with scope.indented("try:"):
            if payload is not None:
                value = self.payload_value(service, payload)
                if value is None:
                    value = f"{deserializer_name(service, payload.member.shape)}(_xml_root(response.body))"
                    if payload.optional:
                        value = f"{value} if response.body.strip() else None"
                with scope.indented(f"return {info.output_type}("):
                    scope.add(f"{payload.name}={value},")
                    for field, expression in located:
                        scope.add(f"{field.name}={expression},")
                scope.add(")")
            else:
                with scope.indented(f"return {deserializer_name(service, declaration.shape_name)}("):
                    scope.add("_xml_root(response.body),")
                    for field, expression in located:
                        scope.add(f"{field.name}={expression},")
                scope.add(")")
        with scope.indented("except (ElementTree.ParseError, ValueError) as e:"):
            scope.add(f"raise {service.parse_error_type_name}(str(e)) from e")
