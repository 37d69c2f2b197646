"""The `rest-json` protocol: REST request layout with JSON bodies."""

from __future__ import annotations

from typing import override

from service_client_generator import helper
from service_client_generator.error_types import RestJsonErrorTypes
from service_client_generator.model import Service, Shape
from service_client_generator.protocols.base import BOX_HOOK_IMPORTS, BOX_HOOKS, generate_helpers
from service_client_generator.protocols.rest import RestGenerator
from service_client_generator.scope import Scope
from service_client_generator.shape_types import ProtocolTag, ShapeType
from service_client_generator.writer_dto import MethodInfo, StructDeclaration

# Timestamps in headers are HTTP dates, e.g. `Wed, 21 Oct 2015 07:28:00 GMT`.
HTTP_DATE_HELPERS = '''
def _parse_http_date(value: str) -> float:
    return parsedate_to_datetime(value).timestamp()


def _format_http_date(value: float) -> str:
    return formatdate(value, usegmt=True)
'''


class RestJsonGenerator(RestGenerator):
    tag = ProtocolTag.REST_JSON
    error_types = RestJsonErrorTypes
    timestamp_type = "float"
    auto_serialize = True
    auto_deserialize = True
    content_type = "application/x-amz-json-1.1"

    @override
    def required_imports(self, service: Service) -> list[str]:
        return [
            *super().required_imports(service),
            *BOX_HOOK_IMPORTS,
            "from email.utils import formatdate, parsedate_to_datetime",
        ]

    @override
    def generate_prelude(self, service: Service, scope: Scope) -> None:
        super().generate_prelude(service, scope)
        generate_helpers(scope, BOX_HOOKS)
        generate_helpers(scope, HTTP_DATE_HELPERS)

    @override
    def header_parser(self, service: Service, shape_name: str) -> str:
        if service.get_shape(shape_name).kind == ShapeType.TIMESTAMP:
            return "_parse_http_date"
        return super().header_parser(service, shape_name)

    @override
    def header_formatter(self, service: Service, shape_name: str) -> str:
        if service.get_shape(shape_name).kind == ShapeType.TIMESTAMP:
            return "_format_http_date"
        return super().header_formatter(service, shape_name)

    @override
    def add_request_body(
        self, scope: Scope, service: Service, info: MethodInfo, shape: Shape, declaration: StructDeclaration
    ) -> None:
        payload = self.payload_field(shape, declaration)
        if payload is not None:
            if not self.add_request_payload(scope, service, info, payload):
                value = f"input.{payload.name}"
                statement = f"request.set_payload(msgspec.json.encode({value}, enc_hook=_enc_hook))"
                scope.add(f"request.set_content_type({helper.string_literal(self.content_type)})")
                if payload.optional:
                    with scope.indented(f"if {value} is not None:"):
                        scope.add(statement)
                else:
                    scope.add(statement)
            return

        if not self.body_fields(shape, declaration):
            return

        located = [field.wire_name for field in declaration.fields if field.member.location is not None]
        scope.add(f"request.set_content_type({helper.string_literal(self.content_type)})")
        scope.add("body = msgspec.to_builtins(input, enc_hook=_enc_hook)")
        if located:
            names = helper.join_parameters([helper.string_literal(name) for name in located])
            with scope.indented(f"for key in ({names},):"):
                scope.add("body.pop(key, None)")
        scope.add("request.set_payload(msgspec.json.encode(body))")

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
                    payload_type = payload.type_hint.removesuffix(" | None")
                    value = f"msgspec.json.decode(response.body, type={payload_type}, dec_hook=_dec_hook)"
                    if payload.optional:
                        value = f"{value} if response.body else None"
                with scope.indented(f"return {info.output_type}("):
                    scope.add(f"{payload.name}={value},")
                    for field, expression in located:
                        scope.add(f"{field.name}={expression},")
                scope.add(")")
            else:
                scope.add("body = msgspec.json.decode(response.body) if response.body else {}")
                for field, expression in located:
                    scope.add(f"body[{helper.string_literal(field.wire_name)}] = {expression}")
                scope.add(f"return msgspec.convert(body, type={info.output_type}, strict=False, dec_hook=_dec_hook)")
        with scope.indented("except (msgspec.DecodeError, ValueError) as e:"):
            scope.add(f"raise {service.parse_error_type_name}(str(e)) from e")
