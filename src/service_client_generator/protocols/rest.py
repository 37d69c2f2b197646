"""Request and response layout shared by the REST protocols.

Members of REST operations live in one of several places: the URI path (`{Label}`, or the greedy
`{Label+}`), the query string, a header, a prefixed header group, the status code, or the body.
Of the body, either a single payload member is the whole body, or all remaining members are
encoded together. The subclasses decide how a body is encoded.
"""

from __future__ import annotations

import re
from abc import abstractmethod
from typing import override

from service_client_generator import helper, naming
from service_client_generator.model import MalformedDefinitionError, Service, Shape
from service_client_generator.protocols.base import SCALAR_HELPERS, ProtocolGenerator, generate_helpers
from service_client_generator.scope import Scope
from service_client_generator.shape_types import MemberLocation, ShapeType
from service_client_generator.struct_builder import StructBuilder
from service_client_generator.writer_dto import FieldDeclaration, MethodInfo, StructDeclaration

REST_IMPORTS = [
    "import base64",
    "from collections.abc import Callable",
    "from collections.abc import Mapping",
    "from urllib.parse import quote",
]

REST_HELPERS = '''
def _uri_label(value: str | int | float | bool) -> str:
    return quote(_format_scalar(value), safe="")


def _uri_greedy_label(value: str) -> str:
    return quote(value, safe="/")


def _located_required[T](value: str | None, name: str, parse: Callable[[str], T]) -> T:
    if value is None:
        raise ValueError(f"Expected '{name}' in the response.")
    return parse(value)


def _located_optional[T](value: str | None, parse: Callable[[str], T]) -> T | None:
    return parse(value) if value is not None else None


def _parse_bool(value: str) -> bool:
    return value.strip().lower() == "true"


def _prefixed_headers(headers: Mapping[str, str], prefix: str) -> dict[str, str]:
    return {key[len(prefix) :]: value for key, value in headers.items() if key.lower().startswith(prefix.lower())}
'''

_URI_LABEL = re.compile(r"\{([^}]+)\}")

_HEADER_PARSERS = {
    ShapeType.BLOB: "base64.b64decode",
    ShapeType.BOOLEAN: "_parse_bool",
    ShapeType.DOUBLE: "float",
    ShapeType.FLOAT: "float",
    ShapeType.INTEGER: "int",
    ShapeType.LONG: "int",
    ShapeType.STRING: "str",
}


def split_request_uri(request_uri: str) -> tuple[str, list[tuple[str, str]]]:
    """Split a request URI template into the path and its fixed query parameters.

    E.g. `/{Bucket}?versioning&max=1` becomes `/{Bucket}` and `[("versioning", ""), ("max", "1")]`.
    """
    path, _, query = request_uri.partition("?")
    parameters: list[tuple[str, str]] = []
    for part in query.split("&"):
        if part:
            key, _, value = part.partition("=")
            parameters.append((key, value))
    return path, parameters


class RestGenerator(ProtocolGenerator):
    """Common part of `rest-json` and `rest-xml`."""

    content_type: str = ""

    @override
    def required_imports(self, service: Service) -> list[str]:
        return list(REST_IMPORTS)

    @override
    def generate_prelude(self, service: Service, scope: Scope) -> None:
        generate_helpers(scope, SCALAR_HELPERS)
        generate_helpers(scope, REST_HELPERS)

    def declaration(self, service: Service, shape_name: str) -> StructDeclaration:
        shape = service.get_shape(shape_name)
        return StructBuilder(service, self).build(
            shape_name, shape, naming.mutate_type_name(service, shape_name), True, True
        )

    def payload_field(self, shape: Shape, declaration: StructDeclaration) -> FieldDeclaration | None:
        if shape.payload is None:
            return None
        return declaration.field_by_wire_name(shape.payload)

    @staticmethod
    def located_name(field: FieldDeclaration) -> str:
        return field.member.location_name or field.wire_name

    def body_fields(self, shape: Shape, declaration: StructDeclaration) -> list[FieldDeclaration]:
        """Fields encoded together in the body, when the shape has no payload member."""
        if shape.payload is not None:
            return []
        return [field for field in declaration.fields if field.member.location is None]

    def path_expression(self, info: MethodInfo, declaration: StructDeclaration | None) -> str:
        """An expression for the request path, with URI labels filled from the input.

        Raises:
            MalformedDefinitionError: If a label has no matching input member.
        """
        path, _ = split_request_uri(info.operation.http.request_uri)
        labels = _URI_LABEL.findall(path)
        if not labels:
            return helper.string_literal(path)

        fields = {}
        if declaration is not None:
            fields = {
                self.located_name(field): field
                for field in declaration.fields
                if field.member.location == MemberLocation.URI
            }

        def replace(match: re.Match[str]) -> str:
            label = match.group(1)
            greedy = label.endswith("+")
            field = fields.get(label.removesuffix("+"))
            if field is None:
                raise MalformedDefinitionError(
                    f"URI label '{label}' of operation '{info.operation_name}' has no input member",
                    info.input_shape or info.operation_name,
                )
            function = "_uri_greedy_label" if greedy else "_uri_label"
            return f"{{{function}(input.{field.name})}}"

        escaped = path.replace("\\", "\\\\").replace('"', '\\"')
        return f'f"{_URI_LABEL.sub(replace, escaped)}"'

    def add_query_and_headers(
        self, scope: Scope, service: Service, info: MethodInfo, declaration: StructDeclaration | None
    ) -> None:
        _, fixed = split_request_uri(info.operation.http.request_uri)
        fixed_parameters = helper.join_parameters(
            [f"({helper.string_literal(key)}, {helper.string_literal(value)})" for key, value in fixed]
        )
        scope.add(f"params: list[tuple[str, str]] = [{fixed_parameters}]")

        for field in declaration.fields if declaration is not None else []:
            location = field.member.location
            if location not in (MemberLocation.QUERYSTRING, MemberLocation.HEADER, MemberLocation.HEADERS):
                continue

            value = f"input.{field.name}"
            name = helper.string_literal(self.located_name(field))
            if field.optional:
                with scope.indented(f"if {value} is not None:"):
                    self._add_located(scope, service, field, location, name, value)
            else:
                self._add_located(scope, service, field, location, name, value)

        scope.add("request.set_params(params)")

    def _add_located(
        self, scope: Scope, service: Service, field: FieldDeclaration, location: str, name: str, value: str
    ) -> None:
        kind = field.type_hint.removesuffix(" | None")
        if location == MemberLocation.HEADERS:
            with scope.indented(f"for key, item in {value}.items():"):
                scope.add(f"request.add_header({name} + key, item)")
        elif location == MemberLocation.HEADER:
            formatter = self.header_formatter(service, field.member.shape)
            scope.add(f"request.add_header({name}, {formatter}({value}))")
        elif kind.startswith("list["):
            scope.add(f"params.extend(({name}, _format_scalar(item)) for item in {value})")
        elif kind.startswith("dict["):
            scope.add(f"params.extend((key, _format_scalar(item)) for key, item in {value}.items())")
        else:
            scope.add(f"params.append(({name}, _format_scalar({value})))")

    def located_response_values(
        self, service: Service, declaration: StructDeclaration
    ) -> list[tuple[FieldDeclaration, str]]:
        """Expressions for the output members taken from the status code and headers."""
        values: list[tuple[FieldDeclaration, str]] = []
        for field in declaration.fields:
            location = field.member.location
            name = helper.string_literal(self.located_name(field))
            if location == MemberLocation.STATUS_CODE:
                values.append((field, "response.status"))
            elif location == MemberLocation.HEADERS:
                values.append((field, f"_prefixed_headers(response.headers, {name})"))
            elif location == MemberLocation.HEADER:
                parser = self.header_parser(service, field.member.shape)
                if field.optional:
                    values.append((field, f"_located_optional(response.headers.get({name}), {parser})"))
                else:
                    values.append((field, f"_located_required(response.headers.get({name}), {name}, {parser})"))
        return values

    def header_parser(self, service: Service, shape_name: str) -> str:
        shape = service.get_shape(shape_name)
        if shape.kind == ShapeType.TIMESTAMP:
            return self.timestamp_type
        return _HEADER_PARSERS.get(shape.kind, "str")

    def header_formatter(self, service: Service, shape_name: str) -> str:
        return "_format_scalar"

    def payload_value(self, service: Service, field: FieldDeclaration) -> str | None:
        """An expression for a non-structure payload taken from the raw response body."""
        if field.streaming:
            return "ByteStream(response.body)"
        shape = service.get_shape(field.member.shape)
        if shape.kind == ShapeType.BLOB:
            return "response.body"
        if shape.kind == ShapeType.STRING:
            return 'response.body.decode("utf-8")'
        return None

    def add_request_payload(self, scope: Scope, service: Service, info: MethodInfo, field: FieldDeclaration) -> bool:
        """Emit a non-structure request payload; returns False for structure payloads."""
        value = f"input.{field.name}"
        shape = service.get_shape(field.member.shape)
        if field.streaming:
            statement = f"request.set_payload_stream({value})"
        elif shape.kind == ShapeType.BLOB:
            statement = f"request.set_payload({value})"
        elif shape.kind == ShapeType.STRING:
            statement = f'request.set_payload({value}.encode("utf-8"))'
        else:
            return False

        if field.optional:
            with scope.indented(f"if {value} is not None:"):
                scope.add(statement)
        else:
            scope.add(statement)
        return True

    @override
    def generate_method_impls(self, service: Service, scope: Scope) -> None:
        for index, info in enumerate(self.method_infos(service)):
            if index:
                scope.blank()
            scope.add(helper.new_decorator("override"))
            with scope.indented(helper.new_function(info.method_name, info.parameters, info.return_type)):
                input_declaration = self.declaration(service, info.input_shape) if info.input_shape else None
                self.add_request(scope, service, info, self.path_expression(info, input_declaration))
                if input_declaration is not None and info.input_shape is not None:
                    self.add_request_body(scope, service, info, service.get_shape(info.input_shape), input_declaration)
                self.add_query_and_headers(scope, service, info, input_declaration)
                scope.blank()
                scope.add("response = self._dispatch(request)")

                if info.output_shape is None:
                    scope.add("return None")
                    continue

                output_shape = service.get_shape(info.output_shape)
                output_declaration = self.declaration(service, info.output_shape)
                self.add_response_parsing(scope, service, info, output_shape, output_declaration)

    @abstractmethod
    def add_request_body(
        self, scope: Scope, service: Service, info: MethodInfo, shape: Shape, declaration: StructDeclaration
    ) -> None:
        """Emit the encoding of the request body."""

    @abstractmethod
    def add_response_parsing(
        self, scope: Scope, service: Service, info: MethodInfo, shape: Shape, declaration: StructDeclaration
    ) -> None:
        """Emit the statements that turn `response` into the output type and return it."""
