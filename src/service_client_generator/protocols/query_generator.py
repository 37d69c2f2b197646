"""The `query` protocol: form encoded requests, XML responses wrapped in `<Operation>Result`."""

from __future__ import annotations

from typing import override

from service_client_generator import helper, naming
from service_client_generator.error_types import XmlErrorTypes
from service_client_generator.model import Member, Service, Shape
from service_client_generator.protocols.base import (
    SCALAR_HELPERS,
    ProtocolGenerator,
    deserializer_name,
    generate_helpers,
    serializer_name,
)
from service_client_generator.protocols.xml_payload import XML_IMPORTS, XML_READ_HELPERS, XmlPayloadGenerator
from service_client_generator.scope import Scope
from service_client_generator.shape_types import ProtocolTag, ShapeType
from service_client_generator.struct_builder import StructBuilder
from service_client_generator.writer_dto import MethodInfo

QUERY_HELPERS = '''
def _query_key(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name
'''


class QueryGenerator(ProtocolGenerator):
    tag = ProtocolTag.QUERY
    error_types = XmlErrorTypes
    timestamp_type = "str"

    @override
    def required_imports(self, service: Service) -> list[str]:
        return [*XML_IMPORTS, "from urllib.parse import urlencode"]

    @override
    def generate_prelude(self, service: Service, scope: Scope) -> None:
        generate_helpers(scope, SCALAR_HELPERS)
        generate_helpers(scope, QUERY_HELPERS)
        generate_helpers(scope, XML_READ_HELPERS)

    def member_key(self, member_name: str, member: Member) -> str:
        """The parameter name of a structure member."""
        return member.location_name or member_name

    def list_item_key(self, shape: Shape, member: Member | None) -> str:
        """An expression for the parameter name of the list item `index`, below the list's key `name`."""
        if shape.flattened or (member is not None and member.flattened):
            return 'f"{name}.{index}"'
        item = shape.member.location_name if shape.member and shape.member.location_name else "member"
        return f'f"{{name}}.{item}.{{index}}"'

    def serializes_empty_lists(self) -> bool:
        return True

    def response_node(self, info: MethodInfo) -> str:
        """An expression for the element that holds the output members."""
        operation = info.operation
        wrapper = operation.output.result_wrapper if operation.output is not None else None
        if wrapper:
            return f"_xml_result(root, {helper.string_literal(wrapper)})"
        return "root"

    @override
    def generate_method_impls(self, service: Service, scope: Scope) -> None:
        for index, info in enumerate(self.method_infos(service)):
            if index:
                scope.blank()
            scope.add(helper.new_decorator("override"))
            with scope.indented(helper.new_function(info.method_name, info.parameters, info.return_type)):
                path = helper.string_literal(info.operation.http.request_uri)
                self.add_request(scope, service, info, path)
                action = helper.string_literal(info.operation_name)
                version = helper.string_literal(service.metadata.api_version or "")
                scope.add(f'params: dict[str, str] = {{"Action": {action}, "Version": {version}}}')
                if info.input_shape is not None:
                    scope.add(f'{serializer_name(service, info.input_shape)}(params, "", input)')
                scope.add('request.set_content_type("application/x-www-form-urlencoded")')
                scope.add('request.set_payload(urlencode(params).encode("utf-8"))')
                scope.blank()
                scope.add("response = self._dispatch(request)")

                if info.output_shape is None:
                    scope.add("return None")
                    continue

                with scope.indented("try:"):
                    scope.add("root = _xml_root(response.body)")
                    scope.add(f"return {deserializer_name(service, info.output_shape)}({self.response_node(info)})")
                with scope.indented("except (ElementTree.ParseError, ValueError) as e:"):
                    scope.add(f"raise {service.parse_error_type_name}(str(e)) from e")

    @override
    def generate_deserializer(self, name: str, shape: Shape, service: Service, scope: Scope) -> bool:
        return XmlPayloadGenerator(service, StructBuilder(service, self)).generate_deserializer(name, shape, scope)

    @override
    def generate_serializer(self, name: str, shape: Shape, service: Service, scope: Scope) -> bool:
        """Emit a function that writes a value of the shape into a parameter dict, below a key prefix."""
        if shape.kind not in (ShapeType.STRUCTURE, ShapeType.LIST, ShapeType.MAP):
            return False

        struct_builder = StructBuilder(service, self)
        python_type = struct_builder.type_mapper.python_type(name, shape)
        parameters = ["params: dict[str, str]", "name: str", f"obj: {python_type}"]

        scope.blank(2)
        with scope.indented(helper.new_function(serializer_name(service, name), parameters)):
            if shape.kind == ShapeType.STRUCTURE:
                declaration = struct_builder.build(name, shape, naming.mutate_type_name(service, name), False, False)
                for field in declaration.fields:
                    if field.streaming:
                        continue
                    value = f"obj.{field.name}.value" if field.boxed else f"obj.{field.name}"
                    key = f"_query_key(name, {helper.string_literal(self.member_key(field.wire_name, field.member))})"
                    if field.optional:
                        with scope.indented(f"if {value} is not None:"):
                            self._add_value(scope, service, field.member.shape, key, value)
                    else:
                        self._add_value(scope, service, field.member.shape, key, value)

            elif shape.kind == ShapeType.LIST and shape.member is not None:
                if self.serializes_empty_lists() and not shape.flattened:
                    with scope.indented("if not obj:"):
                        scope.add('params[name] = ""')
                with scope.indented("for index, item in enumerate(obj, 1):"):
                    self._add_value(scope, service, shape.member.shape, self.list_item_key(shape, None), "item")

            elif shape.key is not None and shape.value is not None:
                key_name = shape.key.location_name or "key"
                value_name = shape.value.location_name or "value"
                entry = 'f"{name}.{index}"' if shape.flattened else 'f"{name}.entry.{index}"'
                with scope.indented("for index, (key, value) in enumerate(obj.items(), 1):"):
                    scope.add(f"entry = {entry}")
                    self._add_value(scope, service, shape.key.shape, f'f"{{entry}}.{key_name}"', "key")
                    self._add_value(scope, service, shape.value.shape, f'f"{{entry}}.{value_name}"', "value")
        return True

    def _add_value(self, scope: Scope, service: Service, shape_name: str, key: str, value: str) -> None:
        shape = service.get_shape(shape_name)
        if shape.kind in (ShapeType.STRUCTURE, ShapeType.LIST, ShapeType.MAP):
            scope.add(f"{serializer_name(service, shape_name)}(params, {key}, {value})")
        else:
            scope.add(f"params[{key}] = _format_scalar({value})")
