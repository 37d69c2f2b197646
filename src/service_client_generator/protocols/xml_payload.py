"""XML payload (de)serializers, shared by the `query`, `ec2` and `rest-xml` protocols.

Deserializers are emitted for every shape received from the service, serializers only for
`rest-xml`, which sends XML request bodies. Members bound to a URI label, query string, header or
status code are not part of the payload and are skipped here; so are streaming members, whose
value is the whole body.
"""

from __future__ import annotations

from service_client_generator import helper, naming
from service_client_generator.model import Member, Service, Shape
from service_client_generator.protocols.base import deserializer_name, serializer_name
from service_client_generator.scope import Scope
from service_client_generator.shape_types import ShapeType
from service_client_generator.struct_builder import StructBuilder
from service_client_generator.writer_dto import FieldDeclaration

XML_IMPORTS = [
    "import base64",
    "from collections.abc import Callable",
    "from typing import Any",
    "from xml.etree import ElementTree",
    "from xml.etree.ElementTree import Element",
]

XML_READ_HELPERS = '''
def _local_name(tag: str) -> str:
    return tag.rpartition("}")[2]


def _xml_children(node: Element, name: str) -> list[Element]:
    return [child for child in node if _local_name(child.tag) == name]


def _xml_child(node: Element, name: str) -> Element | None:
    return next((child for child in node if _local_name(child.tag) == name), None)


def _xml_required[T](node: Element, name: str, parse: Callable[[Element], T]) -> T:
    child = _xml_child(node, name)
    if child is None:
        raise ValueError(f"Expected element '{name}' in '{_local_name(node.tag)}'.")
    return parse(child)


def _xml_optional[T](node: Element, name: str, parse: Callable[[Element], T]) -> T | None:
    child = _xml_child(node, name)
    return parse(child) if child is not None else None


def _xml_text(node: Element) -> str:
    return node.text or ""


def _xml_int(node: Element) -> int:
    return int(_xml_text(node).strip())


def _xml_float(node: Element) -> float:
    return float(_xml_text(node).strip())


def _xml_bool(node: Element) -> bool:
    return _xml_text(node).strip() == "true"


def _xml_blob(node: Element) -> bytes:
    return base64.b64decode(_xml_text(node))


def _xml_root(body: bytes) -> Element:
    return ElementTree.fromstring(body) if body.strip() else Element("Empty")


def _xml_result(root: Element, wrapper: str) -> Element:
    result = _xml_child(root, wrapper)
    return result if result is not None else Element(wrapper)
'''

XML_WRITE_HELPERS = '''
def _xml_scalar(parent: Element, name: str, value: str | int | float | bool | bytes) -> None:
    ElementTree.SubElement(parent, name).text = _format_scalar(value)


def _xml_document[T](name: str, namespace: str | None, serialize: Callable[[Element, str, T], Element], obj: T) -> bytes:
    container = Element("Document")
    node = serialize(container, name, obj)
    if namespace is not None:
        node.set("xmlns", namespace)
    return ElementTree.tostring(node, encoding="utf-8", xml_declaration=True)
'''

_PRIMITIVE_PARSERS = {
    ShapeType.BLOB: "_xml_blob",
    ShapeType.BOOLEAN: "_xml_bool",
    ShapeType.DOUBLE: "_xml_float",
    ShapeType.FLOAT: "_xml_float",
    ShapeType.INTEGER: "_xml_int",
    ShapeType.LONG: "_xml_int",
    ShapeType.STRING: "_xml_text",
    ShapeType.TIMESTAMP: "_xml_text",
}


def is_payload_member(service: Service, member: Member) -> bool:
    """Whether a member is transmitted inside the XML payload of its structure."""
    return member.location is None and not service.member_is_streaming(member)


def xml_name(member_name: str, member: Member) -> str:
    return member.location_name or member_name


def list_item_name(shape: Shape) -> str:
    return shape.member.location_name if shape.member and shape.member.location_name else "member"


def map_entry_names(shape: Shape) -> tuple[str, str]:
    key = shape.key.location_name if shape.key and shape.key.location_name else "key"
    value = shape.value.location_name if shape.value and shape.value.location_name else "value"
    return key, value


def is_flattened(shape: Shape, member: Member | None = None) -> bool:
    return shape.flattened or (member is not None and member.flattened)


class XmlPayloadGenerator:
    """Emits XML (de)serializer functions for the shapes of one service."""

    def __init__(self, service: Service, struct_builder: StructBuilder):
        self.service = service
        self.struct_builder = struct_builder

    def parser_for(self, shape_name: str) -> str:
        """The function that turns an element into a value of the shape."""
        shape = self.service.get_shape(shape_name)
        if shape.kind in _PRIMITIVE_PARSERS:
            return _PRIMITIVE_PARSERS[shape.kind]
        return deserializer_name(self.service, shape_name)

    def _python_type(self, shape_name: str) -> str:
        return self.struct_builder.type_mapper.python_type(shape_name)

    def _payload_fields(self, shape_name: str, shape: Shape) -> list[FieldDeclaration]:
        declaration = self.struct_builder.build(
            shape_name, shape, naming.mutate_type_name(self.service, shape_name), False, False
        )
        return [field for field in declaration.fields if is_payload_member(self.service, field.member)]

    def generate_deserializer(self, shape_name: str, shape: Shape, scope: Scope) -> bool:
        """Emit the deserializer of a structure, list or map shape.

        Structure deserializers accept the values of non-payload members as keyword arguments.

        Args:
            shape_name (str): The name of the shape.
            shape (Shape): The shape.
            scope (Scope): The module scope.

        Returns:
            bool: Whether a deserializer was emitted; primitives need none.
        """
        name = deserializer_name(self.service, shape_name)

        if shape.kind == ShapeType.STRUCTURE:
            type_name = naming.mutate_type_name(self.service, shape_name)
            scope.blank(2)
            with scope.indented(helper.new_function(name, ["node: Element", "**located: Any"], type_name)):
                with scope.indented(f"return {type_name}("):
                    for field in self._payload_fields(shape_name, shape):
                        scope.add(f"{field.name}={self._field_expression(field)},")
                    scope.add("**located,")
                scope.add(")")
            return True

        if shape.kind == ShapeType.LIST and shape.member is not None:
            parameters = ["node: Element", f"item_name: str = {helper.string_literal(list_item_name(shape))}"]
            scope.blank(2)
            with scope.indented(helper.new_function(name, parameters, self._python_type(shape_name))):
                parser = self.parser_for(shape.member.shape)
                scope.add(f"return [{parser}(child) for child in _xml_children(node, item_name)]")
            return True

        if shape.kind == ShapeType.MAP and shape.key is not None and shape.value is not None:
            key_name, value_name = map_entry_names(shape)
            parameters = ["node: Element", 'entry_name: str = "entry"']
            scope.blank(2)
            with scope.indented(helper.new_function(name, parameters, self._python_type(shape_name))):
                with scope.indented("return {"):
                    key = f"_xml_required(entry, {helper.string_literal(key_name)}, {self.parser_for(shape.key.shape)})"
                    value = (
                        f"_xml_required(entry, {helper.string_literal(value_name)}, "
                        f"{self.parser_for(shape.value.shape)})"
                    )
                    scope.add(f"{key}: {value}")
                    scope.add("for entry in _xml_children(node, entry_name)")
                scope.add("}")
            return True

        return False

    def _field_expression(self, field: FieldDeclaration) -> str:
        member = field.member
        member_shape = self.service.get_shape(member.shape)
        element_name = helper.string_literal(xml_name(field.wire_name, member))

        if member_shape.kind in (ShapeType.LIST, ShapeType.MAP) and is_flattened(member_shape, member):
            if member_shape.kind == ShapeType.LIST and member_shape.member and member_shape.member.location_name:
                element_name = helper.string_literal(member_shape.member.location_name)
            expression = f"{deserializer_name(self.service, member.shape)}(node, {element_name})"
            if field.optional:
                expression = f"{expression} or None"
        else:
            accessor = "_xml_optional" if field.optional else "_xml_required"
            expression = f"{accessor}(node, {element_name}, {self.parser_for(member.shape)})"

        if field.boxed:
            return f"Box({expression})"
        return expression

    def generate_serializer(self, shape_name: str, shape: Shape, scope: Scope) -> bool:
        """Emit the serializer of a structure, list or map shape.

        Every serializer appends an element of the given name to a parent element.

        Args:
            shape_name (str): The name of the shape.
            shape (Shape): The shape.
            scope (Scope): The module scope.

        Returns:
            bool: Whether a serializer was emitted; primitives need none.
        """
        name = serializer_name(self.service, shape_name)
        if shape.kind not in (ShapeType.STRUCTURE, ShapeType.LIST, ShapeType.MAP):
            return False

        parameters = ["parent: Element", "name: str", f"obj: {self._python_type(shape_name)}"]
        scope.blank(2)
        with scope.indented(helper.new_function(name, parameters, "Element")):
            if shape.kind == ShapeType.STRUCTURE:
                scope.add("node = ElementTree.SubElement(parent, name)")
                for field in self._payload_fields(shape_name, shape):
                    self._add_field_serialization(scope, field)
                scope.add("return node")

            elif shape.kind == ShapeType.LIST and shape.member is not None:
                if is_flattened(shape):
                    scope.add("node = parent")
                    item_name = "name"
                else:
                    scope.add("node = ElementTree.SubElement(parent, name)")
                    item_name = helper.string_literal(list_item_name(shape))
                with scope.indented("for item in obj:"):
                    self._add_value_serialization(scope, shape.member.shape, "node", item_name, "item")
                scope.add("return node")

            elif shape.key is not None and shape.value is not None:
                key_name, value_name = map_entry_names(shape)
                if is_flattened(shape):
                    scope.add("node = parent")
                    entry_name = "name"
                else:
                    scope.add("node = ElementTree.SubElement(parent, name)")
                    entry_name = '"entry"'
                with scope.indented("for key, value in obj.items():"):
                    scope.add(f"entry = ElementTree.SubElement(node, {entry_name})")
                    self._add_value_serialization(scope, shape.key.shape, "entry", helper.string_literal(key_name), "key")
                    self._add_value_serialization(
                        scope, shape.value.shape, "entry", helper.string_literal(value_name), "value"
                    )
                scope.add("return node")
        return True

    def _add_field_serialization(self, scope: Scope, field: FieldDeclaration) -> None:
        value = f"obj.{field.name}.value" if field.boxed else f"obj.{field.name}"
        element_name = helper.string_literal(xml_name(field.wire_name, field.member))
        if field.optional:
            with scope.indented(f"if {value} is not None:"):
                self._add_value_serialization(scope, field.member.shape, "node", element_name, value)
        else:
            self._add_value_serialization(scope, field.member.shape, "node", element_name, value)

    def _add_value_serialization(self, scope: Scope, shape_name: str, parent: str, name: str, value: str) -> None:
        shape = self.service.get_shape(shape_name)
        if shape.kind in _PRIMITIVE_PARSERS:
            scope.add(f"_xml_scalar({parent}, {name}, {value})")
        else:
            scope.add(f"{serializer_name(self.service, shape_name)}({parent}, {name}, {value})")
