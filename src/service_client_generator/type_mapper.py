"""Mapping of shapes to the Python type expressions used in generated annotations."""

from __future__ import annotations

from service_client_generator import helper, naming
from service_client_generator.model import MalformedDefinitionError, Service, Shape
from service_client_generator.shape_types import SHAPE_TYPE_TO_PYTHON, ShapeType


class TypeMapper:
    """Translates shapes of one service into type expressions.

    Timestamps are the only primitive whose representation depends on the protocol, so the
    protocol's choice is passed in once.
    """

    def __init__(self, service: Service, timestamp_type: str):
        self.service = service
        self.timestamp_type = timestamp_type

    def python_type(
        self,
        shape_name: str,
        shape: Shape | None = None,
        streaming: bool = False,
        optional_map_values: bool = False,
    ) -> str:
        """Get the type expression of a shape.

        Args:
            shape_name (str): The name of the shape.
            shape (Shape | None): The shape itself. Looked up by name if omitted.
            streaming (bool): Whether the value is transmitted as a byte stream. This takes precedence
                over the kind of the shape.
            optional_map_values (bool): For map shapes, whether the value type admits `None`.

        Raises:
            MalformedDefinitionError: If the shape, or one of its element shapes, cannot be resolved
                or has an unknown kind.

        Returns:
            str: The type expression, e.g. `list[str]` or `Widget`.
        """
        if streaming:
            return naming.streaming_type_name(naming.mutate_type_name(self.service, shape_name))

        if shape is None:
            shape = self.service.get_shape(shape_name)

        if shape.kind in SHAPE_TYPE_TO_PYTHON:
            return SHAPE_TYPE_TO_PYTHON[shape.kind]

        if shape.kind == ShapeType.TIMESTAMP:
            return self.timestamp_type

        if shape.kind == ShapeType.LIST:
            if shape.member is None:
                raise MalformedDefinitionError("list shape without a member reference", shape_name)
            element = self.python_type(shape.member.shape, self.service.get_shape(shape.member.shape, shape_name))
            return helper.new_group("list", [element])

        if shape.kind == ShapeType.MAP:
            if shape.key is None or shape.value is None:
                raise MalformedDefinitionError("map shape without key or value reference", shape_name)
            key = self.python_type(shape.key.shape, self.service.get_shape(shape.key.shape, shape_name))
            value = self.python_type(shape.value.shape, self.service.get_shape(shape.value.shape, shape_name))
            if optional_map_values:
                value = helper.new_optional(value)
            return helper.new_group("dict", [key, value])

        if shape.kind == ShapeType.STRUCTURE:
            return naming.mutate_type_name(self.service, shape_name)

        raise MalformedDefinitionError(f"unknown shape type '{shape.kind}'", shape_name)

    def is_blob(self, type_name: str) -> bool:
        return type_name == SHAPE_TYPE_TO_PYTHON[ShapeType.BLOB]

    def is_blob_list(self, type_name: str) -> bool:
        return type_name == helper.new_group("list", [SHAPE_TYPE_TO_PYTHON[ShapeType.BLOB]])
