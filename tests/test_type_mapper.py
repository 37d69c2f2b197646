"""Tests for the mapping of shapes to type expressions."""

from __future__ import annotations

import pytest

from service_client_generator.model import MalformedDefinitionError
from service_client_generator.type_mapper import TypeMapper

SHAPES = {
    "Blob": {"type": "blob"},
    "Bool": {"type": "boolean"},
    "Double": {"type": "double"},
    "Float": {"type": "float"},
    "Int": {"type": "integer"},
    "Long": {"type": "long"},
    "String": {"type": "string"},
    "Time": {"type": "timestamp"},
    "Blobs": {"type": "list", "member": {"shape": "Blob"}},
    "Matrix": {"type": "list", "member": {"shape": "Row"}},
    "Row": {"type": "list", "member": {"shape": "Double"}},
    "Slots": {"type": "map", "key": {"shape": "String"}, "value": {"shape": "String"}},
    "Error": {"type": "structure", "members": {}},
    "widget": {"type": "structure", "members": {}},
    "Strange": {"type": "tuple"},
}


@pytest.fixture
def mapper(make_service):
    return TypeMapper(make_service(SHAPES), "float")


class TestTypeMapper:
    @pytest.mark.parametrize(
        ("shape_name", "expected"),
        [
            ("Blob", "bytes"),
            ("Bool", "bool"),
            ("Double", "float"),
            ("Float", "float"),
            ("Int", "int"),
            ("Long", "int"),
            ("String", "str"),
            ("Time", "float"),
            ("Blobs", "list[bytes]"),
            ("Matrix", "list[list[float]]"),
            ("Slots", "dict[str, str]"),
            ("widget", "Widget"),
            ("Error", "FooError"),
        ],
    )
    def test_python_type(self, mapper, shape_name, expected):
        assert mapper.python_type(shape_name) == expected

    def test_timestamp_type_comes_from_the_protocol(self, make_service):
        assert TypeMapper(make_service(SHAPES), "str").python_type("Time") == "str"

    def test_streaming_takes_precedence(self, mapper):
        assert mapper.python_type("Blob", streaming=True) == "StreamingBlob"
        assert mapper.python_type("String", streaming=True) == "StreamingString"

    def test_optional_map_values(self, mapper):
        assert mapper.python_type("Slots", optional_map_values=True) == "dict[str, str | None]"

    def test_unknown_kind(self, mapper):
        with pytest.raises(MalformedDefinitionError, match="tuple"):
            mapper.python_type("Strange")

    def test_unknown_shape(self, mapper):
        with pytest.raises(MalformedDefinitionError):
            mapper.python_type("Nothing")

    def test_blob_detection(self, mapper):
        assert mapper.is_blob("bytes")
        assert mapper.is_blob_list("list[bytes]")
        assert not mapper.is_blob("list[bytes]")
