"""Type definitions that are common in botocore service definitions."""

from __future__ import annotations

SHAPE_TYPE_TO_PYTHON = {
    "blob": "bytes",
    "boolean": "bool",
    "double": "float",
    "float": "float",
    "integer": "int",
    "long": "int",
    "string": "str",
}


class ShapeType:
    """Kinds of botocore shapes."""

    BLOB = "blob"
    BOOLEAN = "boolean"
    DOUBLE = "double"
    FLOAT = "float"
    INTEGER = "integer"
    LONG = "long"
    STRING = "string"
    TIMESTAMP = "timestamp"
    LIST = "list"
    MAP = "map"
    STRUCTURE = "structure"


class ProtocolTag:
    """Wire protocol tags, as found in a definition's `metadata.protocol`."""

    JSON = "json"
    QUERY = "query"
    EC2 = "ec2"
    REST_JSON = "rest-json"
    REST_XML = "rest-xml"


class MemberLocation:
    """Places of a REST request or response where a member can live, besides the body."""

    URI = "uri"
    QUERYSTRING = "querystring"
    HEADER = "header"
    HEADERS = "headers"
    STATUS_CODE = "statusCode"
