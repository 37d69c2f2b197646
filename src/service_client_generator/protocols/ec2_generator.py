"""The `ec2` protocol, a dialect of `query`.

Requests differ in parameter naming: list items are numbered directly below the list key, and
member keys come from `queryName`, or else the capitalized `locationName`. Responses carry no
result wrapper element.
"""

from __future__ import annotations

from typing import override

from service_client_generator import helper
from service_client_generator.model import Member, Shape
from service_client_generator.protocols.query_generator import QueryGenerator
from service_client_generator.shape_types import ProtocolTag
from service_client_generator.writer_dto import MethodInfo


class Ec2Generator(QueryGenerator):
    tag = ProtocolTag.EC2

    @override
    def member_key(self, member_name: str, member: Member) -> str:
        if member.query_name:
            return member.query_name
        return helper.capitalize_first(member.location_name or member_name)

    @override
    def list_item_key(self, shape: Shape, member: Member | None) -> str:
        return 'f"{name}.{index}"'

    @override
    def serializes_empty_lists(self) -> bool:
        return False

    @override
    def response_node(self, info: MethodInfo) -> str:
        return "root"
