"""Field declarations for structure shapes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from service_client_generator import helper, naming, overrides
from service_client_generator.model import Member, Service, Shape
from service_client_generator.type_mapper import TypeMapper
from service_client_generator.writer_dto import FieldDeclaration, StructDeclaration

if TYPE_CHECKING:
    from service_client_generator.protocols.base import ProtocolGenerator

logger = logging.getLogger(__name__)

SERDE_BLOB = "SerdeBlob"
SERDE_BLOB_LIST = "SerdeBlobList"


class StructBuilder:
    """Builds the declaration of the struct type of a structure shape.

    Whether wire metadata is attached depends on the direction(s) a type travels in, and on
    whether the active protocol relies on msgspec to (de)serialize that direction.
    """

    def __init__(self, service: Service, protocol: ProtocolGenerator, type_mapper: TypeMapper | None = None):
        self.service = service
        self.protocol = protocol
        self.type_mapper = type_mapper or TypeMapper(service, protocol.timestamp_type)

    def wants_wire_metadata(self, serialized: bool, deserialized: bool) -> bool:
        """Whether a type in the given directions is (de)serialized by msgspec and needs wire names."""
        return (serialized and self.protocol.auto_serialize) or (deserialized and self.protocol.auto_deserialize)

    def build(
        self,
        shape_name: str,
        shape: Shape,
        type_name: str,
        serialized: bool,
        deserialized: bool,
    ) -> StructDeclaration:
        """Build the declaration of a structure shape.

        Deprecated members are left out; all others become fields in declared order.

        Args:
            shape_name (str): The name of the shape.
            shape (Shape): The structure shape.
            type_name (str): The resolved name of the generated type.
            serialized (bool): Whether the type is sent to the service.
            deserialized (bool): Whether the type is received from the service.

        Raises:
            MalformedDefinitionError: If a member refers to a shape that does not exist.

        Returns:
            StructDeclaration: The declaration.
        """
        wire_metadata = self.wants_wire_metadata(serialized, deserialized)

        fields: list[FieldDeclaration] = []
        used_names: set[str] = set()
        for member_name, member in shape.members.items():
            if member.deprecated:
                logger.debug("Skipping deprecated member '%s.%s'.", shape_name, member_name)
                continue

            declaration = self.build_field(shape_name, shape, type_name, member_name, member, wire_metadata)
            while declaration.name in used_names:
                declaration.name = f"{declaration.name}_"
            used_names.add(declaration.name)
            fields.append(declaration)

        streaming = self.service.is_streaming_shape(shape_name) or any(f.streaming for f in fields)

        return StructDeclaration(
            name=type_name,
            shape_name=shape_name,
            fields=fields,
            documentation=shape.documentation,
            omit_defaults=wire_metadata and any(f.optional for f in fields),
            eq=not streaming,
        )

    def build_field(
        self,
        shape_name: str,
        shape: Shape,
        type_name: str,
        member_name: str,
        member: Member,
        wire_metadata: bool,
    ) -> FieldDeclaration:
        """Build the declaration of a single member.

        Args:
            shape_name (str): The name of the enclosing shape.
            shape (Shape): The enclosing shape.
            type_name (str): The generated name of the enclosing type.
            member_name (str): The member name.
            member (Member): The member.
            wire_metadata (bool): Whether to attach the wire name and binary transcoding hooks.

        Returns:
            FieldDeclaration: The field.
        """
        member_shape = self.service.shape_for_member(member, shape_name, member_name)
        streaming = self.service.member_is_streaming(member)
        optional_values = overrides.has_optional_map_values(self.service.name, shape_name, member_name)

        python_type = self.type_mapper.python_type(member.shape, member_shape, streaming, optional_values)

        optional = (
            not shape.is_required(member_name)
            or overrides.forces_optional(self.service.name, shape_name, member_name)
            or optional_values
        )

        blob_hook = None
        if wire_metadata:
            if self.type_mapper.is_blob(python_type):
                blob_hook = SERDE_BLOB
            elif self.type_mapper.is_blob_list(python_type):
                blob_hook = SERDE_BLOB_LIST

        boxed = not streaming and python_type == type_name
        if boxed:
            inner = helper.new_optional(python_type) if optional else python_type
            type_hint = helper.new_group("Box", [inner])
        elif optional:
            type_hint = helper.new_optional(python_type)
        else:
            type_hint = python_type

        return FieldDeclaration(
            name=naming.generate_field_name(member_name),
            wire_name=member_name,
            type_hint=type_hint,
            optional=optional,
            member=member,
            documentation=member.documentation,
            wire_metadata=wire_metadata,
            blob_hook=blob_hook,
            boxed=boxed,
            streaming=streaming,
        )
