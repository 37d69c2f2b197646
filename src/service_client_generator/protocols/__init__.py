"""Protocol families, keyed by the protocol tag of a service definition."""

from __future__ import annotations

from service_client_generator.model import Service, UnrecognizedProtocolError
from service_client_generator.protocols.base import ProtocolGenerator
from service_client_generator.protocols.ec2_generator import Ec2Generator
from service_client_generator.protocols.json_generator import JsonGenerator
from service_client_generator.protocols.query_generator import QueryGenerator
from service_client_generator.protocols.rest_json_generator import RestJsonGenerator
from service_client_generator.protocols.rest_xml_generator import RestXmlGenerator

PROTOCOL_GENERATORS: dict[str, type[ProtocolGenerator]] = {
    generator.tag: generator
    for generator in (JsonGenerator, QueryGenerator, Ec2Generator, RestJsonGenerator, RestXmlGenerator)
}


def protocol_generator_for(service: Service) -> ProtocolGenerator:
    """Select the generator of a service's protocol.

    Args:
        service (Service): The service.

    Raises:
        UnrecognizedProtocolError: If no generator handles the protocol tag.

    Returns:
        ProtocolGenerator: A generator instance.
    """
    try:
        generator = PROTOCOL_GENERATORS[service.protocol]
    except KeyError:
        raise UnrecognizedProtocolError(service.protocol, service.name) from None
    return generator()


__all__ = [
    "PROTOCOL_GENERATORS",
    "Ec2Generator",
    "JsonGenerator",
    "ProtocolGenerator",
    "QueryGenerator",
    "RestJsonGenerator",
    "RestXmlGenerator",
    "protocol_generator_for",
]
