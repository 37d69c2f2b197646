"""Reachability analysis over the shape graph of a service."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from service_client_generator.model import Member, Service

logger = logging.getLogger(__name__)


def _operation_references(service: Service, inputs: bool = True, outputs: bool = True) -> Iterable[tuple[str, Member]]:
    for operation_name, operation in service.operations.items():
        if inputs and operation.input is not None:
            yield operation_name, operation.input
        if outputs:
            if operation.output is not None:
                yield operation_name, operation.output
            for error in operation.errors:
                yield operation_name, error


def reachable_shapes(service: Service, seeds: Iterable[tuple[str, Member]]) -> set[str]:
    """Collect the names of all shapes that are reachable from a set of references.

    List elements, map keys and values, and structure members are followed. Every shape is
    visited once, so cyclic shape graphs terminate.

    Args:
        service (Service): The service that owns the shapes.
        seeds (Iterable[tuple[str, Member]]): `(referrer, reference)` pairs to start from. The
            referrer is only used for error reporting.

    Raises:
        MalformedDefinitionError: If a reference cannot be resolved.

    Returns:
        set[str]: The names of the reachable shapes, seeds included.
    """
    visited: set[str] = set()
    pending: list[tuple[str, str, str | None]] = [(member.shape, referrer, None) for referrer, member in seeds]

    while pending:
        shape_name, referrer, member_name = pending.pop()
        if shape_name in visited:
            continue

        shape = service.get_shape(shape_name, referrer, member_name)
        visited.add(shape_name)

        for child_name, child in service.child_references(shape_name, shape):
            if child.shape not in visited:
                pending.append((child.shape, shape_name, child_name))

    return visited


def find_shapes_to_generate(service: Service) -> list[str]:
    """Get the shapes that need a generated type, in lexicographic order.

    These are all shapes reachable from the inputs, outputs and declared errors of the operations.
    Shapes that no operation refers to are left out.

    Args:
        service (Service): The service to analyze.

    Returns:
        list[str]: The sorted shape names.
    """
    names = sorted(reachable_shapes(service, _operation_references(service)))
    logger.debug("Service '%s': %d of %d shape(s) are reachable.", service.name, len(names), len(service.shapes))
    return names


def filter_types(service: Service) -> tuple[set[str], set[str]]:
    """Split the reachable shapes by direction.

    Returns:
        tuple[set[str], set[str]]: The shapes sent to the service (reachable from operation inputs)
            and the shapes received from it (reachable from outputs and errors). A shape can be both.
    """
    serialized = reachable_shapes(service, _operation_references(service, outputs=False))
    deserialized = reachable_shapes(service, _operation_references(service, inputs=False))
    return serialized, deserialized
