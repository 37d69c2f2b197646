"""Known mismatches between service definitions and reality, kept as data.

Each table is consulted at exactly one place of the generator: type-name resolution,
field naming or the optionality decision. New quirks are added here, not as new branches.
"""

from __future__ import annotations

# (service name, normalized shape name) -> generated type name. A `None` service matches every service,
# `{service}` is replaced by the service type name. Service specific entries take precedence.
TYPE_NAME_OVERRIDES: dict[tuple[str | None, str], str] = {
    # An `Error` shape would read like the generic notion of an error.
    (None, "Error"): "{service}Error",
    # Collide with the error names derived from the operations of the same name.
    ("EC2", "CancelSpotFleetRequests"): "EC2CancelSpotFleetRequests",
    ("EC2", "CreateFleetError"): "EC2CreateFleetError",
    ("Glue", "BatchStopJobRun"): "GlueBatchStopJobRun",
    ("Application Discovery Service", "BatchDeleteImportDataError"): "DiscoveryBatchDeleteImportDataError",
    ("CodeCommit", "BatchDescribeMergeConflictsError"): "CodeCommitBatchDescribeMergeConflictsError",
    ("CodeCommit", "BatchGetCommitsError"): "CodeCommitBatchGetCommitsError",
    ("RDS", "Option"): "RDSOption",
}

# Names the generated module imports or relies on besides its own types.
GENERATED_MODULE_NAMES = (
    "ABC",
    "Annotated",
    "Any",
    "Box",
    "BufferedHttpResponse",
    "ByteStream",
    "Callable",
    "Client",
    "Element",
    "ElementTree",
    "Exception",
    "Mapping",
    "Region",
    "SerdeBlob",
    "SerdeBlobList",
    "SignedRequest",
)
SHAPE_SUFFIX = "Shape"
TYPE_NAME_OVERRIDES.update({(None, name): f"{name}{SHAPE_SUFFIX}" for name in GENERATED_MODULE_NAMES})

# (service name, shape name, member name) of members documented as required that live responses omit.
FORCE_OPTIONAL_FIELDS: frozenset[tuple[str, str, str]] = frozenset(
    {
        ("CodePipeline", "ActionRevision", "revisionChangeId"),
        ("CodePipeline", "ActionRevision", "created"),
    }
)

# (service name, shape name, member name) of map members whose values can be null on the wire.
OPTIONAL_MAP_VALUE_FIELDS: frozenset[tuple[str, str, str]] = frozenset(
    {
        ("Lex Runtime Service", "PostTextResponse", "slots"),
    }
)

# Services whose exception shapes are also referenced as plain data by responses, and therefore get
# both a data type and an error variant.
LEGACY_EXCEPTION_STRUCT_SERVICES: frozenset[str] = frozenset({"Kinesis"})

# Field names that are renamed with `RESERVED_FIELD_PREFIX`; the wire name is kept.
RESERVED_FIELD_NAMES: frozenset[str] = frozenset({"type"})
RESERVED_FIELD_PREFIX = "aws_"


def type_name_override(service_name: str, normalized_name: str, service_type_name: str) -> str | None:
    """Look up the override for a normalized type name.

    Args:
        service_name (str): The name of the service that owns the shape.
        normalized_name (str): The type name after normalization.
        service_type_name (str): Substituted for `{service}` in the override.

    Returns:
        str | None: The overriding type name, or None if there is no override.
    """
    override = TYPE_NAME_OVERRIDES.get((service_name, normalized_name))
    if override is None:
        override = TYPE_NAME_OVERRIDES.get((None, normalized_name))
    if override is None:
        return None
    return override.format(service=service_type_name)


def forces_optional(service_name: str, shape_name: str, member_name: str) -> bool:
    return (service_name, shape_name, member_name) in FORCE_OPTIONAL_FIELDS


def has_optional_map_values(service_name: str, shape_name: str, member_name: str) -> bool:
    return (service_name, shape_name, member_name) in OPTIONAL_MAP_VALUE_FIELDS


def keeps_exception_structs(service_name: str) -> bool:
    return service_name in LEGACY_EXCEPTION_STRUCT_SERVICES
