"""Helper functionality that is used in other modules of this package."""

from __future__ import annotations

import keyword
import re
from collections.abc import Sequence

_SNAKE_BOUNDARY_WORD = re.compile(r"(.)([A-Z][a-z]+)")
_SNAKE_BOUNDARY_CHAR = re.compile(r"([a-z0-9])([A-Z])")
_NON_IDENTIFIER = re.compile(r"[^0-9a-zA-Z_]+")
_REPEATED_UNDERSCORES = re.compile(r"__+")


def sanitize_name(name: str) -> str:
    """Sanitize a name to avoid Python keywords.

    If the name is a Python keyword, append an underscore.
    E.g. 'lambda' becomes 'lambda_', 'class' becomes 'class_'.

    Args:
        name (str): The original name.

    Returns:
        str: The sanitized name.
    """
    if keyword.iskeyword(name) or keyword.issoftkeyword(name):
        return f"{name}_"
    return name


def to_snake_case(name: str) -> str:
    """Convert a CamelCase or mixed name to snake case.

    Acronyms are kept together, e.g. `DescribeDBInstances` becomes `describe_db_instances`.
    Characters that cannot appear in an identifier become underscores.

    Args:
        name (str): The original name.

    Returns:
        str: The snake case name.
    """
    result = _NON_IDENTIFIER.sub("_", name)
    result = _SNAKE_BOUNDARY_WORD.sub(r"\1_\2", result)
    result = _SNAKE_BOUNDARY_CHAR.sub(r"\1_\2", result)
    result = _REPEATED_UNDERSCORES.sub("_", result.lower())
    return result.strip("_")


def capitalize_first(name: str) -> str:
    """Capitalize the first character only, `fooBar` becomes `FooBar`."""
    return name[:1].upper() + name[1:]


def join_parameters(parameters: Sequence[str] | None) -> str:
    """Joins parameters by means of ', '.

    Args:
        parameters (Sequence[str] | None): The parameters to join.

    Returns:
        str: The joined parameters.
    """
    if parameters:
        return ", ".join(str(p) for p in parameters if p)

    else:
        return ""


def new_group(name: str, members: list[str]) -> str:
    """Create a string for a group name and its members.

    For example, when the group name is 'dict', and the parameters are 'str', and 'int',
    the output will be 'dict[str, int]'.

    Args:
        name (str): The name of the group.
        members (list[str]): The members of the group

    Returns:
        str: The resulting group string.
    """
    return f"{name}[{join_parameters(members)}]"


def new_optional(type_name: str) -> str:
    """Create the optional variant of a type, `str` becomes `str | None`."""
    return f"{type_name} | None"


def new_function(
    name: str,
    parameters: Sequence[str] | None = None,
    return_type: str | None = None,
) -> str:
    """Create the header line of a function.

    Args:
        name (str): The function name.
        parameters (Sequence[str] | None, optional): The function parameters, if any. Defaults to None.
        return_type (str | None, optional): The function's return type. Defaults to None.

    Returns:
        str: The function string.
    """
    if return_type is None:
        return_type = "None"

    arguments = join_parameters(parameters)
    return f"def {name}({arguments}) -> {return_type}:"


def new_decorator(name: str, parameters: Sequence[str] | None = None) -> str:
    """Create a new decorator.

    Args:
        name (str): The name of the decorator.
        parameters (Sequence[str] | None, optional): The parameters (args, kwargs) of the decorator,
            if any. Defaults to None.

    Returns:
        str: The decorator string.
    """
    if parameters:
        return f"@{name}({join_parameters(parameters)})"

    else:
        return f"@{name}"


def new_class_declaration(name: str, parameters: Sequence[str] | None = None) -> str:
    """Creates a string for declaring a class.

    For example, for a name of 'SomeClass' and a list of parameters that is 'msgspec.Struct, kw_only=True',
    the output will be 'class SomeClass(msgspec.Struct, kw_only=True):'.

    If no parameters are provided, the output is just 'class SomeClass:'.

    Args:
        name (str): The class name.
        parameters (Sequence[str] | None, optional):
            A list of parameters that are part of the class declaration. Defaults to None.

    Returns:
        str: The class declaration.
    """
    if parameters:
        return f"class {name}({join_parameters(parameters)}):"
    else:
        return f"class {name}:"


def escape_docstring(text: str) -> str:
    """Make arbitrary documentation text safe to place between triple double quotes."""
    escaped = text.strip().replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if escaped.endswith('"'):
        escaped = f"{escaped} "
    return escaped


def new_docstring(text: str) -> list[str]:
    """Create the lines of a docstring for verbatim documentation text.

    Args:
        text (str): The documentation.

    Returns:
        list[str]: The docstring lines, without indentation.
    """
    lines = escape_docstring(text).splitlines() or [""]
    if len(lines) == 1:
        return [f'"""{lines[0]}"""']
    return [f'"""{lines[0]}', *lines[1:], '"""']


def new_comment(text: str) -> list[str]:
    """Create comment lines for verbatim documentation text, one `#:` line per text line."""
    return [f"#: {line}".rstrip() for line in text.strip().splitlines()]


def string_literal(value: str) -> str:
    """Render a string as a double-quoted Python literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'
