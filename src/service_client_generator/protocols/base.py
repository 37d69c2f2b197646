"""The interface every protocol family implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar

from service_client_generator import helper, naming
from service_client_generator.error_types import ErrorTypeGenerator
from service_client_generator.model import Service, Shape
from service_client_generator.scope import Scope
from service_client_generator.writer_dto import MethodInfo


def serializer_name(service: Service, shape_name: str) -> str:
    """The name of the generated serializer function of a shape."""
    return f"_serialize_{helper.to_snake_case(naming.mutate_type_name(service, shape_name))}"


def deserializer_name(service: Service, shape_name: str) -> str:
    """The name of the generated deserializer function of a shape."""
    return f"_deserialize_{helper.to_snake_case(naming.mutate_type_name(service, shape_name))}"


class ProtocolGenerator(ABC):
    """Emits everything that depends on the wire protocol of a service.

    Attributes:
        tag: The protocol tag this generator handles.
        error_types: The error type generator of the protocol family.
        timestamp_type: The Python type timestamps are represented with.
        auto_serialize: Whether msgspec encodes request types unaided, so that no serializer functions
            are emitted and the struct fields carry wire names instead.
        auto_deserialize: Like `auto_serialize`, for response types.
    """

    tag: ClassVar[str]
    error_types: ClassVar[type[ErrorTypeGenerator]]
    timestamp_type: ClassVar[str] = "float"
    auto_serialize: ClassVar[bool] = False
    auto_deserialize: ClassVar[bool] = False

    def required_imports(self, service: Service) -> list[str]:
        """Import lines the emitted code needs beyond the shared preamble.

        Args:
            service (Service): The service being generated.

        Returns:
            list[str]: The import lines.
        """
        return []

    def generate_prelude(self, service: Service, scope: Scope) -> None:
        """Emit protocol specific module level helpers; nothing by default."""

    def method_infos(self, service: Service) -> list[MethodInfo]:
        """Collect the client methods, ordered by operation name.

        Args:
            service (Service): The service being generated.

        Returns:
            list[MethodInfo]: One entry per operation.
        """
        infos: list[MethodInfo] = []
        for operation_name in sorted(service.operations):
            operation = service.operations[operation_name]
            input_shape = operation.input.shape if operation.input is not None else None
            output_shape = operation.output.shape if operation.output is not None else None
            infos.append(
                MethodInfo(
                    operation_name=operation_name,
                    method_name=naming.generate_method_name(operation_name),
                    operation=operation,
                    input_shape=input_shape,
                    output_shape=output_shape,
                    input_type=naming.mutate_type_name(service, input_shape) if input_shape else None,
                    output_type=naming.mutate_type_name(service, output_shape) if output_shape else None,
                )
            )
        return infos

    def generate_method_signatures(self, service: Service, scope: Scope) -> None:
        """Emit the abstract methods of the client interface.

        Args:
            service (Service): The service being generated.
            scope (Scope): The scope of the interface class body.
        """
        for index, info in enumerate(self.method_infos(service)):
            if index:
                scope.blank()
            scope.add(helper.new_decorator("abstractmethod"))
            with scope.indented(helper.new_function(info.method_name, info.parameters, info.return_type)):
                if info.operation.documentation:
                    scope.extend(helper.new_docstring(info.operation.documentation))
                else:
                    scope.add(f'"""Calls the `{info.operation_name}` operation."""')

    @abstractmethod
    def generate_method_impls(self, service: Service, scope: Scope) -> None:
        """Emit the concrete methods of the client implementation.

        Each method builds a `SignedRequest` from its input, dispatches it through `self._dispatch`,
        and parses the response into its output type. Error responses are raised by `_dispatch`.

        Args:
            service (Service): The service being generated.
            scope (Scope): The scope of the client class body.
        """

    def generate_serializer(self, name: str, shape: Shape, service: Service, scope: Scope) -> bool:
        """Emit the serializer of a shape that is sent to the service.

        Only called when `auto_serialize` is not set.

        Args:
            name (str): The name of the shape.
            shape (Shape): The shape.
            service (Service): The service being generated.
            scope (Scope): The module scope.

        Returns:
            bool: Whether anything was emitted.
        """
        return False

    def generate_deserializer(self, name: str, shape: Shape, service: Service, scope: Scope) -> bool:
        """Emit the deserializer of a shape that is received from the service; see `generate_serializer`."""
        return False

    @staticmethod
    def add_request(scope: Scope, service: Service, info: MethodInfo, path: str) -> None:
        """Emit the creation of the `SignedRequest` of a method.

        Args:
            scope (Scope): The method body.
            service (Service): The service being generated.
            info (MethodInfo): The method.
            path (str): An expression for the request path.
        """
        method = helper.string_literal(info.operation.http.method)
        signing_name = helper.string_literal(service.signing_name)
        scope.add(f"request = SignedRequest({method}, {signing_name}, self.region, {path})")
        if service.metadata.endpoint_prefix:
            scope.add(f"request.set_endpoint_prefix({helper.string_literal(service.metadata.endpoint_prefix)})")


SCALAR_HELPERS = '''
def _format_scalar(value: str | int | float | bool | bytes) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    return str(value)
'''

# `Box` breaks self-references of structs; msgspec sees the boxed value instead.
BOX_HOOK_IMPORTS = ["from typing import Any, get_args, get_origin"]

BOX_HOOKS = '''
def _enc_hook(obj: Any) -> Any:
    if isinstance(obj, Box):
        return obj.value
    raise NotImplementedError(f"Cannot encode objects of type {type(obj).__name__}.")


def _dec_hook(type_: Any, obj: Any) -> Any:
    if type_ is Box or get_origin(type_) is Box:
        inner = get_args(type_)[0] if get_args(type_) else Any
        return Box(msgspec.convert(obj, type=inner, strict=False, dec_hook=_dec_hook))
    raise NotImplementedError(f"Cannot decode objects of type {type_}.")
'''


def generate_helpers(scope: Scope, helpers: str) -> None:
    """Emit a block of fixed helper functions, separated from the preceding code by two blank lines."""
    scope.blank(2)
    scope.extend(helpers.strip("\n").splitlines())
