"""Generation of the per-service error hierarchy.

Every service gets a base exception, a variant for unparseable error responses, a variant for
error codes that are not known at generation time, and one variant per exception shape the
operations can return. How an error response is matched to a variant depends on the protocol
family and is implemented by the subclasses of `ErrorTypeGenerator`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from service_client_generator import helper, naming, overrides
from service_client_generator.model import Service
from service_client_generator.scope import Scope
from service_client_generator.writer_dto import ErrorVariant

logger = logging.getLogger(__name__)

ERROR_TABLE_NAME = "_ERROR_VARIANTS"
ERROR_MATCHER_NAME = "_error_from_response"


class ErrorTypeGenerator(ABC):
    """Emits the error classes of a service and the function that maps responses to them."""

    def __init__(self, service: Service, reachable_shapes: list[str]):
        self.service = service
        self.reachable_shapes = reachable_shapes

    @property
    def base_name(self) -> str:
        return self.service.error_type_name

    @property
    def parse_error_name(self) -> str:
        return self.service.parse_error_type_name

    @property
    def unknown_error_name(self) -> str:
        return self.service.unknown_error_type_name

    def variant_name(self, shape_name: str) -> str:
        """The class name of the variant of an exception shape.

        Services that keep a data type for their exception shapes need a distinct error name.
        """
        if overrides.keeps_exception_structs(self.service.name):
            return naming.error_type_name(self.service, shape_name)
        return naming.mutate_type_name(self.service, shape_name)

    def variants(self) -> list[ErrorVariant]:
        """Collect one variant per reachable exception shape, in shape name order.

        Returns:
            list[ErrorVariant]: The domain specific variants.
        """
        variants: list[ErrorVariant] = []
        codes: set[str] = set()
        for shape_name in self.reachable_shapes:
            shape = self.service.get_shape(shape_name)
            if not shape.exception:
                continue

            code = shape.error.code if shape.error is not None and shape.error.code else shape_name
            if code in codes:
                logger.warning("Error code '%s' of shape '%s' is already taken; it is not matched.", code, shape_name)
            codes.add(code)

            variants.append(
                ErrorVariant(
                    name=self.variant_name(shape_name),
                    code=code,
                    shape_name=shape_name,
                    documentation=shape.documentation,
                )
            )
        return variants

    def required_imports(self) -> list[str]:
        """Import lines the emitted matcher needs, besides the shared preamble."""
        return []

    def generate(self, scope: Scope) -> None:
        """Emit all error classes, the code table and the matcher function.

        Args:
            scope (Scope): The module scope to write to.
        """
        self._generate_base(scope)
        self._generate_baseline_variants(scope)

        variants = self.variants()
        for variant in variants:
            scope.blank(2)
            with scope.indented(helper.new_class_declaration(variant.name, [self.base_name])):
                if variant.documentation:
                    scope.extend(helper.new_docstring(variant.documentation))
                    scope.blank()
                scope.add(f"code = {helper.string_literal(variant.code)}")

        scope.blank(2)
        table = f"{ERROR_TABLE_NAME}: dict[str, type[{self.base_name}]] = {{"
        if variants:
            scope.add(table)
            for variant in variants:
                scope.add(f"    {helper.string_literal(variant.code)}: {variant.name},")
            scope.add("}")
        else:
            scope.add(f"{table}}}")

        scope.blank(2)
        self._generate_resolver(scope)
        scope.blank(2)
        self.generate_error_matcher(scope)

    def _generate_base(self, scope: Scope) -> None:
        with scope.indented(helper.new_class_declaration(self.base_name, ["Exception"])):
            scope.add(f'"""An error returned by, or while talking to, the {helper.escape_docstring(self.service.name)} service."""')
            scope.blank()
            scope.add('code: str = ""')
            scope.blank()
            with scope.indented(helper.new_function("__init__", ["self", 'message: str = ""'])):
                scope.add("super().__init__(message)")
                scope.add("self.message = message")
            scope.blank()
            scope.add("@override")
            with scope.indented(helper.new_function("__str__", ["self"], "str")):
                scope.add("return self.message")

    def _generate_baseline_variants(self, scope: Scope) -> None:
        scope.blank(2)
        with scope.indented(helper.new_class_declaration(self.parse_error_name, [self.base_name])):
            scope.add('"""The error response could not be parsed."""')

        scope.blank(2)
        with scope.indented(helper.new_class_declaration(self.unknown_error_name, [self.base_name])):
            scope.add('"""The service returned an error code that this client does not know."""')
            scope.blank()
            with scope.indented(
                helper.new_function(
                    "__init__", ["self", "code: str", "message: str", "response: BufferedHttpResponse"]
                )
            ):
                scope.add("super().__init__(message)")
                scope.add("self.code = code")
                scope.add("self.response = response")
            scope.blank()
            scope.add("@override")
            with scope.indented(helper.new_function("__str__", ["self"], "str")):
                scope.add('return f"{self.code}: {self.message}"')

    def _generate_resolver(self, scope: Scope) -> None:
        parameters = ["code: str", "message: str", "response: BufferedHttpResponse"]
        with scope.indented(helper.new_function("_error_for_code", parameters, self.base_name)):
            scope.add(f"variant = {ERROR_TABLE_NAME}.get(code)")
            with scope.indented("if variant is None:"):
                scope.add(f"return {self.unknown_error_name}(code, message, response)")
            scope.add("return variant(message)")

    @abstractmethod
    def generate_error_matcher(self, scope: Scope) -> None:
        """Emit `_error_from_response(response)`, which turns an error response into an exception."""


class JsonErrorTypes(ErrorTypeGenerator):
    """Errors of the `json` protocol: the code is the `__type` body field, after the last `#`."""

    def generate_error_matcher(self, scope: Scope) -> None:
        with scope.indented(helper.new_function(ERROR_MATCHER_NAME, ["response: BufferedHttpResponse"], self.base_name)):
            with scope.indented("try:"):
                scope.add("body = msgspec.json.decode(response.body) if response.body else {}")
            with scope.indented("except msgspec.DecodeError:"):
                scope.add(f'return {self.parse_error_name}(response.body.decode("utf-8", errors="replace"))')
            with scope.indented("if not isinstance(body, dict):"):
                scope.add(f'return {self.parse_error_name}("The error response is not a JSON object.")')
            scope.blank()
            scope.add('code = str(body.get("__type", "")).rpartition("#")[2]')
            scope.add('message = str(body.get("message") or body.get("Message") or "")')
            scope.add("return _error_for_code(code, message, response)")


class RestJsonErrorTypes(ErrorTypeGenerator):
    """Errors of the `rest-json` protocol.

    The code is taken from the `x-amzn-errortype` header, falling back to the `code` or `__type`
    body fields. Anything after a `:` is a URL and is dropped, as is a namespace before a `#`.
    """

    def generate_error_matcher(self, scope: Scope) -> None:
        with scope.indented(helper.new_function(ERROR_MATCHER_NAME, ["response: BufferedHttpResponse"], self.base_name)):
            with scope.indented("try:"):
                scope.add("body = msgspec.json.decode(response.body) if response.body else {}")
            with scope.indented("except msgspec.DecodeError:"):
                scope.add(f'return {self.parse_error_name}(response.body.decode("utf-8", errors="replace"))')
            with scope.indented("if not isinstance(body, dict):"):
                scope.add(f'return {self.parse_error_name}("The error response is not a JSON object.")')
            scope.blank()
            scope.add('raw_code = response.headers.get("x-amzn-errortype") or body.get("code") or body.get("__type") or ""')
            scope.add('code = str(raw_code).partition(":")[0].rpartition("#")[2]')
            scope.add('message = str(body.get("message") or body.get("Message") or "")')
            scope.add("return _error_for_code(code, message, response)")


class XmlErrorTypes(ErrorTypeGenerator):
    """Errors of the XML based protocols (`query`, `ec2` and `rest-xml`).

    The first `Error` element of the document carries `Code` and `Message`, whether it is wrapped
    in `ErrorResponse`, in the `Response/Errors` of EC2, or is the document root.
    """

    def required_imports(self) -> list[str]:
        return ["from xml.etree import ElementTree"]

    def generate_error_matcher(self, scope: Scope) -> None:
        with scope.indented(helper.new_function(ERROR_MATCHER_NAME, ["response: BufferedHttpResponse"], self.base_name)):
            with scope.indented("try:"):
                scope.add("root = ElementTree.fromstring(response.body)")
            with scope.indented("except ElementTree.ParseError:"):
                scope.add(f'return {self.parse_error_name}(response.body.decode("utf-8", errors="replace"))')
            scope.blank()
            scope.add('error = next((node for node in root.iter() if node.tag.rpartition("}")[2] == "Error"), None)')
            with scope.indented("if error is None:"):
                scope.add(f'return {self.parse_error_name}("The error response has no Error element.")')
            scope.blank()
            scope.add('fields = {child.tag.rpartition("}")[2]: (child.text or "").strip() for child in error}')
            scope.add('return _error_for_code(fields.get("Code", ""), fields.get("Message", ""), response)')

