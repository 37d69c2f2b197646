"""The `json` protocol: every operation is a POST to `/` with a JSON body and an `X-Amz-Target` header."""

from __future__ import annotations

from typing import override

from service_client_generator import helper
from service_client_generator.error_types import JsonErrorTypes
from service_client_generator.model import Service
from service_client_generator.protocols.base import BOX_HOOK_IMPORTS, BOX_HOOKS, ProtocolGenerator, generate_helpers
from service_client_generator.scope import Scope
from service_client_generator.shape_types import ProtocolTag


class JsonGenerator(ProtocolGenerator):
    tag = ProtocolTag.JSON
    error_types = JsonErrorTypes
    timestamp_type = "float"
    auto_serialize = True
    auto_deserialize = True

    @override
    def required_imports(self, service: Service) -> list[str]:
        return list(BOX_HOOK_IMPORTS)

    @override
    def generate_prelude(self, service: Service, scope: Scope) -> None:
        generate_helpers(scope, BOX_HOOKS)

    def content_type(self, service: Service) -> str:
        return f"application/x-amz-json-{service.metadata.json_version or '1.0'}"

    def target(self, service: Service, operation_name: str) -> str:
        prefix = service.metadata.target_prefix
        return f"{prefix}.{operation_name}" if prefix else operation_name

    @override
    def generate_method_impls(self, service: Service, scope: Scope) -> None:
        for index, info in enumerate(self.method_infos(service)):
            if index:
                scope.blank()
            scope.add(helper.new_decorator("override"))
            with scope.indented(helper.new_function(info.method_name, info.parameters, info.return_type)):
                self.add_request(scope, service, info, helper.string_literal("/"))
                scope.add(f"request.set_content_type({helper.string_literal(self.content_type(service))})")
                target = helper.string_literal(self.target(service, info.operation_name))
                scope.add(f'request.add_header("x-amz-target", {target})')
                if info.input_type is not None:
                    scope.add("request.set_payload(msgspec.json.encode(input, enc_hook=_enc_hook))")
                else:
                    scope.add('request.set_payload(b"{}")')
                scope.blank()
                scope.add("response = self._dispatch(request)")

                if info.output_type is None:
                    scope.add("return None")
                    continue

                with scope.indented("try:"):
                    scope.add(
                        f'return msgspec.json.decode(response.body or b"{{}}", type={info.output_type}, '
                        "dec_hook=_dec_hook)"
                    )
                with scope.indented("except msgspec.DecodeError as e:"):
                    scope.add(f"raise {service.parse_error_type_name}(str(e)) from e")
