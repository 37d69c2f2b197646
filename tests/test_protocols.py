"""Tests for the protocol families: dispatch, and the code each of them emits."""

from __future__ import annotations

import ast

import pytest

from service_client_generator.model import MalformedDefinitionError, UnrecognizedProtocolError
from service_client_generator.protocols import (
    PROTOCOL_GENERATORS,
    Ec2Generator,
    JsonGenerator,
    QueryGenerator,
    RestJsonGenerator,
    RestXmlGenerator,
    protocol_generator_for,
)
from service_client_generator.protocols.rest import split_request_uri
from service_client_generator.writer import generate_source

from conftest import load_service

SAMPLES = {
    "json": "ledger.json",
    "query": "queue.json",
    "ec2": "compute.json",
    "rest-json": "widgets.json",
    "rest-xml": "storage.json",
}


@pytest.fixture(scope="module")
def sources() -> dict[str, str]:
    return {protocol: generate_source(load_service(file_name)) for protocol, file_name in SAMPLES.items()}


class TestDispatch:
    def test_every_tag_has_a_generator(self):
        assert PROTOCOL_GENERATORS == {
            "json": JsonGenerator,
            "query": QueryGenerator,
            "ec2": Ec2Generator,
            "rest-json": RestJsonGenerator,
            "rest-xml": RestXmlGenerator,
        }

    def test_selects_by_tag(self, make_service):
        assert isinstance(protocol_generator_for(make_service(protocol="ec2")), Ec2Generator)

    def test_unknown_protocol(self, make_service):
        service = make_service(protocol="smithy-rpc-v2-cbor")
        with pytest.raises(UnrecognizedProtocolError) as info:
            protocol_generator_for(service)
        assert info.value.protocol == "smithy-rpc-v2-cbor"

        with pytest.raises(UnrecognizedProtocolError):
            generate_source(service)


class TestValidPython:
    @pytest.mark.parametrize("protocol", sorted(SAMPLES))
    def test_compiles(self, sources, protocol):
        compile(sources[protocol], SAMPLES[protocol], "exec")

    @pytest.mark.parametrize("protocol", sorted(SAMPLES))
    def test_preamble(self, sources, protocol):
        module = ast.parse(sources[protocol])
        docstring = ast.get_docstring(module)
        assert docstring is not None and "Do not edit" in docstring
        first_import = module.body[1]
        assert isinstance(first_import, ast.ImportFrom) and first_import.module == "__future__"


class TestJson:
    def test_requests(self, sources):
        source = sources["json"]
        assert 'request.set_content_type("application/x-amz-json-1.1")' in source
        assert 'request.add_header("x-amz-target", "Ledger_20240101.PutEntry")' in source
        assert "return msgspec.json.decode(" in source
        assert "msgspec.json.encode(input, enc_hook=_enc_hook)" in source
        assert "def _dec_hook(type_: Any, obj: Any) -> Any:" in source
        assert "def _serialize_" not in source

    def test_structs_carry_wire_names(self, sources):
        assert 'created_at: float | None = msgspec.field(name="createdAt", default=None)' in sources["json"]
        assert 'aws_type: str | None = msgspec.field(name="type", default=None)' in sources["json"]


class TestQuery:
    def test_requests(self, sources):
        source = sources["query"]
        assert 'params: dict[str, str] = {"Action": "SendMessage", "Version": "2012-11-05"}' in source
        assert 'f"{name}.member.{index}"' in source
        assert '_xml_result(root, "SendMessageResult")' in source

    def test_flattened_members(self, sources):
        source = sources["query"]
        assert 'f"{name}.{index}"' in source
        assert '_deserialize_queue_url_list(node, "QueueUrl") or None' in source


class TestEc2:
    def test_member_keys(self, sources):
        source = sources["ec2"]
        assert '_query_key(name, "InstanceId")' in source
        assert '_query_key(name, "Filter")' in source
        assert '_query_key(name, "DryRun")' in source
        assert '_query_key(name, "Value")' in source

    def test_no_result_wrapper(self, sources):
        assert "_deserialize_describe_instances_result(root)" in sources["ec2"]


class TestRestXml:
    def test_streaming(self, sources):
        source = sources["rest-xml"]
        assert "type StreamingBody = ByteStream" in source
        assert "body: StreamingBody | None = None" in source
        assert "request.set_payload_stream(input.body)" in source
        assert "body=ByteStream(response.body)," in source

    def test_request_layout(self, sources):
        source = sources["rest-xml"]
        assert 'f"/{_uri_label(input.bucket)}/{_uri_greedy_label(input.key)}"' in source
        assert 'params: list[tuple[str, str]] = [("list-type", "2")]' in source
        assert 'request.add_header("Range", _format_scalar(input.range))' in source
        assert 'request.add_header("x-amz-meta-" + key, item)' in source
        assert '_located_optional(response.headers.get("Content-Length"), int)' in source

    def test_xml_payload(self, sources):
        assert (
            '_xml_document("Tagging", "http://storage.example.com/doc/2006-03-01/", _serialize_tagging, input.tagging)'
            in sources["rest-xml"]
        )


class TestRestJson:
    def test_no_hand_written_serde(self, sources):
        source = sources["rest-json"]
        assert "def _serialize_" not in source
        assert "def _deserialize_" not in source
        assert "msgspec.convert(body, type=Widget, strict=False, dec_hook=_dec_hook)" in source

    def test_header_timestamps_are_http_dates(self, make_service):
        service = make_service(
            {
                "In": {
                    "type": "structure",
                    "members": {"Since": {"shape": "Time", "location": "header", "locationName": "If-Modified-Since"}},
                },
                "Out": {
                    "type": "structure",
                    "members": {"Modified": {"shape": "Time", "location": "header", "locationName": "Last-Modified"}},
                },
                "Time": {"type": "timestamp"},
            },
            {"Get": {"http": {"method": "GET", "requestUri": "/"}, "input": {"shape": "In"}, "output": {"shape": "Out"}}},
        )
        source = generate_source(service)
        assert 'request.add_header("If-Modified-Since", _format_http_date(input.since))' in source
        assert '_located_optional(response.headers.get("Last-Modified"), _parse_http_date)' in source

    def test_unmatched_uri_label(self, make_service):
        service = make_service(
            {"In": {"type": "structure", "members": {}}},
            {"Get": {"http": {"method": "GET", "requestUri": "/things/{ThingId}"}, "input": {"shape": "In"}}},
        )
        with pytest.raises(MalformedDefinitionError, match="ThingId"):
            generate_source(service)


def test_split_request_uri():
    assert split_request_uri("/{Bucket}?versioning&max=1") == ("/{Bucket}", [("versioning", ""), ("max", "1")])
    assert split_request_uri("/") == ("/", [])
