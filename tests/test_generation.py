"""End-to-end tests: generated clients are imported and driven against an in-memory runtime."""

from __future__ import annotations

import ast
from urllib.parse import parse_qsl
from xml.etree import ElementTree

import msgspec
import pytest

from service_client_generator.writer import Writer, generate_source
from service_client_generator.writer_dto import GenerationOptions

from conftest import load_service
from fake_runtime import BufferedHttpResponse, Client


def classes(source: str) -> dict[str, ast.ClassDef]:
    return {node.name: node for node in ast.parse(source).body if isinstance(node, ast.ClassDef)}


def annotations(class_def: ast.ClassDef) -> dict[str, str]:
    return {
        node.target.id: ast.unparse(node.annotation)
        for node in class_def.body
        if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name)
    }


class TestWidgetsModule:
    @pytest.fixture(scope="class")
    def source(self, widgets_service):
        return generate_source(widgets_service)

    def test_types(self, source):
        defined = classes(source)
        assert annotations(defined["GetWidgetRequest"]) == {"id": "str"}
        assert annotations(defined["Widget"]) == {"name": "str", "tag": "str | None"}
        assert "Unused" not in defined

    def test_client_interface(self, source):
        interface = classes(source)["Widgets"]
        methods = [node for node in interface.body if isinstance(node, ast.FunctionDef)]
        assert [method.name for method in methods] == ["get_widget"]
        (method,) = methods
        assert [argument.arg for argument in method.args.args] == ["self", "input"]
        assert ast.unparse(method.args.args[1].annotation) == "GetWidgetRequest"
        assert ast.unparse(method.returns) == "Widget"

    def test_client_implementation(self, source):
        client = classes(source)["WidgetsClient"]
        assert [ast.unparse(base) for base in client.bases] == ["Widgets"]
        assert [node.name for node in client.body if isinstance(node, ast.FunctionDef)] == [
            "__init__",
            "_dispatch",
            "get_widget",
        ]

    def test_only_baseline_errors(self, source):
        error_classes = [
            name
            for name, class_def in classes(source).items()
            if any(ast.unparse(base) == "WidgetsServiceError" for base in class_def.bases)
        ]
        assert error_classes == ["WidgetsParseError", "WidgetsUnknownError"]

    def test_deterministic(self, widgets_service, source):
        assert generate_source(widgets_service) == source
        assert generate_source(load_service("widgets.json")) == source

    def test_test_hook(self, widgets_service):
        def hook(service, scope):
            scope.blank(2)
            scope.add(f"HOOKED = {service.name!r}")

        source = generate_source(widgets_service, GenerationOptions(test_hook=hook))
        assert source.rstrip().endswith("HOOKED = 'Widgets'")

    def test_runtime_package(self, widgets_service):
        writer = Writer(widgets_service, GenerationOptions(runtime_package="my_runtime"))
        assert writer.imports[-1].startswith("from my_runtime import Box, BufferedHttpResponse")


class TestRestJsonClient:
    def test_round_trip(self, widgets_service, import_client):
        module = import_client(widgets_service)
        http = Client(BufferedHttpResponse(body=b'{"name": "knob"}'))
        client = module.WidgetsClient("us-east-1", http)

        widget = client.get_widget(module.GetWidgetRequest(id="w 1"))

        assert widget == module.Widget(name="knob")
        assert widget.tag is None
        (request,) = http.requests
        assert request.method == "GET"
        assert request.path == "/widgets/w%201"
        assert request.endpoint_prefix == "widgets"
        assert request.payload is None

    def test_unknown_error(self, widgets_service, import_client):
        module = import_client(widgets_service)
        response = BufferedHttpResponse(
            status=404,
            headers={"x-amzn-errortype": "ResourceNotFoundException:http://internal.example.com/"},
            body=b'{"message": "no widget"}',
        )
        client = module.WidgetsClient("us-east-1", Client(response))

        with pytest.raises(module.WidgetsUnknownError) as info:
            client.get_widget(module.GetWidgetRequest(id="w"))

        assert isinstance(info.value, module.WidgetsServiceError)
        assert info.value.code == "ResourceNotFoundException"
        assert info.value.response is response
        assert str(info.value) == "ResourceNotFoundException: no widget"

    def test_unparseable_response(self, widgets_service, import_client):
        module = import_client(widgets_service)
        client = module.WidgetsClient("us-east-1", Client(BufferedHttpResponse(body=b"<html>")))

        with pytest.raises(module.WidgetsParseError):
            client.get_widget(module.GetWidgetRequest(id="w"))

    def test_http_date_headers(self, make_service, import_client):
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
        module = import_client(service)
        http = Client(BufferedHttpResponse(headers={"Last-Modified": "Wed, 21 Oct 2015 07:28:00 GMT"}))

        output = module.FooClient("us-east-1", http).get(module.In(since=1445412480.0))

        assert output.modified == 1445412480.0
        assert http.requests[0].headers == {"If-Modified-Since": "Wed, 21 Oct 2015 07:28:00 GMT"}


class TestJsonClient:
    def test_request(self, ledger_service, import_client):
        module = import_client(ledger_service)
        http = Client(BufferedHttpResponse(body=b'{"entryId": "e-1"}'))
        client = module.LedgerClient("eu-west-1", http)

        output = client.put_entry(module.PutEntryInput(account="acct", amount=5, payload=b"\x00\x01"))

        assert output.entry_id == "e-1"
        (request,) = http.requests
        assert request.method == "POST"
        assert request.path == "/"
        assert request.content_type == "application/x-amz-json-1.1"
        assert request.headers["x-amz-target"] == "Ledger_20240101.PutEntry"
        assert msgspec.json.decode(request.payload) == {"account": "acct", "amount": 5, "payload": "AAE="}

    def test_operation_without_output(self, ledger_service, import_client):
        module = import_client(ledger_service)
        http = Client(BufferedHttpResponse())
        client = module.LedgerClient("eu-west-1", http)

        assert client.delete_ledger(module.DeleteLedgerInput(name="old")) is None
        assert http.requests[0].headers["x-amz-target"] == "Ledger_20240101.DeleteLedger"

    def test_declared_error(self, ledger_service, import_client):
        module = import_client(ledger_service)
        body = b'{"__type": "com.example.ledger#AccountNotFoundException", "message": "nope"}'
        client = module.LedgerClient("eu-west-1", Client(BufferedHttpResponse(status=400, body=body)))

        with pytest.raises(module.AccountNotFoundException) as info:
            client.put_entry(module.PutEntryInput(account="acct", amount=1))

        assert isinstance(info.value, module.LedgerServiceError)
        assert info.value.code == "AccountNotFoundException"
        assert str(info.value) == "nope"

    def test_self_reference_is_boxed(self, ledger_service, import_client):
        module = import_client(ledger_service)
        entry = module.Entry(id="e")
        assert entry.parent.value is None
        assert not hasattr(entry, "legacy_code")

    def test_recursive_response(self, ledger_service, import_client):
        module = import_client(ledger_service)
        body = b'{"entries": [{"id": "e", "parent": {"id": "p"}, "children": [{"id": "c"}]}]}'
        client = module.LedgerClient("eu-west-1", Client(BufferedHttpResponse(body=body)))

        output = client.list_entries(module.ListEntriesInput(account="acct"))

        (entry,) = output.entries
        assert entry.parent.value.id == "p"
        assert entry.parent.value.parent.value is None
        assert [child.id for child in entry.children] == ["c"]

    def test_recursive_value_encodes(self, ledger_service, import_client):
        module = import_client(ledger_service)
        entry = module.Entry(id="e", parent=module.Box(module.Entry(id="p")))

        encoded = msgspec.json.decode(msgspec.json.encode(entry, enc_hook=module._enc_hook))

        assert encoded["id"] == "e"
        assert encoded["parent"]["id"] == "p"
        assert encoded["parent"].get("parent") is None

    def test_recursive_request(self, make_service, import_client):
        service = make_service(
            {
                "Node": {
                    "type": "structure",
                    "required": ["name"],
                    "members": {"name": {"shape": "String"}, "next": {"shape": "Node"}},
                },
                "String": {"type": "string"},
            },
            {"PutNode": {"http": {"method": "POST", "requestUri": "/"}, "input": {"shape": "Node"}}},
            protocol="json",
        )
        module = import_client(service)
        http = Client(BufferedHttpResponse())

        module.FooClient("us-east-1", http).put_node(module.Node(name="a", next=module.Box(module.Node(name="b"))))

        payload = msgspec.json.decode(http.requests[0].payload)
        assert payload["name"] == "a"
        assert payload["next"]["name"] == "b"
        assert payload["next"].get("next") is None

    def test_members_named_like_builtins(self, make_service, import_client):
        service = make_service(
            {
                "Image": {"type": "structure", "members": {"Bytes": {"shape": "Blob"}}},
                "Labels": {"type": "structure", "members": {"Str": {"shape": "String"}}},
                "Blob": {"type": "blob"},
                "String": {"type": "string"},
            },
            {
                "Detect": {
                    "http": {"method": "POST", "requestUri": "/"},
                    "input": {"shape": "Image"},
                    "output": {"shape": "Labels"},
                }
            },
            protocol="json",
        )
        module = import_client(service)
        http = Client(BufferedHttpResponse(body=b'{"Str": "cat"}'))

        output = module.FooClient("us-east-1", http).detect(module.Image(bytes_=b"\x00"))

        assert output.str_ == "cat"
        assert msgspec.json.decode(http.requests[0].payload) == {"Bytes": "AA=="}


class TestQueryClient:
    def test_request_parameters(self, import_client):
        module = import_client(load_service("queue.json"))
        body = (
            b'<SendMessageResponse xmlns="http://queue.example.com/doc/2012-11-05/">'
            b"<SendMessageResult><MessageId>m-1</MessageId><MD5OfMessageBody>abc</MD5OfMessageBody></SendMessageResult>"
            b"<ResponseMetadata><RequestId>r-1</RequestId></ResponseMetadata>"
            b"</SendMessageResponse>"
        )
        http = Client(BufferedHttpResponse(body=body))
        client = module.QueueClient("us-east-1", http)

        result = client.send_message(
            module.SendMessageRequest(
                queue_url="https://queue.example.com/1",
                message_body="hi",
                delay_seconds=5,
                attributes={"color": "blue"},
                labels=["a", "b"],
            )
        )

        assert result.message_id == "m-1"
        assert result.md5_of_message_body == "abc"
        (request,) = http.requests
        assert request.content_type == "application/x-www-form-urlencoded"
        assert dict(parse_qsl(request.payload.decode("utf-8"))) == {
            "Action": "SendMessage",
            "Version": "2012-11-05",
            "QueueUrl": "https://queue.example.com/1",
            "MessageBody": "hi",
            "DelaySeconds": "5",
            "Attribute.1.Name": "color",
            "Attribute.1.Value": "blue",
            "Labels.member.1": "a",
            "Labels.member.2": "b",
        }

    def test_flattened_list_response(self, import_client):
        module = import_client(load_service("queue.json"))
        body = (
            b"<ListQueuesResponse><ListQueuesResult>"
            b"<QueueUrl>u1</QueueUrl><QueueUrl>u2</QueueUrl>"
            b"</ListQueuesResult></ListQueuesResponse>"
        )
        client = module.QueueClient("us-east-1", Client(BufferedHttpResponse(body=body)))

        assert client.list_queues(module.ListQueuesRequest()).queue_urls == ["u1", "u2"]

    def test_missing_required_member(self, import_client):
        module = import_client(load_service("queue.json"))
        body = b"<SendMessageResponse><SendMessageResult/></SendMessageResponse>"
        client = module.QueueClient("us-east-1", Client(BufferedHttpResponse(body=body)))

        with pytest.raises(module.QueueParseError, match="MD5OfMessageBody"):
            client.send_message(module.SendMessageRequest(queue_url="q", message_body="hi"))

    def test_error_code(self, import_client):
        module = import_client(load_service("queue.json"))
        body = (
            b"<ErrorResponse><Error><Type>Sender</Type>"
            b"<Code>AWS.SimpleQueueService.NonExistentQueue</Code><Message>gone</Message>"
            b"</Error><RequestId>r-2</RequestId></ErrorResponse>"
        )
        client = module.QueueClient("us-east-1", Client(BufferedHttpResponse(status=400, body=body)))

        with pytest.raises(module.QueueDoesNotExist, match="gone"):
            client.send_message(module.SendMessageRequest(queue_url="q", message_body="hi"))


class TestRestXmlClient:
    def test_streaming_payload_and_headers(self, import_client):
        module = import_client(load_service("storage.json"))
        response = BufferedHttpResponse(
            body=b"hello",
            headers={"Content-Length": "5", "x-amz-meta-owner": "me"},
        )
        http = Client(response)
        client = module.StorageClient("us-east-1", http)

        output = client.get_object(module.GetObjectRequest(bucket="b", key="docs/a b.txt", range="bytes=0-4"))

        assert output.body.data == b"hello"
        assert output.content_length == 5
        assert output.metadata == {"owner": "me"}
        assert output.last_modified is None
        (request,) = http.requests
        assert request.path == "/b/docs/a%20b.txt"
        assert request.headers == {"Range": "bytes=0-4"}
        assert request.params == []

    def test_xml_request_body(self, import_client):
        module = import_client(load_service("storage.json"))
        http = Client(BufferedHttpResponse())
        client = module.StorageClient("us-east-1", http)

        tagging = module.Tagging(tag_set=[module.Tag(key="env", value="prod")])
        assert client.put_bucket_tagging(module.PutBucketTaggingRequest(bucket="b", tagging=tagging)) is None

        (request,) = http.requests
        assert request.method == "PUT"
        assert request.params == [("tagging", "")]
        assert request.content_type == "application/xml"
        root = ElementTree.fromstring(request.payload)
        namespace = "{http://storage.example.com/doc/2006-03-01/}"
        assert root.tag == f"{namespace}Tagging"
        assert root.findtext(f"{namespace}TagSet/{namespace}Tag/{namespace}Key") == "env"

    def test_xml_response_body(self, import_client):
        module = import_client(load_service("storage.json"))
        body = (
            b"<ListBucketResult><Name>b</Name><IsTruncated>false</IsTruncated>"
            b"<Contents><Key>a</Key><Size>1</Size></Contents>"
            b"<Contents><Key>c</Key><Size>3</Size></Contents>"
            b"</ListBucketResult>"
        )
        http = Client(BufferedHttpResponse(body=body))
        client = module.StorageClient("us-east-1", http)

        output = client.list_objects(module.ListObjectsRequest(bucket="b", max_keys=2))

        assert output.name == "b"
        assert output.is_truncated is False
        assert [(item.key, item.size) for item in output.contents] == [("a", 1), ("c", 3)]
        assert http.requests[0].params == [("list-type", "2"), ("max-keys", "2")]

    def test_error_document(self, import_client):
        module = import_client(load_service("storage.json"))
        body = b"<Error><Code>NoSuchKey</Code><Message>missing</Message></Error>"
        client = module.StorageClient("us-east-1", Client(BufferedHttpResponse(status=404, body=body)))

        with pytest.raises(module.NoSuchKey, match="missing"):
            client.get_object(module.GetObjectRequest(bucket="b", key="k"))


class TestNameCollisions:
    def test_shapes_named_like_the_service_classes(self, make_service):
        service = make_service(
            {
                "Foo": {"type": "structure", "members": {}},
                "FooClient": {"type": "structure", "members": {}},
            },
            {
                "Get": {
                    "http": {"method": "POST", "requestUri": "/"},
                    "input": {"shape": "Foo"},
                    "output": {"shape": "FooClient"},
                }
            },
        )
        source = generate_source(service)
        defined = classes(source)

        assert [ast.unparse(base) for base in defined["Foo"].bases] == ["ABC"]
        assert [ast.unparse(base) for base in defined["FooClient"].bases] == ["Foo"]
        assert "FooShape" in defined and "FooClientShape" in defined
        assert "def get(self, input: FooShape) -> FooClientShape:" in source
