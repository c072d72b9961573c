import email

import pytest
import responses

from keyharbour.apierror import APIError
from keyharbour.keyvalues import KeyValuesApi, build_key_value_multipart_body
from keyharbour.models import CreateKeyValueRequest, UpdateKeyValueRequest

ENDPOINT = "http://kh.example.com"


@pytest.fixture
def rsps():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as mock:
        yield mock


@pytest.fixture
def api():
    return KeyValuesApi(ENDPOINT, retries=0)


def _parse(content_type, data):
    if isinstance(content_type, str):
        content_type = content_type.encode("ascii")
    message = email.message_from_bytes(b"Content-Type: " + content_type + b"\r\n\r\n" + data)
    fields = {}
    for part in message.get_payload():
        name = part.get_param("name", header="content-disposition")
        fields[name] = (part.get_filename(), part.get_payload(decode=True))
    return fields


def test_multipart_plain_value_round_trip():
    body = build_key_value_multipart_body("db_host", "localhost", "2030-01-01", True, False)
    assert body.content_type.startswith("multipart/form-data; boundary=")
    fields = _parse(body.content_type, body.data)
    assert fields["key"] == (None, b"db_host")
    assert fields["value"] == (None, b"localhost")
    assert fields["expires_at"] == (None, b"2030-01-01")
    assert fields["private"] == (None, b"true")
    assert "value_file" not in fields


def test_multipart_value_from_file():
    body = build_key_value_multipart_body("cfg", "file contents", None, None, True)
    fields = _parse(body.content_type, body.data)
    assert fields["value_file"] == ("value", b"file contents")
    assert "value" not in fields
    assert "private" not in fields
    assert b"Content-Type: application/octet-stream" in body.data


def test_multipart_omits_empty_key_and_expiry():
    body = build_key_value_multipart_body("", "v", "", False, False)
    fields = _parse(body.content_type, body.data)
    assert set(fields) == {"value", "private"}
    assert fields["private"] == (None, b"false")


def test_multipart_ends_with_closing_boundary():
    body = build_key_value_multipart_body("k", "v")
    boundary = body.content_type.split("boundary=", 1)[1]
    assert body.data.startswith(f"--{boundary}\r\n".encode())
    assert body.data.endswith(f"\r\n--{boundary}--\r\n".encode())


def test_multipart_boundaries_differ():
    first = build_key_value_multipart_body("k", "v")
    second = build_key_value_multipart_body("k", "v")
    assert first.content_type != second.content_type


def test_list_key_values(rsps, api):
    rsps.add(
        responses.GET,
        ENDPOINT + "/workspaces/ws-1/keyvalues",
        json=[{"key": "a", "value": "1", "expires_at": None, "private": True}],
    )
    items = api.list_key_values("ws-1")
    assert len(items) == 1
    assert items[0].key == "a"
    assert items[0].value == "1"
    assert items[0].private is True


def test_list_key_values_404_returns_empty(rsps, api):
    rsps.add(responses.GET, ENDPOINT + "/workspaces/ws-1/keyvalues", status=404)
    assert api.list_key_values("ws-1") == []


def test_list_key_values_requires_workspace(rsps, api):
    with pytest.raises(ValueError, match="workspace uuid is required"):
        api.list_key_values("")
    assert len(rsps.calls) == 0


def test_get_key_value_raw_body(rsps, api):
    rsps.add(
        responses.GET,
        ENDPOINT + "/keyvalues/k",
        body=b"raw-bytes",
        content_type="text/plain",
    )
    entry = api.get_key_value("k")
    assert entry.key == "k"
    assert entry.value == "raw-bytes"
    assert entry.raw_value == b"raw-bytes"
    assert rsps.calls[0].request.headers["Accept"] == "*/*"


def test_get_key_value_json_body_embeds_key(rsps, api):
    rsps.add(
        responses.GET,
        ENDPOINT + "/keyvalues/k",
        json={"value": "hello", "private": True},
    )
    entry = api.get_key_value("k")
    assert entry.key == "k"
    assert entry.value == "hello"
    assert entry.raw_value == b"hello"
    assert entry.private is True


def test_get_key_value_requires_key(rsps, api):
    with pytest.raises(APIError) as info:
        api.get_key_value("")
    assert info.value.status_code == 400
    assert len(rsps.calls) == 0


def test_create_key_value_sends_multipart(rsps, api):
    rsps.add(responses.POST, ENDPOINT + "/workspaces/ws-1/keyvalues", status=201)
    assert api.create_key_value("ws-1", CreateKeyValueRequest(key="k", payload="v")) is None
    request = rsps.calls[0].request
    fields = _parse(request.headers["Content-Type"], request.body)
    assert fields["key"] == (None, b"k")
    assert fields["value"] == (None, b"v")
    assert fields["private"] == (None, b"false")


def test_create_key_value_wrong_status(rsps, api):
    rsps.add(responses.POST, ENDPOINT + "/workspaces/ws-1/keyvalues", status=200)
    with pytest.raises(APIError) as info:
        api.create_key_value("ws-1", CreateKeyValueRequest(key="k", payload="v"))
    assert info.value.status_code == 200


def test_create_key_value_requires_workspace(rsps, api):
    with pytest.raises(ValueError):
        api.create_key_value("", CreateKeyValueRequest(key="k", payload="v"))
    assert len(rsps.calls) == 0


def test_update_key_value(rsps, api):
    rsps.add(responses.PATCH, ENDPOINT + "/keyvalues/k", status=202)
    assert api.update_key_value("k", UpdateKeyValueRequest(payload="new")) is None
    request = rsps.calls[0].request
    fields = _parse(request.headers["Content-Type"], request.body)
    assert fields["key"] == (None, b"k")
    assert fields["value"] == (None, b"new")
    assert "private" not in fields


def test_update_key_value_wrong_status(rsps, api):
    rsps.add(responses.PATCH, ENDPOINT + "/keyvalues/k", status=404)
    with pytest.raises(APIError) as info:
        api.update_key_value("k", UpdateKeyValueRequest(payload="new"))
    assert info.value.op == "update keyvalue"


def test_delete_key_value(rsps, api):
    rsps.add(responses.DELETE, ENDPOINT + "/keyvalues/k", status=204)
    assert api.delete_key_value("k") is None
    assert len(rsps.calls) == 1
    assert rsps.calls[0].request.method == "DELETE"


def test_delete_key_value_wrong_status(rsps, api):
    rsps.add(responses.DELETE, ENDPOINT + "/keyvalues/k", status=404)
    with pytest.raises(APIError) as info:
        api.delete_key_value("k")
    assert info.value.status_code == 404


def test_delete_key_value_requires_key(rsps, api):
    with pytest.raises(ValueError, match="key is required"):
        api.delete_key_value("")
    assert len(rsps.calls) == 0