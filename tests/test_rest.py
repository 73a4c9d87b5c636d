"""Tests for the drive API service client."""

from __future__ import annotations

import pytest

from onedrive_converter.errors import RemoteCallFailed, TransportError
from onedrive_converter.rest import ENDPOINTS, ConversionServiceClient


def _service(client) -> ConversionServiceClient:
    return ConversionServiceClient(client, base_url="https://graph.test/v1.0", timeout=12)


def test_endpoint_arguments_are_derived_from_templates():
    assert ENDPOINTS["create_upload"].arguments() == ["filename"]
    assert ENDPOINTS["convert"].arguments() == ["itemid", "format"]
    assert ENDPOINTS["delete"].arguments() == ["itemid"]


def test_create_upload_posts_json_body(fake_http_client, make_response):
    client = fake_http_client({("POST", "createUploadSession"): make_response(200, {"uploadUrl": "https://u"})})

    result = _service(client).call("create_upload", {"filename": "ns%2Fhash.docx"}, '{"item": {}}')

    assert result == {"uploadUrl": "https://u"}
    call = client.calls[0]
    assert call.url == "https://graph.test/v1.0/me/drive/special/approot:/ns%2Fhash.docx:/createUploadSession"
    assert call.headers == {"Content-Type": "application/json"}
    assert call.body == '{"item": {}}'
    assert call.timeout == 12
    assert call.allow_redirects is True


def test_convert_returns_raw_header_lines_without_following_redirects(fake_http_client, make_response):
    lines = ["HTTP/1.1 302 Found", "Location: https://example/result"]
    client = fake_http_client({("GET", "/content"): make_response(302, header_lines=lines)})

    result = _service(client).call("convert", {"itemid": "ITEM", "format": "pdf"})

    assert result == lines
    assert client.calls[0].url == "https://graph.test/v1.0/me/drive/items/ITEM/content?format=pdf"
    assert client.calls[0].allow_redirects is False
    assert client.calls[0].headers == {}


def test_delete_with_empty_body_returns_empty_dict(fake_http_client, make_response):
    client = fake_http_client({("DELETE", "/items/ITEM"): make_response(204)})

    assert _service(client).call("delete", {"itemid": "ITEM"}) == {}
    assert client.calls[0].method == "DELETE"


def test_non_json_body_is_treated_as_empty(fake_http_client, make_response):
    client = fake_http_client({("POST", "createUploadSession"): make_response(200, content=b"<html>ok</html>")})

    assert _service(client).call("create_upload", {"filename": "f"}, "{}") == {}


def test_http_error_raises_remote_call_failed(fake_http_client, make_response):
    client = fake_http_client({("DELETE", "/items/"): make_response(404, content=b'{"error": "itemNotFound"}')})

    with pytest.raises(RemoteCallFailed) as exc:
        _service(client).call("delete", {"itemid": "gone"})

    assert exc.value.status == 404
    assert "itemNotFound" in exc.value.body
    assert exc.value.operation == "delete"


def test_transport_error_propagates_unchanged(fake_http_client):
    error = TransportError("dns failure")
    client = fake_http_client({("GET", "/content"): error})

    with pytest.raises(TransportError) as exc:
        _service(client).call("convert", {"itemid": "ITEM", "format": "pdf"})

    assert exc.value is error


def test_unknown_operation_rejected(fake_http_client):
    with pytest.raises(ValueError):
        _service(fake_http_client()).call("rename", {})


def test_missing_parameter_rejected(fake_http_client):
    client = fake_http_client()
    with pytest.raises(ValueError, match="format"):
        _service(client).call("convert", {"itemid": "ITEM"})
    assert client.calls == []
