"""Tests for orch.tools.http module."""

from __future__ import annotations

import io
import json
import urllib.error
from email.message import Message
from unittest.mock import MagicMock, patch

import pytest

from orch.core.result import Err, Ok
from orch.tools.http import HttpClient, HttpError, MockHttpClient, RealHttpClient

URL = "https://api.github.com/repos/Truthdb/truthdb/releases/tags/v1.0.0"


class TestHttpError:
    @pytest.mark.parametrize(
        ("status", "not_found", "auth", "transient"),
        [
            (404, True, False, False),
            (401, False, True, False),
            (403, False, True, False),
            (429, False, False, True),
            (502, False, False, True),
            (0, False, False, True),
            (422, False, False, False),
        ],
    )
    def test_classification(
        self, status: int, not_found: bool, auth: bool, transient: bool
    ) -> None:
        error = HttpError(url=URL, status=status, message="x")
        assert error.is_not_found is not_found
        assert error.is_auth is auth
        assert error.is_transient is transient

    def test_str_with_status(self) -> None:
        error = HttpError(url=URL, status=502, message="Bad Gateway")
        assert str(error) == f"HTTP 502: Bad Gateway ({URL})"

    def test_str_network_error(self) -> None:
        error = HttpError(url=URL, status=0, message="Connection refused")
        assert str(error) == f"Connection refused ({URL})"


def _response(body: bytes) -> MagicMock:
    response = MagicMock()
    response.read.return_value = body
    response.__enter__.return_value = response
    return response


class TestRealHttpClient:
    """RealHttpClient with urlopen mocked out."""

    def test_satisfies_protocol(self) -> None:
        assert isinstance(RealHttpClient(), HttpClient)

    def test_sends_github_headers_and_token(self) -> None:
        client = RealHttpClient(token="secret")
        with patch("urllib.request.urlopen", return_value=_response(b"{}")) as urlopen:
            client.get_json(URL)

        request = urlopen.call_args.args[0]
        assert request.get_header("Authorization") == "Bearer secret"
        assert request.get_header("Accept") == "application/vnd.github+json"
        assert request.get_header("User-agent").startswith("truthdb-orchestrator/")

    def test_no_token_no_auth_header(self) -> None:
        client = RealHttpClient()
        with patch("urllib.request.urlopen", return_value=_response(b"{}")) as urlopen:
            client.get_json(URL)

        assert urlopen.call_args.args[0].get_header("Authorization") is None

    def test_decodes_json(self) -> None:
        body = json.dumps({"tag_name": "v1.0.0", "assets": []}).encode()
        with patch("urllib.request.urlopen", return_value=_response(body)):
            result = RealHttpClient().get_json(URL)

        assert result == Ok({"tag_name": "v1.0.0", "assets": []})

    def test_http_error_keeps_status(self) -> None:
        headers = Message()
        error = urllib.error.HTTPError(URL, 404, "Not Found", headers, io.BytesIO(b""))
        with patch("urllib.request.urlopen", side_effect=error):
            result = RealHttpClient().get_json(URL)

        assert isinstance(result, Err)
        assert result.error.status == 404
        assert result.error.is_not_found

    def test_network_error_is_status_zero(self) -> None:
        with patch("urllib.request.urlopen", side_effect=urllib.error.URLError("refused")):
            result = RealHttpClient().get_json(URL)

        assert isinstance(result, Err)
        assert result.error.status == 0
        assert result.error.is_transient

    def test_invalid_json(self) -> None:
        with patch("urllib.request.urlopen", return_value=_response(b"<html>")):
            result = RealHttpClient().get_json(URL)

        assert isinstance(result, Err)
        assert "JSON parse error" in result.error.message


class TestMockHttpClient:
    def test_unknown_url_is_404(self) -> None:
        result = MockHttpClient().get_json(URL)

        assert isinstance(result, Err)
        assert result.error.is_not_found

    def test_queue_then_repeat_last(self) -> None:
        client = MockHttpClient()
        client.add_json(URL, HttpError(url=URL, status=404, message="Not Found"))
        client.add_json(URL, {"assets": []})

        assert isinstance(client.get_json(URL), Err)
        assert client.get_json(URL) == Ok({"assets": []})
        assert client.get_json(URL) == Ok({"assets": []})
        assert client.calls == [URL, URL, URL]

    def test_set_json_replaces_queue(self) -> None:
        client = MockHttpClient()
        client.add_json(URL, {"a": 1})
        client.add_json(URL, {"a": 2})
        client.set_json(URL, {"a": 3})

        assert client.get_json(URL) == Ok({"a": 3})
