"""Tests for the synchronous HTTP transport."""

from __future__ import annotations

import httpx
import pytest

from alphatrader.client import HttpTransport
from alphatrader.exceptions import TransportError
from alphatrader.models import RequestConfig, Settings


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_settings(
    api_url: str = "https://api.example.com",
    token: str | None = "tok",
    partner_id: str | None = "partner",
) -> Settings:
    return Settings(
        api_url=api_url,
        token=token,
        partner_id=partner_id,
        request=RequestConfig(timeout=5),
    )


def _recording_transport(status_code: int = 200, body: str = "{}"):
    """MockTransport that records every request it receives."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status_code, text=body)

    return httpx.MockTransport(handler), seen


# ---------------------------------------------------------------------------
# Context manager
# ---------------------------------------------------------------------------


class TestContextManager:
    def test_enter_creates_client(self) -> None:
        transport = HttpTransport(_make_settings())
        assert transport._client is None
        with transport:
            assert transport._client is not None
        assert transport._client is None

    def test_request_opens_client_lazily(self) -> None:
        mock, _ = _recording_transport()
        transport = HttpTransport(_make_settings(), transport=mock)
        transport.get("/api/x")
        assert transport._client is not None
        transport.close()

    def test_close_twice(self) -> None:
        transport = HttpTransport(_make_settings())
        transport.close()
        transport.close()


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class TestRequests:
    def test_get_joins_base_url_and_path(self) -> None:
        mock, seen = _recording_transport()
        with HttpTransport(_make_settings(), transport=mock) as transport:
            transport.get("/api/companyprofiles/abc")
        assert len(seen) == 1
        assert seen[0].method == "GET"
        assert str(seen[0].url) == "https://api.example.com/api/companyprofiles/abc"

    def test_post(self) -> None:
        mock, seen = _recording_transport(status_code=201, body="")
        with HttpTransport(_make_settings(), transport=mock) as transport:
            raw = transport.post("/api/securityorders")
        assert seen[0].method == "POST"
        assert raw.status_code == 201
        assert raw.body == ""

    def test_response_is_reduced(self) -> None:
        mock, _ = _recording_transport(body='{"id": "abc"}')
        with HttpTransport(_make_settings(), transport=mock) as transport:
            raw = transport.get("/api/x")
        assert raw.status_code == 200
        assert raw.body == '{"id": "abc"}'
        assert raw.ok is True

    def test_error_status_is_returned_not_raised(self) -> None:
        mock, _ = _recording_transport(status_code=404, body='{"message": "missing"}')
        with HttpTransport(_make_settings(), transport=mock) as transport:
            raw = transport.get("/api/securityorders/xyz")
        assert raw.status_code == 404
        assert raw.ok is False


# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------


class TestHeaders:
    def test_all_auth_headers(self) -> None:
        mock, seen = _recording_transport()
        with HttpTransport(_make_settings(), transport=mock) as transport:
            transport.get("/api/x")
        headers = seen[0].headers
        assert headers["accept"] == "*/*"
        assert headers["authorization"] == "Bearer tok"
        assert headers["x-authorization"] == "partner"

    def test_headers_omitted_when_not_configured(self) -> None:
        mock, seen = _recording_transport()
        settings = _make_settings(token=None, partner_id=None)
        with HttpTransport(settings, transport=mock) as transport:
            transport.get("/api/x")
        headers = seen[0].headers
        assert headers["accept"] == "*/*"
        assert "authorization" not in headers
        assert "x-authorization" not in headers

    def test_token_from_env_source(self, monkeypatch) -> None:
        monkeypatch.setenv("MY_GAME_TOKEN", "from-env")
        mock, seen = _recording_transport()
        settings = _make_settings(token="env:MY_GAME_TOKEN")
        with HttpTransport(settings, transport=mock) as transport:
            transport.get("/api/x")
        assert seen[0].headers["authorization"] == "Bearer from-env"


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


class TestErrors:
    def test_connect_error_raises_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        transport = HttpTransport(_make_settings(), transport=httpx.MockTransport(handler))
        with pytest.raises(TransportError, match="GET /api/x failed"):
            transport.get("/api/x")

    def test_timeout_raises_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        transport = HttpTransport(_make_settings(), transport=httpx.MockTransport(handler))
        with pytest.raises(TransportError) as exc_info:
            transport.get("/api/x")
        assert exc_info.value.exit_code == 6
        assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)

    def test_invalid_url_raises_transport_error(self) -> None:
        mock, seen = _recording_transport()
        transport = HttpTransport(_make_settings(), transport=mock)
        with pytest.raises(TransportError, match="GET /api/a\x01b failed"):
            transport.get("/api/a\x01b")
        assert seen == []
