"""Tests for the httpx.Response / RawResponse bridge."""

from __future__ import annotations

import httpx

from alphatrader.client.response import extract_response_data, to_raw_response
from alphatrader.models import RawResponse


def _make_response(status_code: int = 200, text: str = "", headers=None) -> httpx.Response:
    return httpx.Response(
        status_code=status_code,
        text=text,
        headers=headers or {},
        request=httpx.Request("GET", "https://api.example.com/test"),
    )


class TestToRawResponse:
    def test_copies_status_body_and_headers(self) -> None:
        raw = to_raw_response(
            _make_response(200, '{"a": 1}', {"content-type": "application/json"})
        )
        assert raw.status_code == 200
        assert raw.body == '{"a": 1}'
        assert raw.headers["content-type"] == "application/json"

    def test_error_status(self) -> None:
        raw = to_raw_response(_make_response(500, "oops"))
        assert raw.status_code == 500
        assert raw.ok is False

    def test_only_200_is_ok(self) -> None:
        assert RawResponse(status_code=200).ok is True
        assert RawResponse(status_code=201).ok is False
        assert RawResponse(status_code=204).ok is False


class TestExtractResponseData:
    def test_json_body(self) -> None:
        assert extract_response_data(RawResponse(status_code=200, body='{"x": [1]}')) == {
            "x": [1]
        }

    def test_text_body(self) -> None:
        assert extract_response_data(RawResponse(status_code=200, body="hello")) == "hello"

    def test_empty_body(self) -> None:
        assert extract_response_data(RawResponse(status_code=204)) is None
