from __future__ import annotations

import httpx
import pytest

from app.config import settings
from app.errors import AuthenticationError, RateLimitError, UpstreamError
from app.tools import perplexity_search


class _FakeResponse:
    def __init__(self, payload=None, status_code: int = 200, text: str = ""):
        self._payload = payload
        self.status_code = status_code
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("Expecting value")
        return self._payload


def _install(monkeypatch, response: _FakeResponse, captured: list[dict] | None = None):
    async def fake_post(self, url: str, **kwargs):  # noqa: ARG001
        if captured is not None:
            captured.append({"url": url, **kwargs})
        return response

    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post)


@pytest.mark.asyncio
async def test_search_returns_message_content(monkeypatch):
    monkeypatch.setattr(settings, "perplexity_model", "sonar")
    monkeypatch.setattr(settings, "search_recency_filter", "month")
    captured: list[dict] = []
    _install(
        monkeypatch,
        _FakeResponse({"choices": [{"message": {"content": '{"a": 1}'}}]}),
        captured,
    )

    content = await perplexity_search.search(
        "reviews for Widget X", api_key="pplx-test", system_prompt="Return JSON."
    )

    assert content == '{"a": 1}'
    request = captured[0]
    assert request["url"].endswith("/chat/completions")
    assert request["headers"]["Authorization"] == "Bearer pplx-test"
    body = request["json"]
    assert body["model"] == "sonar"
    assert body["search_recency_filter"] == "month"
    assert body["messages"][0] == {"role": "system", "content": "Return JSON."}
    assert body["messages"][1]["content"] == "reviews for Widget X"


@pytest.mark.asyncio
async def test_search_returns_empty_string_without_choices(monkeypatch):
    _install(monkeypatch, _FakeResponse({"choices": []}))

    assert await perplexity_search.search("q", api_key="k", system_prompt="s") == ""


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status_code", "error_type"),
    [
        (429, RateLimitError),
        (401, AuthenticationError),
        (403, AuthenticationError),
        (500, UpstreamError),
    ],
)
async def test_search_maps_error_status(monkeypatch, status_code, error_type):
    _install(monkeypatch, _FakeResponse(status_code=status_code, text="boom"))

    with pytest.raises(error_type) as exc_info:
        await perplexity_search.search("q", api_key="k", system_prompt="s")

    assert str(status_code) in str(exc_info.value)


@pytest.mark.asyncio
async def test_search_wraps_transport_errors(monkeypatch):
    async def fake_post(self, url: str, **kwargs):  # noqa: ARG001
        raise httpx.ConnectTimeout("timed out")

    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post)

    with pytest.raises(UpstreamError, match="Perplexity request failed"):
        await perplexity_search.search("q", api_key="k", system_prompt="s")


@pytest.mark.asyncio
async def test_search_rejects_non_json_body(monkeypatch):
    _install(monkeypatch, _FakeResponse(None, text="<html>"))

    with pytest.raises(UpstreamError, match="non-JSON"):
        await perplexity_search.search("q", api_key="k", system_prompt="s")


def test_source_label_uses_configured_model(monkeypatch):
    monkeypatch.setattr(settings, "perplexity_model", "sonar-pro")
    assert perplexity_search.source_label() == "perplexity:sonar-pro"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"choices": [{"message": None}]},
        [{"message": {"content": "x"}}],
        {"choices": "none"},
        {"choices": [{"message": {"content": {"a": 1}}}]},
    ],
)
async def test_search_rejects_unexpected_body_shape(monkeypatch, payload):
    _install(monkeypatch, _FakeResponse(payload))

    with pytest.raises(UpstreamError, match="unexpected body"):
        await perplexity_search.search("q", api_key="k", system_prompt="s")
