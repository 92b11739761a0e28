from __future__ import annotations

import time
from typing import Any

import httpx

from app.config import settings
from app.errors import AuthenticationError, RateLimitError, UpstreamError
from app.services import logger as log_service

PROVIDER = "perplexity"


def source_label() -> str:
    """Identifier recorded in ``apiSourcesUsed`` for grounded search calls."""
    return f"{PROVIDER}:{settings.perplexity_model}"


def build_payload(query: str, system_prompt: str) -> dict[str, Any]:
    return {
        "model": settings.perplexity_model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": query},
        ],
        "temperature": settings.search_temperature,
        "top_p": settings.search_top_p,
        "max_tokens": settings.search_max_tokens,
        "return_images": False,
        "return_related_questions": False,
        "search_recency_filter": settings.search_recency_filter,
    }


def _raise_for_status(response: httpx.Response) -> None:
    status = response.status_code
    if status < 400:
        return
    if status == 429:
        raise RateLimitError(
            f"Perplexity API error: {status}", details={"status_code": status}
        )
    if status in (401, 403):
        raise AuthenticationError(
            f"Perplexity API error: {status}", details={"status_code": status}
        )
    raise UpstreamError(
        f"Perplexity API error: {status}",
        status_code=status,
        details={"body": response.text[:500]},
    )


def _message_content(payload: Any) -> str:
    """First choice's message text; "" when there is none."""
    unexpected = UpstreamError("Perplexity returned an unexpected body")
    if not isinstance(payload, dict):
        raise unexpected
    choices = payload.get("choices") or []
    if not isinstance(choices, list):
        raise unexpected
    if not choices:
        return ""
    choice = choices[0]
    message = choice.get("message") if isinstance(choice, dict) else None
    if not isinstance(message, dict):
        raise unexpected
    content = message.get("content") or ""
    if not isinstance(content, str):
        raise unexpected
    return content


async def search(
    query: str,
    *,
    api_key: str,
    system_prompt: str,
    agent: str = "search",
) -> str:
    """Run one grounded chat completion and return the raw message text.

    Returns an empty string when the provider answers without content; the
    caller decides what an empty answer means.
    """
    url = f"{settings.perplexity_base_url.rstrip('/')}/chat/completions"
    t0 = time.monotonic()

    try:
        async with httpx.AsyncClient(timeout=settings.search_timeout_seconds) as client:
            response = await client.post(
                url,
                json=build_payload(query, system_prompt),
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
            )
            _raise_for_status(response)
            payload = response.json()
    except httpx.HTTPError as e:
        elapsed_ms = int((time.monotonic() - t0) * 1000)
        log_service.log_agent_call(
            agent, PROVIDER, settings.perplexity_model,
            duration_ms=elapsed_ms, status="error", error=str(e),
        )
        raise UpstreamError(f"Perplexity request failed: {e}") from e
    except ValueError as e:
        log_service.log_agent_call(
            agent, PROVIDER, settings.perplexity_model,
            duration_ms=int((time.monotonic() - t0) * 1000), status="error", error=str(e),
        )
        raise UpstreamError("Perplexity returned a non-JSON body") from e
    except (RateLimitError, AuthenticationError, UpstreamError) as e:
        elapsed_ms = int((time.monotonic() - t0) * 1000)
        log_service.log_agent_call(
            agent, PROVIDER, settings.perplexity_model,
            duration_ms=elapsed_ms, status="error", error=str(e),
        )
        raise

    try:
        content = _message_content(payload)
    except UpstreamError as e:
        log_service.log_agent_call(
            agent, PROVIDER, settings.perplexity_model,
            duration_ms=int((time.monotonic() - t0) * 1000), status="error", error=str(e),
        )
        raise

    log_service.log_agent_call(
        agent,
        PROVIDER,
        settings.perplexity_model,
        duration_ms=int((time.monotonic() - t0) * 1000),
        response_chars=len(content),
    )
    return content
