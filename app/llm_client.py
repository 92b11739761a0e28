"""Secondary LLM gateway client (OpenAI-compatible SDK)."""
from __future__ import annotations

import json
import time
from typing import Any

import openai
from openai import AsyncOpenAI

from app.config import settings
from app.errors import (
    AuthenticationError,
    ConfigurationError,
    PaymentRequiredError,
    RateLimitError,
    UpstreamError,
)
from app.services import logger as log_service


def get_client() -> AsyncOpenAI:
    """Get the gateway client via the OpenAI-compatible SDK."""
    base_url = settings.llm_base_url.strip() or "https://ai.gateway.lovable.dev/v1"
    return AsyncOpenAI(api_key=settings.llm_api_key, base_url=base_url)


def get_model() -> str:
    return settings.llm_model


_client: AsyncOpenAI | None = None


def client() -> AsyncOpenAI:
    """Get or create the LLM client."""
    global _client
    if _client is None:
        _client = get_client()
    return _client


def require_api_key() -> None:
    if not settings.llm_api_key:
        raise ConfigurationError(
            "LLM_API_KEY is not configured",
            error_code="MISSING_LLM_KEY",
        )


def _translate_error(exc: openai.OpenAIError) -> Exception:
    if isinstance(exc, openai.RateLimitError):
        return RateLimitError("Rate limits exceeded, please try again later.")
    if isinstance(exc, openai.APIStatusError):
        status = exc.status_code
        if status == 402:
            return PaymentRequiredError(
                "Payment required, please add funds to your AI gateway workspace."
            )
        if status in (401, 403):
            return AuthenticationError(f"AI gateway error: {status}")
        return UpstreamError(f"AI gateway error: {status}", status_code=status)
    return UpstreamError(f"AI gateway error: {exc}")


async def complete(
    *,
    caller: str,
    system: str,
    user: str,
    tools: list[dict[str, Any]] | None = None,
    tool_choice: dict[str, Any] | None = None,
) -> Any:
    """Run one chat completion, mapping SDK errors onto the pipeline taxonomy."""
    model = get_model()
    kwargs: dict[str, Any] = {
        "model": model,
        "messages": [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ],
    }
    if tools:
        kwargs["tools"] = tools
    if tool_choice:
        kwargs["tool_choice"] = tool_choice

    t0 = time.monotonic()
    try:
        response = await client().chat.completions.create(**kwargs)
    except openai.OpenAIError as e:
        log_service.log_llm_call(
            model=model,
            caller=caller,
            duration_ms=int((time.monotonic() - t0) * 1000),
            status="error",
            error=str(e),
        )
        raise _translate_error(e) from e

    usage = getattr(response, "usage", None)
    log_service.log_llm_call(
        model=model,
        caller=caller,
        input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
        output_tokens=getattr(usage, "completion_tokens", 0) or 0,
        duration_ms=int((time.monotonic() - t0) * 1000),
    )
    return response


def response_text(response: Any) -> str:
    choices = getattr(response, "choices", None) or []
    if not choices:
        return ""
    return getattr(choices[0].message, "content", None) or ""


def tool_arguments(response: Any, name: str) -> dict[str, Any] | None:
    """Arguments of the first call to tool ``name``, or None when absent/invalid."""
    choices = getattr(response, "choices", None) or []
    if not choices:
        return None
    for tc in getattr(choices[0].message, "tool_calls", None) or []:
        function = getattr(tc, "function", None)
        if function is None or function.name != name:
            continue
        try:
            parsed = json.loads(function.arguments or "{}")
        except json.JSONDecodeError:
            return None
        return parsed if isinstance(parsed, dict) else None
    return None
