"""Loguru setup and structured log helpers for the research pipeline.

Each helper writes one line tagged with an upper-case event name
(``AGENT_CALL``, ``LLM_CALL``, ``DB_OPERATION``, ``EVENT``) followed by a dict
of fields, so the daily log files can be grepped per event type. Failures
get a ``_FAILED`` suffix and are logged at ERROR level.
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from app.config import settings

LOG_DIR = Path("logs")

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

# Libraries that log through stdlib logging
NOISY_LOGGERS = (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "fastapi",
    "httpx",
    "httpcore",
    "hpack",
    "openai._base_client",
    "postgrest",
    "asyncio",
)


def configure_logging() -> None:
    LOG_DIR.mkdir(exist_ok=True)
    logger.remove()
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=settings.app_log_level.upper(),
        colorize=True,
    )
    logger.add(
        LOG_DIR / "market_research_{time:YYYY-MM-DD}.log",
        format=FILE_FORMAT,
        level="DEBUG",
        rotation="00:00",
        retention="7 days",
        compression="zip",
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(settings.noisy_log_level.upper())


configure_logging()


def _emit(tag: str, fields: dict[str, Any], error: Optional[str] = None) -> None:
    record: dict[str, Any] = {"timestamp": datetime.now(timezone.utc).isoformat(), **fields}
    if error:
        record["error"] = error
        logger.error(f"{tag}_FAILED: {record}")
    else:
        logger.info(f"{tag}: {record}")


def log_agent_call(
    agent: str,
    provider: str,
    model: str,
    duration_ms: int = 0,
    response_chars: int = 0,
    status: str = "success",
    error: Optional[str] = None,
) -> None:
    """One grounded search call made by a research agent."""
    _emit(
        "AGENT_CALL",
        {
            "agent": agent,
            "provider": provider,
            "model": model,
            "duration_ms": duration_ms,
            "response_chars": response_chars,
            "status": status,
        },
        error,
    )


def log_llm_call(
    model: str,
    caller: str,
    input_tokens: int = 0,
    output_tokens: int = 0,
    duration_ms: int = 0,
    status: str = "success",
    error: Optional[str] = None,
) -> None:
    """One call to the secondary LLM gateway (insights, strategy)."""
    _emit(
        "LLM_CALL",
        {
            "model": model,
            "caller": caller,
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "total_tokens": input_tokens + output_tokens,
            "duration_ms": duration_ms,
            "status": status,
        },
        error,
    )


def log_db_operation(
    operation: str,
    table: str,
    status: str,
    details: Optional[str] = None,
    error: Optional[str] = None,
) -> None:
    _emit(
        "DB_OPERATION",
        {"operation": operation, "table": table, "status": status, "details": details},
        error,
    )


def log_event(event_type: str, message: str, **kwargs) -> None:
    _emit("EVENT", {"event_type": event_type, "message": message, **kwargs})
