"""Prompt catalog backed by ``app/prompts/prompts.json``.

Prompts are addressed by dotted keys (``agents.trend_query``). Long prompts
are stored as lists of lines and joined with newlines. Placeholders use
``string.Template`` syntax (``$product_name``). The catalog is reloaded when
the file's mtime changes.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from string import Template
from typing import Any


PROMPTS_PATH = Path(__file__).resolve().parents[1] / "prompts" / "prompts.json"


@dataclass(slots=True)
class _Catalog:
    entries: dict[str, str]
    mtime_ns: int


_catalog: _Catalog | None = None


def _flatten(node: dict[str, Any], prefix: str = "") -> dict[str, str]:
    entries: dict[str, str] = {}
    for name, value in node.items():
        key = f"{prefix}{name}"
        if isinstance(value, dict):
            entries.update(_flatten(value, f"{key}."))
        elif isinstance(value, str):
            entries[key] = value
        elif isinstance(value, list) and all(isinstance(line, str) for line in value):
            entries[key] = "\n".join(value)
        else:
            raise TypeError(f"Prompt key must map to a string or list of lines: {key}")
    return entries


def _entries() -> dict[str, str]:
    global _catalog
    mtime_ns = PROMPTS_PATH.stat().st_mtime_ns
    if _catalog is None or _catalog.mtime_ns != mtime_ns:
        payload = json.loads(PROMPTS_PATH.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError("Prompt catalog must be a JSON object.")
        _catalog = _Catalog(entries=_flatten(payload), mtime_ns=mtime_ns)
    return _catalog.entries


def prompt_text(key: str) -> str:
    try:
        return _entries()[key]
    except KeyError:
        raise KeyError(f"Prompt key not found: {key}") from None


def render_prompt(key: str, **values: Any) -> str:
    template = Template(prompt_text(key))
    missing = [name for name in template.get_identifiers() if name not in values]
    if missing:
        raise KeyError(f"Missing template value(s) {', '.join(missing)} for prompt '{key}'")
    return template.substitute(values)
