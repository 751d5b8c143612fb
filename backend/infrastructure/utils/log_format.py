from __future__ import annotations

import json
from typing import Any

# Field names whose values never reach the log line.
_SECRET_KEYS = frozenset({"apikey", "api_key", "key", "token", "id_token", "credentials"})
_MAX_TEXT = 120


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if hasattr(value, "value") and isinstance(getattr(value, "value"), str):
        # Enum members log as their wire value.
        value = value.value
    if isinstance(value, str):
        if len(value) > _MAX_TEXT:
            value = value[: _MAX_TEXT - 3] + "..."
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, (set, frozenset)):
        value = sorted(map(str, value))
    if isinstance(value, (list, tuple)):
        return json.dumps(list(value), ensure_ascii=False, default=str)
    return json.dumps(str(value), ensure_ascii=False)


def format_kv(**fields: Any) -> str:
    """
    Render a compact single-line key=value log string.

    None values are dropped and secret-looking keys are masked, e.g.:
      event="lookup" title="Heat" found=true apikey="***"
    """
    parts: list[str] = []
    for key, value in fields.items():
        if value is None:
            continue
        if key.lower() in _SECRET_KEYS:
            parts.append(f'{key}="***"')
            continue
        parts.append(f"{key}={_format_value(value)}")
    return " ".join(parts)
