from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

DiagnosticCallback = Optional[Callable[[Dict[str, Any]], None]]


def emit_diagnostic(callback: DiagnosticCallback, stage: str, **fields: Any) -> None:
    """Send one event to the observer. Observer failures are logged and never reach the caller."""
    if callback is None:
        return
    event: Dict[str, Any] = {"stage": stage}
    event.update({key: value for key, value in fields.items() if value is not None})
    try:
        callback(event)
    except Exception as exc:
        logger.warning("advisor diagnostic callback failed stage=%s: %s", stage, exc)


def summarize_detail(value: Any, limit: int = 180) -> str | None:
    text = str(value or "").strip()
    if not text:
        return None
    if len(text) <= limit:
        return text
    return f"{text[:limit]}..."
