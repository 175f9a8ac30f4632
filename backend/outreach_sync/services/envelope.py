from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def unwrap_list(body: Any, *, operation: str = "list") -> List[Any]:
    """
    Pull the record list out of a list-endpoint body.

    Accepted shapes, in order: ``{"data": [...]}``, a bare ``[...]``.
    Anything else is a shape mismatch and yields an empty list.
    """
    if isinstance(body, dict) and isinstance(body.get("data"), list):
        return body["data"]
    if isinstance(body, list):
        return body
    logger.warning(
        "Unexpected list envelope (%s); treating as no data",
        type(body).__name__,
        extra={"operation": operation},
    )
    return []


def unwrap_record(body: Any, *, operation: str = "get") -> Optional[Dict[str, Any]]:
    """Single-record variant: ``{"data": {...}}`` or a bare ``{...}``."""
    if isinstance(body, dict):
        inner = body.get("data")
        if isinstance(inner, dict):
            return inner
        if "data" not in body:
            return body
    logger.warning(
        "Unexpected record envelope (%s); treating as no data",
        type(body).__name__,
        extra={"operation": operation},
    )
    return None


def backend_message(body: Any, default: str) -> str:
    """Human-readable message from an error body: ``message``, then ``error``."""
    if isinstance(body, dict):
        for key in ("message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value
            if isinstance(value, dict):
                nested = value.get("message")
                if isinstance(nested, str) and nested.strip():
                    return nested
    return default
