"""Process-wide logging configuration."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

_LOGGER_INITIALIZED = False

LOG_FORMAT = "%(asctime)s %(name)-20s %(levelname)-7s %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once; later calls are no-ops."""
    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    logging.basicConfig(level=(level or "INFO").upper(), format=LOG_FORMAT)
    _LOGGER_INITIALIZED = True


def redact_pii(value: Any) -> str:
    """Mask PII for logging: show first 3 and last 2 chars only."""
    if not isinstance(value, str) or len(value) <= 5:
        return "***"
    return value[:3] + "***" + value[-2:]


def log_request(
    logger: logging.Logger,
    method: str,
    client: str,
    data: Optional[dict[str, Any]],
    success: bool,
) -> None:
    """Emit one structured ``[REQUEST]`` line for monitoring."""
    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "method": method,
        "client": client,
        "success": success,
        "data": data,
    }
    logger.info("[REQUEST] %s", json.dumps(entry, default=str))
