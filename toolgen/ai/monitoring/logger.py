"""
Synthesis Logger - Structured logging for routing and failover decisions.

Captures:
- Which route served a request (artifact, template, generation)
- Every provider attempt, with its outcome and failure class
- Aggregate failures

Log Format:
==========
Each structured entry is a JSON object on one line, prefixed with the
event name, so it can be grepped and parsed without a log pipeline.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Root of the project's logger hierarchy
logger = logging.getLogger("toolgen")

LOG_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Attach a stdout handler to the "toolgen" logger (once) and set its level.

    Safe to call repeatedly; a reload only changes the level.
    """
    logger.setLevel(level.upper())

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    return logger


def _preview(text: str, limit: int = 100) -> str:
    return text[:limit] + "..." if len(text) > limit else text


class SynthesisLogger:
    """
    Structured logger for pipeline operations.

    Usage:
        synthesis_logger.log_route(request, route="template", detail="calculator")
        synthesis_logger.log_attempt("Doubao", success=False, failure_kind="rate_limit")
    """

    def __init__(self, name: str = "toolgen.synthesis"):
        self._logger = logging.getLogger(name)

    def _emit(self, level: int, event: str, data: Dict[str, Any]) -> None:
        data = {"event": event, **data, "timestamp": datetime.now(timezone.utc).isoformat()}
        self._logger.log(level, f"{event}: {json.dumps(data, ensure_ascii=False)}")

    def log_route(self, request: str, route: str, detail: Optional[str] = None) -> None:
        """Log which route served (or is about to serve) a request."""
        self._emit(logging.INFO, "synthesis_route", {
            "route": route,
            "detail": detail,
            "request_length": len(request),
            "request_preview": _preview(request),
        })

    def log_attempt(
        self,
        provider: str,
        success: bool,
        latency_ms: float = 0.0,
        failure_kind: Optional[str] = None,
        message: Optional[str] = None,
        attempt: int = 0,
    ) -> None:
        """Log one provider attempt inside a failover scan."""
        self._emit(logging.INFO if success else logging.WARNING, "provider_attempt", {
            "provider": provider,
            "attempt": attempt,
            "success": success,
            "latency_ms": round(latency_ms, 2),
            "failure_kind": failure_kind,
            "message": _preview(message) if message else None,
        })

    def log_exhausted(self, request: str, attempts: list) -> None:
        """Log that every provider failed for a request."""
        self._emit(logging.ERROR, "providers_exhausted", {
            "request_preview": _preview(request),
            "attempts": [{"provider": name, "message": msg} for name, msg in attempts],
        })


# ---------------------------------------------------------------------------
# SINGLETON INSTANCE
# ---------------------------------------------------------------------------
synthesis_logger = SynthesisLogger()
