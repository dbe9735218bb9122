"""Lightweight observability utilities: spans and metrics over a log stream.

Events are plain dicts handed to a ``log_event`` callable so callers can
route them wherever they like (tests collect them in a list).
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from contextlib import contextmanager
from typing import Any

LogEvent = Callable[[dict[str, Any]], None]

LOGGER = logging.getLogger("fdbc_gate.events")


def log_to_logger(payload: dict[str, Any]) -> None:
    """Default event sink: structured payloads at DEBUG on the package logger."""

    LOGGER.debug("%s", payload)


@contextmanager
def span(
    name: str,
    log: LogEvent,
    *,
    attrs: Mapping[str, Any] | None = None,
) -> Any:
    """Minimal span that logs start/end with elapsed time in ms.

    Usage:
        with span("native_select", log_event, attrs={"requested": 630}):
            ...
    """

    start = time.monotonic()
    payload: dict[str, Any] = {"event": "span_start", "name": name}
    if attrs:
        payload["attrs"] = dict(attrs)
    log(payload)
    ok = False
    try:
        yield
        ok = True
    finally:
        elapsed_ms = int((time.monotonic() - start) * 1000)
        end_payload: dict[str, Any] = {"event": "span_end", "name": name, "ms": elapsed_ms, "ok": ok}
        log(end_payload)


def metric(name: str, log: LogEvent, *, kind: str = "counter", value: int | float = 1, tags: Mapping[str, Any] | None = None) -> None:
    """Emit a simple metric event via the structured log stream."""

    payload: dict[str, Any] = {"event": "metric", "name": name, "kind": kind, "value": value}
    if tags:
        payload["tags"] = dict(tags)
    log(payload)
