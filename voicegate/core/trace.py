"""Per-request trace identifiers shared with the JSON log formatter."""

from __future__ import annotations

import uuid
from contextvars import ContextVar
from typing import Mapping

TRACE_HEADER = "X-Trace-Id"

_trace_id: ContextVar[str | None] = ContextVar("voicegate_trace_id", default=None)


def bind_trace_id(headers: Mapping[str, str] | None = None) -> str:
    """Adopt the caller's trace id when it sent one, otherwise mint a new one."""
    tid = (headers or {}).get(TRACE_HEADER) or uuid.uuid4().hex
    _trace_id.set(tid)
    return tid


def get_trace_id() -> str | None:
    return _trace_id.get()
