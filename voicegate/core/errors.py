from __future__ import annotations

from typing import Any, Dict


class VoiceGateError(Exception):
    """Base class for errors surfaced to HTTP callers as 4xx responses."""

    code = "VG_4000"
    status_code = 400

    def __init__(self, message: str, *, details: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidInput(VoiceGateError):
    """Blank text on ingest or speak."""

    code = "VG_4001"


class PreconditionNotMet(VoiceGateError):
    """The operation needs a voice mode that is currently switched off."""

    code = "VG_4002"


def error_response(
    code: str,
    message: str,
    *,
    details: Any | None = None,
    trace_id: str | None = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "success": False,
        "error": message,
        "code": code,
    }
    if details is not None:
        payload["details"] = details
    if trace_id is not None:
        payload["trace_id"] = trace_id
    return payload
