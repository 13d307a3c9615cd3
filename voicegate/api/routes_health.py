from __future__ import annotations

from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError, version

from fastapi import APIRouter, Depends

from voicegate.api.deps import get_session
from voicegate.core.session import VoiceSession

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def get_health(session: VoiceSession = Depends(get_session)) -> dict[str, object]:
    """Report liveness together with the current conversation state."""
    try:
        pkg_version = version("voicegate")
    except PackageNotFoundError:  # pragma: no cover - depends on installation
        pkg_version = "unknown"

    return {
        "status": "ok",
        "version": pkg_version,
        "time": datetime.now(timezone.utc).isoformat(),
        "observers": len(session.broadcaster),
        "preferences": session.preferences.as_dict(),
        "utterances": session.queue.counts(),
        "timing": session.timing.as_dict(),
    }
