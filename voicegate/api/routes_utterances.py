from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from voicegate.api.deps import get_session
from voicegate.core.session import VoiceSession

router = APIRouter(prefix="/api", tags=["utterances"])


class UtterancePayload(BaseModel):
    text: str | None = None
    timestamp: datetime | None = None


class WaitPayload(BaseModel):
    seconds_to_wait: float | None = None


@router.post("/potential-utterances")
async def add_utterance(
    payload: UtterancePayload,
    session: VoiceSession = Depends(get_session),
) -> dict[str, Any]:
    utterance = session.ingest(payload.text or "", payload.timestamp)
    return {"success": True, "utterance": utterance.to_dict()}


@router.get("/utterances")
async def list_utterances(
    limit: int = Query(10, ge=1, le=1000),
    session: VoiceSession = Depends(get_session),
) -> dict[str, Any]:
    return {"utterances": [u.to_dict() for u in session.queue.recent(limit)]}


@router.get("/utterances/status")
async def utterance_status(session: VoiceSession = Depends(get_session)) -> dict[str, int]:
    return session.queue.counts()


@router.delete("/utterances")
async def clear_utterances(session: VoiceSession = Depends(get_session)) -> dict[str, Any]:
    cleared = session.clear()
    return {
        "success": True,
        "message": f"Cleared {cleared} utterances",
        "clearedCount": cleared,
    }


@router.post("/dequeue-utterances")
async def dequeue_utterances(session: VoiceSession = Depends(get_session)) -> dict[str, Any]:
    batch = session.dequeue()
    return {"success": True, "utterances": [u.to_dict() for u in batch]}


@router.post("/wait-for-utterances")
async def wait_for_utterances(
    payload: WaitPayload | None = None,
    session: VoiceSession = Depends(get_session),
) -> dict[str, Any]:
    result = await session.wait(payload.seconds_to_wait if payload else None)
    return result.to_dict()
