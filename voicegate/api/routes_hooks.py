"""Lifecycle hooks called by the host before tool use, speak, wait and stop.

Each answers ``{"decision": "approve" | "block", "reason"?}``; the host feeds a
block reason back to the agent.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from voicegate.api.deps import get_session
from voicegate.core.session import VoiceSession

router = APIRouter(prefix="/api/hooks", tags=["hooks"])


@router.post("/pre-tool")
async def pre_tool(payload: dict | None = None, session: VoiceSession = Depends(get_session)) -> dict[str, str]:
    return session.gate.before_tool().to_dict()


@router.post("/pre-speak")
async def pre_speak(payload: dict | None = None, session: VoiceSession = Depends(get_session)) -> dict[str, str]:
    return session.gate.before_speak().to_dict()


@router.post("/pre-wait")
async def pre_wait(payload: dict | None = None, session: VoiceSession = Depends(get_session)) -> dict[str, str]:
    return session.gate.before_wait().to_dict()


@router.post("/stop")
async def stop(payload: dict | None = None, session: VoiceSession = Depends(get_session)) -> dict[str, str]:
    decision = await session.gate.before_stop()
    return decision.to_dict()
