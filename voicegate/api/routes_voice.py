from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from voicegate.api.deps import get_session
from voicegate.core.session import VoiceSession

router = APIRouter(prefix="/api", tags=["voice"])


class PreferencesPayload(BaseModel):
    voiceResponsesEnabled: bool = False


class InputStatePayload(BaseModel):
    active: bool = False


class SpeakPayload(BaseModel):
    text: str | None = None


@router.post("/voice-preferences")
async def set_voice_preferences(
    payload: PreferencesPayload,
    session: VoiceSession = Depends(get_session),
) -> dict[str, Any]:
    session.preferences.voice_responses_enabled = payload.voiceResponsesEnabled
    return {"success": True, "preferences": session.preferences.as_dict()}


@router.post("/voice-input-state")
async def set_voice_input_state(
    payload: InputStatePayload,
    session: VoiceSession = Depends(get_session),
) -> dict[str, Any]:
    session.preferences.voice_input_active = payload.active
    return {"success": True, "voiceInputActive": session.preferences.voice_input_active}


@router.post("/speak")
async def speak(
    payload: SpeakPayload,
    session: VoiceSession = Depends(get_session),
) -> dict[str, Any]:
    responded = session.speak(payload.text or "")
    return {
        "success": True,
        "message": "Text spoken successfully",
        "respondedCount": responded,
    }


@router.get("/tts-events")
async def tts_events(request: Request, session: VoiceSession = Depends(get_session)) -> StreamingResponse:
    """Push speak and wait-status events to the browser."""
    return StreamingResponse(
        session.broadcaster.stream(request.is_disconnected),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
