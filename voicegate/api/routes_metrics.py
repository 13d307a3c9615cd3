from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from voicegate.api.deps import get_session
from voicegate.core.session import VoiceSession

router = APIRouter()


@router.get("/metrics")
def metrics(session: VoiceSession = Depends(get_session)) -> Response:
    if not session.settings.enable_metrics:
        return Response(status_code=404)
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
