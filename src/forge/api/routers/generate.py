from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import StreamingResponse

from ...domain.chat_models import GenerationRequest
from ...services.generation import GenerationUnavailable, stream_generation
from ...services.model_catalog import resolve_model
from ...services.streaming import StreamStartError, prime_stream

logger = logging.getLogger(__name__)

router = APIRouter(tags=["generation"])


@router.post("/chat")
def generate(req: GenerationRequest) -> StreamingResponse:
    if not req.messages:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="messages must not be empty")
    model_id = resolve_model(req.model_id).public_id
    try:
        chunks = stream_generation(req.messages, model_id)
    except GenerationUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    except Exception:
        logger.exception("Generation setup failed for model %s", model_id)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Generation backend unavailable")
    try:
        body = prime_stream(chunks, model_id)
    except StreamStartError:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Generation backend unavailable")
    return StreamingResponse(body, media_type="text/plain; charset=utf-8")
