from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from ...domain.chat_models import PreviewRequest
from ...preview.document import SANDBOX_FLAGS, build_document, rewrite_module

router = APIRouter(prefix="/preview", tags=["preview"])


@router.post("", response_class=HTMLResponse)
def render_preview(body: PreviewRequest) -> HTMLResponse:
    """Serve the sandbox page directly; the header gives it the iframe's isolation."""
    document = build_document(rewrite_module(body.code))
    return HTMLResponse(
        content=document,
        headers={"Content-Security-Policy": f"sandbox {SANDBOX_FLAGS}"},
    )
