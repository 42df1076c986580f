"""Messages the preview sandbox may post to its host.

There are exactly two shapes; anything else arriving on the channel is noise
from other frames and is dropped.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

LOADED = "preview-loaded"
ERROR = "preview-error"


class PreviewLoaded(BaseModel):
    type: Literal["preview-loaded"] = LOADED


class PreviewError(BaseModel):
    type: Literal["preview-error"] = ERROR
    message: str = ""


PreviewMessage = Annotated[Union[PreviewLoaded, PreviewError], Field(discriminator="type")]

_ADAPTER: TypeAdapter = TypeAdapter(PreviewMessage)


def parse_preview_message(raw: Any) -> Optional[Union[PreviewLoaded, PreviewError]]:
    if not isinstance(raw, dict):
        return None
    try:
        return _ADAPTER.validate_python(raw)
    except ValidationError:
        logger.debug("Ignoring unrecognised preview message type=%r", raw.get("type"))
        return None
