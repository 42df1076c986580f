from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel


class ToolCall(BaseModel):
    kind: str
    description: str


class ParsedDocument(BaseModel):
    """Fields recovered from a (possibly partial) structured reply."""

    plan: Optional[str] = None
    tools: List[ToolCall] = []
    code: Optional[str] = None
    summary: Optional[str] = None

    @property
    def is_structured(self) -> bool:
        return bool(self.plan or self.tools or self.summary)
