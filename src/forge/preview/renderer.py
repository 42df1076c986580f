from __future__ import annotations

import logging
import os
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..domain.preview_models import PreviewError, PreviewLoaded, parse_preview_message
from .document import MISSING_ENTRY_MESSAGE, build_document, host_frame, rewrite_module

logger = logging.getLogger(__name__)

PENDING = "pending"
LOADED = "loaded"
ERROR = "error"

DEFAULT_FALLBACK_SECONDS = float(os.getenv("FORGE_PREVIEW_FALLBACK_SECONDS", "1.0"))


@dataclass
class PreviewInstance:
    """One sandboxed render of one code string. Never re-pointed at new code."""

    instance_id: str
    code: str
    entry: str
    document: str
    status: str = PENDING
    error: Optional[str] = None
    loading: bool = True
    disposed: bool = False
    fallback_deadline: Optional[float] = None

    def frame(self) -> str:
        return host_frame(self.document)


class PreviewRenderer:
    """Owns the single live preview for a host view.

    ``render`` replaces the instance whenever the code string changes and is a
    no-op for an identical string. Outcomes arrive through ``handle_message``;
    if none arrives, ``refresh`` drops the loading flag once the fallback
    timer armed by ``frame_loaded`` has expired. Hosts that keep torn-down
    frames alive pass the sending frame's id so late reports are dropped.
    """

    def __init__(
        self,
        fallback_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        on_change: Optional[Callable[[PreviewInstance], None]] = None,
    ) -> None:
        self.fallback_seconds = DEFAULT_FALLBACK_SECONDS if fallback_seconds is None else fallback_seconds
        self._clock = clock
        self._on_change = on_change
        self._current: Optional[PreviewInstance] = None
        self.instances_created = 0

    @property
    def current(self) -> Optional[PreviewInstance]:
        return self._current

    @property
    def code(self) -> Optional[str]:
        return self._current.code if self._current else None

    def _notify(self) -> None:
        if self._on_change and self._current is not None:
            self._on_change(self._current)

    def render(self, code: str) -> PreviewInstance:
        if self._current is not None and self._current.code == code:
            return self._current

        rewritten = rewrite_module(code)
        instance = PreviewInstance(
            instance_id=uuid.uuid4().hex,
            code=code,
            entry=rewritten.entry,
            document=build_document(rewritten),
        )
        if not rewritten.entry_found:
            instance.status = ERROR
            instance.error = MISSING_ENTRY_MESSAGE.format(entry=rewritten.entry)
            instance.loading = False

        previous = self._current
        if previous is not None:
            previous.disposed = True
        self._current = instance
        self.instances_created += 1
        logger.debug(
            "Preview instance %s replaced %s entry=%s",
            instance.instance_id,
            previous.instance_id if previous else None,
            instance.entry,
        )
        self._notify()
        return instance

    def handle_message(self, raw: Any, instance_id: Optional[str] = None) -> Optional[PreviewInstance]:
        """Apply a sandbox report; ``instance_id`` names the frame it came from."""
        message = parse_preview_message(raw)
        instance = self._current
        if message is None or instance is None:
            return None
        if instance_id is not None and instance_id != instance.instance_id:
            logger.debug("Dropping preview message from disposed instance %s", instance_id)
            return None
        if isinstance(message, PreviewLoaded):
            instance.status = LOADED
            instance.error = None
        elif isinstance(message, PreviewError):
            instance.status = ERROR
            instance.error = message.message
            logger.info("Preview %s reported error: %s", instance.instance_id, message.message)
        instance.loading = False
        instance.fallback_deadline = None
        self._notify()
        return instance

    def frame_loaded(self, now: Optional[float] = None) -> None:
        instance = self._current
        if instance is None or not instance.loading:
            return
        now = self._clock() if now is None else now
        instance.fallback_deadline = now + self.fallback_seconds

    def refresh(self, now: Optional[float] = None) -> bool:
        """Apply the loading fallback; returns True when the flag was dropped."""
        instance = self._current
        if instance is None or not instance.loading or instance.fallback_deadline is None:
            return False
        now = self._clock() if now is None else now
        if now < instance.fallback_deadline:
            return False
        instance.loading = False
        instance.fallback_deadline = None
        self._notify()
        return True
