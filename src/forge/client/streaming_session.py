"""One request/response exchange with the generation backend at a time.

The session sends the transcript plus the selected model id, then walks the
returned chunk iterator in arrival order. After every chunk it re-extracts the
whole accumulated reply, tells the host what to show, and pushes new code to
the preview renderer.

Status moves ``idle -> submitted -> streaming -> settled``. A request the
backend refuses returns to ``idle`` and records nothing. A stream that breaks
after output began keeps the partial reply, frozen and flagged interrupted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Set

from ..core.extractor import display_text, extract
from ..core.state_machine import IDLE, SETTLED, STREAMING, SUBMITTED, is_busy, transition
from ..domain.document_models import ParsedDocument
from ..preview.renderer import PreviewRenderer
from ..services.model_catalog import DEFAULT_MODEL_ID
from .preferences import ModelPreferenceStore
from .transcript import ChatTranscript, ConversationTurn
from .transport import ForgeApiClient, StreamTransport, TransportError

logger = logging.getLogger(__name__)


class SessionBusy(RuntimeError):
    def __init__(self, status: str) -> None:
        super().__init__(f"A reply is already in progress ({status})")
        self.status = status


class InitialPromptGuard:
    """Remembers auto-submitted prompts for the lifetime of a page."""

    def __init__(self) -> None:
        self._sent: Set[str] = set()

    def claim(self, prompt: str) -> bool:
        key = f"initial:{prompt}"
        if key in self._sent:
            return False
        self._sent.add(key)
        return True


page_guard = InitialPromptGuard()


@dataclass
class SessionUpdate:
    status: str
    turn_id: Optional[str]
    text: str
    document: ParsedDocument
    display: str
    code_changed: bool = False


@dataclass
class SubmitResult:
    ok: bool
    status: str
    user_turn: Optional[ConversationTurn] = None
    assistant_turn: Optional[ConversationTurn] = None
    document: Optional[ParsedDocument] = None
    error: Optional[str] = None
    interrupted: bool = False


class StreamingSession:
    def __init__(
        self,
        transport: StreamTransport,
        transcript: Optional[ChatTranscript] = None,
        preview: Optional[PreviewRenderer] = None,
        preferences: Optional[ModelPreferenceStore] = None,
        on_update: Optional[Callable[[SessionUpdate], None]] = None,
        on_failure: Optional[Callable[[str], None]] = None,
        guard: Optional[InitialPromptGuard] = None,
        chats: Optional[ForgeApiClient] = None,
        chat_id: Optional[int] = None,
    ) -> None:
        self._transport = transport
        self.transcript = transcript or ChatTranscript()
        self.preview = preview or PreviewRenderer()
        self._preferences = preferences
        self._on_update = on_update
        self._on_failure = on_failure
        self._guard = guard or page_guard
        self._chats = chats
        self.chat_id = chat_id
        self.status = IDLE
        self.pending_turn: Optional[ConversationTurn] = None
        self.document: Optional[ParsedDocument] = None

    @property
    def busy(self) -> bool:
        return is_busy(self.status)

    def _move(self, target: str) -> None:
        self.status = transition(self.status, target)

    def _model_id(self) -> str:
        if self._preferences is not None:
            return self._preferences.model_id
        return DEFAULT_MODEL_ID

    # ------------------------------------------------------------------
    # Submit paths
    # ------------------------------------------------------------------
    def submit_initial(self, prompt: str) -> Optional[SubmitResult]:
        if not prompt or not prompt.strip():
            return None
        if self.busy:
            raise SessionBusy(self.status)
        if not self._guard.claim(prompt):
            logger.info("Initial prompt already sent on this page; skipping")
            return None
        return self.submit(prompt)

    def submit(self, text: str) -> SubmitResult:
        if not text or not text.strip():
            raise ValueError("Message text is required")
        if self.busy:
            raise SessionBusy(self.status)

        self._move(SUBMITTED)
        pending = self.transcript.new_user_turn(text)
        self.pending_turn = pending
        messages = self.transcript.to_backend_messages(pending)
        model_id = self._model_id()
        logger.debug("Submitting turn with %d messages model=%s", len(messages), model_id)
        try:
            chunks = self._transport.open_stream(messages, model_id)
        except TransportError as exc:
            return self._fail(str(exc))
        return self._consume(pending, chunks)

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------
    def _consume(self, pending: ConversationTurn, chunks: Iterator[str]) -> SubmitResult:
        assistant: Optional[ConversationTurn] = None
        interrupted = False
        try:
            for chunk in chunks:
                if not chunk:
                    continue
                if assistant is None:
                    self.transcript.append(pending)
                    self.pending_turn = None
                    assistant = self.transcript.start_assistant()
                self._move(STREAMING)
                assistant.append_chunk(chunk)
                self._apply(assistant)
        except TransportError as exc:
            if assistant is None:
                return self._fail(str(exc))
            interrupted = True
            logger.warning("Stream interrupted after %d chars: %s", len(assistant.text), exc)
        except BaseException:
            if assistant is not None:
                assistant.freeze(interrupted=True)
                self.status = SETTLED
            else:
                self.pending_turn = None
                self.status = IDLE
            raise

        if assistant is None:
            # Backend accepted the request but produced no output.
            self.transcript.append(pending)
            self.pending_turn = None
            self._move(SETTLED)
            logger.warning("Generation stream ended without output")
            return SubmitResult(ok=True, status=self.status, user_turn=pending)

        assistant.freeze(interrupted=interrupted)
        self._move(SETTLED)
        document = extract(assistant.text)
        self.document = document
        self._publish(assistant, document, code_changed=False)
        self._persist(pending, assistant)
        return SubmitResult(
            ok=True,
            status=self.status,
            user_turn=pending,
            assistant_turn=assistant,
            document=document,
            interrupted=interrupted,
        )

    def _apply(self, assistant: ConversationTurn) -> None:
        document = extract(assistant.text)
        self.document = document
        code_changed = False
        if document.code and document.code != self.preview.code:
            self.preview.render(document.code)
            code_changed = True
        self._publish(assistant, document, code_changed)

    def _publish(self, assistant: ConversationTurn, document: ParsedDocument, code_changed: bool) -> None:
        if not self._on_update:
            return
        self._on_update(
            SessionUpdate(
                status=self.status,
                turn_id=assistant.id,
                text=assistant.text,
                document=document,
                display=display_text(assistant.text, document),
                code_changed=code_changed,
            )
        )

    def _fail(self, message: str) -> SubmitResult:
        self.pending_turn = None
        self.status = transition(self.status, IDLE)
        logger.warning("Generation request failed: %s", message)
        if self._on_failure:
            self._on_failure(message)
        return SubmitResult(ok=False, status=self.status, error=message)

    def _persist(self, user_turn: ConversationTurn, assistant: ConversationTurn) -> None:
        if self._chats is None or self.chat_id is None:
            return
        try:
            self._chats.add_message(self.chat_id, "user", user_turn.text)
            if assistant.text:
                self._chats.add_message(self.chat_id, "assistant", assistant.text)
        except TransportError as exc:
            logger.warning("Saving chat %s failed: %s", self.chat_id, exc)
            if self._on_failure:
                self._on_failure("Could not save this conversation. Your reply is still shown above.")
