from __future__ import annotations

from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Dict, List, Optional
import uuid


class FrozenTurnError(RuntimeError):
    pass


@dataclass
class ConversationTurn:
    id: str
    role: str
    parts: List[str] = field(default_factory=list)
    frozen: bool = False
    interrupted: bool = False

    @property
    def text(self) -> str:
        return "".join(self.parts)

    def append_chunk(self, chunk: str) -> None:
        if self.frozen:
            raise FrozenTurnError(f"Turn {self.id} is frozen")
        self.parts.append(chunk)

    def freeze(self, interrupted: bool = False) -> None:
        self.frozen = True
        self.interrupted = interrupted

    def to_backend_message(self) -> Dict[str, Any]:
        return {"id": self.id, "role": self.role, "parts": [{"type": "text", "text": self.text}]}


class ChatTranscript:
    """Ordered, append-only log of the turns in the active session."""

    def __init__(self) -> None:
        self._turns: List[ConversationTurn] = []
        self._lock = RLock()

    def _new_id(self) -> str:
        return uuid.uuid4().hex

    def new_user_turn(self, text: str) -> ConversationTurn:
        return ConversationTurn(id=self._new_id(), role="user", parts=[text], frozen=True)

    def append(self, turn: ConversationTurn) -> ConversationTurn:
        with self._lock:
            if not turn.frozen:
                raise FrozenTurnError("Only frozen turns can be appended directly")
            self._turns.append(turn)
            return turn

    def append_user(self, text: str) -> ConversationTurn:
        return self.append(self.new_user_turn(text))

    def start_assistant(self) -> ConversationTurn:
        """Open the one mutable turn; the streaming session owns it until frozen."""
        with self._lock:
            if self._turns and not self._turns[-1].frozen:
                raise FrozenTurnError("Previous assistant turn is still open")
            turn = ConversationTurn(id=self._new_id(), role="assistant")
            self._turns.append(turn)
            return turn

    @property
    def turns(self) -> List[ConversationTurn]:
        with self._lock:
            return list(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def last_assistant(self) -> Optional[ConversationTurn]:
        with self._lock:
            for turn in reversed(self._turns):
                if turn.role == "assistant":
                    return turn
            return None

    def to_backend_messages(self, pending: Optional[ConversationTurn] = None) -> List[Dict[str, Any]]:
        with self._lock:
            turns = list(self._turns)
        if pending is not None:
            turns.append(pending)
        return [turn.to_backend_message() for turn in turns]
