from __future__ import annotations

import itertools
from dataclasses import dataclass
from datetime import UTC, datetime
from threading import RLock
from typing import Dict, List, Optional, Protocol

from ..domain.chat_models import Chat, ChatMessage


class ChatStore(Protocol):
    """Chats and messages scoped to an owning user.

    Every lookup takes the caller's user id; a chat owned by someone else is
    indistinguishable from one that does not exist.
    """

    def create_chat(self, user_id: int, title: Optional[str] = None, model_id: Optional[str] = None) -> Chat: ...

    def list_chats(self, user_id: int) -> List[Chat]: ...

    def get_chat(self, user_id: int, chat_id: int) -> Optional[Chat]: ...

    def update_chat(
        self,
        user_id: int,
        chat_id: int,
        title: Optional[str] = None,
        model_id: Optional[str] = None,
    ) -> Optional[Chat]: ...

    def delete_chat(self, user_id: int, chat_id: int) -> bool: ...

    def add_message(self, user_id: int, chat_id: int, role: str, content: str) -> Optional[ChatMessage]: ...

    def list_messages(self, user_id: int, chat_id: int) -> Optional[List[ChatMessage]]: ...


DEFAULT_CHAT_TITLE = "New Chat"


@dataclass
class _Chat:
    id: int
    user_id: int
    title: str
    model_id: Optional[str]
    created_at: str
    updated_at: str
    revision: int = 0


@dataclass
class _Message:
    id: int
    chat_id: int
    role: str
    content: str
    created_at: str


class InMemoryChatStore:
    def __init__(self) -> None:
        self._chats: Dict[int, _Chat] = {}
        self._messages: Dict[int, List[_Message]] = {}
        self._chat_ids = itertools.count(1)
        self._message_ids = itertools.count(1)
        self._revisions = itertools.count(1)
        self._lock = RLock()

    def _now_iso(self) -> str:
        return datetime.now(UTC).isoformat().replace("+00:00", "Z")

    def _chat_model(self, chat: _Chat) -> Chat:
        return Chat(
            id=chat.id,
            title=chat.title,
            model_id=chat.model_id,
            created_at=chat.created_at,
            updated_at=chat.updated_at,
        )

    def _message_model(self, message: _Message) -> ChatMessage:
        return ChatMessage(id=message.id, role=message.role, content=message.content, created_at=message.created_at)

    def _owned(self, user_id: int, chat_id: int) -> Optional[_Chat]:
        chat = self._chats.get(chat_id)
        if chat is None or chat.user_id != user_id:
            return None
        return chat

    def create_chat(self, user_id: int, title: Optional[str] = None, model_id: Optional[str] = None) -> Chat:
        with self._lock:
            now = self._now_iso()
            chat = _Chat(
                id=next(self._chat_ids),
                user_id=user_id,
                title=title or DEFAULT_CHAT_TITLE,
                model_id=model_id,
                created_at=now,
                updated_at=now,
                revision=next(self._revisions),
            )
            self._chats[chat.id] = chat
            self._messages[chat.id] = []
            return self._chat_model(chat)

    def list_chats(self, user_id: int) -> List[Chat]:
        with self._lock:
            owned = [c for c in self._chats.values() if c.user_id == user_id]
            # Most recently written first
            owned.sort(key=lambda c: c.revision, reverse=True)
            return [self._chat_model(c) for c in owned]

    def get_chat(self, user_id: int, chat_id: int) -> Optional[Chat]:
        with self._lock:
            chat = self._owned(user_id, chat_id)
            return self._chat_model(chat) if chat else None

    def update_chat(
        self,
        user_id: int,
        chat_id: int,
        title: Optional[str] = None,
        model_id: Optional[str] = None,
    ) -> Optional[Chat]:
        with self._lock:
            chat = self._owned(user_id, chat_id)
            if chat is None:
                return None
            if title is not None:
                chat.title = title
            if model_id is not None:
                chat.model_id = model_id
            chat.updated_at = self._now_iso()
            chat.revision = next(self._revisions)
            return self._chat_model(chat)

    def delete_chat(self, user_id: int, chat_id: int) -> bool:
        with self._lock:
            if self._owned(user_id, chat_id) is None:
                return False
            del self._chats[chat_id]
            self._messages.pop(chat_id, None)
            return True

    def add_message(self, user_id: int, chat_id: int, role: str, content: str) -> Optional[ChatMessage]:
        with self._lock:
            chat = self._owned(user_id, chat_id)
            if chat is None:
                return None
            now = self._now_iso()
            msg = _Message(id=next(self._message_ids), chat_id=chat_id, role=role, content=content, created_at=now)
            self._messages.setdefault(chat_id, []).append(msg)
            # bump chat updated_at
            chat.updated_at = now
            chat.revision = next(self._revisions)
            return self._message_model(msg)

    def list_messages(self, user_id: int, chat_id: int) -> Optional[List[ChatMessage]]:
        with self._lock:
            if self._owned(user_id, chat_id) is None:
                return None
            return [self._message_model(m) for m in self._messages.get(chat_id, [])]


_store: ChatStore | None = None


def get_chat_store() -> ChatStore:
    global _store
    if _store is None:
        _store = InMemoryChatStore()
    return _store


def reset_chat_store() -> None:
    global _store
    _store = None
