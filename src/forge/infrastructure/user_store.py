from __future__ import annotations

import itertools
from dataclasses import dataclass
from datetime import UTC, datetime
from threading import RLock
from typing import Dict, Optional


@dataclass
class UserRecord:
    id: int
    email: str
    name: Optional[str]
    password_hash: str
    created_at: str


class InMemoryUserStore:
    """Users keyed by integer id, with a case-insensitive email index."""

    def __init__(self) -> None:
        self._users: Dict[int, UserRecord] = {}
        self._by_email: Dict[str, int] = {}
        self._ids = itertools.count(1)
        self._lock = RLock()

    def create(self, email: str, password_hash: str, name: Optional[str] = None) -> UserRecord:
        email_l = email.strip().lower()
        with self._lock:
            if email_l in self._by_email:
                raise ValueError("User already exists")
            record = UserRecord(
                id=next(self._ids),
                email=email_l,
                name=name,
                password_hash=password_hash,
                created_at=datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            )
            self._users[record.id] = record
            self._by_email[email_l] = record.id
            return record

    def get(self, user_id: int) -> Optional[UserRecord]:
        with self._lock:
            return self._users.get(user_id)

    def get_by_email(self, email: str) -> Optional[UserRecord]:
        with self._lock:
            user_id = self._by_email.get(email.strip().lower())
            return self._users.get(user_id) if user_id is not None else None


_store: InMemoryUserStore | None = None


def get_user_store() -> InMemoryUserStore:
    global _store
    if _store is None:
        _store = InMemoryUserStore()
    return _store


def reset_user_store() -> None:
    global _store
    _store = None
