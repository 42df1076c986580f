import pytest

from src.forge.infrastructure import chat_store
from src.forge.infrastructure.chat_store import DEFAULT_CHAT_TITLE, InMemoryChatStore


@pytest.fixture
def store():
    return InMemoryChatStore()


def test_create_defaults_title_and_uses_integer_ids(store):
    first = store.create_chat(1)
    second = store.create_chat(1, title="Landing page", model_id="claude-opus-4-5")
    assert first.title == DEFAULT_CHAT_TITLE
    assert (first.id, second.id) == (1, 2)
    assert second.model_id == "claude-opus-4-5"


def test_list_is_owner_scoped_and_newest_first(store):
    a = store.create_chat(1, title="a")
    b = store.create_chat(1, title="b")
    store.create_chat(2, title="other")
    store.add_message(1, a.id, "user", "bump")
    assert [c.title for c in store.list_chats(1)] == ["a", "b"]
    assert b.id in [c.id for c in store.list_chats(1)]
    assert [c.title for c in store.list_chats(2)] == ["other"]


def test_foreign_chat_is_invisible(store):
    chat = store.create_chat(1)
    assert store.get_chat(2, chat.id) is None
    assert store.update_chat(2, chat.id, title="stolen") is None
    assert store.add_message(2, chat.id, "user", "hi") is None
    assert store.list_messages(2, chat.id) is None
    assert store.delete_chat(2, chat.id) is False
    assert store.get_chat(1, chat.id).title == DEFAULT_CHAT_TITLE


def test_update_bumps_updated_at(store):
    chat = store.create_chat(1)
    updated = store.update_chat(1, chat.id, title="Renamed")
    assert updated.title == "Renamed"
    assert updated.updated_at >= chat.updated_at


def test_delete_cascades_messages(store):
    chat = store.create_chat(1)
    store.add_message(1, chat.id, "user", "hello")
    assert store.delete_chat(1, chat.id)
    assert store.get_chat(1, chat.id) is None
    assert store.list_messages(1, chat.id) is None


def test_messages_are_oldest_first(store):
    chat = store.create_chat(1)
    store.add_message(1, chat.id, "user", "one")
    store.add_message(1, chat.id, "assistant", "two")
    assert [m.content for m in store.list_messages(1, chat.id)] == ["one", "two"]


def test_factory_returns_singleton():
    assert chat_store.get_chat_store() is chat_store.get_chat_store()
    chat_store.reset_chat_store()
    assert isinstance(chat_store.get_chat_store(), InMemoryChatStore)
