import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)


@pytest.fixture(autouse=True)
def _fresh_stores(monkeypatch):
    """Each test gets empty user/chat stores and no provider credentials."""
    from src.forge.infrastructure import chat_store, user_store
    from src.forge.security.rate_limit import reset_rate_limits

    for key in ("GOOGLE_API_KEY", "ANTHROPIC_API_KEY", "FORGE_DETERMINISTIC_FALLBACK", "FORGE_ENV"):
        monkeypatch.delenv(key, raising=False)
    chat_store.reset_chat_store()
    user_store.reset_user_store()
    reset_rate_limits()
    yield
    chat_store.reset_chat_store()
    user_store.reset_user_store()
