"""Model catalog and provider dispatch.

The public model ids form a closed set. Resolving an id is a table lookup with
an explicit default branch, so an unknown or stale id coming from a client
never fails a request; it is served by the default model instead.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from ..domain.chat_models import ModelOption

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelConfig:
    id: str
    name: str
    provider: str
    model: str
    description: Optional[str] = None


@dataclass(frozen=True)
class ProviderSelection:
    """Returned details about the provider that should serve a request."""

    public_id: str
    name: str
    model: str
    api_key_env: str
    base_url_env: str
    default_base_url: str
    reasoning_effort: Optional[str] = None
    fell_back: bool = False


MODELS: Tuple[ModelConfig, ...] = (
    ModelConfig(
        id="gemini-3-pro",
        name="Gemini 3 Pro",
        provider="google",
        model="gemini-3-pro-preview",
        description="Fast and efficient",
    ),
    ModelConfig(
        id="claude-sonnet-4-5",
        name="Claude Sonnet 4.5",
        provider="anthropic",
        model="claude-sonnet-4-5-20250929",
        description="Balanced performance",
    ),
    ModelConfig(
        id="claude-opus-4-5",
        name="Claude Opus 4.5",
        provider="anthropic",
        model="claude-opus-4-5-20251101",
        description="Highest quality",
    ),
)

DEFAULT_MODEL_ID = "gemini-3-pro"

_MODELS_BY_ID: Dict[str, ModelConfig] = {m.id: m for m in MODELS}


def get_model_config(model_id: Optional[str]) -> Optional[ModelConfig]:
    if not model_id:
        return None
    return _MODELS_BY_ID.get(model_id)


def is_valid_model_id(model_id: Optional[str]) -> bool:
    return get_model_config(model_id) is not None


class ModelRouter:
    """Maps a public model id onto a provider endpoint and credentials."""

    PROVIDER_CONFIG: Dict[str, Dict[str, Optional[str]]] = {
        "google": {
            "api_key_env": "GOOGLE_API_KEY",
            "base_url_env": "GOOGLE_BASE_URL",
            "default_base_url": "https://generativelanguage.googleapis.com/v1beta/openai/",
            # Only Google models get extended thinking.
            "reasoning_effort": "high",
        },
        "anthropic": {
            "api_key_env": "ANTHROPIC_API_KEY",
            "base_url_env": "ANTHROPIC_BASE_URL",
            "default_base_url": "https://api.anthropic.com/v1/",
            "reasoning_effort": None,
        },
    }

    def __init__(self, env: Optional[Mapping[str, str]] = None) -> None:
        self._env = env if env is not None else os.environ

    def provider_available(self, provider: str) -> bool:
        cfg = self.PROVIDER_CONFIG.get(provider)
        if not cfg:
            return False
        api_key_env = cfg.get("api_key_env") or ""
        return bool(self._env.get(api_key_env))

    def api_key(self, selection: ProviderSelection) -> Optional[str]:
        return self._env.get(selection.api_key_env) or None

    def base_url(self, selection: ProviderSelection) -> str:
        return self._env.get(selection.base_url_env) or selection.default_base_url

    def resolve(self, model_id: Optional[str]) -> ProviderSelection:
        config = get_model_config(model_id)
        fell_back = False
        if config is None:
            logger.warning("Unknown model id %r; falling back to %s", model_id, DEFAULT_MODEL_ID)
            config = _MODELS_BY_ID[DEFAULT_MODEL_ID]
            fell_back = True
        provider_cfg = self.PROVIDER_CONFIG[config.provider]
        return ProviderSelection(
            public_id=config.id,
            name=config.provider,
            model=config.model,
            api_key_env=str(provider_cfg["api_key_env"]),
            base_url_env=str(provider_cfg["base_url_env"]),
            default_base_url=str(provider_cfg["default_base_url"]),
            reasoning_effort=provider_cfg.get("reasoning_effort"),
            fell_back=fell_back,
        )

    def catalog(self) -> List[ModelOption]:
        return [
            ModelOption(
                id=m.id,
                name=m.name,
                provider=m.provider,
                model=m.model,
                description=m.description,
                available=self.provider_available(m.provider),
                default=m.id == DEFAULT_MODEL_ID,
            )
            for m in MODELS
        ]


def resolve_model(model_id: Optional[str], env: Optional[Mapping[str, str]] = None) -> ProviderSelection:
    return ModelRouter(env).resolve(model_id)
