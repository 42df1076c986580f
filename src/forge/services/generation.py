from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Iterable, Iterator, List, Optional

from langchain_openai import ChatOpenAI

from ..core.response_grammar import (
    BUILDING_HEADING,
    CODE_HEADING,
    PLAN_HEADING,
    SUMMARY_HEADING,
    SYSTEM_PROMPT,
    format_tool_line,
)
from ..domain.chat_models import UIMessage
from .model_catalog import ModelRouter, ProviderSelection

logger = logging.getLogger(__name__)
LOG = logging.getLogger("forge.llm")

_FALLBACK_CHUNK_SIZE = 24
_LLM_TIMEOUT = float(os.getenv("FORGE_LLM_TIMEOUT", "120"))


class GenerationUnavailable(RuntimeError):
    """No provider can serve the request and the deterministic reply is off."""


def _fallback_enabled() -> bool:
    return (os.getenv("FORGE_DETERMINISTIC_FALLBACK") or "1").strip().lower() not in ("0", "false", "no", "off")


def build_model_messages(messages: Iterable[UIMessage]) -> List[Dict[str, str]]:
    """System prompt first, then each turn with its text parts joined."""
    out: List[Dict[str, str]] = [{"role": "system", "content": SYSTEM_PROMPT}]
    for msg in messages:
        if msg.role == "system":
            continue
        out.append({"role": msg.role, "content": msg.text()})
    return out


def _last_user_text(messages: Iterable[UIMessage]) -> str:
    text = ""
    for msg in messages:
        if msg.role == "user":
            text = msg.text()
    return text


def _get_llm(selection: ProviderSelection, router: Optional[ModelRouter] = None) -> ChatOpenAI:
    router = router or ModelRouter()
    api_key = router.api_key(selection)
    if not api_key:
        raise RuntimeError("LLM not configured")
    base_url = router.base_url(selection)
    kwargs: Dict[str, Any] = {
        "api_key": api_key,
        "base_url": base_url,
        "model": selection.model,
        "timeout": _LLM_TIMEOUT,
        "max_retries": 0,
    }
    if selection.reasoning_effort:
        kwargs["reasoning_effort"] = selection.reasoning_effort
    logger.info(
        "Using remote LLM provider name=%s model=%s base_url=%s",
        selection.name,
        selection.model,
        base_url,
    )
    return ChatOpenAI(**kwargs)


def _chunk_content(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: List[str] = []
        for item in content:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, dict) and item.get("type") == "text":
                parts.append(str(item.get("text") or ""))
        return "".join(parts)
    return ""


def _stream_llm(llm: ChatOpenAI, prompt: List[Dict[str, str]], selection: ProviderSelection) -> Iterator[str]:
    LOG.debug("llm_stream_start", extra={"model": selection.model, "provider": selection.name})
    for chunk in llm.stream(prompt):
        text = _chunk_content(getattr(chunk, "content", ""))
        if text:
            yield text


def _component_name(prompt: str) -> str:
    words = [w for w in "".join(c if c.isalnum() else " " for c in prompt).split() if w[:1].isalpha()]
    name = "".join(w[:1].upper() + w[1:].lower() for w in words[:3])
    return name or "Starter"


def fallback_reply(prompt: str) -> str:
    """Deterministic structured reply used when no provider is configured."""
    request = " ".join((prompt or "").split()) or "a starter component"
    if len(request) > 120:
        request = request[:117] + "..."
    name = _component_name(request)
    title = json.dumps(request)
    return "\n".join(
        [
            PLAN_HEADING,
            f"I'll build a single App component for: {request}. It uses local state and Tailwind classes only.",
            "",
            BUILDING_HEADING,
            format_tool_line("create_component", f"App with a {name} card"),
            format_tool_line("add_styling", "Tailwind layout and copper accent"),
            format_tool_line("add_interactivity", "Click counter with useState"),
            "",
            CODE_HEADING,
            "```jsx",
            "export default function App() {",
            "  const [count, setCount] = useState(0);",
            f"  const title = {title};",
            "  return (",
            '    <div className="min-h-screen flex items-center justify-center bg-gray-50 p-8">',
            '      <div className="max-w-md w-full rounded-xl bg-white shadow p-6 space-y-4">',
            '        <h1 className="text-xl font-semibold text-gray-900">{title}</h1>',
            '        <p className="text-sm text-gray-500">Starter preview. Configure a model provider for full generations.</p>',
            "        <button",
            '          className="px-4 py-2 rounded-lg bg-copper text-white"',
            "          onClick={() => setCount(count + 1)}",
            "        >",
            "          Clicked {count} times",
            "        </button>",
            "      </div>",
            "    </div>",
            "  );",
            "}",
            "```",
            "",
            SUMMARY_HEADING,
            "A starter App component with a title card and a click counter is ready in the preview.",
        ]
    )


def _chunked(text: str, size: int = _FALLBACK_CHUNK_SIZE) -> Iterator[str]:
    for i in range(0, len(text), size):
        yield text[i : i + size]


def stream_generation(
    messages: List[UIMessage],
    model_id: Optional[str],
    router: Optional[ModelRouter] = None,
) -> Iterator[str]:
    """Return an iterator of text chunks for the given transcript.

    Provider errors surface when the iterator is advanced; callers prime the
    first chunk to tell a refused request apart from a broken stream.
    """
    router = router or ModelRouter()
    selection = router.resolve(model_id)
    if not router.api_key(selection):
        if not _fallback_enabled():
            raise GenerationUnavailable("LLM not configured")
        LOG.info(
            "llm_fallback_deterministic",
            extra={"model": selection.public_id, "provider": selection.name, "err": "not configured"},
        )
        return _chunked(fallback_reply(_last_user_text(messages)))

    llm = _get_llm(selection, router)
    return _stream_llm(llm, build_model_messages(messages), selection)
