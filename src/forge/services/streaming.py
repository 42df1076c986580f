# --- forge-stream ---
from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional

from ..observability.metrics import record_chunk, record_generation

LOG = logging.getLogger("forge.llm")


class StreamStartError(RuntimeError):
    """The provider failed before producing any output."""


def _first_chunk(iterator: Iterator[str]) -> Optional[str]:
    for chunk in iterator:
        if chunk:
            return chunk
    return None


def prime_stream(chunks: Iterable[str], model_id: str) -> Iterator[str]:
    """Pull the first non-empty chunk now and return a guarded iterator.

    A failure while priming raises ``StreamStartError`` so the caller can still
    answer with an error status. Later failures end the stream early.
    """
    iterator = iter(chunks)
    try:
        first = _first_chunk(iterator)
    except Exception as exc:
        record_generation(model_id, "failed")
        LOG.warning("llm_stream_start_failed", extra={"model": model_id, "err": str(exc)})
        raise StreamStartError(str(exc)) from exc
    return _guarded(first, iterator, model_id)


def _guarded(first: Optional[str], iterator: Iterator[str], model_id: str) -> Iterator[str]:
    if first is None:
        record_generation(model_id, "empty")
        LOG.warning("llm_stream_empty", extra={"model": model_id})
        return
    sent = len(first)
    record_chunk(model_id)
    yield first
    try:
        for chunk in iterator:
            if not chunk:
                continue
            sent += len(chunk)
            record_chunk(model_id)
            yield chunk
    except Exception as exc:
        record_generation(model_id, "interrupted")
        LOG.warning("llm_stream_interrupted", extra={"model": model_id, "chars": sent, "err": str(exc)})
        return
    record_generation(model_id, "completed")
    LOG.debug("llm_stream_completed", extra={"model": model_id, "chars": sent})
