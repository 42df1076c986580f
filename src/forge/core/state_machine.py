from __future__ import annotations

from typing import Dict, List

IDLE = "idle"
SUBMITTED = "submitted"
STREAMING = "streaming"
SETTLED = "settled"

# Streaming session transitions. A failed request drops back to idle;
# settled ends a turn and only a fresh submit leaves it.
STATUS_TRANSITIONS: Dict[str, List[str]] = {
    IDLE: [SUBMITTED],
    SUBMITTED: [STREAMING, SETTLED, IDLE],
    STREAMING: [STREAMING, SETTLED],
    SETTLED: [SUBMITTED],
}

BUSY_STATUSES = frozenset({SUBMITTED, STREAMING})


class InvalidTransition(RuntimeError):
    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot move streaming session from {current} to {target}")
        self.current = current
        self.target = target


def is_valid_transition(current: str, target: str) -> bool:
    return target in STATUS_TRANSITIONS.get(current, [])


def transition(current: str, target: str) -> str:
    if not is_valid_transition(current, target):
        raise InvalidTransition(current, target)
    return target


def is_busy(status: str) -> bool:
    return status in BUSY_STATUSES
