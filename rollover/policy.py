"""Triggering policy — decides before each write whether the active file must roll."""

from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum

from rollover.naming import RolloverMode


class Trigger(Enum):
    NONE = "none"
    SIZE = "size"
    DAILY = "daily"


@dataclass(frozen=True)
class TriggerState:
    day: date
    size: int = 0
    deferred_bytes: int = 0  # exempt from the size check after a failed rollover


class TriggeringPolicy:
    """Daily and size conditions composed with OR; DAILY wins when both hold.

    Evaluation happens before the pending write is applied, so the active file
    only exceeds the size limit when a single write is larger than the limit.
    """

    def __init__(self, mode: RolloverMode, size_limit_bytes: int = 0):
        self._mode = mode
        self._size_limit = size_limit_bytes if mode in (RolloverMode.SIZE, RolloverMode.DAILY_SIZE) else 0

    @property
    def mode(self) -> RolloverMode:
        return self._mode

    def evaluate(self, state: TriggerState, pending_bytes: int, now: datetime) -> Trigger:
        if self._mode is RolloverMode.NONE:
            return Trigger.NONE
        if self._mode.is_daily and now.date() != state.day:
            return Trigger.DAILY
        if self._size_limit > 0 and state.size > 0:
            if state.size - state.deferred_bytes + pending_bytes > self._size_limit:
                return Trigger.SIZE
        return Trigger.NONE

    @staticmethod
    def fresh_state(now: datetime, size: int = 0) -> TriggerState:
        return TriggerState(day=now.date(), size=size)

    @staticmethod
    def advance(state: TriggerState, written: int) -> TriggerState:
        return replace(state, size=state.size + written)

    @staticmethod
    def defer(state: TriggerState, now: datetime) -> TriggerState:
        """State after a rollover that could not happen: keep appending, retry later."""
        return TriggerState(day=now.date(), size=state.size, deferred_bytes=state.size)
