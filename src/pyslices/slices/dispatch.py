"""Dispatch results.

:meth:`SliceBundle.dispatch` starts the action immediately and returns a
:class:`Dispatched` handle. Awaiting the handle yields an
:class:`ActionOutcome` and never raises for a failed action;
``await handle.unwrap()`` returns the resolved value or re-raises the
failure, which is what interactive callers usually want.
"""

from __future__ import annotations

import asyncio
from collections.abc import Generator
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pyslices.slices.actions import SliceAction


class OutcomeStatus(StrEnum):
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class ActionOutcome:
    action: SliceAction
    status: OutcomeStatus
    payload: Any = None
    error: Exception | None = None

    @classmethod
    def fulfilled(cls, action: SliceAction, payload: Any) -> ActionOutcome:
        return cls(action, OutcomeStatus.FULFILLED, payload=payload)

    @classmethod
    def rejected(cls, action: SliceAction, error: Exception) -> ActionOutcome:
        return cls(action, OutcomeStatus.REJECTED, error=error)

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.FULFILLED

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.payload


class Dispatched:
    """Awaitable handle of an in-flight action."""

    def __init__(self, action: SliceAction, task: asyncio.Task[ActionOutcome]) -> None:
        self._action = action
        self._task = task

    @property
    def action(self) -> SliceAction:
        return self._action

    def done(self) -> bool:
        return self._task.done()

    async def outcome(self) -> ActionOutcome:
        # Shielded: a caller that stops waiting must not cancel the request,
        # its cache mutation and event still happen.
        return await asyncio.shield(self._task)

    async def unwrap(self) -> Any:
        outcome = await self.outcome()
        return outcome.unwrap()

    def __await__(self) -> Generator[Any, None, ActionOutcome]:
        return self.outcome().__await__()

    def __repr__(self) -> str:
        state = "done" if self._task.done() else "pending"
        return f"<Dispatched {self._action.type} {state}>"
