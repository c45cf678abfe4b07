"""Typed lifecycle events and the per-slice event channel.

Each slice owns one :class:`EventChannel`. The bundle emits on it after
every successful mutation, independently of the reducer; any number of
listeners may subscribe. Delivery is synchronous and in subscription
order, and a failing listener never stops delivery to the others.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, TypeAlias

from pydantic import Field

from pyslices.models._base import RecordId, SliceBaseModel

_logger = logging.getLogger(__name__)


class EventName(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    REMOVED = "removed"
    LOADED = "loaded"


class EventSource(StrEnum):
    ACTION = "action"  # result of a dispatched action
    REMOTE = "remote"  # server-pushed row change


class SliceEvent(SliceBaseModel):
    """Common envelope of all lifecycle events."""

    slice_key: str
    name: EventName
    source: EventSource = EventSource.ACTION
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def qualified_name(self) -> str:
        return f"{self.slice_key}:{self.name}"


class RecordCreated(SliceEvent):
    name: EventName = EventName.CREATED
    record: dict[str, Any]


class RecordUpdated(SliceEvent):
    name: EventName = EventName.UPDATED
    record: dict[str, Any]


class RecordRemoved(SliceEvent):
    name: EventName = EventName.REMOVED
    record_id: RecordId


class RecordsLoaded(SliceEvent):
    name: EventName = EventName.LOADED
    records: tuple[dict[str, Any], ...] = ()
    partial: bool = False


class SliceEventNames(SliceBaseModel):
    """Qualified event-name constants for one slice (``"taskTags:created"``...)."""

    created: str
    updated: str
    removed: str
    loaded: str

    @classmethod
    def for_slice(cls, slice_key: str) -> SliceEventNames:
        return cls(**{name.value: f"{slice_key}:{name.value}" for name in EventName})


EventCallback: TypeAlias = Callable[[SliceEvent], Any]
Unsubscribe: TypeAlias = Callable[[], None]


@dataclass(eq=False, slots=True)
class _Subscription:
    event: EventName
    callback: EventCallback


class EventChannel:
    """Pub/sub channel for one slice."""

    def __init__(self, slice_key: str) -> None:
        self._slice_key = slice_key
        self._subscriptions: list[_Subscription] = []

    @property
    def slice_key(self) -> str:
        return self._slice_key

    def _resolve(self, event_name: str) -> EventName:
        """Accept ``EventName``, ``"created"`` or this slice's ``"taskTags:created"``."""
        name = str(event_name)
        prefix, sep, bare = name.rpartition(":")
        if sep:
            if prefix != self._slice_key:
                raise ValueError(f"event {name!r} does not belong to slice {self._slice_key!r}")
            name = bare
        try:
            return EventName(name)
        except ValueError:
            raise ValueError(f"unknown event {event_name!r}; expected one of {[e.value for e in EventName]}") from None

    def subscribe(self, event_name: str, callback: EventCallback) -> Unsubscribe:
        """Register *callback* and return a function that removes this registration.

        Subscribing the same callback twice yields two independent
        registrations. Calling the returned function more than once is
        harmless.
        """
        if not callable(callback):
            raise TypeError("callback must be callable")
        subscription = _Subscription(self._resolve(event_name), callback)
        self._subscriptions.append(subscription)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._subscriptions.remove(subscription)

        return _unsubscribe

    def subscriber_count(self, event_name: str | None = None) -> int:
        if event_name is None:
            return len(self._subscriptions)
        name = self._resolve(event_name)
        return sum(1 for sub in self._subscriptions if sub.event == name)

    def emit(self, event_name: str, payload: SliceEvent) -> int:
        """Deliver *payload* to every current subscriber of *event_name*.

        Subscribers added or removed by a callback take effect on the
        next emit. Returns the number of callbacks that completed
        without raising.
        """
        name = self._resolve(event_name)
        delivered = 0
        for subscription in [sub for sub in self._subscriptions if sub.event == name]:
            try:
                subscription.callback(payload)
            except Exception:
                _logger.warning(
                    "%s:%s subscriber %r failed",
                    self._slice_key,
                    name.value,
                    subscription.callback,
                    exc_info=True,
                )
                continue
            delivered += 1
        return delivered
