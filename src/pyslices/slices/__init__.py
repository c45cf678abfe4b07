"""Generic slice machinery: actions, reducer, factory, registry."""

from pyslices.slices.actions import ActionKind, SliceAction, SliceActions
from pyslices.slices.dispatch import ActionOutcome, Dispatched, OutcomeStatus
from pyslices.slices.factory import SliceBundle, create_slice
from pyslices.slices.registry import SliceRegistry

__all__ = [
    "ActionKind",
    "ActionOutcome",
    "Dispatched",
    "OutcomeStatus",
    "SliceAction",
    "SliceActions",
    "SliceBundle",
    "SliceRegistry",
    "create_slice",
]
