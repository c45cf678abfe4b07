"""pyslices - Async generic entity cache, actions and events over REST."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyslices")
except PackageNotFoundError:
    __version__ = "0+local"
from pyslices.client import SliceClient
from pyslices.config import ClientConfig, SliceConfig
from pyslices.context import SliceContext
from pyslices.exceptions import (
    MalformedResponseError,
    NotFoundError,
    SliceConfigError,
    SliceError,
    TransportFailure,
)
from pyslices.models import ChangeOperation, RemoteChange
from pyslices.slices import (
    ActionKind,
    ActionOutcome,
    Dispatched,
    OutcomeStatus,
    SliceAction,
    SliceActions,
    SliceBundle,
    SliceRegistry,
    create_slice,
)
from pyslices.state.events import (
    EventName,
    EventSource,
    RecordCreated,
    RecordRemoved,
    RecordsLoaded,
    RecordUpdated,
    SliceEvent,
    SliceEventNames,
)
from pyslices.state.store import CacheSnapshot

__all__ = [
    "__version__",
    "ActionKind",
    "ActionOutcome",
    "CacheSnapshot",
    "ChangeOperation",
    "ClientConfig",
    "Dispatched",
    "EventName",
    "EventSource",
    "MalformedResponseError",
    "NotFoundError",
    "OutcomeStatus",
    "RecordCreated",
    "RecordRemoved",
    "RecordUpdated",
    "RecordsLoaded",
    "RemoteChange",
    "SliceAction",
    "SliceActions",
    "SliceBundle",
    "SliceClient",
    "SliceConfig",
    "SliceConfigError",
    "SliceContext",
    "SliceError",
    "SliceEvent",
    "SliceEventNames",
    "SliceRegistry",
    "TransportFailure",
    "create_slice",
]
