"""Value objects exchanged with pyslices callers."""

from pyslices.models._base import Record, RecordId, SliceBaseModel, get_record_id, is_soft_deleted
from pyslices.models.remote_change import ChangeOperation, RemoteChange
from pyslices.models.requests import AddRequest, FetchRequest, RemoveRequest, UpdateRequest

__all__ = [
    "AddRequest",
    "ChangeOperation",
    "FetchRequest",
    "Record",
    "RecordId",
    "RemoteChange",
    "RemoveRequest",
    "SliceBaseModel",
    "UpdateRequest",
    "get_record_id",
    "is_soft_deleted",
]
