"""Ingestion layer.

Adapters that take data the server pushes on its own (row change
notifications) and route it into the owning slice.
"""

from pyslices.ingestion.remote import apply_remote_change, parse_remote_change

__all__ = ["apply_remote_change", "parse_remote_change"]
