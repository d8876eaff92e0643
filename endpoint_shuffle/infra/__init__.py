"""Infra layer utilities (endpoint store, staging file)."""

from .staging import StagingFile
from .storage import EndpointRecord, EndpointStore, SQLiteManager

__all__ = ["EndpointRecord", "EndpointStore", "SQLiteManager", "StagingFile"]
