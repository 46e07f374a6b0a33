"""Database layer - engine, base classes and column types."""

from shift_kernel.db.base import Base, TrackedBase
from shift_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from shift_kernel.db.types import UTCDateTime, UUIDString

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UTCDateTime",
]
