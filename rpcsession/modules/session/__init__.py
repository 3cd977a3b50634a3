"""
Session Module - Black Box Interface

Purpose: Manage session lifecycle and idle expiry
Interface: SessionStore.create(), get_by_id(), destroy(), destroy_by_id(), list(), sweep()
Hidden: Index structure, locking, the recurring expiry task

Replaceable with any session backend that honors the same interface.
"""

from .errors import (
    Forbidden,
    InvalidParams,
    MethodNotFound,
    NotFound,
    SessionError,
    Unauthenticated,
)
from .session import Connection, Session, User
from .store import SessionStore
from .sweeper import ExpirySweeper

__all__ = [
    "Connection",
    "ExpirySweeper",
    "Forbidden",
    "InvalidParams",
    "MethodNotFound",
    "NotFound",
    "Session",
    "SessionError",
    "SessionStore",
    "Unauthenticated",
    "User",
]
