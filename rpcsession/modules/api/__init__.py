"""
API Module - Black Box Interface

Purpose: Wire formats shared by the session core, dispatcher and transport
Interface: PushMessage, SessionSummary, SessionState, RpcRequest, RpcResponse
Hidden: Field aliases and JSON serialization details

Models only - no behavior lives here.
"""

from .models import (
    PushMessage,
    RpcErrorBody,
    RpcRequest,
    RpcResponse,
    SessionState,
    SessionSummary,
)

__all__ = [
    "PushMessage",
    "RpcErrorBody",
    "RpcRequest",
    "RpcResponse",
    "SessionState",
    "SessionSummary",
]
