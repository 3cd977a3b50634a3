"""
RPC Module - Black Box Interface

Purpose: Expose session operations as named RPC methods
Interface: SessionManager.register_rpc_methods(), RpcDispatcher.handle()
Hidden: Parameter-shape validation, error envelope mapping

SessionManager works with any dispatcher offering add_method() and
add_always_allow(); RpcDispatcher is the reference implementation.
"""

from .dispatcher import RpcDispatcher
from .surface import SessionManager

__all__ = ["RpcDispatcher", "SessionManager"]
