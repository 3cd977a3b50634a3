"""
Auth Module - Black Box Interface

Purpose: Attach users to sessions
Interface: AuthModule.authenticate(), AuthModule.register_rpc_methods()
Hidden: Key storage, constant-time comparison, permission assignment

Can be replaced with any module producing users with serialize() and get_permissions().
"""

from .auth import ApiKeyUser, AuthModule, parse_api_keys

__all__ = ["ApiKeyUser", "AuthModule", "parse_api_keys"]
