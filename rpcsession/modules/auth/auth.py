"""
API-key authentication for sessions.

Attaches a user to the calling session once it presents a valid API key.
Identities listed as administrators receive the session management
permissions.
"""

import logging
import secrets
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..session.errors import Unauthenticated
from ..session.session import Session

logger = logging.getLogger(__name__)

MANAGEMENT_METHODS = ("management/list", "management/destroy")


@dataclass
class ApiKeyUser:
    """User authenticated through an API key."""

    name: str
    permissions: List[str] = field(default_factory=list)

    def serialize(self) -> dict:
        return {"name": self.name, "method": "api_key"}

    def get_permissions(self) -> List[str]:
        return list(self.permissions)


def parse_api_keys(entries: Iterable[str]) -> Dict[str, str]:
    """
    Parse ``name:key`` entries into a key -> identity mapping.

    Plain keys without an identity are named after their position.
    """
    keys = {}
    for index, entry in enumerate(entries):
        entry = entry.strip()
        if not entry:
            continue

        if ":" in entry:
            name, key = entry.split(":", 1)
            keys[key.strip()] = name.strip()
        else:
            keys[entry] = f"key-{index}"

    return keys


class AuthModule:
    """Authentication module for attaching users to sessions."""

    def __init__(
        self,
        api_keys: Dict[str, str],
        admin_users: Optional[Iterable[str]] = None,
        session_prefix: str = "session",
    ):
        """
        Initialize auth module.

        Args:
            api_keys: Mapping of API key to identity
            admin_users: Identities granted the management permissions
            session_prefix: RPC prefix the session methods are registered under
        """
        self.api_keys = dict(api_keys)
        self.admin_users = set(admin_users or [])
        base = f"{session_prefix}/" if session_prefix else ""
        self.admin_permissions = [base + name for name in MANAGEMENT_METHODS]

    @classmethod
    def from_config(cls, auth_config, session_prefix: str = "session") -> "AuthModule":
        return cls(
            parse_api_keys(auth_config.api_keys),
            admin_users=auth_config.admin_users,
            session_prefix=session_prefix,
        )

    def verify_api_key(self, api_key: Optional[str]) -> Optional[str]:
        """
        Verify an API key.

        Returns:
            The identity owning the key, or None
        """
        if not api_key or not isinstance(api_key, str):
            return None

        identity = None
        for known_key, name in self.api_keys.items():
            # Use constant-time comparison for security
            if secrets.compare_digest(api_key.encode(), known_key.encode()):
                identity = name
        return identity

    def build_user(self, identity: str) -> ApiKeyUser:
        permissions = list(self.admin_permissions) if identity in self.admin_users else []
        return ApiKeyUser(name=identity, permissions=permissions)

    async def authenticate(self, session: Optional[Session], params: str) -> dict:
        """Attach the user owning the API key in ``params`` to the session."""
        if session is None:
            raise Unauthenticated()

        identity = self.verify_api_key(params)
        if identity is None:
            logger.warning(f"Rejected API key for session {session.id}")
            raise Unauthenticated("Invalid API key")

        user = self.build_user(identity)
        session.set_user(user)
        logger.info(f"Session {session.id} authenticated as '{identity}'")
        return user.serialize()

    async def logout(self, session: Optional[Session], params) -> bool:
        if session is None:
            raise Unauthenticated()
        session.set_user(None)
        return True

    def register_rpc_methods(self, rpc, prefix: str = "user") -> None:
        if prefix:
            prefix = prefix + "/"

        rpc.add_method(prefix + "authenticate", self.authenticate, [{"type": "string", "description": "API key"}])
        rpc.add_method(prefix + "logout", self.logout, [{"type": "none"}])
