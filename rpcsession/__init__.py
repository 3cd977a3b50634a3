"""
rpcsession - Session lifecycle for RPC servers

Issues session tokens, tracks user association and idle time, expires
stale sessions and delivers push messages to subscribed sessions.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another

Modules:
- session: Session records, the store and idle expiry
- push: Topic subscriptions and push delivery
- rpc: Named RPC operations and a reference dispatcher
- auth: API-key users attached to sessions
- api: Shared wire models
"""

__version__ = "1.0.0"
