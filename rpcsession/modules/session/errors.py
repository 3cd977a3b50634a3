"""
Session error taxonomy.

Every error carries a JSON-RPC style ``code`` so the dispatcher can turn it
into an error envelope without knowing the concrete type.
"""


class SessionError(Exception):
    """Base class for errors reported to the caller of an RPC operation."""

    code = -32000
    default_message = "Session error"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class Unauthenticated(SessionError):
    """Operation required a session but none was attached to the request."""

    code = -32001
    default_message = "No active session"


class Forbidden(SessionError):
    """Attached user lacks the permission the method requires."""

    code = -32003
    default_message = "Permission denied"


class NotFound(SessionError):
    """Referenced session no longer exists (destroyed or expired)."""

    code = -32004
    default_message = "Session not found"


class MethodNotFound(SessionError):
    code = -32601
    default_message = "Method not found"


class InvalidParams(SessionError):
    """Parameters do not match any declared shape of the method."""

    code = -32602
    default_message = "Invalid parameters"
