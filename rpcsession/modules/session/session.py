import inspect
import logging
import time
import uuid
from typing import Any, Awaitable, Callable, List, Optional, Protocol, Set, Union

from pydantic_core import PydanticSerializationError

from ..api.models import PushMessage, SessionSummary

logger = logging.getLogger(__name__)


class User(Protocol):
    """User account attached to a session by an external authentication step."""

    def serialize(self) -> Any:
        ...

    def get_permissions(self) -> List[str]:
        ...


class Connection(Protocol):
    """Transport handle owned by the connection layer."""

    def send(self, text: str) -> Union[None, Awaitable[None]]:
        ...


class Session:
    """
    A single server-side session record.

    The session holds shared references to its user and connection; it owns
    neither. Timestamps are unix seconds.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        """
        Initialize a fresh, anonymous session.

        Args:
            clock: Source of the current time in seconds (injectable for tests)
        """
        self._clock = clock
        self._id = str(uuid.uuid4())

        self._created_at = int(clock())
        self._last_used_at = self._created_at

        self._user: Optional[User] = None
        self._connection: Optional[Connection] = None

        self._subscriptions: Set[str] = set()

    @property
    def id(self) -> str:
        return self._id

    @property
    def created_at(self) -> int:
        return self._created_at

    @property
    def last_used_at(self) -> int:
        return self._last_used_at

    @property
    def user(self) -> Optional[User]:
        return self._user

    def touch(self) -> None:
        """Mark the session as used now. Never moves backwards."""
        self._last_used_at = max(self._last_used_at, int(self._clock()))

    def idle_seconds(self, now: Optional[float] = None) -> int:
        """Seconds since the session was last used."""
        if now is None:
            now = self._clock()
        return int(now) - self._last_used_at

    def set_user(self, user: Optional[User]) -> None:
        self._user = user

    def get_user(self) -> Optional[User]:
        return self._user

    def set_connection(self, connection: Optional[Connection]) -> None:
        self._connection = connection

    def get_connection(self) -> Optional[Connection]:
        return self._connection

    def get_permissions(self) -> List[str]:
        """Permissions of the attached user, empty for anonymous sessions."""
        if self._user is None:
            return []
        return list(self._user.get_permissions())

    def serialize(self) -> dict:
        """Summary for administrative listing."""
        user = self._user
        if user is not None and hasattr(user, "serialize"):
            user = user.serialize()

        return SessionSummary(
            id=self._id,
            user=user,
            created_at=self._created_at,
            last_used_at=self._last_used_at,
            subscriptions=self.list_subscriptions(),
        ).model_dump(by_alias=True)

    # Push messaging

    async def subscribe(self, subject: str) -> bool:
        """Add a topic. Returns False if it was already subscribed."""
        if subject in self._subscriptions:
            return False
        self._subscriptions.add(subject)
        return True

    async def unsubscribe(self, subject: str) -> bool:
        self._subscriptions.discard(subject)
        return True

    def is_subscribed(self, subject: str) -> bool:
        return subject in self._subscriptions

    def list_subscriptions(self) -> List[str]:
        return sorted(self._subscriptions)

    async def push(self, subject: str, message: Any) -> bool:
        """
        Deliver a push message regardless of subscriptions.

        Args:
            subject: Topic of the message
            message: Serializable payload

        Returns:
            True if a connection was present and accepted the message

        A connection whose send fails is considered stale and detached. A
        payload that cannot be encoded is dropped and the connection kept.
        """
        connection = self._connection
        if connection is None:
            return False

        try:
            text = PushMessage(subject=subject, message=message).to_text()
        except PydanticSerializationError as e:
            logger.warning(f"Push to session {self._id} dropped, payload not encodable: {e}")
            return False

        try:
            result = connection.send(text)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.warning(f"Push to session {self._id} failed, detaching connection: {e}")
            if self._connection is connection:
                self._connection = None
            return False

        return True

    async def push_if_subscribed(self, subject: str, message: Any) -> bool:
        if subject not in self._subscriptions:
            return False
        return await self.push(subject, message)

    def __repr__(self) -> str:
        return f"<Session {self._id} user={self._user!r}>"
