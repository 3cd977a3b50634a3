import logging
import threading
import time
from typing import Callable, Dict, List, Optional

from .errors import NotFound
from .session import Connection, Session
from .sweeper import DEFAULT_SWEEP_INTERVAL, ExpirySweeper

logger = logging.getLogger(__name__)


class SessionStore:
    """
    In-memory collection of live sessions keyed by identifier.

    Membership only changes through create, destroy, destroy_by_id and the
    expiry sweep. Those four paths hold ``_lock`` for the structural change
    alone; readers take a snapshot under the same lock.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the store.

        Args:
            timeout: Idle seconds before a session expires (None disables expiry)
            sweep_interval: Seconds between two expiry passes
            clock: Source of the current time in seconds
        """
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self.sweeper = ExpirySweeper(self, timeout, interval=sweep_interval, clock=clock)

    @property
    def timeout(self) -> Optional[float]:
        return self.sweeper.timeout

    # Lifecycle

    def start(self) -> None:
        """Start background expiry. Requires a running event loop."""
        self.sweeper.start()

    async def shutdown(self) -> None:
        await self.sweeper.stop()

    def sweep(self, now: Optional[float] = None) -> List[str]:
        """Run one expiry pass synchronously."""
        return self.sweeper.sweep(now)

    # Mutations

    def create(self) -> str:
        """
        Create and register a new session.

        Returns:
            Identifier of the new session
        """
        session = Session(clock=self._clock)
        with self._lock:
            while session.id in self._sessions:
                session = Session(clock=self._clock)
            self._sessions[session.id] = session

        logger.debug(f"Created session {session.id}")
        return session.id

    def destroy_by_id(self, session_id: str) -> None:
        """
        Remove the session with the given identifier.

        Raises:
            NotFound: No live session has this identifier
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)

        if session is None:
            raise NotFound()
        logger.info(f"Destroyed session {session_id}")

    def destroy(self, session: Session) -> None:
        """
        Remove this exact session instance.

        Raises:
            NotFound: The instance is no longer live (destroyed or expired)
        """
        with self._lock:
            if self._sessions.get(session.id) is not session:
                raise NotFound()
            del self._sessions[session.id]

        logger.info(f"Destroyed session {session.id}")

    def remove_where(self, predicate: Callable[[Session], bool]) -> List[Session]:
        """Remove every session matching ``predicate`` and return them."""
        with self._lock:
            retained = {}
            removed = []
            for session_id, session in self._sessions.items():
                if predicate(session):
                    removed.append(session)
                else:
                    retained[session_id] = session
            self._sessions = retained

        return removed

    def release_connection(self, connection: Connection) -> int:
        """Detach a closed connection from every session bound to it."""
        released = 0
        for session in self.sessions():
            if session.get_connection() is connection:
                session.set_connection(None)
                released += 1
        return released

    # Reads

    def get_by_id(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def resolve(self, token: Optional[str]) -> Optional[Session]:
        """Resolve a caller-presented token to its session, if any."""
        if not token or not isinstance(token, str):
            return None
        return self.get_by_id(token)

    def sessions(self) -> List[Session]:
        """Snapshot of live sessions in creation order."""
        with self._lock:
            return list(self._sessions.values())

    def list(self) -> List[dict]:
        """Snapshot of all live sessions' summaries."""
        return [session.serialize() for session in self.sessions()]

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
