import logging
from typing import Any, List, Optional, Union

from ..api.models import SessionState
from ..push.bus import SubscriptionBus
from ..session.errors import NotFound, Unauthenticated
from ..session.session import Session
from ..session.store import SessionStore

logger = logging.getLogger(__name__)

PARAMS_NONE = [{"type": "none"}]
PARAMS_TOPICS = [
    {"type": "string", "description": "Topic"},
    {"type": "array", "contains": "string", "description": "Array containing topics"},
]
PARAMS_SESSION_ID = [
    {"type": "string", "description": "Unique identifier of the session that will be destroyed"}
]


def _require_session(session: Optional[Session]) -> Session:
    if session is None:
        raise Unauthenticated()
    return session


class SessionManager:
    """
    Named session operations exposed to an RPC dispatcher.

    Every handler takes ``(session, params)`` where ``session`` is the
    session the dispatcher resolved for the request, or None.
    """

    def __init__(self, store: SessionStore, bus: Optional[SubscriptionBus] = None):
        self.store = store
        self.bus = bus or SubscriptionBus(store)

    # Dispatcher hooks

    def resolve(self, token: Optional[str]) -> Optional[Session]:
        """Resolve a caller-presented token to a live session."""
        return self.store.resolve(token)

    async def push(self, session: Session, subject: str, message: Any) -> bool:
        return await self.bus.push(session, subject, message)

    async def push_if_subscribed(self, session: Session, subject: str, message: Any) -> bool:
        return await self.bus.push_if_subscribed(session, subject, message)

    # Management of individual sessions

    async def create_session(self, session: Optional[Session], params: Any) -> str:
        """Create a session and return its token. Needs no prior session."""
        return self.store.create()

    async def destroy_current_session(self, session: Optional[Session], params: Any) -> bool:
        # NotFound here usually means the sweeper got there first
        self.store.destroy(_require_session(session))
        return True

    async def state(self, session: Optional[Session], params: Any) -> dict:
        session = _require_session(session)
        user = session.get_user()
        return SessionState(
            user=user.serialize() if user is not None else None,
            permissions=session.get_permissions(),
        ).model_dump()

    async def list_permissions_for_current_session(
        self, session: Optional[Session], params: Any
    ) -> List[str]:
        return _require_session(session).get_permissions()

    async def subscribe(self, session: Optional[Session], params: Any) -> Union[bool, List[bool]]:
        return await self.bus.subscribe(_require_session(session), params)

    async def unsubscribe(self, session: Optional[Session], params: Any) -> Union[bool, List[bool]]:
        return await self.bus.unsubscribe(_require_session(session), params)

    # Administrative tasks

    async def list_sessions(self, session: Optional[Session], params: Any) -> List[dict]:
        return self.store.list()

    async def destroy_session(self, session: Optional[Session], params: Any) -> bool:
        """
        Destroy the session identified by ``params``.

        Raises:
            NotFound: No live session has that identifier
        """
        if not isinstance(params, str):
            raise NotFound()
        self.store.destroy_by_id(params)
        return True

    def register_rpc_methods(self, rpc, prefix: str = "session") -> None:
        """
        Register all session methods on a dispatcher.

        Args:
            rpc: Dispatcher exposing add_method() and add_always_allow()
            prefix: Namespace for the method names ("" for bare names)

        Management methods require a permission named after the method when
        the dispatcher supports permission checks.
        """
        if prefix:
            prefix = prefix + "/"

        rpc.add_method(prefix + "create", self.create_session, PARAMS_NONE)
        rpc.add_always_allow(prefix + "create")

        rpc.add_method(prefix + "destroy", self.destroy_current_session, PARAMS_NONE)
        rpc.add_method(prefix + "state", self.state, PARAMS_NONE)
        rpc.add_method(prefix + "permissions", self.list_permissions_for_current_session, PARAMS_NONE)

        rpc.add_method(prefix + "push/subscribe", self.subscribe, PARAMS_TOPICS)
        rpc.add_method(prefix + "push/unsubscribe", self.unsubscribe, PARAMS_TOPICS)

        rpc.add_method(prefix + "management/list", self.list_sessions, PARAMS_NONE)
        rpc.add_method(prefix + "management/destroy", self.destroy_session, PARAMS_SESSION_ID)

        if hasattr(rpc, "require_permission"):
            for name in ("management/list", "management/destroy"):
                rpc.require_permission(prefix + name, prefix + name)

        logger.debug(f"Registered session RPC methods under '{prefix or '/'}'")
