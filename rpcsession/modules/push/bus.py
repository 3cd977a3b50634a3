import asyncio
import logging
from typing import Any, List, Optional, Sequence, Union

from ..session.session import Session

logger = logging.getLogger(__name__)

Topics = Union[str, Sequence[str]]


class SubscriptionBus:
    """Per-session subscription bookkeeping and push delivery."""

    def __init__(self, store=None):
        """
        Initialize the bus.

        Args:
            store: Optional SessionStore used by ``publish`` to reach every session
        """
        self.store = store

    async def subscribe(self, session: Session, topics: Topics) -> Union[bool, List[bool]]:
        """
        Subscribe a session to one topic or a batch of topics.

        Args:
            session: Target session
            topics: A single topic or a sequence of topics

        Returns:
            A bool for a single topic, otherwise one bool per topic in input order
        """
        if isinstance(topics, str):
            return await session.subscribe(topics)
        return list(await asyncio.gather(*(session.subscribe(topic) for topic in topics)))

    async def unsubscribe(self, session: Session, topics: Topics) -> Union[bool, List[bool]]:
        if isinstance(topics, str):
            return await session.unsubscribe(topics)
        return list(await asyncio.gather(*(session.unsubscribe(topic) for topic in topics)))

    async def push(self, session: Session, subject: str, message: Any) -> bool:
        return await session.push(subject, message)

    async def push_if_subscribed(self, session: Session, subject: str, message: Any) -> bool:
        return await session.push_if_subscribed(subject, message)

    async def publish(self, subject: str, message: Any, sessions: Optional[List[Session]] = None) -> int:
        """
        Deliver a message to every session subscribed to ``subject``.

        Args:
            subject: Topic to publish on
            message: Serializable payload
            sessions: Explicit recipients (defaults to a snapshot of the store)

        Returns:
            Number of sessions the message was delivered to
        """
        if sessions is None:
            if self.store is None:
                raise RuntimeError("SubscriptionBus has no store to publish to")
            sessions = self.store.sessions()

        subscribed = [session for session in sessions if session.is_subscribed(subject)]
        results = await asyncio.gather(
            *(session.push_if_subscribed(subject, message) for session in subscribed)
        )
        delivered = sum(1 for result in results if result)

        logger.debug(f"Published '{subject}' to {delivered}/{len(subscribed)} subscribed session(s)")
        return delivered
