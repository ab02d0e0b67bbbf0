import logging
from typing import Any, Dict, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from settleup.models.friendship import Friendship

logger = logging.getLogger(__name__)


class MembershipChecker(Protocol):
    async def is_authorized_participant(self, actor_id: int, target_id: int) -> bool:
        ...


class Notifier(Protocol):
    async def notify(self, user_id: int, event: str, payload: Dict[str, Any]) -> None:
        ...


class FriendshipChecker:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def is_authorized_participant(self, actor_id: int, target_id: int) -> bool:
        if actor_id == target_id:
            return True

        q = select(Friendship.id).where(
            Friendship.user_id == actor_id,
            Friendship.friend_id == target_id,
        )
        res = await self.db.execute(q)
        return res.scalar_one_or_none() is not None


class LogNotifier:
    async def notify(self, user_id: int, event: str, payload: Dict[str, Any]) -> None:
        logger.info("notify user=%s event=%s payload=%s", user_id, event, payload)


async def safe_notify(notifier: Notifier, user_id: int, event: str, payload: Dict[str, Any]) -> None:
    """Deliver a notification without ever failing the caller's operation."""
    try:
        await notifier.notify(user_id, event, payload)
    except Exception:
        logger.exception("Failed to notify user %s about %s", user_id, event)
