from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from settleup.models.friendship import Friendship
from settleup.models.user import User
from settleup.core.errors import InvalidInput, NotFound

async def add_friend(db: AsyncSession, user_id: int, friend_id: int):
    if user_id == friend_id:
        raise InvalidInput("You cannot add yourself as a friend")

    friend = await db.get(User, friend_id)
    if not friend:
        raise NotFound("User not found")

    existing = await db.execute(
        select(Friendship).where(
            Friendship.user_id == user_id,
            Friendship.friend_id == friend_id
        )
    )
    if existing.scalar_one_or_none():
        raise InvalidInput("Already friends")

    # Stored in both directions so lookups stay a single indexed query
    db.add(Friendship(user_id=user_id, friend_id=friend_id))
    db.add(Friendship(user_id=friend_id, friend_id=user_id))
    await db.commit()

    return friend

async def remove_friend(db: AsyncSession, user_id: int, friend_id: int):
    res = await db.execute(
        select(Friendship).where(
            ((Friendship.user_id == user_id) & (Friendship.friend_id == friend_id)) |
            ((Friendship.user_id == friend_id) & (Friendship.friend_id == user_id))
        )
    )
    rows = res.scalars().all()

    if not rows:
        raise NotFound("Not friends")

    for row in rows:
        await db.delete(row)
    await db.commit()

    return {"status": "removed"}

async def list_friends(db: AsyncSession, user_id: int):
    q = (
        select(User)
        .join(Friendship, Friendship.friend_id == User.id)
        .where(Friendship.user_id == user_id)
        .order_by(User.name, User.id)
    )
    res = await db.execute(q)
    return res.scalars().all()
