from typing import Dict, Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from settleup.models.user import User
from settleup.schemas.user import UserCreate, UserUpdate
from settleup.core.errors import InvalidInput, NotFound

async def get_user_by_id(db: AsyncSession, id: int):
    result = await db.execute(select(User).where(User.id == id))
    return result.scalar_one_or_none()

async def get_users_by_ids(db: AsyncSession, ids: Iterable[int]) -> Dict[int, User]:
    ids = list(set(ids))
    if not ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(ids)))
    return {u.id: u for u in result.scalars().all()}

async def get_all_users(db: AsyncSession):
    result = await db.execute(select(User).order_by(User.id))
    return result.scalars().all()

async def create_user(db: AsyncSession, data: UserCreate):
    username = data.username.lower()

    existing = await db.execute(
        select(User).where((User.username == username) | (User.email == data.email))
    )
    if existing.scalars().first():
        raise InvalidInput("User already exists")

    user = User(
        name=data.name,
        username=username,
        email=data.email,
        payment_address=data.payment_address,
    )

    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user

async def edit_user(db: AsyncSession, data: UserUpdate, user_id: int):
    user = await get_user_by_id(db, user_id)

    if not user:
        raise NotFound("User does not exist")

    if data.name:
        user.name = data.name

    if data.payment_address is not None:
        user.payment_address = data.payment_address or None

    await db.commit()
    await db.refresh(user)

    return user
