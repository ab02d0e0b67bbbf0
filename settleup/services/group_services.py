import logging
from typing import List, Set
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from settleup.models.group import Group
from settleup.models.group_member import GroupMember
from settleup.models.expense import Expense
from settleup.models.user import User
from settleup.core.collaborators import MembershipChecker
from settleup.core.errors import Forbidden, InvalidInput, NotFound
from settleup.schemas.group import GroupCreate

logger = logging.getLogger(__name__)

async def get_group_or_404(db: AsyncSession, group_id: int) -> Group:
    group = await db.get(Group, group_id)
    if not group:
        raise NotFound("Group doesn't exist")
    return group

async def get_member_ids(db: AsyncSession, group_id: int) -> Set[int]:
    res = await db.execute(
        select(GroupMember.user_id).where(GroupMember.group_id == group_id)
    )
    return set(res.scalars().all())

async def create_group(db: AsyncSession, data: GroupCreate, creator_id: int, checker: MembershipChecker):
    member_ids: List[int] = [creator_id]
    for uid in data.members:
        if uid not in member_ids:
            member_ids.append(uid)

    users = await db.execute(select(User.id).where(User.id.in_(member_ids)))
    if len(users.scalars().all()) != len(member_ids):
        raise NotFound("Some members do not exist")

    for uid in member_ids:
        if not await checker.is_authorized_participant(creator_id, uid):
            raise Forbidden(f"You can only add friends to a group. {uid} is not in your friend list.")

    group = Group(name=data.name, created_by=creator_id)
    group.members = [GroupMember(user_id=uid) for uid in member_ids]
    db.add(group)

    await db.commit()
    await db.refresh(group)
    logger.info(f"Created group {group.id} with {len(member_ids)} members")
    return group

async def add_member(db: AsyncSession, group_id: int, user_id: int, creator_id: int, checker: MembershipChecker):
    group = await get_group_or_404(db, group_id)

    if group.created_by != creator_id:
        raise Forbidden("Only the group creator can add members")

    if not await db.get(User, user_id):
        raise NotFound("User not found")

    if not await checker.is_authorized_participant(creator_id, user_id):
        raise Forbidden("You can only add friends to a group")

    if user_id in await get_member_ids(db, group_id):
        raise InvalidInput("User already exist in this group")

    new_member = GroupMember(group_id=group_id, user_id=user_id)
    db.add(new_member)
    await db.commit()
    await db.refresh(new_member)
    return new_member

async def remove_member(db: AsyncSession, group_id: int, user_id: int, creator_id: int):
    group = await get_group_or_404(db, group_id)

    if group.created_by != creator_id:
        raise Forbidden("Only group admin can remove members")

    if user_id == creator_id:
        raise InvalidInput("Group admin cannot be removed")

    res = await db.execute(
        select(GroupMember).where(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id
        )
    )
    member = res.scalar_one_or_none()

    if not member:
        raise NotFound("User is not a member of this group")

    await db.delete(member)
    await db.commit()

    return {"status": "member_removed"}

async def list_group_for_user(db: AsyncSession, user_id: int):
    q = (
        select(Group)
        .join(GroupMember)
        .where(GroupMember.user_id == user_id)
        .order_by(Group.id)
    )
    result = await db.execute(q)
    return result.scalars().all()

async def list_group_members(db: AsyncSession, user_id: int, group_id: int):
    await get_group_or_404(db, group_id)

    if user_id not in await get_member_ids(db, group_id):
        raise Forbidden("Unauthorized access")

    members_q = (
        select(User)
        .join(GroupMember, User.id == GroupMember.user_id)
        .where(GroupMember.group_id == group_id)
        .order_by(User.id)
    )

    result = await db.execute(members_q)
    return result.scalars().all()

async def list_group_expenses(db: AsyncSession, user_id: int, group_id: int):
    await get_group_or_404(db, group_id)

    if user_id not in await get_member_ids(db, group_id):
        raise Forbidden("Unauthorized access")

    q = (
        select(Expense)
        .where(Expense.group_id == group_id)
        .order_by(Expense.created_at, Expense.id)
    )
    res = await db.execute(q)
    return res.scalars().all()
