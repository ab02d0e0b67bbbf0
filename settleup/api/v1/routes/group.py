from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.db.session import get_db
from settleup.services.group_services import create_group, add_member, remove_member, list_group_for_user, list_group_members, list_group_expenses
from settleup.services.balance_services import get_group_settlement
from settleup.schemas.group import GroupCreate, GroupMemberOut, GroupOut
from settleup.schemas.balances import SettlementOut
from settleup.schemas.expense import ExpenseOut
from settleup.schemas.user import UserBrief
from settleup.core.dependencies import get_current_user, get_membership_checker

router = APIRouter()

@router.post("/", response_model=GroupOut, status_code=201, description="create new group")
async def create_new_group(
    data: GroupCreate,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user),
    checker = Depends(get_membership_checker)
):
    return await create_group(db, data, user.id, checker)

@router.get("/my-groups", response_model=list[GroupOut], description="get user groups")
async def my_groups(db: AsyncSession = Depends(get_db), user = Depends(get_current_user)):
    return await list_group_for_user(db, user.id)

@router.post("/{group_id}/add/{user_id}", response_model=GroupMemberOut, status_code=201)
async def add_user_to_group(
    group_id: int,
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    checker = Depends(get_membership_checker)
):
    return await add_member(db, group_id, user_id, current_user.id, checker)

@router.delete("/{group_id}/remove/{user_id}")
async def rem_mem(group_id: int, user_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await remove_member(db, group_id=group_id, user_id=user_id, creator_id=current_user.id)

@router.get("/{group_id}/group-members", response_model=list[UserBrief])
async def group_members(group_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await list_group_members(db, current_user.id, group_id=group_id)

@router.get("/{group_id}/expenses", response_model=list[ExpenseOut], description="get all expenses of the group")
async def fetch_expenses(group_id: int, db: AsyncSession = Depends(get_db), user = Depends(get_current_user)):
    return await list_group_expenses(db, user.id, group_id)

@router.get("/{group_id}/settlement", response_model=SettlementOut)
async def group_settlement(group_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await get_group_settlement(db, group_id=group_id, user_id=current_user.id)
