from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.db.session import get_db
from settleup.schemas.user import UserBrief
from settleup.services.friend_services import add_friend, remove_friend, list_friends
from settleup.core.dependencies import get_current_user

router = APIRouter()

@router.get("/", response_model=list[UserBrief])
async def my_friends(db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await list_friends(db, current_user.id)

@router.post("/{friend_id}", response_model=UserBrief, status_code=201)
async def befriend(friend_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await add_friend(db, current_user.id, friend_id)

@router.delete("/{friend_id}")
async def unfriend(friend_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await remove_friend(db, current_user.id, friend_id)
