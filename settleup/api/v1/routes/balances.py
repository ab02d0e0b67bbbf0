from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.db.session import get_db
from settleup.core.dependencies import get_current_user
from settleup.schemas.balances import SettlementOut, UserSettlementOut
from settleup.services.balance_services import get_global_settlement, get_user_settlement

router = APIRouter()

@router.get("/global", response_model=SettlementOut)
async def global_settlement(db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await get_global_settlement(db)

@router.get("/me", response_model=UserSettlementOut)
async def my_settlement(db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await get_user_settlement(db, current_user.id)

@router.get("/user/{user_id}", response_model=UserSettlementOut)
async def user_settlement(user_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await get_user_settlement(db, user_id)
