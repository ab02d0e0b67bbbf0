from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.db.session import get_db
from settleup.schemas.user import UserCreate, UserOut, UserUpdate
from settleup.models.user import User
from settleup.services.user_service import create_user, get_user_by_id, get_all_users, edit_user
from settleup.core.dependencies import get_current_user
from settleup.core.errors import NotFound

router = APIRouter()

@router.get("/", response_model=list[UserOut])
async def get_all(db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await get_all_users(db)

@router.post("/", response_model=UserOut, status_code=201)
async def register_user(data: UserCreate, db: AsyncSession = Depends(get_db)):
    return await create_user(db, data)

@router.get("/me", response_model=UserOut)
async def read_users_me(current_user: User = Depends(get_current_user)):
    return UserOut.model_validate(current_user)

@router.patch("/me", response_model=UserOut)
async def edit(data: UserUpdate, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await edit_user(db, data, user_id=current_user.id)

@router.get("/{user_id}", response_model=UserOut)
async def fetch(user_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    user = await get_user_by_id(db, user_id)
    if not user:
        raise NotFound("User not found")
    return user
