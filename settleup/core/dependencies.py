from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.db.session import get_db
from settleup.core.collaborators import FriendshipChecker, LogNotifier
from settleup.core.jwt_config import decode_token, get_token_from_request, user_id_from_claims
from settleup.services.user_service import get_user_by_id

async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)):
    claims = decode_token(get_token_from_request(request))
    user = await get_user_by_id(db, user_id_from_claims(claims))

    if user is None:
        raise HTTPException(status_code=401, detail="User not found")

    return user

def get_membership_checker(db: AsyncSession = Depends(get_db)):
    return FriendshipChecker(db)

_notifier = LogNotifier()

def get_notifier():
    return _notifier
