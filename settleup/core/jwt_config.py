"""Access tokens.

Tokens are issued by the identity service in front of the ledger; this
module only needs to verify them and read the user id from ``sub``. The
issuing helper exists so local tools and tests can mint tokens with the
same secret.
"""

from datetime import datetime, timedelta, timezone

import jwt
from fastapi import HTTPException, Request
from jwt import ExpiredSignatureError, InvalidTokenError

from settleup.core.config import settings

TOKEN_COOKIE = "access_token"


def create_access_token(data: dict, expires_min: int | None = None) -> str:
    now = datetime.now(timezone.utc)
    ttl = settings.ACCESS_TOKEN_EXPIRE_MINUTES if expires_min is None else expires_min

    claims = dict(data)
    claims.update({"iat": now, "exp": now + timedelta(minutes=ttl)})
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGO)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGO])
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired")
    except InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid Token")


def user_id_from_claims(claims: dict) -> int:
    sub = claims.get("sub")
    if sub is None:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")

    try:
        return int(sub)
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Could not validate credentials")


def get_token_from_request(request: Request) -> str:
    """Cookie first, then ``Authorization: Bearer``."""
    token = request.cookies.get(TOKEN_COOKIE)

    if not token:
        scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
        if scheme.lower() == "bearer":
            token = credentials

    token = (token or "").strip()
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized access")

    return token
