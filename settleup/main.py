import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from settleup.core.config import settings
from settleup.core.errors import LedgerError
from settleup.api.v1.routes.user import router as user_router
from settleup.api.v1.routes.friend import router as friend_router
from settleup.api.v1.routes.group import router as group_router
from settleup.api.v1.routes.expense import router as expense_router
from settleup.api.v1.routes.balances import router as balances_router
from settleup.api.v1.routes.payment import router as payment_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="SettleUp Backend")

@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

@app.get("/")
async def root():
    return {"message": "SettleUp Backend is live"}

app.include_router(user_router, prefix="/api/v1/users")
app.include_router(friend_router, prefix="/api/v1/friends")
app.include_router(group_router, prefix="/api/v1/groups")
app.include_router(expense_router, prefix="/api/v1/expense")
app.include_router(balances_router, prefix="/api/v1/settlements")
app.include_router(payment_router, prefix="/api/v1/payments")
