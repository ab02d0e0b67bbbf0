from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.db.session import get_db
from settleup.schemas.payment import CombinedPaymentCreate, MoneyRequestCreate, PaymentDecision, PaymentIntentOut, PaymentOut, PaymentProof
from settleup.services.payment_services import (
    create_combined_payment,
    submit_payment_proof,
    confirm_payment,
    request_money,
    get_payment,
    list_incoming_requests,
    list_outgoing_requests,
)
from settleup.core.dependencies import get_current_user, get_notifier

router = APIRouter()

@router.post("/combined", response_model=PaymentIntentOut, status_code=201)
async def combined_payment(
    data: CombinedPaymentCreate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    notifier = Depends(get_notifier)
):
    return await create_combined_payment(db, current_user.id, data, notifier)

@router.patch("/{payment_id}/proof", response_model=PaymentOut)
async def payment_proof(
    payment_id: int,
    data: PaymentProof,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    notifier = Depends(get_notifier)
):
    return await submit_payment_proof(db, payment_id, current_user.id, data, notifier)

@router.patch("/{payment_id}/confirm", response_model=PaymentOut)
async def payment_decision(
    payment_id: int,
    data: PaymentDecision,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    notifier = Depends(get_notifier)
):
    return await confirm_payment(db, payment_id, current_user.id, data, notifier)

@router.post("/request", response_model=PaymentOut, status_code=201)
async def money_request(
    data: MoneyRequestCreate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    notifier = Depends(get_notifier)
):
    return await request_money(db, current_user.id, data, notifier)

@router.get("/requests/incoming", response_model=list[PaymentOut])
async def incoming(db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await list_incoming_requests(db, current_user.id)

@router.get("/requests/outgoing", response_model=list[PaymentOut])
async def outgoing(db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await list_outgoing_requests(db, current_user.id)

@router.get("/{payment_id}", response_model=PaymentOut)
async def fetch(payment_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await get_payment(db, payment_id, current_user.id)
