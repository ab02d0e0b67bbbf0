"""
    created --proof--> pending --confirm--> confirmed
                       pending --reject---> rejected

Cash payments and money requests start in ``pending``.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from settleup.models.expense import Expense
from settleup.models.expense_split import ExpenseSplit
from settleup.models.payment import Payment, PaymentExpense
from settleup.models.user import User
from settleup.core.collaborators import Notifier, safe_notify
from settleup.core.config import settings
from settleup.core.errors import Conflict, Forbidden, InvalidInput, InvalidState, NotFound
from settleup.core.utils import ZERO, qround
from settleup.schemas.expense import SplitStatus
from settleup.schemas.payment import (
    CombinedPaymentCreate,
    MoneyRequestCreate,
    PaymentDecision,
    PaymentMethod,
    PaymentProof,
    PaymentStatus,
)
from settleup.services.balance_services import get_group_net_balances
from settleup.services.group_services import get_group_or_404, get_member_ids

logger = logging.getLogger(__name__)

PAID = SplitStatus.PAID.value
PENDING_SHARE = SplitStatus.PENDING.value


def _currency_of(expenses: Iterable[Expense]) -> str:
    currencies = {e.currency for e in expenses}
    if len(currencies) > 1:
        raise InvalidInput("Expenses use different currencies")
    return currencies.pop() if currencies else settings.DEFAULT_CURRENCY


def _pending_share(expense: Expense, user_id: int):
    return next(
        (s for s in expense.splits if s.user_id == user_id and s.status == PENDING_SHARE),
        None
    )


async def get_payment_or_404(db: AsyncSession, payment_id: int, lock: bool = False) -> Payment:
    q = (
        select(Payment)
        .where(Payment.id == payment_id)
        .execution_options(populate_existing=True)
    )
    if lock:
        q = q.with_for_update()

    res = await db.execute(q)
    payment = res.scalar_one_or_none()

    if not payment:
        raise NotFound("Payment not found")
    return payment


async def create_combined_payment(db: AsyncSession, payer_id: int, data: CombinedPaymentCreate, notifier: Notifier):
    if data.method not in (PaymentMethod.UPI, PaymentMethod.CASH):
        raise InvalidInput("method must be 'upi' or 'cash'")

    if not data.expense_ids:
        raise InvalidInput("No expenses selected")

    if data.payee_id == payer_id:
        raise InvalidInput("You cannot pay yourself")

    expense_ids = list(dict.fromkeys(data.expense_ids))

    try:
        res = await db.execute(
            select(Expense)
            .where(Expense.id.in_(expense_ids))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        expenses = {e.id: e for e in res.scalars().all()}

        missing = [eid for eid in expense_ids if eid not in expenses]
        if missing:
            raise NotFound(f"Expenses not found: {missing}")

        payee = await db.get(User, data.payee_id)
        if not payee:
            raise NotFound("Payee not found")

        total = ZERO
        related: List[Expense] = []

        for eid in expense_ids:
            e = expenses[eid]
            if e.paid_by != payee.id:
                raise InvalidInput(f"Expense {eid} was not paid by this payee")

            share = _pending_share(e, payer_id)
            if share is not None:
                total += share.final_share
                related.append(e)

        total = qround(total)
        if total <= ZERO:
            raise InvalidState("No unpaid shares found")

        if data.method == PaymentMethod.UPI and not payee.payment_address:
            raise InvalidInput("Payee has no payment address set")

        payment = Payment(
            payer_id=payer_id,
            payee_id=payee.id,
            amount=total,
            currency=_currency_of(related),
            method=data.method.value,
            status=(PaymentStatus.CREATED if data.method == PaymentMethod.UPI else PaymentStatus.PENDING).value,
            note=data.note or "",
        )
        payment.related = [PaymentExpense(expense_id=e.id) for e in related]
        db.add(payment)

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(payment)

    logger.info(
        f"Created {payment.method} payment {payment.id}: {payer_id} -> {payment.payee_id} "
        f"{payment.amount} over {len(related)} expenses"
    )
    await safe_notify(notifier, payment.payee_id, "payment_created", {
        "payment_id": payment.id,
        "from": payer_id,
        "amount": str(payment.amount),
        "method": payment.method,
    })

    return {
        "payment": payment,
        "payee_name": payee.name,
        "payment_address": payee.payment_address,
    }


async def submit_payment_proof(db: AsyncSession, payment_id: int, caller_id: int, data: PaymentProof, notifier: Notifier):
    payment = await get_payment_or_404(db, payment_id)

    if payment.payer_id != caller_id:
        raise Forbidden("Not your payment")

    if payment.method != PaymentMethod.UPI.value:
        raise InvalidState("Proof required only for UPI payments")

    open_states = [PaymentStatus.CREATED.value, PaymentStatus.PENDING.value]
    if payment.status not in open_states:
        raise InvalidState("Payment already processed")

    res = await db.execute(
        update(Payment)
        .where(Payment.id == payment.id, Payment.status.in_(open_states))
        .values(
            status=PaymentStatus.PENDING.value,
            transaction_id=data.transaction_id,
            screenshot_url=data.screenshot_url,
        )
        .execution_options(synchronize_session="evaluate")
    )

    if res.rowcount != 1:
        await db.rollback()
        raise Conflict("Payment was processed by another request")

    await db.commit()
    await db.refresh(payment)

    await safe_notify(notifier, payment.payee_id, "payment_proof_submitted", {
        "payment_id": payment.id,
        "transaction_id": payment.transaction_id,
    })
    return payment


async def confirm_payment(db: AsyncSession, payment_id: int, caller_id: int, decision: PaymentDecision, notifier: Notifier):
    try:
        payment = await get_payment_or_404(db, payment_id, lock=True)

        if payment.payee_id != caller_id:
            raise Forbidden("Not your payment to confirm")

        if payment.status != PaymentStatus.PENDING.value:
            raise InvalidState("Only pending payments can be confirmed or rejected")

        confirmed = decision.action == "confirm"
        values = {
            "status": (PaymentStatus.CONFIRMED if confirmed else PaymentStatus.REJECTED).value,
        }
        if confirmed:
            values["confirmed_at"] = datetime.now(timezone.utc)

        await transition_payment(db, payment.id, PaymentStatus.PENDING, values)

        related = payment.related_expenses
        if confirmed and related:
            res = await db.execute(
                update(ExpenseSplit)
                .where(
                    ExpenseSplit.expense_id.in_(related),
                    ExpenseSplit.user_id == payment.payer_id,
                    ExpenseSplit.status == PENDING_SHARE
                )
                .values(status=PAID)
                .execution_options(synchronize_session="evaluate")
            )

            if res.rowcount != len(related):
                raise Conflict("Some shares were already settled; payment not confirmed")

        await db.commit()
    except Conflict:
        await db.rollback()
        logger.warning(f"Conflict while processing payment {payment_id}")
        raise
    except Exception:
        await db.rollback()
        raise

    await db.refresh(payment)

    logger.info(f"Payment {payment.id} {payment.status} by {caller_id}")
    await safe_notify(notifier, payment.payer_id, f"payment_{payment.status}", {
        "payment_id": payment.id,
        "amount": str(payment.amount),
    })
    return payment


async def transition_payment(db: AsyncSession, payment_id: int, expected: PaymentStatus, values: dict):
    """Apply ``values`` only if the payment is still in ``expected`` state."""
    res = await db.execute(
        update(Payment)
        .where(Payment.id == payment_id, Payment.status == expected.value)
        .values(**values)
        .execution_options(synchronize_session="evaluate")
    )

    if res.rowcount != 1:
        raise Conflict("Payment was processed by another request")


async def request_money(db: AsyncSession, requester_id: int, data: MoneyRequestCreate, notifier: Notifier):
    target_id = data.to_user_id

    if target_id == requester_id:
        raise InvalidInput("You cannot request money from yourself")

    if not await db.get(User, target_id):
        raise NotFound("User not found")

    related: List[Expense] = []

    if data.group_id is not None:
        await get_group_or_404(db, data.group_id)
        members = await get_member_ids(db, data.group_id)

        if requester_id not in members or target_id not in members:
            raise Forbidden("Both users must be in the group")

        net = await get_group_net_balances(db, data.group_id)
        target_balance = net.get(target_id, ZERO)

        if target_balance >= ZERO:
            raise InvalidState("This member does not owe you any money")

        amount = qround(min(-target_balance, net.get(requester_id, ZERO)))
        if amount <= ZERO:
            raise InvalidState("No pending dues to request")

        res = await db.execute(select(Expense.currency).where(Expense.group_id == data.group_id).distinct())
        currencies = res.scalars().all()
        if len(currencies) > 1:
            raise InvalidInput("Expenses use different currencies")
        currency = currencies[0] if currencies else settings.DEFAULT_CURRENCY
        note = data.note or "Payment request"
    else:
        owed_q = select(ExpenseSplit.expense_id).where(
            ExpenseSplit.user_id == target_id,
            ExpenseSplit.status == PENDING_SHARE
        )
        res = await db.execute(
            select(Expense)
            .where(Expense.paid_by == requester_id, Expense.id.in_(owed_q))
            .order_by(Expense.id)
        )

        amount = ZERO
        for e in res.scalars().all():
            share = _pending_share(e, target_id)
            if share is not None:
                amount += share.final_share
                related.append(e)

        amount = qround(amount)
        if amount <= ZERO:
            raise InvalidState("Friend does not owe you anything")

        currency = _currency_of(related)
        note = data.note or "Instant payment request"

    payment = Payment(
        payer_id=target_id,
        payee_id=requester_id,
        group_id=data.group_id,
        amount=amount,
        currency=currency,
        method=PaymentMethod.CASH.value,
        status=PaymentStatus.PENDING.value,
        note=note,
    )
    payment.related = [PaymentExpense(expense_id=e.id) for e in related]
    db.add(payment)

    await db.commit()
    await db.refresh(payment)

    logger.info(f"User {requester_id} requested {amount} from {target_id} (payment {payment.id})")
    await safe_notify(notifier, target_id, "payment_request", {
        "payment_id": payment.id,
        "from": requester_id,
        "amount": str(amount),
        "group_id": data.group_id,
    })
    return payment


async def get_payment(db: AsyncSession, payment_id: int, user_id: int):
    payment = await get_payment_or_404(db, payment_id)

    if user_id not in (payment.payer_id, payment.payee_id):
        raise Forbidden("Not your payment")

    return payment


async def list_incoming_requests(db: AsyncSession, user_id: int):
    q = (
        select(Payment)
        .where(Payment.payer_id == user_id, Payment.status == PaymentStatus.PENDING.value)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
    )
    res = await db.execute(q)
    return res.scalars().all()


async def list_outgoing_requests(db: AsyncSession, user_id: int):
    q = (
        select(Payment)
        .where(Payment.payee_id == user_id, Payment.status == PaymentStatus.PENDING.value)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
    )
    res = await db.execute(q)
    return res.scalars().all()
