import logging
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from settleup.models.expense import Expense
from settleup.models.expense_split import ExpenseSplit
from settleup.models.payment import PaymentExpense
from settleup.models.user import User
from settleup.core.collaborators import MembershipChecker
from settleup.core.config import settings
from settleup.core.errors import Conflict, Forbidden, InvalidInput, InvalidState, NotFound
from settleup.core.splits import compute_splits
from settleup.core.utils import ZERO, qround
from settleup.schemas.expense import ExpenseCreate, SplitStatus, SplitType
from settleup.services.group_services import get_group_or_404, get_member_ids

logger = logging.getLogger(__name__)

async def create_expense(db: AsyncSession, data: ExpenseCreate, paid_by: int, checker: MembershipChecker):
    participants = data.splits if data.split_type != SplitType.NONE else []

    if data.split_type != SplitType.NONE and not participants:
        raise InvalidInput("Split members are required for shared expenses")

    # Pure validation first; nothing is read or written if the split is invalid
    shares = compute_splits(data.amount, data.split_type, participants)
    user_ids = [s.user_id for s in shares]

    if user_ids:
        res = await db.execute(select(User.id).where(User.id.in_(user_ids)))
        if len(res.scalars().all()) != len(user_ids):
            raise NotFound("Some users in split do not exist")

    for uid in user_ids:
        if not await checker.is_authorized_participant(paid_by, uid):
            raise Forbidden(f"You can only split with friends. {uid} is not in your friend list.")

    if data.group_id is not None:
        await get_group_or_404(db, data.group_id)
        members = await get_member_ids(db, data.group_id)

        if paid_by not in members:
            raise Forbidden("Payer is not a member of the group")

        if any(uid not in members for uid in user_ids):
            raise InvalidInput("Some users in split are not group members")

    expense = Expense(
        description=data.description,
        amount=qround(data.amount),
        currency=(data.currency or settings.DEFAULT_CURRENCY).upper(),
        paid_by=paid_by,
        group_id=data.group_id,
        split_type=data.split_type.value,
        category=data.category or "other",
        notes=data.notes or "",
    )
    # The payer already covered their own share
    expense.splits = [
        ExpenseSplit(
            position=idx,
            user_id=s.user_id,
            percentage=s.percentage,
            amount=s.amount,
            final_share=s.final_share,
            status=SplitStatus.PAID.value if s.user_id == paid_by else SplitStatus.PENDING.value,
        )
        for idx, s in enumerate(shares)
    ]
    db.add(expense)

    await db.commit()
    await db.refresh(expense)

    logger.info(
        f"Created expense {expense.id} ({expense.split_type}) for {expense.amount} "
        f"paid by {paid_by} across {len(shares)} participants"
    )
    return expense

async def get_expense_or_404(db: AsyncSession, expense_id: int) -> Expense:
    expense = await db.get(Expense, expense_id)
    if not expense:
        raise NotFound("Expense not found")
    return expense

async def pay_own_share(db: AsyncSession, expense_id: int, user_id: int):
    expense = await get_expense_or_404(db, expense_id)

    split = next((s for s in expense.splits if s.user_id == user_id), None)
    if split is None:
        raise Forbidden("You are not part of this split")

    if split.status == SplitStatus.PAID.value:
        raise InvalidState("You already paid")

    res = await db.execute(
        update(ExpenseSplit)
        .where(
            ExpenseSplit.id == split.id,
            ExpenseSplit.status == SplitStatus.PENDING.value
        )
        .values(status=SplitStatus.PAID.value)
    )

    if res.rowcount != 1:
        await db.rollback()
        raise Conflict("Share was settled by another request")

    await db.commit()
    await db.refresh(expense)
    return expense

async def get_expense_by_id(db: AsyncSession, expense_id: int, user_id: int):
    expense = await get_expense_or_404(db, expense_id)

    involved = expense.paid_by == user_id or any(s.user_id == user_id for s in expense.splits)
    if not involved and expense.group_id is not None:
        involved = user_id in await get_member_ids(db, expense.group_id)

    if not involved:
        raise Forbidden("Unauthorized access")

    return expense

async def get_expenses(db: AsyncSession, user_id: int):
    q = (
        select(Expense)
        .outerjoin(ExpenseSplit, Expense.id == ExpenseSplit.expense_id)
        .where(
            (Expense.paid_by == user_id) |
            (ExpenseSplit.user_id == user_id)
        )
        .order_by(Expense.created_at.desc(), Expense.id.desc())
        .distinct()
    )

    res = await db.execute(q)
    return res.scalars().all()

async def get_debt(db: AsyncSession, user_id: int):
    q = (
        select(
            Expense.id.label("expense_id"),
            Expense.description,
            Expense.group_id,
            Expense.created_at,
            Expense.paid_by,
            ExpenseSplit.final_share.label("owed_amount"),
            User.name.label("payer_name")
        )
        .join(ExpenseSplit, Expense.id == ExpenseSplit.expense_id)
        .join(User, User.id == Expense.paid_by)
        .where(
            ExpenseSplit.user_id == user_id,
            ExpenseSplit.status == SplitStatus.PENDING.value,
            Expense.paid_by != user_id,
        )
        .order_by(Expense.created_at.desc(), Expense.id.desc())
    )

    res = await db.execute(q)

    total = ZERO
    expenses = []

    for row in res.all():
        amt = qround(Decimal(str(row.owed_amount)))
        total += amt

        expenses.append({
            "expense_id": row.expense_id,
            "description": row.description,
            "group_id": row.group_id,
            "paid_by": {
                "id": row.paid_by,
                "name": row.payer_name
            },
            "amount_i_owe": str(amt),
            "created_at": row.created_at
        })

    return {
        "total_debt": str(qround(total)),
        "expenses": expenses
    }

async def get_cred(db: AsyncSession, user_id: int):
    q = (
        select(
            Expense.id.label("expense_id"),
            Expense.description,
            Expense.group_id,
            Expense.created_at,
            ExpenseSplit.user_id.label("debtor_id"),
            ExpenseSplit.final_share.label("owed_amount"),
            User.name.label("debtor_name")
        )
        .join(ExpenseSplit, Expense.id == ExpenseSplit.expense_id)
        .join(User, User.id == ExpenseSplit.user_id)
        .where(
            Expense.paid_by == user_id,
            ExpenseSplit.user_id != user_id,
            ExpenseSplit.status == SplitStatus.PENDING.value,
        )
        .order_by(Expense.created_at.desc(), Expense.id.desc())
    )

    res = await db.execute(q)

    total = ZERO
    credits = []

    for row in res.all():
        amt = qround(Decimal(str(row.owed_amount)))
        total += amt

        credits.append({
            "expense_id": row.expense_id,
            "description": row.description,
            "group_id": row.group_id,
            "owed_by": {
                "id": row.debtor_id,
                "name": row.debtor_name
            },
            "amount_owed": str(amt),
            "created_at": row.created_at
        })

    return {
        "total_credit": str(qround(total)),
        "credits": credits
    }

async def delete_expense(db: AsyncSession, expense_id: int, user_id: int):
    expense = await get_expense_or_404(db, expense_id)

    if expense.paid_by != user_id:
        raise Forbidden("You cannot delete this expense")

    if any(s.user_id != user_id and s.status == SplitStatus.PAID.value for s in expense.splits):
        raise InvalidState("Some participants already paid their share")

    linked = await db.execute(
        select(PaymentExpense.payment_id).where(PaymentExpense.expense_id == expense_id).limit(1)
    )
    if linked.scalar_one_or_none() is not None:
        raise InvalidState("Expense is referenced by a payment")

    await db.delete(expense)
    await db.commit()

    logger.info(f"Deleted expense {expense_id} by {user_id}")
    return {"status": "deleted"}
