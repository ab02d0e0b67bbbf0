from decimal import Decimal
from typing import Dict, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from settleup.core.ledger import Transfer, aggregate, plan_settlement
from settleup.core.errors import Forbidden, NotFound
from settleup.core.utils import ZERO
from settleup.models.expense import Expense
from settleup.models.expense_split import ExpenseSplit
from settleup.services.expense_services import get_expense_by_id
from settleup.services.group_services import get_group_or_404, get_member_ids
from settleup.services.user_service import get_users_by_ids

async def _load_expenses(db: AsyncSession, *criteria) -> List[Expense]:
    q = select(Expense).where(*criteria).order_by(Expense.id)
    res = await db.execute(q)
    return list(res.scalars().all())

def _involving(user_id: int):
    return (Expense.paid_by == user_id) | Expense.id.in_(
        select(ExpenseSplit.expense_id).where(ExpenseSplit.user_id == user_id)
    )

async def _decorate(db: AsyncSession, transfers: List[Transfer]) -> List[dict]:
    users = await get_users_by_ids(db, (u for t in transfers for u in (t.from_id, t.to_id)))

    return [
        {
            "from_id": f,
            "from_name": users[f].name if f in users else None,
            "to_id": t,
            "to_name": users[t].name if t in users else None,
            "amount": a
        }
        for f, t, a in transfers
    ]

async def _settle(db: AsyncSession, scope: str, expenses: List[Expense]):
    net = aggregate(expenses)
    transfers = plan_settlement(net)

    return {
        "scope": scope,
        "net": net,
        "settlements": await _decorate(db, transfers)
    }

async def get_global_settlement(db: AsyncSession):
    expenses = await _load_expenses(db)

    if not expenses:
        raise NotFound("No expenses found")

    return await _settle(db, "global", expenses)

async def get_group_settlement(db: AsyncSession, group_id: int, user_id: int):
    await get_group_or_404(db, group_id)

    if user_id not in await get_member_ids(db, group_id):
        raise Forbidden("You are not a member of this group")

    expenses = await _load_expenses(db, Expense.group_id == group_id)

    if not expenses:
        raise NotFound("No expenses found in this group")

    return await _settle(db, f"group:{group_id}", expenses)

async def get_user_settlement(db: AsyncSession, user_id: int):
    expenses = await _load_expenses(db, _involving(user_id))

    if not expenses:
        raise NotFound("No expenses found for this user")

    net = aggregate(expenses)
    transfers = [
        t for t in plan_settlement(net)
        if t.from_id == user_id or t.to_id == user_id
    ]

    return {
        "scope": f"user:{user_id}",
        "user_id": user_id,
        "net_balance": net.get(user_id, ZERO),
        "settlements": await _decorate(db, transfers)
    }

async def get_expense_settlement(db: AsyncSession, expense_id: int, user_id: int):
    expense = await get_expense_by_id(db, expense_id, user_id)
    return await _settle(db, f"expense:{expense_id}", [expense])

async def get_group_net_balances(db: AsyncSession, group_id: int) -> Dict[int, Decimal]:
    expenses = await _load_expenses(db, Expense.group_id == group_id)
    return aggregate(expenses)
