from collections import deque
from decimal import Decimal
from typing import Dict, Hashable, Iterable, List, NamedTuple

from settleup.core.errors import LedgerInvariantError
from settleup.core.utils import DEAD_ZONE, ZERO, qround


class Transfer(NamedTuple):
    from_id: Hashable
    to_id: Hashable
    amount: Decimal


def aggregate(expenses: Iterable) -> Dict[Hashable, Decimal]:
    # Positive means the user is owed
    net: Dict[Hashable, Decimal] = {}

    for expense in expenses:
        splits = list(expense.splits or [])
        if not splits:
            continue

        amount = qround(expense.amount)
        touched = []
        shares_total = ZERO

        for s in splits:
            if s.final_share is None:
                raise LedgerInvariantError(
                    f"Expense {expense.id} has a split without a final share"
                )
            share = qround(s.final_share)
            shares_total += share
            net[s.user_id] = net.get(s.user_id, ZERO) - share
            touched.append(s.user_id)

        if qround(shares_total) != amount:
            raise LedgerInvariantError(
                f"Expense {expense.id} shares sum to {qround(shares_total)}, expected {amount}"
            )

        net[expense.paid_by] = net.get(expense.paid_by, ZERO) + amount
        touched.append(expense.paid_by)

        for uid in touched:
            net[uid] = qround(net[uid])

    return {uid: amt for uid, amt in net.items() if amt != ZERO}


def plan_settlement(net_map: Dict[Hashable, Decimal]) -> List[Transfer]:
    """Greedy largest-first matching; ties go to the lower user id."""
    creditors = []
    debtors = []

    for uid, bal in net_map.items():
        bal = qround(bal)
        if bal > DEAD_ZONE:
            creditors.append([uid, bal])
        elif bal < -DEAD_ZONE:
            debtors.append([uid, -bal])

    creditors.sort(key=lambda x: (-x[1], x[0]))
    debtors.sort(key=lambda x: (-x[1], x[0]))

    creditors = deque(creditors)
    debtors = deque(debtors)

    transfers: List[Transfer] = []

    while creditors and debtors:
        cred_id, cred_amt = creditors[0]
        debt_id, debt_amt = debtors[0]

        pay_amt = qround(min(cred_amt, debt_amt))
        transfers.append(Transfer(debt_id, cred_id, pay_amt))

        new_cred = qround(cred_amt - pay_amt)
        new_debt = qround(debt_amt - pay_amt)

        creditors.popleft()
        debtors.popleft()

        if new_cred > DEAD_ZONE:
            creditors.appendleft([cred_id, new_cred])
        if new_debt > DEAD_ZONE:
            debtors.appendleft([debt_id, new_debt])

    return transfers
