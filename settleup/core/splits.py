from decimal import Decimal
from typing import List, Sequence

from settleup.core.errors import InvalidInput
from settleup.core.utils import SPLIT_TOLERANCE, ZERO, qround
from settleup.schemas.expense import ComputedShare, Participant, SplitType


def compute_splits(
    total_amount: Decimal,
    policy: SplitType | str,
    participants: Sequence[Participant],
) -> List[ComputedShare]:
    try:
        policy = SplitType(policy)
    except ValueError:
        raise InvalidInput(f"Invalid split type: {policy}")

    if policy is SplitType.NONE:
        return []

    if not isinstance(total_amount, Decimal):
        total_amount = Decimal(str(total_amount))

    user_ids = [p.user_id for p in participants]
    if len(user_ids) != len(set(user_ids)):
        raise InvalidInput("Duplicate users found in splits")

    total = qround(total_amount)

    if policy is SplitType.EQUAL:
        shares = _equal(total_amount, participants)
    elif policy is SplitType.PERCENTAGE:
        shares = _percentage(total_amount, participants)
    else:
        shares = _custom(total_amount, participants)

    # Percentage and custom drift lands on the largest share (first on ties)
    drift = qround(total - sum((s.final_share for s in shares), ZERO))
    if drift != ZERO:
        largest = max(shares, key=lambda s: s.final_share)
        largest.final_share = qround(largest.final_share + drift)

    if any(s.final_share < ZERO for s in shares):
        raise InvalidInput(f"Amount is too small to split among {len(shares)} participants")

    return shares


def _equal(total_amount: Decimal, participants: Sequence[Participant]) -> List[ComputedShare]:
    n = len(participants)
    if n == 0:
        raise InvalidInput("No participants for equal split")

    share = qround(total_amount / n)
    remainder = qround(total_amount - share * n)

    return [
        ComputedShare(
            user_id=p.user_id,
            final_share=qround(share + remainder) if idx == 0 else share,
        )
        for idx, p in enumerate(participants)
    ]


def _percentage(total_amount: Decimal, participants: Sequence[Participant]) -> List[ComputedShare]:
    if not participants:
        raise InvalidInput("No participants for percentage split")

    for p in participants:
        if p.percentage is None:
            raise InvalidInput(f"Missing percentage for user {p.user_id}")
        if p.percentage < 0:
            raise InvalidInput("Percentages must not be negative")

    total_percent = sum((p.percentage for p in participants), ZERO)
    if abs(total_percent - Decimal("100")) > SPLIT_TOLERANCE:
        raise InvalidInput("Percentages must add up to 100")

    return [
        ComputedShare(
            user_id=p.user_id,
            percentage=p.percentage,
            final_share=qround(total_amount * p.percentage / Decimal("100")),
        )
        for p in participants
    ]


def _custom(total_amount: Decimal, participants: Sequence[Participant]) -> List[ComputedShare]:
    if not participants:
        raise InvalidInput("No participants for custom split")

    for p in participants:
        if p.amount is None:
            raise InvalidInput(f"Missing amount for user {p.user_id}")
        if p.amount < 0:
            raise InvalidInput("Split amounts must not be negative")

    total_custom = sum((p.amount for p in participants), ZERO)
    if abs(total_custom - total_amount) > SPLIT_TOLERANCE:
        raise InvalidInput("Custom amounts must add up to the total amount")

    return [
        ComputedShare(
            user_id=p.user_id,
            amount=p.amount,
            final_share=qround(p.amount),
        )
        for p in participants
    ]
