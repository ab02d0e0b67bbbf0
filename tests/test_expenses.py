"""Tests for expense creation, direct share payment and debt listings."""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from settleup.core.errors import Forbidden, InvalidInput, InvalidState, NotFound
from settleup.models import Expense, ExpenseSplit, Payment, PaymentExpense
from settleup.services.expense_services import (
    get_cred,
    get_debt,
    get_expense_by_id,
    delete_expense,
    get_expenses,
    pay_own_share,
)
from settleup.services.group_services import remove_member


async def count_expenses(db):
    res = await db.execute(select(func.count(Expense.id)))
    return res.scalar_one()


class TestCreateExpense:
    async def test_equal_split_is_frozen(self, db, users, add_expense):
        alice, bob, carol = users["alice"], users["bob"], users["carol"]

        expense = await add_expense(alice, "100.00", "equal", [alice.id, bob.id, carol.id])

        assert expense.amount == Decimal("100.00")
        assert expense.currency == "INR"
        assert [(s.user_id, s.final_share) for s in expense.splits] == [
            (alice.id, Decimal("33.34")),
            (bob.id, Decimal("33.33")),
            (carol.id, Decimal("33.33")),
        ]

    async def test_payer_share_starts_paid(self, db, users, add_expense):
        alice, bob = users["alice"], users["bob"]

        expense = await add_expense(alice, "40", "equal", [alice.id, bob.id])

        status = {s.user_id: s.status for s in expense.splits}
        assert status == {alice.id: "paid", bob.id: "pending"}

    async def test_personal_expense_has_no_splits(self, db, users, add_expense):
        expense = await add_expense(users["alice"], "12.50", "none", [users["bob"].id])

        assert expense.split_type == "none"
        assert expense.splits == []

    async def test_shared_expense_needs_participants(self, db, users, add_expense):
        with pytest.raises(InvalidInput, match="Split members"):
            await add_expense(users["alice"], "10", "equal", [])

    async def test_non_friend_participant_forbidden(self, db, users, add_expense):
        alice, dave = users["alice"], users["dave"]

        with pytest.raises(Forbidden, match="friends"):
            await add_expense(alice, "10", "equal", [alice.id, dave.id])

        assert await count_expenses(db) == 0

    async def test_unknown_participant_not_found(self, db, users, add_expense):
        with pytest.raises(NotFound):
            await add_expense(users["alice"], "10", "equal", [users["alice"].id, 9999])

    async def test_bad_percentages_persist_nothing(self, db, users, add_expense):
        alice, bob = users["alice"], users["bob"]
        splits = [
            {"user_id": alice.id, "percentage": "60"},
            {"user_id": bob.id, "percentage": "39.99"},
        ]

        with pytest.raises(InvalidInput):
            await add_expense(alice, "10", "percentage", splits)

        assert await count_expenses(db) == 0

    async def test_group_expense_requires_member_participants(self, db, users, trip, add_expense):
        alice, bob = users["alice"], users["bob"]
        await remove_member(db, trip.id, bob.id, alice.id)

        with pytest.raises(InvalidInput, match="group members"):
            await add_expense(alice, "10", "equal", [alice.id, bob.id], group=trip)

    async def test_group_expense_payer_must_be_member(self, db, users, trip, add_expense):
        alice, bob = users["alice"], users["bob"]

        await remove_member(db, trip.id, bob.id, alice.id)

        with pytest.raises(Forbidden, match="Payer"):
            await add_expense(bob, "10", "equal", [alice.id, bob.id], group=trip)

    async def test_custom_currency_and_category(self, db, users, add_expense):
        alice, bob = users["alice"], users["bob"]

        expense = await add_expense(
            alice, "20", "custom",
            [{"user_id": bob.id, "amount": "20"}],
            currency="usd", category="travel", notes="airport",
        )

        assert expense.currency == "USD"
        assert expense.category == "travel"
        assert expense.notes == "airport"
        assert expense.splits[0].amount == Decimal("20")


class TestPayOwnShare:
    async def test_marks_share_paid(self, db, users, add_expense):
        alice, bob = users["alice"], users["bob"]
        expense = await add_expense(alice, "40", "equal", [alice.id, bob.id])

        updated = await pay_own_share(db, expense.id, bob.id)

        assert {s.user_id: s.status for s in updated.splits}[bob.id] == "paid"

    async def test_paying_twice_is_invalid_state(self, db, users, add_expense):
        alice, bob = users["alice"], users["bob"]
        expense = await add_expense(alice, "40", "equal", [alice.id, bob.id])
        await pay_own_share(db, expense.id, bob.id)

        with pytest.raises(InvalidState, match="already paid"):
            await pay_own_share(db, expense.id, bob.id)

    async def test_outsider_forbidden(self, db, users, add_expense):
        alice, bob = users["alice"], users["bob"]
        expense = await add_expense(alice, "40", "equal", [alice.id, bob.id])

        with pytest.raises(Forbidden):
            await pay_own_share(db, expense.id, users["carol"].id)

    async def test_missing_expense(self, db, users):
        with pytest.raises(NotFound):
            await pay_own_share(db, 12345, users["bob"].id)


class TestQueries:
    async def test_debt_and_credit_track_pending_shares(self, db, users, add_expense):
        alice, bob, carol = users["alice"], users["bob"], users["carol"]
        first = await add_expense(alice, "90", "equal", [alice.id, bob.id, carol.id])
        await add_expense(alice, "10", "custom", [{"user_id": bob.id, "amount": "10"}])
        await pay_own_share(db, first.id, carol.id)

        debt = await get_debt(db, bob.id)
        cred = await get_cred(db, alice.id)

        assert debt["total_debt"] == "40.00"
        assert len(debt["expenses"]) == 2
        assert cred["total_credit"] == "40.00"
        assert {c["owed_by"]["id"] for c in cred["credits"]} == {bob.id}

    async def test_expense_visible_to_participants_only(self, db, users, add_expense):
        alice, bob = users["alice"], users["bob"]
        expense = await add_expense(alice, "40", "equal", [alice.id, bob.id])

        assert (await get_expense_by_id(db, expense.id, bob.id)).id == expense.id
        with pytest.raises(Forbidden):
            await get_expense_by_id(db, expense.id, users["dave"].id)

    async def test_group_members_can_view_group_expense(self, db, users, trip, add_expense):
        alice, bob = users["alice"], users["bob"]
        expense = await add_expense(alice, "40", "equal", [alice.id, bob.id], group=trip)

        assert (await get_expense_by_id(db, expense.id, users["carol"].id)).id == expense.id

    async def test_expenses_involving_user(self, db, users, add_expense):
        alice, bob, carol = users["alice"], users["bob"], users["carol"]
        await add_expense(alice, "40", "equal", [alice.id, bob.id])
        await add_expense(carol, "30", "equal", [carol.id, bob.id])
        await add_expense(carol, "5", "none")

        assert len(await get_expenses(db, bob.id)) == 2
        assert len(await get_expenses(db, alice.id)) == 1
        assert len(await get_expenses(db, carol.id)) == 2

    async def test_split_rows_keep_input_order(self, db, users, add_expense):
        alice, bob, carol = users["alice"], users["bob"], users["carol"]
        expense = await add_expense(alice, "10", "equal", [carol.id, alice.id, bob.id])

        res = await db.execute(
            select(ExpenseSplit.user_id)
            .where(ExpenseSplit.expense_id == expense.id)
            .order_by(ExpenseSplit.position)
        )
        assert res.scalars().all() == [carol.id, alice.id, bob.id]


class TestDeleteExpense:
    async def test_payer_deletes_unsettled_expense(self, db, users, add_expense):
        alice, bob = users["alice"], users["bob"]
        expense = await add_expense(alice, "40", "equal", [alice.id, bob.id])

        assert await delete_expense(db, expense.id, alice.id) == {"status": "deleted"}

        assert await count_expenses(db) == 0
        res = await db.execute(select(func.count(ExpenseSplit.id)))
        assert res.scalar_one() == 0

    async def test_only_payer_may_delete(self, db, users, add_expense):
        alice, bob = users["alice"], users["bob"]
        expense = await add_expense(alice, "40", "equal", [alice.id, bob.id])

        with pytest.raises(Forbidden):
            await delete_expense(db, expense.id, bob.id)

    async def test_paid_share_blocks_delete(self, db, users, add_expense):
        alice, bob = users["alice"], users["bob"]
        expense = await add_expense(alice, "40", "equal", [alice.id, bob.id])
        await pay_own_share(db, expense.id, bob.id)

        with pytest.raises(InvalidState):
            await delete_expense(db, expense.id, alice.id)

    async def test_payment_link_blocks_delete(self, db, users, add_expense):
        alice, bob = users["alice"], users["bob"]
        expense = await add_expense(alice, "40", "equal", [alice.id, bob.id])
        payment = Payment(
            payer_id=bob.id, payee_id=alice.id, amount=expense.amount,
            currency="INR", method="cash", status="pending",
        )
        payment.related = [PaymentExpense(expense_id=expense.id)]
        db.add(payment)
        await db.commit()

        with pytest.raises(InvalidState, match="payment"):
            await delete_expense(db, expense.id, alice.id)

    async def test_missing_expense(self, db, users):
        with pytest.raises(NotFound):
            await delete_expense(db, 777, users["alice"].id)
