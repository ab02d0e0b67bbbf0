"""End-to-end tests through the HTTP layer."""

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

from settleup.core.jwt_config import create_access_token
from settleup.db.session import get_db
from settleup.main import app


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth(users):
    def _auth(name):
        token = create_access_token({"sub": str(users[name].id)})
        return {"Authorization": f"Bearer {token}"}

    return _auth


async def test_root(client):
    res = await client.get("/")

    assert res.status_code == 200


class TestAuth:
    async def test_missing_token(self, client):
        res = await client.get("/api/v1/users/me")

        assert res.status_code == 401

    async def test_garbage_token(self, client):
        res = await client.get("/api/v1/users/me", headers={"Authorization": "Bearer nope"})

        assert res.status_code == 401
        assert res.json()["detail"] == "Invalid Token"

    async def test_expired_token(self, client, users):
        token = create_access_token({"sub": str(users["alice"].id)}, expires_min=-1)

        res = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})

        assert res.status_code == 401
        assert res.json()["detail"] == "Token has expired"

    async def test_token_from_cookie(self, client, users):
        token = create_access_token({"sub": str(users["bob"].id)})

        res = await client.get("/api/v1/users/me", headers={"Cookie": f"access_token={token}"})

        assert res.status_code == 200
        assert res.json()["username"] == "bob"


class TestUsersAndFriends:
    async def test_register_and_duplicate(self, client, users):
        body = {"name": "Erin", "username": "erin", "email": "erin@example.com"}

        first = await client.post("/api/v1/users/", json=body)
        second = await client.post("/api/v1/users/", json=body)

        assert first.status_code == 201
        assert first.json()["username"] == "erin"
        assert second.status_code == 400

    async def test_unknown_user_is_404(self, client, auth):
        res = await client.get("/api/v1/users/9999", headers=auth("alice"))

        assert res.status_code == 404
        assert res.json() == {"detail": "User not found"}

    async def test_befriend(self, client, users, auth):
        res = await client.post(f"/api/v1/friends/{users['dave'].id}", headers=auth("alice"))
        friends = await client.get("/api/v1/friends/", headers=auth("dave"))

        assert res.status_code == 201
        assert [f["id"] for f in friends.json()] == [users["alice"].id]


class TestExpenseFlow:
    async def test_split_settle_and_confirm(self, client, users, auth):
        alice, bob, carol = users["alice"], users["bob"], users["carol"]

        created = await client.post("/api/v1/expense/", headers=auth("alice"), json={
            "description": "Dinner",
            "amount": "90",
            "split_type": "equal",
            "splits": [alice.id, bob.id, carol.id],
        })
        assert created.status_code == 201
        expense = created.json()
        assert [Decimal(s["final_share"]) for s in expense["splits"]] == [Decimal("30")] * 3

        settlement = await client.get("/api/v1/settlements/global", headers=auth("bob"))
        assert settlement.status_code == 200
        transfers = {
            (t["from_id"], t["to_id"], Decimal(t["amount"]))
            for t in settlement.json()["settlements"]
        }
        assert transfers == {(bob.id, alice.id, Decimal("30")), (carol.id, alice.id, Decimal("30"))}

        mine = await client.get("/api/v1/settlements/me", headers=auth("bob"))
        assert Decimal(mine.json()["net_balance"]) == Decimal("-30")
        assert len(mine.json()["settlements"]) == 1

        paid = await client.post("/api/v1/payments/combined", headers=auth("bob"), json={
            "payee_id": alice.id,
            "expense_ids": [expense["id"]],
            "method": "cash",
        })
        assert paid.status_code == 201
        payment = paid.json()["payment"]
        assert payment["status"] == "pending"
        assert payment["related_expenses"] == [expense["id"]]

        wrong_party = await client.patch(
            f"/api/v1/payments/{payment['id']}/confirm", headers=auth("bob"), json={"action": "confirm"}
        )
        assert wrong_party.status_code == 403

        confirmed = await client.patch(
            f"/api/v1/payments/{payment['id']}/confirm", headers=auth("alice"), json={"action": "confirm"}
        )
        assert confirmed.status_code == 200
        assert confirmed.json()["status"] == "confirmed"

        again = await client.patch(
            f"/api/v1/payments/{payment['id']}/confirm", headers=auth("alice"), json={"action": "confirm"}
        )
        assert again.status_code == 400

        fetched = await client.get(f"/api/v1/expense/{expense['id']}", headers=auth("bob"))
        status = {s["user_id"]: s["status"] for s in fetched.json()["splits"]}
        assert status == {alice.id: "paid", bob.id: "paid", carol.id: "pending"}

    async def test_invalid_split_is_400(self, client, users, auth):
        res = await client.post("/api/v1/expense/", headers=auth("alice"), json={
            "description": "Cab",
            "amount": "10",
            "split_type": "percentage",
            "splits": [{"user_id": users["bob"].id, "percentage": "99"}],
        })

        assert res.status_code == 400
        assert "100" in res.json()["detail"]

    async def test_non_positive_amount_rejected_at_the_boundary(self, client, users, auth):
        res = await client.post("/api/v1/expense/", headers=auth("alice"), json={
            "description": "Cab",
            "amount": "0",
            "split_type": "equal",
            "splits": [users["bob"].id],
        })

        assert res.status_code == 422

    @pytest.mark.parametrize("field, value", [
        ("currency", "EURO"),
        ("currency", "U$D"),
        ("amount", "12345678901234"),
    ])
    async def test_values_wider_than_their_columns_rejected(self, client, users, auth, field, value):
        body = {
            "description": "Cab",
            "amount": "10",
            "split_type": "equal",
            "splits": [users["bob"].id],
        }
        body[field] = value

        res = await client.post("/api/v1/expense/", headers=auth("alice"), json=body)

        assert res.status_code == 422

    async def test_percentage_beyond_four_places_rejected(self, client, users, auth):
        res = await client.post("/api/v1/expense/", headers=auth("alice"), json={
            "description": "Cab",
            "amount": "10",
            "split_type": "percentage",
            "splits": [
                {"user_id": users["alice"].id, "percentage": "33.33333"},
                {"user_id": users["bob"].id, "percentage": "66.66667"},
            ],
        })

        assert res.status_code == 422

    async def test_empty_global_settlement_is_404(self, client, auth):
        res = await client.get("/api/v1/settlements/global", headers=auth("alice"))

        assert res.status_code == 404


class TestGroupsAndRequests:
    async def test_group_settlement_and_request(self, client, users, auth):
        alice, bob, carol = users["alice"], users["bob"], users["carol"]

        group = await client.post("/api/v1/groups/", headers=auth("alice"), json={
            "name": "Flat",
            "members": [bob.id, carol.id],
        })
        assert group.status_code == 201
        gid = group.json()["id"]

        await client.post("/api/v1/expense/", headers=auth("alice"), json={
            "description": "Groceries",
            "amount": "60",
            "group_id": gid,
            "split_type": "equal",
            "splits": [alice.id, bob.id, carol.id],
        })

        settlement = await client.get(f"/api/v1/groups/{gid}/settlement", headers=auth("carol"))
        assert settlement.status_code == 200
        assert {int(k): Decimal(v) for k, v in settlement.json()["net"].items()} == {
            alice.id: Decimal("40"),
            bob.id: Decimal("-20"),
            carol.id: Decimal("-20"),
        }

        outsider = await client.get(f"/api/v1/groups/{gid}/settlement", headers=auth("dave"))
        assert outsider.status_code == 403

        asked = await client.post("/api/v1/payments/request", headers=auth("alice"), json={
            "to_user_id": bob.id,
            "group_id": gid,
        })
        assert asked.status_code == 201
        assert Decimal(asked.json()["amount"]) == Decimal("20")

        incoming = await client.get("/api/v1/payments/requests/incoming", headers=auth("bob"))
        assert [p["id"] for p in incoming.json()] == [asked.json()["id"]]

        nothing_owed = await client.post("/api/v1/payments/request", headers=auth("bob"), json={
            "to_user_id": alice.id,
            "group_id": gid,
        })
        assert nothing_owed.status_code == 400
