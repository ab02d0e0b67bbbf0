"""Shared fixtures: a throwaway SQLite database per test and a few friends."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import settleup.models  # noqa: F401
from settleup.core.collaborators import FriendshipChecker
from settleup.db.session import Base
from settleup.models import Friendship, Group, GroupMember, User
from settleup.schemas.expense import ExpenseCreate
from settleup.services.expense_services import create_expense


class RecordingNotifier:
    """Collects notifications instead of delivering them."""

    def __init__(self):
        self.events = []

    async def notify(self, user_id, event, payload):
        self.events.append((user_id, event, payload))


class FailingNotifier:
    async def notify(self, user_id, event, payload):
        raise RuntimeError("notification service down")


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    async with engine.connect() as conn:
        # Readers must not block a concurrent writer's commit
        await conn.exec_driver_sql("PRAGMA journal_mode=WAL")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def users(db):
    """alice, bob and carol are mutual friends; dave knows nobody."""
    people = {
        "alice": User(name="Alice", username="alice", email="alice@example.com", payment_address="alice@upi"),
        "bob": User(name="Bob", username="bob", email="bob@example.com"),
        "carol": User(name="Carol", username="carol", email="carol@example.com", payment_address="carol@upi"),
        "dave": User(name="Dave", username="dave", email="dave@example.com"),
    }
    db.add_all(people.values())
    await db.flush()

    friends = ["alice", "bob", "carol"]
    for a in friends:
        for b in friends:
            if a != b:
                db.add(Friendship(user_id=people[a].id, friend_id=people[b].id))

    await db.commit()
    return people


@pytest.fixture
def checker(db):
    return FriendshipChecker(db)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    return FailingNotifier()


@pytest.fixture
async def trip(db, users):
    """A group holding alice, bob and carol."""
    group = Group(name="Trip", created_by=users["alice"].id)
    group.members = [GroupMember(user_id=users[n].id) for n in ("alice", "bob", "carol")]
    db.add(group)
    await db.commit()
    await db.refresh(group)
    return group


@pytest.fixture
def add_expense(db, checker):
    """Create an expense through the service, the way the API does."""

    async def _add(payer, amount, split_type="equal", splits=(), group=None, **extra):
        data = ExpenseCreate(
            description=extra.pop("description", "Dinner"),
            amount=Decimal(str(amount)),
            split_type=split_type,
            splits=list(splits),
            group_id=group.id if group is not None else None,
            **extra,
        )
        return await create_expense(db, data, payer.id, checker)

    return _add
