"""Shared fixtures: a throwaway SQLite database per test and payee builders."""

import uuid
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agency_console.database import build_engine, init_db
from agency_console.schemas.basis import Payee, PayeeKind
from agency_console.schemas.compensation import BucketPercentages, NoCompensation, PayoutScope


@pytest.fixture
async def db_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'payouts.db'}")
    await init_db(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


def make_payee(
    name: str,
    role: str = "chatter",
    department: str = "chatting",
    compensation=None,
    buckets: BucketPercentages = None,
    payout_scope: PayoutScope = PayoutScope.TOTAL_NET,
    kind: PayeeKind = PayeeKind.TEAM_MEMBER,
    is_active: bool = True,
    payee_id: uuid.UUID = None,
) -> Payee:
    return Payee(
        id=payee_id or uuid.uuid4(),
        kind=kind,
        name=name,
        role=role,
        department=department,
        is_active=is_active,
        compensation=compensation or NoCompensation(),
        buckets=buckets or BucketPercentages(),
        payout_scope=payout_scope,
    )


def d(value) -> Decimal:
    return Decimal(str(value))
