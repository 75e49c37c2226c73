"""
Unit tests for repository write paths.

Sessions are replaced with mocks so the SQL each method emits and the
way driver errors are mapped can be checked without PostgreSQL.

Verifies:
- Unique transaction_id violations become DuplicatePaymentError
- Renewal extends, reactivates and appends in a single UPDATE
- Expiry reminders are merged into the JSONB column in place
"""

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.dialects.postgresql.base import PGDialect
from sqlalchemy.exc import IntegrityError

from app.domain.subscription import (
    AddOnStatus,
    ExpiryReminder,
    Payment,
    PaymentType,
    SubscriptionStatus,
    UserPlan,
)
from app.infrastructure.db.models.payment import TRANSACTION_ID_INDEX
from app.infrastructure.db.models.subscription import SubscriptionModel
from app.infrastructure.db.repositories.add_on_repository import AddOnRepository
from app.infrastructure.db.repositories.payment_repository import PaymentRepository
from app.infrastructure.db.repositories.subscription_repository import SubscriptionRepository
from app.infrastructure.exceptions import (
    DatabaseError,
    DuplicatePaymentError,
    SubscriptionNotFoundError,
)


ENDS_AT = datetime(2025, 2, 20, tzinfo=timezone.utc)


class DriverError(Exception):
    """Shape of the errors SQLAlchemy's asyncpg adapter puts on ``orig``."""

    def __init__(self, message: str, sqlstate: str, constraint_name=None):
        super().__init__(message)
        self.sqlstate = sqlstate
        self.constraint_name = constraint_name


def mock_session():
    session = MagicMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.execute = AsyncMock()
    return session


def patch_session(module: str, session):
    @asynccontextmanager
    async def fake_session_context():
        yield session

    return patch(f"{module}.get_session_context", fake_session_context)


def integrity_error(orig: Exception) -> IntegrityError:
    return IntegrityError("INSERT INTO payments ...", {}, orig)


@pytest.fixture
def payment():
    return Payment(
        transaction_id="MPB-CHRG-RENEW-001",
        amount=99.0,
        currency="AED",
        status="captured",
        item_type=UserPlan.BUSINESS,
        payment_type=PaymentType.PLAN_PURCHASE,
        buyer_id=str(uuid.uuid4()),
        raw_data={"id": "MPB-CHRG-RENEW-001"},
    )


class TestPaymentRepositoryCreate:

    MODULE = "app.infrastructure.db.repositories.payment_repository"

    @pytest.mark.asyncio
    async def test_inserts_row(self, payment):
        session = mock_session()

        with patch_session(self.MODULE, session):
            created = await PaymentRepository().create(payment)

        session.add.assert_called_once()
        session.flush.assert_awaited_once()
        assert created.id is not None
        assert created.transaction_id == "MPB-CHRG-RENEW-001"
        assert created.commission_amount is None

    @pytest.mark.asyncio
    async def test_unique_transaction_id_violation(self, payment):
        session = mock_session()
        session.flush.side_effect = integrity_error(
            DriverError("duplicate key value", "23505", TRANSACTION_ID_INDEX)
        )

        with patch_session(self.MODULE, session):
            with pytest.raises(DuplicatePaymentError) as exc_info:
                await PaymentRepository().create(payment)

        assert exc_info.value.details["transaction_id"] == "MPB-CHRG-RENEW-001"

    @pytest.mark.asyncio
    async def test_constraint_name_on_driver_cause(self, payment):
        adapted = DriverError("duplicate key value", "23505")
        adapted.__cause__ = DriverError("duplicate key value", "23505", TRANSACTION_ID_INDEX)
        session = mock_session()
        session.flush.side_effect = integrity_error(adapted)

        with patch_session(self.MODULE, session):
            with pytest.raises(DuplicatePaymentError):
                await PaymentRepository().create(payment)

    @pytest.mark.asyncio
    async def test_other_unique_constraint_is_not_a_duplicate_payment(self, payment):
        session = mock_session()
        session.flush.side_effect = integrity_error(
            DriverError("duplicate key value violates payments_pkey", "23505", "payments_pkey")
        )

        with patch_session(self.MODULE, session):
            with pytest.raises(DatabaseError) as exc_info:
                await PaymentRepository().create(payment)

        assert type(exc_info.value) is DatabaseError

    @pytest.mark.asyncio
    async def test_foreign_key_violation_mentioning_transaction_id(self, payment):
        session = mock_session()
        session.flush.side_effect = integrity_error(
            DriverError('insert for transaction_id "MPB-CHRG-RENEW-001" violates foreign key', "23503")
        )

        with patch_session(self.MODULE, session):
            with pytest.raises(DatabaseError) as exc_info:
                await PaymentRepository().create(payment)

        assert type(exc_info.value) is DatabaseError
        assert exc_info.value.details["table"] == "payments"


class TestSubscriptionRepositoryApplyRenewal:

    MODULE = "app.infrastructure.db.repositories.subscription_repository"

    @staticmethod
    def _returning(session, model):
        result = MagicMock()
        result.scalar_one_or_none.return_value = model
        session.execute.return_value = result

    @pytest.mark.asyncio
    async def test_single_update_appends_extends_and_reactivates(self):
        subscription_id = uuid.uuid4()
        payload = {"id": "MPB-CHRG-2", "custom_data": {"details": {"planType": "BUSINESS"}}}
        model = SubscriptionModel(
            id=subscription_id,
            subscription_id="MPB-SUB-PLAN-001",
            user_id=uuid.uuid4(),
            status="ACTIVE",
            ends_at=ENDS_AT,
            raw_data=[{"id": "MPB-CHRG-FIRST"}, payload],
        )
        session = mock_session()
        self._returning(session, model)

        with patch_session(self.MODULE, session):
            renewed = await SubscriptionRepository().apply_renewal(str(subscription_id), ENDS_AT, payload)

        session.execute.assert_awaited_once()
        statement = session.execute.await_args.args[0]
        compiled = statement.compile(dialect=PGDialect())
        sql = str(compiled)

        assert sql.startswith("UPDATE subscriptions SET")
        assert "coalesce(subscriptions.raw_data, '[]'::jsonb) ||" in sql
        assert "RETURNING" in sql
        assert compiled.params["status"] == "ACTIVE"
        assert compiled.params["ends_at"] == ENDS_AT
        assert [payload] in compiled.params.values()

        assert renewed.status == SubscriptionStatus.ACTIVE
        assert [entry["id"] for entry in renewed.raw_data] == ["MPB-CHRG-FIRST", "MPB-CHRG-2"]

    @pytest.mark.asyncio
    async def test_missing_row(self):
        session = mock_session()
        self._returning(session, None)

        with patch_session(self.MODULE, session):
            with pytest.raises(SubscriptionNotFoundError):
                await SubscriptionRepository().apply_renewal(str(uuid.uuid4()), ENDS_AT, {"id": "X"})


class TestAddOnRepositoryExpiryReminders:

    MODULE = "app.infrastructure.db.repositories.add_on_repository"

    @pytest.mark.asyncio
    async def test_mark_reminder_sent_merges_in_one_update(self):
        session = mock_session()
        add_on_id = str(uuid.uuid4())

        with patch_session(self.MODULE, session):
            await AddOnRepository().mark_reminder_sent(add_on_id, ExpiryReminder.DAY3)

        session.execute.assert_awaited_once()
        compiled = session.execute.await_args.args[0].compile(dialect=PGDialect())
        sql = str(compiled)

        assert sql.startswith("UPDATE add_ons SET")
        assert "coalesce(add_ons.expiration_reminders, '{}'::jsonb) ||" in sql
        assert {"day3": True} in compiled.params.values()

    @pytest.mark.asyncio
    async def test_list_expiring_filters_grace_period_window(self):
        session = mock_session()
        result = MagicMock()
        result.scalars.return_value.all.return_value = []
        session.execute.return_value = result
        until = ENDS_AT + timedelta(days=8)

        with patch_session(self.MODULE, session):
            assert await AddOnRepository().list_expiring(ENDS_AT, until) == []

        compiled = session.execute.await_args.args[0].compile(dialect=PGDialect())
        sql = str(compiled)

        assert "add_ons.status !=" in sql
        assert "add_ons.end_date IS NOT NULL" in sql
        assert "ORDER BY add_ons.end_date" in sql
        assert AddOnStatus.ACTIVE.value in compiled.params.values()
        assert ENDS_AT in compiled.params.values()
        assert until in compiled.params.values()
