"""
Payment Repository

Data access layer for the payment ledger. The unique ``transaction_id``
column is the final arbiter of webhook idempotency.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlmodel import select
from sqlalchemy.exc import IntegrityError

from app.infrastructure.db.database import get_session_context
from app.infrastructure.db.models.payment import TRANSACTION_ID_INDEX, PaymentModel
from app.infrastructure.exceptions import DatabaseError, DuplicatePaymentError
from app.domain.subscription import AddOnType, Payment, PaymentType, UserPlan


logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def _is_transaction_id_conflict(error: IntegrityError) -> bool:
    """
    True when the insert hit the unique transaction_id index.

    asyncpg errors surface through SQLAlchemy's adapter, which carries the
    SQLSTATE on ``orig`` and keeps the driver error as its ``__cause__``.
    """
    orig = error.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate != UNIQUE_VIOLATION:
        return False

    constraint = getattr(orig, "constraint_name", None) or getattr(
        getattr(orig, "__cause__", None), "constraint_name", None
    )
    return constraint is None or constraint == TRANSACTION_ID_INDEX


class PaymentRepository:
    """Repository for payment ledger rows."""

    async def exists_by_transaction_id(self, transaction_id: str) -> bool:
        """Check if a gateway transaction has already been recorded."""
        async with get_session_context() as session:
            statement = select(PaymentModel.id).where(
                PaymentModel.transaction_id == transaction_id
            )
            result = await session.execute(statement)
            return result.first() is not None

    async def create(self, payment: Payment) -> Payment:
        """
        Insert a payment row.

        Raises:
            DuplicatePaymentError: transaction_id already recorded
            DatabaseError: any other integrity violation
        """
        try:
            async with get_session_context() as session:
                model = self._to_model(payment)
                session.add(model)
                await session.flush()
                await session.refresh(model)
                created = self._to_domain(model)
        except IntegrityError as e:
            if _is_transaction_id_conflict(e):
                raise DuplicatePaymentError(payment.transaction_id, original_error=e)
            raise DatabaseError(
                f"Failed to record payment {payment.transaction_id}",
                operation="create",
                table="payments",
                original_error=e,
            )

        logger.info(
            f"Recorded payment {created.id} for transaction {created.transaction_id} "
            f"({created.payment_type.value})"
        )
        return created

    def _to_model(self, payment: Payment) -> PaymentModel:
        return PaymentModel(
            transaction_id=payment.transaction_id,
            amount=payment.amount,
            currency=payment.currency,
            status=payment.status,
            item_type=payment.item_type.value if payment.item_type else None,
            addon_type=payment.addon_type.value if payment.addon_type else None,
            addon_quantity=payment.addon_quantity,
            addon_id=UUID(payment.addon_id) if payment.addon_id else None,
            payment_type=payment.payment_type.value,
            buyer_id=UUID(payment.buyer_id),
            affiliate_link_id=payment.affiliate_link_id,
            commission_amount=payment.commission_amount,
            commission_status=payment.commission_status,
            raw_data=payment.raw_data,
        )

    def _to_domain(self, model: PaymentModel) -> Payment:
        return Payment(
            id=str(model.id),
            transaction_id=model.transaction_id,
            amount=model.amount,
            currency=model.currency,
            status=model.status,
            item_type=UserPlan(model.item_type) if model.item_type else None,
            addon_type=AddOnType(model.addon_type) if model.addon_type else None,
            addon_quantity=model.addon_quantity,
            addon_id=str(model.addon_id) if model.addon_id else None,
            payment_type=PaymentType(model.payment_type),
            buyer_id=str(model.buyer_id),
            affiliate_link_id=model.affiliate_link_id,
            commission_amount=model.commission_amount,
            commission_status=model.commission_status,
            raw_data=model.raw_data,
            created_at=model.created_at,
        )


# =============================================================================
# Singleton Instance
# =============================================================================

_payment_repo_instance: Optional[PaymentRepository] = None


def get_payment_repository() -> PaymentRepository:
    """Get or create payment repository singleton."""
    global _payment_repo_instance

    if _payment_repo_instance is None:
        _payment_repo_instance = PaymentRepository()

    return _payment_repo_instance
