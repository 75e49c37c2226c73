"""
User Repository

Reads account owners and moves the plan-expiry marker.
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import update

from app.infrastructure.db.database import get_session_context
from app.infrastructure.db.models.user import UserModel
from app.domain.subscription import User, UserPlan


logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for the billing view of users."""

    async def get_by_id(self, id: str) -> Optional[User]:
        async with get_session_context() as session:
            model = await session.get(UserModel, UUID(id))
            if not model:
                return None
            return User(
                id=str(model.id),
                email=model.email,
                plan=UserPlan(model.plan),
                trial_end_date=model.trial_end_date,
            )

    async def update_trial_end_date(self, id: str, trial_end_date: datetime) -> None:
        """Extend the plan-expiry marker after a plan renewal."""
        async with get_session_context() as session:
            await session.execute(
                update(UserModel)
                .where(UserModel.id == UUID(id))
                .values(trial_end_date=trial_end_date, updated_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )
        logger.info(f"Plan expiry for user {id} moved to {trial_end_date.isoformat()}")


# =============================================================================
# Singleton Instance
# =============================================================================

_user_repo_instance: Optional[UserRepository] = None


def get_user_repository() -> UserRepository:
    """Get or create user repository singleton."""
    global _user_repo_instance

    if _user_repo_instance is None:
        _user_repo_instance = UserRepository()

    return _user_repo_instance
