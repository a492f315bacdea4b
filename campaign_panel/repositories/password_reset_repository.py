# campaign_panel/repositories/password_reset_repository.py

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from campaign_panel.core.base_repository import BaseRepository
from campaign_panel.core.clock import utcnow
from campaign_panel.infrastructure.database.models.password_reset_model import PasswordResetModel


class PasswordResetRepository(BaseRepository[PasswordResetModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def save(self, *, user_id: int, token_id: str, expires_at: datetime) -> PasswordResetModel:
        model = PasswordResetModel(
            user_id=user_id,
            token_id=token_id,
            used=False,
            used_at=None,
            expires_at=expires_at,
            created_at=utcnow(),
        )
        self._session.add(model)
        self.flush()
        return model

    def find_unused(self, *, token_id: str, now: datetime | None = None) -> PasswordResetModel | None:
        stmt = select(PasswordResetModel).where(
            PasswordResetModel.token_id == token_id,
            PasswordResetModel.used.is_(False),
            PasswordResetModel.expires_at > (now or utcnow()),
        )
        return self._session.execute(stmt).scalar_one_or_none()

    def mark_used(self, record_id: int, *, now: datetime | None = None) -> bool:
        """Flip used false -> true. False means another request consumed it first."""
        stmt = (
            update(PasswordResetModel)
            .where(PasswordResetModel.id == record_id, PasswordResetModel.used.is_(False))
            .values(used=True, used_at=now or utcnow())
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(stmt)
        return (result.rowcount or 0) > 0

    def delete_expired(self, *, now: datetime) -> int:
        stmt = delete(PasswordResetModel).where(PasswordResetModel.expires_at <= now)
        result = self._session.execute(stmt, execution_options={"synchronize_session": False})
        return int(result.rowcount or 0)
