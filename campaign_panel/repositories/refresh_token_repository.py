# campaign_panel/repositories/refresh_token_repository.py

from datetime import datetime
from typing import Callable

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from campaign_panel.core.base_repository import BaseRepository
from campaign_panel.core.clock import utcnow
from campaign_panel.infrastructure.database.models.refresh_token_model import RefreshTokenModel


class RefreshTokenRepository(BaseRepository[RefreshTokenModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def save(self, *, user_id: int, token_id: str, expires_at: datetime) -> RefreshTokenModel:
        existing = self.find_by_token_id(token_id)
        if existing is not None:
            return existing

        model = RefreshTokenModel(
            user_id=user_id,
            token_id=token_id,
            expires_at=expires_at,
            created_at=utcnow(),
        )
        self._session.add(model)
        self.flush()
        return model

    def find_by_token_id(self, token_id: str) -> RefreshTokenModel | None:
        stmt = select(RefreshTokenModel).where(RefreshTokenModel.token_id == token_id)
        return self._session.execute(stmt).scalar_one_or_none()

    def find_valid(self, *, token_id: str, user_id: int, now: datetime | None = None) -> RefreshTokenModel | None:
        stmt = select(RefreshTokenModel).where(
            RefreshTokenModel.token_id == token_id,
            RefreshTokenModel.user_id == user_id,
            RefreshTokenModel.expires_at > (now or utcnow()),
        )
        return self._session.execute(stmt).scalar_one_or_none()

    def delete(self, token_id: str) -> bool:
        """True only when this call removed the row."""
        stmt = delete(RefreshTokenModel).where(RefreshTokenModel.token_id == token_id)
        result = self._session.execute(stmt, execution_options={"synchronize_session": False})
        self._evict(lambda record: record.token_id == token_id)
        return (result.rowcount or 0) > 0

    def delete_all_for_user(self, user_id: int) -> int:
        stmt = delete(RefreshTokenModel).where(RefreshTokenModel.user_id == user_id)
        result = self._session.execute(stmt, execution_options={"synchronize_session": False})
        self._evict(lambda record: record.user_id == user_id)
        return int(result.rowcount or 0)

    def delete_expired(self, *, now: datetime) -> int:
        stmt = delete(RefreshTokenModel).where(RefreshTokenModel.expires_at <= now)
        result = self._session.execute(stmt, execution_options={"synchronize_session": False})
        return int(result.rowcount or 0)

    def _evict(self, matches: Callable[[RefreshTokenModel], bool]) -> None:
        # rowcount is the rotation race signal, so the bulk delete stays unsynchronized
        # and rows it removed are dropped from the identity map here
        for obj in list(self._session.identity_map.values()):
            if isinstance(obj, RefreshTokenModel) and matches(obj):
                self._session.expunge(obj)
