# campaign_panel/repositories/user_repository.py

from typing import Any

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from campaign_panel.core.base_repository import BaseRepository
from campaign_panel.core.clock import utcnow
from campaign_panel.entities.user import UserRole
from campaign_panel.infrastructure.database.models.user_model import UserModel


class UserRepository(BaseRepository[UserModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def get_by_email(self, email: str) -> UserModel | None:
        stmt = select(UserModel).where(UserModel.email == email.strip().lower())
        return self._session.execute(stmt).scalar_one_or_none()

    def get_by_id(self, user_id: int) -> UserModel | None:
        stmt = select(UserModel).where(UserModel.id == user_id)
        return self._session.execute(stmt).scalar_one_or_none()

    def get_active_by_email(self, email: str) -> UserModel | None:
        user = self.get_by_email(email)
        return user if user is not None and user.is_active else None

    def get_active_by_id(self, user_id: int) -> UserModel | None:
        user = self.get_by_id(user_id)
        return user if user is not None and user.is_active else None

    def add(self, model: UserModel) -> UserModel:
        self._session.add(model)
        self.flush()
        return model

    def update_fields(self, user_id: int, **fields: Any) -> bool:
        fields.setdefault("updated_at", utcnow())
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(stmt)
        self._reload(user_id)
        return (result.rowcount or 0) > 0

    def increment_token_version(self, user_id: int) -> bool:
        # single UPDATE so concurrent bumps never collapse into one
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(token_version=UserModel.token_version + 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(stmt)
        self._reload(user_id)
        return (result.rowcount or 0) > 0

    def _reload(self, user_id: int) -> None:
        stmt = select(UserModel).where(UserModel.id == user_id).execution_options(populate_existing=True)
        self._session.execute(stmt).scalar_one_or_none()

    def touch_last_login(self, user_id: int) -> None:
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(last_login=utcnow())
            .execution_options(synchronize_session=False)
        )
        self._session.execute(stmt)
        self._reload(user_id)

    def list_page(self, *, limit: int, cursor: int | None = None) -> list[UserModel]:
        """Keyset page of non-admin users ordered by id; fetches limit + 1 rows."""
        stmt = select(UserModel).where(UserModel.role != UserRole.ADMIN)
        if cursor is not None:
            stmt = stmt.where(UserModel.id > cursor)

        stmt = stmt.order_by(UserModel.id.asc()).limit(limit + 1)
        return list(self._session.execute(stmt).scalars().all())

    def search(self, query: str, *, limit: int = 30) -> list[UserModel]:
        like = f"%{query.strip().lower()}%"
        stmt = (
            select(UserModel)
            .where(or_(func.lower(UserModel.email).like(like), func.lower(UserModel.name).like(like)))
            .order_by(UserModel.name.asc())
            .limit(limit)
        )
        return list(self._session.execute(stmt).scalars().all())

    def count_by_role(self) -> dict[str, int]:
        stmt = select(UserModel.role, func.count(UserModel.id)).group_by(UserModel.role)
        return {UserRole(role).value: int(count) for role, count in self._session.execute(stmt).all()}

    def count_by_active(self, *, is_active: bool) -> int:
        stmt = select(func.count(UserModel.id)).where(UserModel.is_active.is_(is_active))
        return int(self._session.execute(stmt).scalar_one())
