# campaign_panel/repositories/audit_log_repository.py

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from campaign_panel.core.base_repository import BaseRepository
from campaign_panel.infrastructure.database.models.audit_log_model import AuditLogModel


class AuditLogRepository(BaseRepository[AuditLogModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def add(self, model: AuditLogModel) -> AuditLogModel:
        self._session.add(model)
        self.flush()
        return model

    def list_for_target(self, *, target_table: str, target_id: str, limit: int = 50) -> list[AuditLogModel]:
        stmt = (
            select(AuditLogModel)
            .where(AuditLogModel.target_table == target_table, AuditLogModel.target_id == target_id)
            .order_by(AuditLogModel.created_at.desc(), AuditLogModel.id.desc())
            .limit(limit)
        )
        return list(self._session.execute(stmt).scalars().all())

    def list_by_action(self, action: str) -> list[AuditLogModel]:
        stmt = select(AuditLogModel).where(AuditLogModel.action == action).order_by(AuditLogModel.id.asc())
        return list(self._session.execute(stmt).scalars().all())
