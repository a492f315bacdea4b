# campaign_panel/services/audit_service.py

from typing import Any

from campaign_panel.core.audit.audit_entities import AuditTable
from campaign_panel.core.clock import utcnow
from campaign_panel.infrastructure.database.models.audit_log_model import AuditLogModel
from campaign_panel.repositories.audit_log_repository import AuditLogRepository


class AuditService:
    def __init__(self, repo: AuditLogRepository) -> None:
        self._repo = repo

    def log(
        self,
        *,
        actor_id: int | None,
        action: str,
        target_id: int | str,
        target_table: str = AuditTable.USERS,
        meta: dict[str, Any] | None = None,
    ) -> None:
        model = AuditLogModel(
            actor_id=actor_id,
            action=action,
            target_table=target_table,
            target_id=str(target_id),
            meta=meta or {},
            created_at=utcnow(),
        )
        self._repo.add(model)

    def list_for_user(self, user_id: int, *, limit: int = 50) -> list[AuditLogModel]:
        return self._repo.list_for_target(target_table=AuditTable.USERS, target_id=str(user_id), limit=limit)
