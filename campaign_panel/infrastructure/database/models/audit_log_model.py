# campaign_panel/infrastructure/database/models/audit_log_model.py

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from campaign_panel.infrastructure.database.base_model import BaseModel, BigIntPK


class AuditLogModel(BaseModel):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    actor_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=True)

    action: Mapped[str] = mapped_column(String(50), nullable=False)
    target_table: Mapped[str] = mapped_column(String(50), nullable=False)
    target_id: Mapped[str] = mapped_column(String(64), nullable=False)

    meta: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
