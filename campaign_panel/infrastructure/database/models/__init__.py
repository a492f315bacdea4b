# Registers every table on BaseModel.metadata
from campaign_panel.infrastructure.database.models.audit_log_model import AuditLogModel  # noqa: F401
from campaign_panel.infrastructure.database.models.password_reset_model import PasswordResetModel  # noqa: F401
from campaign_panel.infrastructure.database.models.refresh_token_model import RefreshTokenModel  # noqa: F401
from campaign_panel.infrastructure.database.models.user_model import UserModel  # noqa: F401
