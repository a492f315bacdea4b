# campaign_panel/services/password_reset_service.py

from html import escape
from urllib.parse import quote

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campaign_panel.config.settings import settings
from campaign_panel.core.audit.audit_entities import AuditAction
from campaign_panel.core.exceptions import InvalidResetTokenError, UnauthorizedError
from campaign_panel.core.interfaces.mail_sender import MailMessage, MailSender
from campaign_panel.core.logging import get_logger
from campaign_panel.infrastructure.database.models.user_model import UserModel
from campaign_panel.infrastructure.security.jwt_provider import JwtProvider
from campaign_panel.infrastructure.security.password_hasher import PasswordHasher
from campaign_panel.repositories.audit_log_repository import AuditLogRepository
from campaign_panel.repositories.password_reset_repository import PasswordResetRepository
from campaign_panel.repositories.refresh_token_repository import RefreshTokenRepository
from campaign_panel.repositories.user_repository import UserRepository
from campaign_panel.services.audit_service import AuditService

logger = get_logger(__name__)


class PasswordResetService:
    def __init__(
        self,
        *,
        user_repo: UserRepository,
        reset_repo: PasswordResetRepository,
        refresh_repo: RefreshTokenRepository,
        audit: AuditService,
        jwt_provider: JwtProvider,
        mail_sender: MailSender,
        frontend_url: str,
    ) -> None:
        self._users = user_repo
        self._resets = reset_repo
        self._refresh = refresh_repo
        self._audit = audit
        self._jwt = jwt_provider
        self._mail = mail_sender
        self._frontend_url = frontend_url.rstrip("/")

    def reset_url(self, token: str) -> str:
        return f"{self._frontend_url}/reset-password?token={quote(token, safe='')}"

    def _build_mail(self, user: UserModel, token: str) -> MailMessage:
        url = self.reset_url(token)
        html = (
            f"<p>Hi {escape(user.name)},</p>"
            "<p>We received a request to reset your Campaign Panel password. "
            "Click the link below to choose a new one. The link expires in about an hour.</p>"
            f'<p><a href="{url}">Reset your password</a></p>'
            "<p>If you did not request this, you can safely ignore this email.</p>"
        )
        return MailMessage(
            to=user.email,
            subject="Campaign Panel: password reset",
            html=html,
            text=f"Reset your password: {url}",
        )

    def request_password_reset(self, email: str) -> None:
        """Never tells the caller whether the address is registered."""
        user = self._users.get_active_by_email(email)
        if user is None:
            logger.info("password_reset_unknown_email", email=email)
            return

        issued = self._jwt.issue_password_reset_token(user_id=user.id, token_version=user.token_version)
        self._resets.save(user_id=user.id, token_id=issued.token_id, expires_at=issued.expires_at)

        # committed before sending, a mail failure keeps the token redeemable
        self._resets.commit()

        delivered = self._mail.send(self._build_mail(user, issued.token))
        if not delivered:
            logger.error("password_reset_mail_failed", user_id=user.id)

        self._audit.log(
            actor_id=user.id,
            action=AuditAction.REQUEST_PASSWORD_RESET,
            target_id=user.id,
            meta={"delivered": delivered},
        )

    def reset_password(self, token: str, new_password: str) -> None:
        try:
            claims = self._jwt.decode_password_reset_token(token)
        except UnauthorizedError as e:
            raise InvalidResetTokenError() from e

        try:
            record = self._resets.find_unused(token_id=claims.token_id)
            if record is None or record.user_id != claims.user_id:
                raise InvalidResetTokenError()

            # single use: consumed and committed before the password changes
            if not self._resets.mark_used(record.id):
                raise InvalidResetTokenError()
            self._resets.commit()

            user = self._users.get_active_by_id(claims.user_id)
            if user is None:
                raise InvalidResetTokenError()

            self._users.update_fields(user.id, password_hash=PasswordHasher.hash_password(new_password))
            self._users.increment_token_version(user.id)
            purged = self._refresh.delete_all_for_user(user.id)
        except SQLAlchemyError as e:
            logger.error("password_reset_store_error", error=e.__class__.__name__)
            raise InvalidResetTokenError() from e
        except ValueError as e:
            # password policy; the token is already spent
            logger.info("password_reset_rejected_password", user_id=claims.user_id)
            raise InvalidResetTokenError() from e

        self._audit.log(
            actor_id=user.id,
            action=AuditAction.RESET_PASSWORD,
            target_id=user.id,
            meta={"refresh_tokens_purged": purged},
        )
        logger.info("password_reset_completed", user_id=user.id)


def build_password_reset_service(session: Session, mail_sender: MailSender) -> PasswordResetService:
    return PasswordResetService(
        user_repo=UserRepository(session),
        reset_repo=PasswordResetRepository(session),
        refresh_repo=RefreshTokenRepository(session),
        audit=AuditService(AuditLogRepository(session)),
        jwt_provider=JwtProvider(),
        mail_sender=mail_sender,
        frontend_url=settings.frontend_url,
    )
