# campaign_panel/services/user_service.py

from dataclasses import dataclass
from html import escape

from sqlalchemy.orm import Session

from campaign_panel.core.audit.audit_entities import AuditAction
from campaign_panel.core.clock import utcnow
from campaign_panel.core.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from campaign_panel.core.interfaces.mail_sender import MailMessage, MailSender
from campaign_panel.core.logging import get_logger
from campaign_panel.entities.user import AuthenticatedUser, UserRole, can_manage_user
from campaign_panel.infrastructure.database.models.user_model import UserModel
from campaign_panel.infrastructure.security.jwt_provider import JwtProvider
from campaign_panel.infrastructure.security.password_hasher import PasswordHasher
from campaign_panel.repositories.audit_log_repository import AuditLogRepository
from campaign_panel.repositories.password_reset_repository import PasswordResetRepository
from campaign_panel.repositories.refresh_token_repository import RefreshTokenRepository
from campaign_panel.repositories.user_repository import UserRepository
from campaign_panel.services.audit_service import AuditService
from campaign_panel.services.auth_service import AuthService

logger = get_logger(__name__)


@dataclass(frozen=True)
class UsersPage:
    items: list[UserModel]
    has_next: bool
    next_cursor: int | None


class UserService:
    def __init__(
        self,
        user_repository: UserRepository,
        *,
        audit: AuditService,
        auth: AuthService,
        jwt_provider: JwtProvider,
        mail_sender: MailSender | None = None,
    ) -> None:
        self._user_repository = user_repository
        self._audit = audit
        self._auth = auth
        self._jwt = jwt_provider
        self._mail = mail_sender

    def get_user(self, user_id: int) -> UserModel:
        user = self._user_repository.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def list_users(self, *, limit: int = 30, cursor: int | None = None) -> UsersPage:
        rows = self._user_repository.list_page(limit=limit, cursor=cursor)
        has_next = len(rows) > limit
        items = rows[:limit]
        next_cursor = items[-1].id if has_next and items else None
        return UsersPage(items=items, has_next=has_next, next_cursor=next_cursor)

    def search_users(self, query: str, *, limit: int = 30) -> list[UserModel]:
        return self._user_repository.search(query, limit=limit)

    def user_stats(self) -> dict:
        by_role = self._user_repository.count_by_role()
        return {
            "by_role": [{"role": role.value, "count": by_role.get(role.value, 0)} for role in UserRole],
            "active": self._user_repository.count_by_active(is_active=True),
            "inactive": self._user_repository.count_by_active(is_active=False),
        }

    def create_user(
        self,
        *,
        actor: AuthenticatedUser,
        name: str,
        email: str,
        role: UserRole,
        password: str,
        phone_number: str | None = None,
    ) -> UserModel:
        if actor.role != UserRole.ADMIN and not can_manage_user(actor.role, role):
            raise ForbiddenError("Insufficient permissions")

        normalized = email.strip().lower()
        if self._user_repository.get_by_email(normalized) is not None:
            raise ConflictError("Email already registered")

        model = UserModel(
            name=name.strip(),
            email=normalized,
            phone_number=phone_number,
            password_hash=PasswordHasher.hash_password(password),
            role=role,
            is_active=True,
            token_version=0,
            created_at=utcnow(),
            updated_at=None,
            last_login=None,
        )
        created = self._user_repository.add(model)

        self._audit.log(
            actor_id=actor.id,
            action=AuditAction.CREATE,
            target_id=created.id,
            meta={"role": role.value},
        )
        return created

    def update_user(
        self,
        *,
        actor: AuthenticatedUser,
        user_id: int,
        role: UserRole | None = None,
        is_active: bool | None = None,
    ) -> UserModel:
        target = self.get_user(user_id)
        role_changed = role is not None and role != target.role

        if user_id == actor.id:
            if role_changed:
                raise ForbiddenError("Cannot change your own role")
            if is_active is False:
                raise ForbiddenError("Cannot deactivate your own account")

        if role_changed and actor.role != UserRole.ADMIN:
            raise ForbiddenError("Only admins can change roles")

        if is_active is not None and not can_manage_user(actor.role, target.role):
            raise ForbiddenError("Insufficient permissions")

        previous = {"role": target.role.value, "is_active": target.is_active}
        changes: dict = {}
        if role_changed:
            changes["role"] = role
        if is_active is not None and is_active != target.is_active:
            changes["is_active"] = is_active

        if not changes:
            return target

        self._user_repository.update_fields(user_id, **changes)

        # the old role or a deactivated account must not survive in live tokens
        if role_changed or changes.get("is_active") is False:
            self._auth.invalidate_all_sessions(user_id, actor_id=actor.id)

        self._audit.log(
            actor_id=actor.id,
            action=AuditAction.UPDATE,
            target_id=user_id,
            meta={
                "previous": previous,
                "changes": {k: (v.value if isinstance(v, UserRole) else v) for k, v in changes.items()},
            },
        )
        return self.get_user(user_id)

    def change_password(self, *, user_id: int, current_password: str, new_password: str) -> UserModel:
        user = self.get_user(user_id)

        if not PasswordHasher.verify_password(current_password, password_hash=user.password_hash):
            raise BadRequestError("Incorrect current password")

        try:
            new_hash = PasswordHasher.hash_password(new_password)
        except ValueError as e:
            raise BadRequestError(str(e)) from e

        self._user_repository.update_fields(user_id, password_hash=new_hash)
        self._audit.log(actor_id=user_id, action=AuditAction.CHANGE_PASSWORD, target_id=user_id)

        if self._mail is not None:
            sent = self._mail.send(
                MailMessage(
                    to=user.email,
                    subject="Your password has been changed",
                    html=(
                        f"<p>Hello {escape(user.name)},</p>"
                        "<p>Your Campaign Panel password was changed.</p>"
                        "<p>If this wasn't you, please contact support immediately.</p>"
                    ),
                    text="Your Campaign Panel password was changed.",
                )
            )
            if not sent:
                logger.warning("password_change_mail_failed", user_id=user_id)

        return self.get_user(user_id)

    def impersonate(self, *, actor: AuthenticatedUser, user_id: int) -> tuple[UserModel, str]:
        if actor.role != UserRole.ADMIN:
            raise ForbiddenError("Only admins can impersonate users")

        target = self.get_user(user_id)
        if not target.is_active:
            raise BadRequestError("Cannot impersonate a deactivated user")

        token = self._jwt.issue_access_token(
            user_id=target.id,
            email=target.email,
            role=target.role,
            token_version=target.token_version,
        )

        self._audit.log(
            actor_id=actor.id,
            action=AuditAction.IMPERSONATE,
            target_id=target.id,
            meta={"admin_id": actor.id},
        )
        logger.info("impersonation", admin_id=actor.id, user_id=target.id)
        return target, token

    def audit_logs(self, user_id: int, *, limit: int = 50):
        self.get_user(user_id)
        return self._audit.list_for_user(user_id, limit=limit)


def build_user_service(session: Session, mail_sender: MailSender | None = None) -> UserService:
    jwt_provider = JwtProvider()
    audit = AuditService(AuditLogRepository(session))
    user_repo = UserRepository(session)
    auth = AuthService(
        user_repo=user_repo,
        refresh_repo=RefreshTokenRepository(session),
        reset_repo=PasswordResetRepository(session),
        audit=audit,
        jwt_provider=jwt_provider,
    )
    return UserService(user_repo, audit=audit, auth=auth, jwt_provider=jwt_provider, mail_sender=mail_sender)
