# campaign_panel/services/auth_service.py

from dataclasses import dataclass
from datetime import datetime
from typing import NoReturn

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campaign_panel.core.audit.audit_entities import AuditAction
from campaign_panel.core.clock import utcnow
from campaign_panel.core.exceptions import (
    AccountDeactivatedError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    NotFoundError,
    UnauthorizedError,
)
from campaign_panel.core.logging import get_logger
from campaign_panel.entities.user import AuthenticatedUser
from campaign_panel.infrastructure.database.models.user_model import UserModel
from campaign_panel.infrastructure.security.jwt_provider import JwtProvider
from campaign_panel.infrastructure.security.password_hasher import PasswordHasher
from campaign_panel.repositories.audit_log_repository import AuditLogRepository
from campaign_panel.repositories.password_reset_repository import PasswordResetRepository
from campaign_panel.repositories.refresh_token_repository import RefreshTokenRepository
from campaign_panel.repositories.user_repository import UserRepository
from campaign_panel.services.audit_service import AuditService

logger = get_logger(__name__)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class LoginResult:
    user: UserModel
    access_token: str
    refresh_token: str


class AuthService:
    """Login, refresh rotation, logout and session invalidation.

    A refresh token is usable only while its store record exists, is unexpired
    and the embedded token_version still matches the user's. Rotation deletes
    the old record before the new pair is issued, so a replayed token finds
    nothing.
    """

    def __init__(
        self,
        *,
        user_repo: UserRepository,
        refresh_repo: RefreshTokenRepository,
        reset_repo: PasswordResetRepository,
        audit: AuditService,
        jwt_provider: JwtProvider,
    ) -> None:
        self._users = user_repo
        self._refresh = refresh_repo
        self._resets = reset_repo
        self._audit = audit
        self._jwt = jwt_provider

    # -------------------------
    # Token issuing
    # -------------------------

    def _issue_pair(self, user: UserModel) -> TokenPair:
        access = self._jwt.issue_access_token(
            user_id=user.id,
            email=user.email,
            role=user.role,
            token_version=user.token_version,
        )
        refresh = self._jwt.issue_refresh_token(user_id=user.id, token_version=user.token_version)

        # the record must exist before the token leaves this method
        self._refresh.save(user_id=user.id, token_id=refresh.token_id, expires_at=refresh.expires_at)
        return TokenPair(access_token=access, refresh_token=refresh.token)

    # -------------------------
    # Session operations
    # -------------------------

    def login(self, *, email: str, password: str, client_ip: str | None = None) -> LoginResult:
        user = self._users.get_by_email(email)
        if user is None or not user.is_active:
            logger.info("login_failed", email=email, client_ip=client_ip)
            raise InvalidCredentialsError()

        if not PasswordHasher.verify_password(password, password_hash=user.password_hash):
            logger.info("login_failed", email=email, client_ip=client_ip)
            raise InvalidCredentialsError()

        pair = self._issue_pair(user)
        self._users.touch_last_login(user.id)

        self._audit.log(
            actor_id=user.id,
            action=AuditAction.LOGIN,
            target_id=user.id,
            meta={"ip": client_ip or ""},
        )
        logger.info("login_succeeded", user_id=user.id)

        return LoginResult(user=user, access_token=pair.access_token, refresh_token=pair.refresh_token)

    def refresh(self, refresh_token: str | None) -> TokenPair:
        if not refresh_token:
            raise InvalidRefreshTokenError()

        try:
            claims = self._jwt.decode_refresh_token(refresh_token)
        except UnauthorizedError as e:
            logger.info("refresh_rejected", reason="token_invalid")
            raise InvalidRefreshTokenError() from e

        try:
            record = self._refresh.find_valid(token_id=claims.token_id, user_id=claims.user_id)
            if record is None:
                self._reject(claims.token_id, reason="record_missing")

            user = self._users.get_by_id(claims.user_id)
            if user is None or not user.is_active:
                self._reject(claims.token_id, reason="user_inactive")
            if user.token_version != claims.token_version:
                self._reject(claims.token_id, reason="version_mismatch")

            # rotation: a concurrent refresh that already deleted the record wins
            if not self._refresh.delete(claims.token_id):
                self._reject(claims.token_id, reason="already_rotated")

            pair = self._issue_pair(user)
        except SQLAlchemyError as e:
            logger.error("refresh_store_error", error=e.__class__.__name__)
            raise InvalidRefreshTokenError() from e

        logger.info("refresh_succeeded", user_id=user.id)
        return pair

    def _reject(self, token_id: str, *, reason: str) -> NoReturn:
        if self._refresh.delete(token_id):
            # the stale record stays deleted even though the request fails
            self._refresh.commit()
        logger.info("refresh_rejected", reason=reason)
        raise InvalidRefreshTokenError()

    def logout(self, refresh_token: str | None) -> None:
        if not refresh_token:
            return

        try:
            claims = self._jwt.decode_refresh_token(refresh_token)
        except UnauthorizedError:
            # expired or forged: nothing to revoke
            return

        self._refresh.delete(claims.token_id)
        self._audit.log(actor_id=claims.user_id, action=AuditAction.LOGOUT, target_id=claims.user_id)
        logger.info("logout", user_id=claims.user_id)

    def invalidate_all_sessions(self, user_id: int, *, actor_id: int | None = None) -> int:
        if not self._users.increment_token_version(user_id):
            raise NotFoundError("User not found")

        purged = self._refresh.delete_all_for_user(user_id)

        self._audit.log(
            actor_id=actor_id if actor_id is not None else user_id,
            action=AuditAction.INVALIDATE_SESSIONS,
            target_id=user_id,
            meta={"refresh_tokens_purged": purged},
        )
        logger.info("sessions_invalidated", user_id=user_id, purged=purged)
        return purged

    # -------------------------
    # Request authentication
    # -------------------------

    def authenticate_access_token(self, token: str) -> AuthenticatedUser:
        claims = self._jwt.decode_access_token(token)

        # live record, so a token_version bump takes effect immediately
        user = self._users.get_by_id(claims.user_id)
        if user is None:
            raise UnauthorizedError("Invalid token")
        if not user.is_active:
            raise AccountDeactivatedError()
        if user.token_version != claims.token_version:
            raise UnauthorizedError("Token has been invalidated")

        return AuthenticatedUser(
            id=user.id,
            email=user.email,
            role=user.role,
            token_version=user.token_version,
        )

    # -------------------------
    # Maintenance
    # -------------------------

    def cleanup_expired_tokens(self, *, now: datetime | None = None) -> tuple[int, int]:
        moment = now or utcnow()
        refresh_count = self._refresh.delete_expired(now=moment)
        reset_count = self._resets.delete_expired(now=moment)
        return refresh_count, reset_count


def build_auth_service(session: Session) -> AuthService:
    return AuthService(
        user_repo=UserRepository(session),
        refresh_repo=RefreshTokenRepository(session),
        reset_repo=PasswordResetRepository(session),
        audit=AuditService(AuditLogRepository(session)),
        jwt_provider=JwtProvider(),
    )
