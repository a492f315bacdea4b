# campaign_panel/infrastructure/security/jwt_provider.py

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from campaign_panel.config.settings import settings
from campaign_panel.core.exceptions import UnauthorizedError
from campaign_panel.entities.user import UserRole

ACCESS = "access"
REFRESH = "refresh"
PASSWORD_RESET = "password_reset"


@dataclass(frozen=True)
class IssuedToken:
    token: str
    token_id: str
    expires_at: datetime  # naive UTC, same clock as the store


@dataclass(frozen=True)
class AccessClaims:
    user_id: int
    email: str
    role: UserRole
    token_version: int


@dataclass(frozen=True)
class SessionClaims:
    """Claims of refresh and password-reset tokens."""

    user_id: int
    token_id: str
    token_version: int


class JwtProvider:
    def __init__(self) -> None:
        self._secrets = {
            ACCESS: settings.jwt_access_secret,
            REFRESH: settings.jwt_refresh_secret,
            PASSWORD_RESET: settings.jwt_reset_secret,
        }
        self._minutes = {
            ACCESS: settings.jwt_access_minutes,
            REFRESH: settings.jwt_refresh_minutes,
            PASSWORD_RESET: settings.jwt_reset_minutes,
        }
        self._issuer = settings.jwt_issuer
        self._audience = settings.jwt_audience
        self._algorithm = "HS256"

    @staticmethod
    def new_token_id() -> str:
        return secrets.token_hex(16)  # 128 bits

    def _issue(self, *, token_type: str, subject: str, payload: dict, token_id: str) -> tuple[str, datetime]:
        now = datetime.now(tz=timezone.utc).replace(microsecond=0)
        exp = now + timedelta(minutes=self._minutes[token_type])

        claims = {
            "iss": self._issuer,
            "aud": self._audience,
            "sub": str(subject),
            "iat": int(now.timestamp()),
            "exp": int(exp.timestamp()),
            "jti": token_id,
            "typ": token_type,
        }
        claims.update(payload)
        token = jwt.encode(claims, self._secrets[token_type], algorithm=self._algorithm)
        return token, exp.replace(tzinfo=None)

    def issue_access_token(self, *, user_id: int, email: str, role: UserRole, token_version: int) -> str:
        token, _ = self._issue(
            token_type=ACCESS,
            subject=str(user_id),
            payload={"email": email, "role": UserRole(role).value, "token_version": int(token_version)},
            token_id=self.new_token_id(),
        )
        return token

    def issue_refresh_token(self, *, user_id: int, token_version: int) -> IssuedToken:
        token_id = self.new_token_id()
        token, expires_at = self._issue(
            token_type=REFRESH,
            subject=str(user_id),
            payload={"token_version": int(token_version)},
            token_id=token_id,
        )
        return IssuedToken(token=token, token_id=token_id, expires_at=expires_at)

    def issue_password_reset_token(self, *, user_id: int, token_version: int) -> IssuedToken:
        token_id = self.new_token_id()
        token, expires_at = self._issue(
            token_type=PASSWORD_RESET,
            subject=str(user_id),
            payload={"token_version": int(token_version)},
            token_id=token_id,
        )
        return IssuedToken(token=token, token_id=token_id, expires_at=expires_at)

    def decode(self, token: str, *, token_type: str) -> dict:
        try:
            claims = jwt.decode(
                token,
                self._secrets[token_type],
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
                options={"require": ["exp", "iat", "sub", "jti", "typ", "token_version"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise UnauthorizedError("Token expired") from e
        except jwt.InvalidTokenError as e:
            raise UnauthorizedError("Invalid token") from e

        if claims.get("typ") != token_type:
            raise UnauthorizedError("Invalid token")
        return claims

    def decode_access_token(self, token: str) -> AccessClaims:
        claims = self.decode(token, token_type=ACCESS)
        try:
            return AccessClaims(
                user_id=int(claims["sub"]),
                email=str(claims["email"]),
                role=UserRole(claims["role"]),
                token_version=int(claims["token_version"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise UnauthorizedError("Invalid token") from e

    def decode_refresh_token(self, token: str) -> SessionClaims:
        return self._session_claims(self.decode(token, token_type=REFRESH))

    def decode_password_reset_token(self, token: str) -> SessionClaims:
        return self._session_claims(self.decode(token, token_type=PASSWORD_RESET))

    @staticmethod
    def _session_claims(claims: dict) -> SessionClaims:
        try:
            return SessionClaims(
                user_id=int(claims["sub"]),
                token_id=str(claims["jti"]),
                token_version=int(claims["token_version"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise UnauthorizedError("Invalid token") from e


def extract_bearer_token(auth_header: str | None) -> str | None:
    parts = (auth_header or "").split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None
