# campaign_panel/infrastructure/security/password_hasher.py

from argon2 import PasswordHasher as Argon2Hasher, Type
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from eventlet import tpool

from campaign_panel.config.settings import settings


class PasswordHasher:
    MIN_LENGTH = 8

    _hasher = Argon2Hasher(
        time_cost=settings.argon2_time_cost,
        memory_cost=settings.argon2_memory_cost,
        parallelism=settings.argon2_parallelism,
        type=Type.ID,
    )

    # argon2 holds the CPU for the whole hash; run it on a native thread so the hub keeps serving
    @classmethod
    def hash_password(cls, password: str) -> str:
        if not password or len(password) < cls.MIN_LENGTH:
            raise ValueError(f"Password must be at least {cls.MIN_LENGTH} characters.")
        return tpool.execute(cls._hasher.hash, password)

    @classmethod
    def verify_password(cls, password: str, *, password_hash: str) -> bool:
        if not password or not password_hash:
            return False

        try:
            return tpool.execute(cls._hasher.verify, password_hash, password)
        except (VerifyMismatchError, VerificationError, InvalidHashError):
            return False
