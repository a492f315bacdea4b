import os

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DB_URL", "sqlite+pysqlite://")
os.environ.setdefault("APP_PREFIX", "")
os.environ.setdefault("JWT_ACCESS_SECRET", "test-access-secret-for-automation-only-000000")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret-for-automation-only-11111")
os.environ.setdefault("JWT_RESET_SECRET", "test-reset-secret-for-automation-only-2222222")
os.environ.setdefault("FRONTEND_URL", "https://panel.example.com")
os.environ.setdefault("ARGON2_TIME_COST", "1")
os.environ.setdefault("ARGON2_MEMORY_COST", "1024")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_JSON", "false")

import pytest  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from campaign_panel.core.clock import utcnow  # noqa: E402
from campaign_panel.entities.user import UserRole  # noqa: E402
from campaign_panel.factory import create_app  # noqa: E402
from campaign_panel.infrastructure.database.models.user_model import UserModel  # noqa: E402
from campaign_panel.infrastructure.database.session import (  # noqa: E402
    configure_engine,
    create_all,
    db_session,
    drop_all,
)
from campaign_panel.infrastructure.security.password_hasher import PasswordHasher  # noqa: E402
from campaign_panel.repositories.user_repository import UserRepository  # noqa: E402

DEFAULT_PASSWORD = "CorrectHorse-42"


class FakeMailSender:
    """Records every message instead of talking to SMTP."""

    def __init__(self, deliver: bool = True) -> None:
        self.deliver = deliver
        self.sent = []

    def send(self, message) -> bool:
        self.sent.append(message)
        return self.deliver


@pytest.fixture(scope="session", autouse=True)
def engine():
    # one shared in-memory connection for every session
    engine = configure_engine(
        "sqlite+pysqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    yield engine
    engine.dispose()


@pytest.fixture(autouse=True)
def database(engine):
    create_all()
    yield
    drop_all()


@pytest.fixture
def mail_sender():
    return FakeMailSender()


@pytest.fixture
def app(mail_sender):
    app = create_app(mail_sender=mail_sender)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user():
    """Create a user straight in the database and return the persisted row."""

    def _make_user(
        email: str = "viewer@example.com",
        *,
        password: str = DEFAULT_PASSWORD,
        role: UserRole = UserRole.VIEWER,
        name: str = "Test User",
        is_active: bool = True,
    ) -> UserModel:
        with db_session() as session:
            user = UserRepository(session).add(
                UserModel(
                    name=name,
                    email=email.lower(),
                    password_hash=PasswordHasher.hash_password(password),
                    role=role,
                    is_active=is_active,
                    token_version=0,
                    created_at=utcnow(),
                )
            )
        return user

    return _make_user
