# campaign_panel/cli.py
import click
from flask import Flask

from campaign_panel.config.settings import settings
from campaign_panel.core.clock import utcnow
from campaign_panel.core.logging import get_logger
from campaign_panel.entities.user import UserRole
from campaign_panel.infrastructure.database.models.user_model import UserModel
from campaign_panel.infrastructure.database.session import create_all, db_session
from campaign_panel.infrastructure.security.password_hasher import PasswordHasher
from campaign_panel.repositories.user_repository import UserRepository

logger = get_logger(__name__)


def seed_admin(*, email: str, password: str, name: str = "Administrator") -> bool:
    """Create an active admin unless a user with that email already exists."""
    with db_session() as session:
        repo = UserRepository(session)
        if repo.get_by_email(email) is not None:
            logger.info("seed_admin_skipped", email=email)
            return False

        repo.add(
            UserModel(
                name=name,
                email=email.strip().lower(),
                password_hash=PasswordHasher.hash_password(password),
                role=UserRole.ADMIN,
                is_active=True,
                token_version=0,
                created_at=utcnow(),
            )
        )

    logger.info("seed_admin_created", email=email)
    return True


def register_cli(app: Flask) -> None:
    @app.cli.command("init-db")
    def init_db_command():
        """Create the database tables."""
        create_all()
        click.echo("Database tables created.")

    @app.cli.command("seed-admin")
    @click.option("--email", default=lambda: settings.seed_admin_email, show_default="SEED_ADMIN_EMAIL")
    @click.option("--password", default=lambda: settings.seed_admin_password, show_default="SEED_ADMIN_PASSWORD")
    @click.option("--name", default="Administrator", show_default=True)
    def seed_admin_command(email: str, password: str | None, name: str):
        """Create the first admin account."""
        if not password:
            raise click.UsageError("An admin password is required (--password or SEED_ADMIN_PASSWORD)")

        try:
            created = seed_admin(email=email, password=password, name=name)
        except ValueError as e:
            raise click.UsageError(str(e)) from e

        if created:
            click.echo(f"Admin {email} created.")
        else:
            click.echo(f"User {email} already exists, nothing to do.")
