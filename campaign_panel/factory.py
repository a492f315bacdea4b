# campaign_panel/factory.py
from flask import Flask
from flask_cors import CORS

from campaign_panel.api.middlewares.error_handler import register_error_handlers
from campaign_panel.api.middlewares.request_context import register_request_context
from campaign_panel.api.routes import register_routes
from campaign_panel.cli import register_cli
from campaign_panel.config.flask_config import configure_app
from campaign_panel.config.settings import settings
from campaign_panel.core.interfaces.mail_sender import MailSender
from campaign_panel.infrastructure.mail.smtp_mail_sender import SmtpMailSender

import campaign_panel.infrastructure.database.models  # noqa: F401


def create_app(mail_sender: MailSender | None = None) -> Flask:
    app_prefix = settings.app_prefix.rstrip("/")
    api_prefix = f"{app_prefix}/api"

    app = Flask(__name__)

    # CORS before the routes so preflight OPTIONS is answered
    CORS(
        app,
        resources={rf"{api_prefix}/*": {"origins": settings.cors_origins}},
        supports_credentials=True,
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        methods=["GET", "POST", "PATCH", "OPTIONS"],
    )

    configure_app(app)
    register_request_context(app)

    register_routes(app, api_prefix=api_prefix, app_prefix=app_prefix)
    register_error_handlers(app)
    register_cli(app)

    app.extensions["mail_sender"] = mail_sender or SmtpMailSender.from_settings(settings)

    return app
