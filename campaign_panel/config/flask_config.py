from flask import Flask

from campaign_panel.config.settings import settings


def configure_app(app: Flask) -> None:
    app.config["ENV"] = settings.environment
    app.config["DEBUG"] = settings.debug
    app.config["JSON_SORT_KEYS"] = False
    app.config["MAX_CONTENT_LENGTH"] = 100 * 1024
    app.config["REFRESH_COOKIE_NAME"] = settings.refresh_cookie_name
    app.config["REFRESH_COOKIE_PATH"] = f"{settings.app_prefix.rstrip('/')}{settings.refresh_cookie_path}"
