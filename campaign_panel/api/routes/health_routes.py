from flask import Blueprint, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from campaign_panel.config.settings import settings
from campaign_panel.core.logging import get_logger
from campaign_panel.infrastructure.database.session import db_session

bp_health = Blueprint("health", __name__, url_prefix="/health")

logger = get_logger(__name__)


@bp_health.get("")
def health():
    return jsonify({"status": "ok", "environment": settings.environment}), 200


@bp_health.get("/db")
def health_db():
    try:
        with db_session() as session:
            session.execute(text("select 1"))
    except SQLAlchemyError as e:
        logger.error("health_db_failed", error=e.__class__.__name__)
        return jsonify({"db": "unavailable"}), 503
    return jsonify({"db": "ok"}), 200
