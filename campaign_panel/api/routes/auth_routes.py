from flask import Blueprint, current_app, jsonify, request

from campaign_panel.api.middlewares.auth_middleware import current_user, require_auth
from campaign_panel.api.schemas.auth_schema import (
    AccessTokenResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ResetPasswordRequest,
)
from campaign_panel.api.schemas.user_schema import UserResponse
from campaign_panel.config.settings import settings
from campaign_panel.infrastructure.database.session import db_session
from campaign_panel.services.auth_service import build_auth_service
from campaign_panel.services.password_reset_service import build_password_reset_service

bp_auth = Blueprint("auth", __name__, url_prefix="/auth")

FORGOT_PASSWORD_MESSAGE = "If an account exists for this email, a password reset link has been sent"


# -------------------------
# Refresh cookie
# -------------------------

def _set_refresh_cookie(response, refresh_token: str):
    response.set_cookie(
        current_app.config["REFRESH_COOKIE_NAME"],
        refresh_token,
        max_age=settings.refresh_cookie_max_age,
        path=current_app.config["REFRESH_COOKIE_PATH"],
        secure=settings.cookie_secure,
        httponly=True,
        samesite="Strict",
    )
    return response


def _clear_refresh_cookie(response):
    response.delete_cookie(
        current_app.config["REFRESH_COOKIE_NAME"],
        path=current_app.config["REFRESH_COOKIE_PATH"],
        secure=settings.cookie_secure,
        httponly=True,
        samesite="Strict",
    )
    return response


def _refresh_cookie() -> str | None:
    return request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"])


def _mail_sender():
    return current_app.extensions["mail_sender"]


# -------------------------
# Routes
# -------------------------

@bp_auth.post("/login")
def login():
    payload = LoginRequest.model_validate(request.get_json(force=True))

    with db_session() as session:
        result = build_auth_service(session).login(
            email=payload.email,
            password=payload.password,
            client_ip=request.remote_addr,
        )
        body = LoginResponse(
            user=UserResponse.model_validate(result.user),
            access_token=result.access_token,
        ).model_dump(mode="json")

    response = jsonify(body)
    return _set_refresh_cookie(response, result.refresh_token), 200


@bp_auth.post("/refresh")
def refresh():
    with db_session() as session:
        pair = build_auth_service(session).refresh(_refresh_cookie())

    response = jsonify(AccessTokenResponse(access_token=pair.access_token).model_dump())
    return _set_refresh_cookie(response, pair.refresh_token), 200


@bp_auth.post("/logout")
def logout():
    with db_session() as session:
        build_auth_service(session).logout(_refresh_cookie())

    response = jsonify(MessageResponse(message="Logged out").model_dump())
    return _clear_refresh_cookie(response), 200


@bp_auth.post("/invalidate-sessions")
@require_auth
def invalidate_sessions():
    user = current_user()

    with db_session() as session:
        build_auth_service(session).invalidate_all_sessions(user.id, actor_id=user.id)

    response = jsonify(MessageResponse(message="All sessions have been invalidated").model_dump())
    return _clear_refresh_cookie(response), 200


@bp_auth.post("/forgot-password")
def forgot_password():
    payload = ForgotPasswordRequest.model_validate(request.get_json(force=True))

    with db_session() as session:
        build_password_reset_service(session, _mail_sender()).request_password_reset(payload.email)

    return jsonify(MessageResponse(message=FORGOT_PASSWORD_MESSAGE).model_dump()), 200


@bp_auth.post("/reset-password")
def reset_password():
    payload = ResetPasswordRequest.model_validate(request.get_json(force=True))

    with db_session() as session:
        build_password_reset_service(session, _mail_sender()).reset_password(payload.token, payload.new_password)

    response = jsonify(MessageResponse(message="Password has been reset").model_dump())
    return _clear_refresh_cookie(response), 200
