# campaign_panel/api/routes/user_routes.py

from flask import Blueprint, current_app, jsonify, request

from campaign_panel.api.middlewares.auth_middleware import (
    current_user,
    require_admin,
    require_auth,
    require_manager_or_admin,
)
from campaign_panel.api.schemas.auth_schema import MessageResponse
from campaign_panel.api.schemas.user_schema import (
    AuditLogResponse,
    ChangePasswordRequest,
    CreateUserRequest,
    ImpersonationResponse,
    UpdateUserRequest,
    UserResponse,
    UsersPageResponse,
    UserStatsResponse,
)
from campaign_panel.core.exceptions import BadRequestError
from campaign_panel.infrastructure.database.session import db_session
from campaign_panel.services.user_service import build_user_service

bp_users = Blueprint("users", __name__, url_prefix="/users")

DEFAULT_PAGE_SIZE = 30
MAX_PAGE_SIZE = 100


# -------------------------
# Helpers
# -------------------------

def _int_arg(name: str, default: int | None = None) -> int | None:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise BadRequestError(f"Query parameter '{name}' must be an integer") from e


def _page_limit() -> int:
    limit = _int_arg("limit", DEFAULT_PAGE_SIZE)
    return max(1, min(limit, MAX_PAGE_SIZE))


def _service(session):
    return build_user_service(session, current_app.extensions.get("mail_sender"))


def _user_json(user) -> dict:
    return UserResponse.model_validate(user).model_dump(mode="json")


# -------------------------
# My account
# -------------------------

@bp_users.get("/me")
@require_auth
def me():
    with db_session() as session:
        body = _user_json(_service(session).get_user(current_user().id))
    return jsonify(body), 200


@bp_users.post("/change-password")
@require_auth
def change_password():
    payload = ChangePasswordRequest.model_validate(request.get_json(force=True))

    with db_session() as session:
        _service(session).change_password(
            user_id=current_user().id,
            current_password=payload.current_password,
            new_password=payload.new_password,
        )

    return jsonify(MessageResponse(message="Password changed").model_dump()), 200


# -------------------------
# Management
# -------------------------

@bp_users.get("")
@require_auth
@require_manager_or_admin
def list_users():
    limit = _page_limit()
    cursor = _int_arg("cursor")

    with db_session() as session:
        page = _service(session).list_users(limit=limit, cursor=cursor)
        body = UsersPageResponse(
            items=[UserResponse.model_validate(u) for u in page.items],
            has_next=page.has_next,
            next_cursor=page.next_cursor,
            limit=limit,
        ).model_dump(mode="json")

    return jsonify(body), 200


@bp_users.get("/search")
@require_auth
@require_manager_or_admin
def search_users():
    query = (request.args.get("q") or "").strip()
    if not query:
        return jsonify([]), 200

    with db_session() as session:
        users = _service(session).search_users(query, limit=DEFAULT_PAGE_SIZE)
        body = [_user_json(u) for u in users]

    return jsonify(body), 200


@bp_users.get("/stats")
@require_auth
@require_admin
def user_stats():
    with db_session() as session:
        stats = _service(session).user_stats()

    return jsonify(UserStatsResponse.model_validate(stats).model_dump(mode="json")), 200


@bp_users.post("")
@require_auth
@require_manager_or_admin
def create_user():
    payload = CreateUserRequest.model_validate(request.get_json(force=True))

    with db_session() as session:
        created = _service(session).create_user(actor=current_user(), **payload.model_dump())
        body = _user_json(created)

    return jsonify(body), 201


@bp_users.get("/<int:user_id>")
@require_auth
@require_manager_or_admin
def get_user(user_id: int):
    with db_session() as session:
        body = _user_json(_service(session).get_user(user_id))
    return jsonify(body), 200


@bp_users.patch("/<int:user_id>")
@require_auth
@require_manager_or_admin
def update_user(user_id: int):
    payload = UpdateUserRequest.model_validate(request.get_json(force=True))

    with db_session() as session:
        updated = _service(session).update_user(
            actor=current_user(),
            user_id=user_id,
            role=payload.role,
            is_active=payload.is_active,
        )
        body = _user_json(updated)

    return jsonify(body), 200


@bp_users.get("/<int:user_id>/audit-logs")
@require_auth
@require_admin
def user_audit_logs(user_id: int):
    with db_session() as session:
        logs = _service(session).audit_logs(user_id, limit=50)
        body = [AuditLogResponse.model_validate(log).model_dump(mode="json") for log in logs]

    return jsonify(body), 200


@bp_users.post("/<int:user_id>/impersonate")
@require_auth
@require_admin
def impersonate(user_id: int):
    with db_session() as session:
        target, token = _service(session).impersonate(actor=current_user(), user_id=user_id)
        body = ImpersonationResponse(
            user=UserResponse.model_validate(target),
            access_token=token,
        ).model_dump(mode="json")

    return jsonify(body), 200
