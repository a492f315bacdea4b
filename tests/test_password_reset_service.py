"""Password reset: request, redeem, single use and session purge."""

from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest
from sqlalchemy import func, select, update

from campaign_panel.core.audit.audit_entities import AuditAction
from campaign_panel.core.clock import utcnow
from campaign_panel.core.exceptions import InvalidCredentialsError, InvalidRefreshTokenError, InvalidResetTokenError
from campaign_panel.infrastructure.database.models.password_reset_model import PasswordResetModel
from campaign_panel.infrastructure.database.session import db_session
from campaign_panel.infrastructure.security.jwt_provider import JwtProvider
from campaign_panel.repositories.audit_log_repository import AuditLogRepository
from campaign_panel.services.auth_service import build_auth_service
from campaign_panel.services.password_reset_service import build_password_reset_service

from conftest import FakeMailSender

PASSWORD = "CorrectHorse-42"
NEW_PASSWORD = "BatteryStaple-99"


def _request(email, mail):
    with db_session() as session:
        build_password_reset_service(session, mail).request_password_reset(email)


def _reset(token, new_password=NEW_PASSWORD, mail=None):
    with db_session() as session:
        build_password_reset_service(session, mail or FakeMailSender()).reset_password(token, new_password)


def _login(email="viewer@example.com", password=PASSWORD):
    with db_session() as session:
        return build_auth_service(session).login(email=email, password=password)


def _token_from(message):
    url = message.text.split(": ", 1)[1]
    return parse_qs(urlparse(url).query)["token"][0]


def _reset_count():
    with db_session() as session:
        return session.execute(select(func.count(PasswordResetModel.id))).scalar_one()


def test_unknown_email_creates_nothing_and_sends_nothing(mail_sender):
    _request("ghost@example.com", mail_sender)

    assert mail_sender.sent == []
    assert _reset_count() == 0


def test_inactive_account_gets_no_mail(make_user, mail_sender):
    make_user(is_active=False)

    _request("viewer@example.com", mail_sender)

    assert mail_sender.sent == []
    assert _reset_count() == 0


def test_request_sends_link_and_stores_record(make_user, mail_sender):
    make_user(name="Ana <b>")

    _request("Viewer@Example.com", mail_sender)

    assert len(mail_sender.sent) == 1
    message = mail_sender.sent[0]
    assert message.to == "viewer@example.com"
    assert "https://panel.example.com/reset-password?token=" in message.html
    assert "Ana &lt;b&gt;" in message.html

    token_id = JwtProvider().decode_password_reset_token(_token_from(message)).token_id
    with db_session() as session:
        record = session.execute(
            select(PasswordResetModel).where(PasswordResetModel.token_id == token_id)
        ).scalar_one()
        assert record.used is False

        audit = AuditLogRepository(session).list_by_action(AuditAction.REQUEST_PASSWORD_RESET)
        assert audit[0].meta == {"delivered": True}


def test_reset_changes_password_and_kills_sessions(make_user, mail_sender):
    make_user()
    before = _login()
    _request("viewer@example.com", mail_sender)

    _reset(_token_from(mail_sender.sent[0]))

    with pytest.raises(InvalidCredentialsError):
        _login(password=PASSWORD)
    assert _login(password=NEW_PASSWORD).user.token_version == 1

    with pytest.raises(InvalidRefreshTokenError):
        with db_session() as session:
            build_auth_service(session).refresh(before.refresh_token)


def test_reset_token_is_single_use(make_user, mail_sender):
    make_user()
    _request("viewer@example.com", mail_sender)
    token = _token_from(mail_sender.sent[0])

    _reset(token)

    with pytest.raises(InvalidResetTokenError):
        _reset(token, new_password="AnotherOne-77")

    assert _login(password=NEW_PASSWORD)


def test_mail_failure_keeps_the_token_redeemable(make_user):
    make_user()
    failing = FakeMailSender(deliver=False)

    _request("viewer@example.com", failing)

    assert _reset_count() == 1
    with db_session() as session:
        audit = AuditLogRepository(session).list_by_action(AuditAction.REQUEST_PASSWORD_RESET)
        assert audit[0].meta == {"delivered": False}

    # the link that failed to send still works
    _reset(_token_from(failing.sent[0]))
    assert _login(password=NEW_PASSWORD)


def test_expired_record_is_rejected(make_user, mail_sender):
    make_user()
    _request("viewer@example.com", mail_sender)

    with db_session() as session:
        session.execute(update(PasswordResetModel).values(expires_at=utcnow() - timedelta(seconds=1)))

    with pytest.raises(InvalidResetTokenError):
        _reset(_token_from(mail_sender.sent[0]))


def test_other_token_kinds_and_garbage_are_rejected(make_user):
    user = make_user()
    access = JwtProvider().issue_access_token(
        user_id=user.id, email=user.email, role=user.role, token_version=0
    )

    for token in (access, "garbage", ""):
        with pytest.raises(InvalidResetTokenError) as exc:
            _reset(token)
        assert str(exc.value) == "Invalid or expired password reset token"


def test_token_without_a_stored_record_is_rejected(make_user):
    user = make_user()
    issued = JwtProvider().issue_password_reset_token(user_id=user.id, token_version=0)

    with pytest.raises(InvalidResetTokenError):
        _reset(issued.token)


def test_weak_password_spends_the_token(make_user, mail_sender):
    make_user()
    _request("viewer@example.com", mail_sender)
    token = _token_from(mail_sender.sent[0])

    with pytest.raises(InvalidResetTokenError):
        _reset(token, new_password="short")

    with pytest.raises(InvalidResetTokenError):
        _reset(token)
    assert _login(password=PASSWORD)
