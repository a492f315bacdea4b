from contextlib import contextmanager
from datetime import timedelta

import eventlet
from sqlalchemy import select

from campaign_panel.core.clock import utcnow
from campaign_panel.infrastructure.database.models.password_reset_model import PasswordResetModel
from campaign_panel.infrastructure.database.models.refresh_token_model import RefreshTokenModel
from campaign_panel.infrastructure.database.session import db_session
from campaign_panel.repositories.password_reset_repository import PasswordResetRepository
from campaign_panel.repositories.refresh_token_repository import RefreshTokenRepository
from campaign_panel.services.token_sweeper import TokenSweeper


def _seed(user_id):
    now = utcnow()
    with db_session() as session:
        refresh = RefreshTokenRepository(session)
        refresh.save(user_id=user_id, token_id="old-refresh", expires_at=now - timedelta(minutes=5))
        refresh.save(user_id=user_id, token_id="live-refresh", expires_at=now + timedelta(days=7))

        resets = PasswordResetRepository(session)
        resets.save(user_id=user_id, token_id="old-reset", expires_at=now - timedelta(minutes=5))
        resets.save(user_id=user_id, token_id="live-reset", expires_at=now + timedelta(hours=1))


def test_run_once_deletes_expired_rows(make_user):
    _seed(make_user().id)

    assert TokenSweeper(interval_seconds=60).run_once() == (1, 1)

    with db_session() as session:
        assert session.execute(select(RefreshTokenModel.token_id)).scalars().all() == ["live-refresh"]
        assert session.execute(select(PasswordResetModel.token_id)).scalars().all() == ["live-reset"]


def test_tick_logs_and_survives_failures():
    @contextmanager
    def broken_session():
        raise RuntimeError("database is down")
        yield  # pragma: no cover

    sweeper = TokenSweeper(interval_seconds=60, session_factory=broken_session)

    assert sweeper.tick() is False


def test_tick_reports_success(make_user):
    _seed(make_user().id)

    assert TokenSweeper(interval_seconds=60).tick() is True


def test_start_and_stop():
    sweeper = TokenSweeper(interval_seconds=3600)

    sweeper.start()
    sweeper.start()
    assert sweeper.running

    sweeper.stop()
    assert not sweeper.running


def test_loop_sweeps_on_every_interval(make_user):
    _seed(make_user().id)
    sweeper = TokenSweeper(interval_seconds=0.01)
    calls = []
    real_run_once = sweeper.run_once

    def counting_run_once():
        calls.append(1)
        return real_run_once()

    sweeper.run_once = counting_run_once

    sweeper.start()
    try:
        eventlet.sleep(0.2)
    finally:
        sweeper.stop()

    assert len(calls) >= 2
    with db_session() as session:
        assert session.execute(select(RefreshTokenModel.token_id)).scalars().all() == ["live-refresh"]


def test_failing_tick_does_not_end_the_loop():
    sweeper = TokenSweeper(interval_seconds=0.01)
    calls = []

    def broken_run_once():
        calls.append(1)
        raise RuntimeError("database is down")

    sweeper.run_once = broken_run_once

    sweeper.start()
    try:
        eventlet.sleep(0.2)
    finally:
        sweeper.stop()

    assert len(calls) >= 2
    assert not sweeper.running
