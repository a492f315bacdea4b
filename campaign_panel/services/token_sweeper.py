# campaign_panel/services/token_sweeper.py
from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Callable

import eventlet
from sqlalchemy.orm import Session

from campaign_panel.core.logging import get_logger
from campaign_panel.infrastructure.database.session import db_session
from campaign_panel.services.auth_service import build_auth_service

logger = get_logger(__name__)


class TokenSweeper:
    """Periodically deletes expired refresh and password-reset records.

    Runs in its own green thread. Lookups already ignore expired rows, so a
    skipped or failed sweep only delays cleanup.
    """

    def __init__(
        self,
        *,
        interval_seconds: int,
        session_factory: Callable[[], AbstractContextManager[Session]] = db_session,
    ) -> None:
        self._interval = interval_seconds
        self._session_factory = session_factory
        self._thread: eventlet.greenthread.GreenThread | None = None
        self._stopped = False

    def run_once(self) -> tuple[int, int]:
        with self._session_factory() as session:
            refresh_count, reset_count = build_auth_service(session).cleanup_expired_tokens()

        logger.info("token_sweep_completed", refresh_tokens=refresh_count, password_resets=reset_count)
        return refresh_count, reset_count

    def tick(self) -> bool:
        try:
            self.run_once()
        except Exception:
            logger.exception("token_sweep_failed")
            return False
        return True

    def _loop(self) -> None:
        while not self._stopped:
            eventlet.sleep(self._interval)
            if self._stopped:
                break
            self.tick()

    @property
    def running(self) -> bool:
        return self._thread is not None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stopped = False
        self._thread = eventlet.spawn(self._loop)
        logger.info("token_sweeper_started", interval_seconds=self._interval)

    def stop(self) -> None:
        self._stopped = True
        if self._thread is not None:
            self._thread.kill()
            self._thread = None
