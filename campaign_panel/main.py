# campaign_panel/main.py
import os

import eventlet

# must run before anything imports socket, ssl or threading
eventlet.monkey_patch()

from eventlet import wsgi  # noqa: E402

from campaign_panel.infrastructure.database.session import make_psycopg_green  # noqa: E402

# libpq does its own socket I/O, monkey_patch alone does not reach it
make_psycopg_green()

from campaign_panel.config.settings import settings  # noqa: E402
from campaign_panel.core.logging import get_logger  # noqa: E402
from campaign_panel.factory import create_app  # noqa: E402
from campaign_panel.services.token_sweeper import TokenSweeper  # noqa: E402

logger = get_logger(__name__)

app = create_app()

sweeper = TokenSweeper(interval_seconds=settings.token_sweep_interval_seconds)
sweeper.start()


if __name__ == "__main__":
    # production runs gunicorn with eventlet workers; this is for direct execution
    port = int(os.getenv("PORT", "5000"))
    logger.info("server_starting", port=port, environment=settings.environment)
    wsgi.server(eventlet.listen(("0.0.0.0", port)), app, log_output=settings.debug)
