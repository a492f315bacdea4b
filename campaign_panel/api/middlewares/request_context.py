# campaign_panel/api/middlewares/request_context.py
from flask import Flask, g, request

from campaign_panel.core.logging import bind_request_id

REQUEST_ID_HEADER = "X-Request-ID"


def register_request_context(app: Flask) -> None:
    @app.before_request
    def _bind_request_id():
        g.request_id = bind_request_id(request.headers.get(REQUEST_ID_HEADER))

    @app.after_request
    def _echo_request_id(response):
        request_id = getattr(g, "request_id", None)
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id
        return response
