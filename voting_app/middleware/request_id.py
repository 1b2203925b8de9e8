import logging
import uuid
from flask import g, request, has_app_context
from flask.logging import default_handler

LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"


class RequestIdFilter(logging.Filter):
    """Stamp every record with the id of the request being served."""

    def filter(self, record):
        record.request_id = getattr(g, "request_id", "-") if has_app_context() else "-"
        return True


def init_logging(app):
    level = app.config.get("LOG_LEVEL", "INFO")
    if not any(isinstance(f, RequestIdFilter) for f in default_handler.filters):
        default_handler.addFilter(RequestIdFilter())
    default_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    app.logger.setLevel(level)


def init_request_id(app):
    @app.before_request
    def _assign_request_id():
        rid = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        g.request_id = rid
        # Filled in by auth_required
        g.identity = None

    @app.after_request
    def _add_request_id_header(response):
        if hasattr(g, "request_id"):
            response.headers["X-Request-Id"] = g.request_id
        app.logger.info("%s %s -> %s", request.method, request.path, response.status_code)
        return response
