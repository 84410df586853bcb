# Overview: Request decorators for API routes.

import hmac
from functools import wraps

from flask import current_app, g, jsonify, request

from .errors import ConfigurationError


def require_admin_secret(f):
    """
    Gate privileged writes (catalog edits, rate updates, repricing, uploads).

    The caller must send the configured secret in X-Admin-Secret.

    Raises ConfigurationError (503) when ADMIN_SECRET is not configured and
    answers 401 when the header is missing or wrong.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected = current_app.config.get("ADMIN_SECRET")
        if not expected:
            current_app.logger.error("ADMIN_SECRET is not configured; refusing %s %s", request.method, request.path)
            raise ConfigurationError("Server is missing admin configuration")

        supplied = request.headers.get("X-Admin-Secret", "")
        if not hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
            current_app.logger.warning(
                "Rejected privileged request %s %s from %s",
                request.method, request.path, request.remote_addr,
            )
            return jsonify({"error": "Unauthorized"}), 401

        g.changed_by = request.headers.get("X-Changed-By") or "admin"
        return f(*args, **kwargs)

    return decorated_function
