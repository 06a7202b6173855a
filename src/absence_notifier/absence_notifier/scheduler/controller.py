from __future__ import annotations

import hmac
from functools import wraps

from flask import Flask, jsonify, request

from ..container import Container
from .service import ALREADY_RUNNING_MESSAGE


def register(app: Flask, container: Container) -> None:
    def trigger_token_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            expected = app.config.get("TRIGGER_TOKEN")
            if expected:
                supplied = request.headers.get("X-Trigger-Token", "")
                if not hmac.compare_digest(supplied.encode("utf-8"), str(expected).encode("utf-8")):
                    return jsonify({"success": False, "message": "Forbidden"}), 403
            return view(*args, **kwargs)

        return wrapper

    @app.route("/admin/absence-check/run", methods=["POST"], endpoint="absence_check_run")
    @trigger_token_required
    def absence_check_run():
        result = container.absence_scheduler.run_now()
        if result["success"]:
            return jsonify(result), 200
        if result["message"] == ALREADY_RUNNING_MESSAGE:
            return jsonify(result), 409
        return jsonify(result), 500

    @app.route("/admin/absence-check/status", methods=["GET"], endpoint="absence_check_status")
    @trigger_token_required
    def absence_check_status():
        return jsonify(container.absence_scheduler.status()), 200
