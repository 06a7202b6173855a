from __future__ import annotations

from dataclasses import dataclass

import pytest
from flask import Flask

from src.absence_notifier.absence_notifier.main import create_app
from src.absence_notifier.absence_notifier.scheduler.controller import register
from src.absence_notifier.absence_notifier.scheduler.service import ALREADY_RUNNING_MESSAGE


class StubScheduler:
    def __init__(self, result: dict):
        self.result = result
        self.runs = 0

    def run_now(self) -> dict:
        self.runs += 1
        return self.result

    def status(self) -> dict:
        return {"running": True, "processing": False, "last_run": None}


@dataclass
class StubContainer:
    absence_scheduler: StubScheduler


def _client(result: dict, *, token: str = ""):
    app = Flask(__name__)
    app.config["TRIGGER_TOKEN"] = token
    scheduler = StubScheduler(result)
    register(app, StubContainer(absence_scheduler=scheduler))
    return app.test_client(), scheduler


def test_manual_run_returns_result():
    client, scheduler = _client({"success": True, "message": "Manual check completed: 1 tenant(s)"})

    resp = client.post("/admin/absence-check/run")

    assert resp.status_code == 200
    assert resp.get_json()["success"] is True
    assert scheduler.runs == 1


def test_manual_run_while_busy_is_conflict():
    client, _ = _client({"success": False, "message": ALREADY_RUNNING_MESSAGE})

    resp = client.post("/admin/absence-check/run")

    assert resp.status_code == 409
    assert resp.get_json()["message"] == ALREADY_RUNNING_MESSAGE


def test_manual_run_crash_is_server_error():
    client, _ = _client({"success": False, "message": "database down"})

    assert client.post("/admin/absence-check/run").status_code == 500


def test_trigger_token_is_enforced_when_configured():
    client, scheduler = _client({"success": True, "message": "ok"}, token="s3cret")

    assert client.post("/admin/absence-check/run").status_code == 403
    assert client.post("/admin/absence-check/run", headers={"X-Trigger-Token": "wrong"}).status_code == 403
    assert client.post("/admin/absence-check/run", headers={"X-Trigger-Token": "s3cret"}).status_code == 200
    assert scheduler.runs == 1


def test_status_endpoint():
    client, _ = _client({"success": True, "message": "ok"})

    resp = client.get("/admin/absence-check/status")

    assert resp.status_code == 200
    assert resp.get_json()["running"] is True


def test_create_app_in_testing_mode_does_not_start_scheduler(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.delenv("ABSENCE_SETTINGS_MODULE", raising=False)

    app = create_app()
    status = app.test_client().get("/admin/absence-check/status").get_json()

    assert app.config["TESTING"] is True
    assert status["running"] is False
    assert status["processing"] is False
    assert "absence_notifier" in app.extensions
