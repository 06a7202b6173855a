from __future__ import annotations

import json
from types import SimpleNamespace

import pytest
import requests
from twilio.base.exceptions import TwilioRestException

from src.absence_notifier.absence_notifier.core.enums import AttendanceStatus
from src.absence_notifier.absence_notifier.core.exceptions import ChannelError
from src.absence_notifier.absence_notifier.notifications.gateways.base import DisabledGateway
from src.absence_notifier.absence_notifier.notifications.gateways.twilio_gateway import TwilioSMSGateway
from src.absence_notifier.absence_notifier.notifications.gateways.ycloud_gateway import YCloudWhatsAppGateway
from src.absence_notifier.absence_notifier.notifications.model import TemplateMessage


def _response(status_code: int, payload) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status_code
    resp._content = json.dumps(payload).encode("utf-8")
    resp.encoding = "utf-8"
    return resp


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.posts: list[dict] = []

    def post(self, url, *, json, headers, timeout):
        self.posts.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error:
            raise self.error
        return self.response


def _ycloud(session: FakeSession, **kwargs) -> YCloudWhatsAppGateway:
    return YCloudWhatsAppGateway(
        api_key="key-123",
        from_number="+919000000000",
        base_url="https://api.ycloud.test/v2/",
        timeout=5,
        session=session,
        **kwargs,
    )


ABSENT_TEMPLATE = TemplateMessage(
    status=AttendanceStatus.ABSENT,
    header="Green Valley School",
    body=("Asha Rao", "11:00 AM", "Monday, 15 Jan 2024"),
)


def test_ycloud_posts_text_message():
    session = FakeSession(_response(200, {"id": "msg-1", "status": "accepted"}))

    result = _ycloud(session).send("whatsapp:+919876543210", "hello")

    assert result.message_id == "msg-1"
    post = session.posts[0]
    assert post["url"] == "https://api.ycloud.test/v2/whatsapp/messages"
    assert post["json"] == {"from": "+919000000000", "to": "+919876543210", "type": "text", "text": {"body": "hello"}}
    assert post["headers"]["X-API-Key"] == "key-123"
    assert post["timeout"] == 5.0


def test_ycloud_http_error_becomes_channel_error():
    session = FakeSession(_response(401, {"error": {"message": "invalid api key"}}))

    with pytest.raises(ChannelError, match="HTTP 401: invalid api key"):
        _ycloud(session).send("whatsapp:+919876543210", "hello")


def test_ycloud_network_error_becomes_channel_error():
    session = FakeSession(error=requests.ConnectionError("connection refused"))

    with pytest.raises(ChannelError, match="connection refused"):
        _ycloud(session).send("whatsapp:+919876543210", "hello")


def test_ycloud_response_without_id_is_an_error():
    session = FakeSession(_response(200, {"status": "accepted"}))

    with pytest.raises(ChannelError, match="no message id"):
        _ycloud(session).send("whatsapp:+919876543210", "hello")


def test_ycloud_error_body_that_is_not_an_object():
    session = FakeSession(_response(400, [{"message": "bad"}]))

    with pytest.raises(ChannelError, match="YCloud API error: HTTP 400"):
        _ycloud(session).send("whatsapp:+919876543210", "hello")


def test_ycloud_success_body_that_is_not_an_object():
    session = FakeSession(_response(200, ["msg-1"]))

    with pytest.raises(ChannelError, match="unexpected response body"):
        _ycloud(session).send("whatsapp:+919876543210", "hello")


def test_ycloud_sends_status_template_with_school_header():
    session = FakeSession(_response(200, {"id": "msg-2"}))
    gateway = _ycloud(session, template_names={AttendanceStatus.ABSENT: "attendance_absent"})

    gateway.send("whatsapp:+919876543210", "hello", template=ABSENT_TEMPLATE)

    assert session.posts[0]["json"] == {
        "from": "+919000000000",
        "to": "+919876543210",
        "type": "template",
        "template": {
            "name": "attendance_absent",
            "language": {"code": "en"},
            "components": [
                {"type": "header", "parameters": [{"type": "text", "text": "Green Valley School"}]},
                {
                    "type": "body",
                    "parameters": [
                        {"type": "text", "text": "Asha Rao"},
                        {"type": "text", "text": "11:00 AM"},
                        {"type": "text", "text": "Monday, 15 Jan 2024"},
                    ],
                },
            ],
        },
    }


def test_ycloud_status_without_template_name_falls_back_to_text():
    session = FakeSession(_response(200, {"id": "msg-3"}))
    gateway = _ycloud(session, template_names={AttendanceStatus.LATE: "attendance_late"})

    gateway.send("whatsapp:+919876543210", "hello", template=ABSENT_TEMPLATE)

    assert session.posts[0]["json"]["type"] == "text"
    assert session.posts[0]["json"]["text"] == {"body": "hello"}


def test_ycloud_uses_tenant_key_when_the_school_has_one():
    keys = {7: "school-7-key"}
    session = FakeSession(_response(200, {"id": "msg-4"}))
    gateway = _ycloud(session, api_key_for_tenant=keys.get)

    gateway.send("whatsapp:+919876543210", "hello", tenant_id=7)
    gateway.send("whatsapp:+919876543210", "hello", tenant_id=8)
    gateway.send("whatsapp:+919876543210", "hello")

    assert [p["headers"]["X-API-Key"] for p in session.posts] == ["school-7-key", "key-123", "key-123"]


def test_ycloud_tenant_key_lookup_failure_uses_master_key():
    def broken_lookup(tenant_id):
        raise ConnectionError("db down")

    session = FakeSession(_response(200, {"id": "msg-5"}))

    _ycloud(session, api_key_for_tenant=broken_lookup).send("whatsapp:+919876543210", "hello", tenant_id=7)

    assert session.posts[0]["headers"]["X-API-Key"] == "key-123"


class FakeMessages:
    def __init__(self, error=None):
        self.error = error
        self.created: list[dict] = []

    def create(self, *, to, from_, body):
        self.created.append({"to": to, "from_": from_, "body": body})
        if self.error:
            raise self.error
        return SimpleNamespace(sid="SM123", status="queued")


def test_twilio_sends_sms():
    messages = FakeMessages()
    gateway = TwilioSMSGateway(
        account_sid="AC1", auth_token="t", from_number="+15005550006", client=SimpleNamespace(messages=messages)
    )

    result = gateway.send("+919876543210", "hello")

    assert result.message_id == "SM123"
    assert messages.created == [{"to": "+919876543210", "from_": "+15005550006", "body": "hello"}]


def test_twilio_error_becomes_channel_error():
    messages = FakeMessages(error=TwilioRestException(400, "/Messages.json", "invalid 'To' number"))
    gateway = TwilioSMSGateway(
        account_sid="AC1", auth_token="t", from_number="+15005550006", client=SimpleNamespace(messages=messages)
    )

    with pytest.raises(ChannelError, match="Twilio SMS failed"):
        gateway.send("+919876543210", "hello")


def test_disabled_gateway_always_fails():
    with pytest.raises(ChannelError, match="whatsapp channel not configured"):
        DisabledGateway("whatsapp").send("whatsapp:+919876543210", "hello")
