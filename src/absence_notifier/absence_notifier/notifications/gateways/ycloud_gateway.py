from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

import requests

from ...core.enums import AttendanceStatus
from ...core.exceptions import ChannelError
from ...core.logging import get_logger
from ..model import TemplateMessage
from .base import GatewayResponse, MessagingGateway

logger = get_logger(__name__)

DEFAULT_YCLOUD_BASE_URL = "https://api.ycloud.com/v2"

DEFAULT_TEMPLATE_NAMES: Mapping[AttendanceStatus, str] = {
    AttendanceStatus.PRESENT: "attendance_present",
    AttendanceStatus.LATE: "attendance_late",
    AttendanceStatus.ABSENT: "attendance_absent",
    AttendanceStatus.LEAVE: "attendance_leave",
}


class YCloudWhatsAppGateway(MessagingGateway):
    """WhatsApp Business messages through the YCloud REST API.

    With ``template_names`` set, messages go out as pre-approved templates
    (header = school name, body = student name, time, date), which WhatsApp
    accepts outside the 24h customer-service window. Without it, or for a
    status with no template name, the plain body is sent as a text message.

    ``api_key_for_tenant`` may return a tenant's own API key; ``None`` (or a
    lookup error) means the master key.
    """

    name = "whatsapp"

    def __init__(
        self,
        *,
        api_key: str,
        from_number: str,
        base_url: str = DEFAULT_YCLOUD_BASE_URL,
        timeout: float = 15.0,
        template_names: Optional[Mapping[AttendanceStatus, str]] = None,
        language_code: str = "en",
        api_key_for_tenant: Optional[Callable[[int], Optional[str]]] = None,
        session: Optional[requests.Session] = None,
    ):
        self._api_key = api_key
        self._from_number = from_number
        self._url = f"{base_url.rstrip('/')}/whatsapp/messages"
        self._timeout = float(timeout)
        self._template_names = dict(template_names or {})
        self._language_code = language_code
        self._api_key_for_tenant = api_key_for_tenant
        self._session = session or requests.Session()

    @staticmethod
    def _to_e164(address: str) -> str:
        return address.split(":", 1)[1] if address.startswith("whatsapp:") else address

    def _resolve_api_key(self, tenant_id: Optional[int]) -> str:
        if tenant_id is None or self._api_key_for_tenant is None:
            return self._api_key
        try:
            own_key = self._api_key_for_tenant(tenant_id)
        except Exception:
            logger.exception("API key lookup failed for tenant %s, using master key", tenant_id)
            return self._api_key
        if own_key:
            logger.debug("Using tenant %s own YCloud API key", tenant_id)
            return own_key
        return self._api_key

    def _payload(self, address: str, body: str, template: Optional[TemplateMessage]) -> dict:
        payload: dict[str, Any] = {"from": self._from_number, "to": self._to_e164(address)}
        template_name = self._template_names.get(template.status) if template is not None else None
        if not template_name:
            payload.update(type="text", text={"body": body})
            return payload

        components = []
        if template.header:
            components.append({"type": "header", "parameters": [{"type": "text", "text": template.header}]})
        if template.body:
            components.append({"type": "body", "parameters": [{"type": "text", "text": p} for p in template.body]})
        payload.update(
            type="template",
            template={"name": template_name, "language": {"code": self._language_code}, "components": components},
        )
        return payload

    def send(
        self,
        address: str,
        body: str,
        *,
        template: Optional[TemplateMessage] = None,
        tenant_id: Optional[int] = None,
    ) -> GatewayResponse:
        payload = self._payload(address, body, template)
        try:
            response = self._session.post(
                self._url,
                json=payload,
                headers={"X-API-Key": self._resolve_api_key(tenant_id), "Content-Type": "application/json"},
                timeout=self._timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.HTTPError as e:
            raise ChannelError(f"YCloud API error: {self._error_detail(e.response)}") from e
        except (requests.RequestException, ValueError) as e:
            raise ChannelError(f"YCloud request failed: {e}") from e

        if not isinstance(data, dict):
            raise ChannelError("YCloud API returned an unexpected response body")
        message_id = data.get("id") or data.get("wamid")
        if not message_id:
            raise ChannelError("YCloud API returned no message id")
        logger.debug("YCloud accepted %s message %s", payload["type"], message_id)
        return GatewayResponse(message_id=str(message_id), status=str(data.get("status") or "accepted"))

    @staticmethod
    def _error_detail(response: Optional[requests.Response]) -> str:
        if response is None:
            return "no response"
        try:
            data = response.json()
        except ValueError:
            return f"HTTP {response.status_code}"
        if not isinstance(data, dict):
            return f"HTTP {response.status_code}"
        error = data.get("error")
        message = error.get("message") if isinstance(error, dict) else None
        return f"HTTP {response.status_code}: {message or data.get('message') or 'unknown error'}"
