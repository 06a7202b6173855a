from __future__ import annotations

from typing import Optional

import requests
from twilio.base.exceptions import TwilioException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from ...core.exceptions import ChannelError
from .base import GatewayResponse, MessagingGateway


class TwilioSMSGateway(MessagingGateway):
    """Plain-text SMS through Twilio."""

    name = "sms"

    def __init__(
        self,
        *,
        account_sid: str,
        auth_token: str,
        from_number: str,
        timeout: float = 15.0,
        client: Optional[Client] = None,
    ):
        self._from_number = from_number
        self._client = client or Client(account_sid, auth_token, http_client=TwilioHttpClient(timeout=float(timeout)))

    def send(self, address: str, body: str, *, template=None, tenant_id=None) -> GatewayResponse:
        try:
            message = self._client.messages.create(to=address, from_=self._from_number, body=body)
        except (TwilioException, requests.RequestException) as e:
            raise ChannelError(f"Twilio SMS failed: {e}") from e
        return GatewayResponse(message_id=str(message.sid), status=str(message.status))
