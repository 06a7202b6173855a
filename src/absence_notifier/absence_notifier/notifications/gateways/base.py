from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ...core.exceptions import ChannelError
from ..model import TemplateMessage


@dataclass(frozen=True)
class GatewayResponse:
    message_id: str
    status: str = "accepted"


class MessagingGateway(ABC):
    """Outbound messaging channel. ``send`` raises ChannelError on failure.

    ``body`` is always a complete plain message. Channels that support
    pre-approved templates may use ``template`` instead; ``tenant_id`` lets a
    channel pick per-tenant credentials.
    """

    name: str = "gateway"

    @abstractmethod
    def send(
        self,
        address: str,
        body: str,
        *,
        template: Optional[TemplateMessage] = None,
        tenant_id: Optional[int] = None,
    ) -> GatewayResponse:
        raise NotImplementedError


class DisabledGateway(MessagingGateway):
    """Stand-in for a channel whose credentials are not configured."""

    def __init__(self, name: str, reason: str = "not configured"):
        self.name = name
        self._reason = reason

    def send(self, address, body, *, template=None, tenant_id=None) -> GatewayResponse:
        raise ChannelError(f"{self.name} channel {self._reason}")
