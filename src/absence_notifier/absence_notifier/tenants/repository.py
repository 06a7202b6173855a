from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import TenantPolicy


class TenantPolicyRepository(Protocol):
    def get_eligible_tenants(self) -> Sequence[TenantPolicy]:
        """All tenants with their absence policy, disabled ones included."""

        raise NotImplementedError

    def get_whatsapp_api_key(self, tenant_id: int) -> Optional[str]:
        """The tenant's own messaging API key when it opted to use one, else None."""

        raise NotImplementedError
