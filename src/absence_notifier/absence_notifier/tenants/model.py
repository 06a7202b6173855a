from __future__ import annotations

from dataclasses import dataclass
from datetime import time


@dataclass(frozen=True)
class TenantPolicy:
    """Per-school absence policy. Owned by tenant configuration, read-only here."""

    tenant_id: int
    name: str
    enabled: bool
    grace_period_hours: int
    school_start_time: time
    check_time: time

    @property
    def check_hour(self) -> int:
        return self.check_time.hour
