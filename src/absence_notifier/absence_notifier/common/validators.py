from __future__ import annotations

from typing import Any, Optional


def is_blank(value: Optional[Any]) -> bool:
    return value is None or not str(value).strip()
