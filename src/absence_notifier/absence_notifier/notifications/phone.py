"""Contact-number normalization.

Two pure operations over the same raw input:

- ``format_address`` builds a channel-addressable international number,
  prefixed per channel (``whatsapp:+<digits>`` for the primary channel,
  ``+<digits>`` for the fallback).
- ``dedup_key`` derives a canonical key that does not depend on how the
  number was typed (with or without country code or trunk ``0``).
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..core.constants import DEFAULT_COUNTRY_CODE, DEFAULT_KNOWN_COUNTRY_CODES, LOCAL_NUMBER_DIGITS
from ..core.enums import NotificationChannel
from ..core.exceptions import InvalidPhoneError

_NOT_DIGIT_OR_PLUS = re.compile(r"[^\d+]")
_NOT_DIGIT = re.compile(r"\D")

# E.164 caps a full number at 15 digits.
_MAX_DIGITS = 15

CHANNEL_PREFIXES = {
    NotificationChannel.PRIMARY: "whatsapp:+",
    NotificationChannel.FALLBACK: "+",
}


@dataclass(frozen=True)
class PhoneNormalizer:
    default_country_code: str = DEFAULT_COUNTRY_CODE
    known_country_codes: Sequence[str] = field(default=DEFAULT_KNOWN_COUNTRY_CODES)

    def __post_init__(self):
        default = self.default_country_code.lstrip("+")
        if not default.isdigit():
            raise ValueError(f"Invalid default country code: {self.default_country_code!r}")
        codes = {c.lstrip("+") for c in self.known_country_codes} | {default}
        object.__setattr__(self, "default_country_code", default)
        # Longest first so "92" is tried before "9"-style short codes.
        object.__setattr__(self, "known_country_codes", tuple(sorted(codes, key=lambda c: (-len(c), c))))

    def _country_code_of(self, digits: str) -> Optional[str]:
        for code in self.known_country_codes:
            if digits.startswith(code) and len(digits) == len(code) + LOCAL_NUMBER_DIGITS:
                return code
        return None

    def international_digits(self, raw: Optional[str]) -> str:
        """Fully qualified number as bare digits (country code included)."""
        if raw is None or not str(raw).strip():
            raise InvalidPhoneError("Phone number is empty")

        text = str(raw).strip()
        if "@" in text or ".com" in text.lower():
            raise InvalidPhoneError("Phone number looks like an email address")

        cleaned = _NOT_DIGIT_OR_PLUS.sub("", text)
        has_plus = cleaned.startswith("+")
        digits = cleaned.replace("+", "")

        if digits in self.known_country_codes:
            raise InvalidPhoneError("Phone number is only a country code")
        if len(digits) < LOCAL_NUMBER_DIGITS:
            raise InvalidPhoneError("Phone number is too short")

        if has_plus:
            result = digits
        elif digits.startswith("00"):
            result = digits[2:]
        elif digits.startswith("0"):
            result = self.default_country_code + digits[1:]
        elif self._country_code_of(digits):
            result = digits
        elif len(digits) == LOCAL_NUMBER_DIGITS:
            result = self.default_country_code + digits
        else:
            raise InvalidPhoneError("Unrecognised phone number format")

        # Country codes never start with 0 ("+0..." or "000...").
        if result.startswith("0"):
            raise InvalidPhoneError("Country code cannot start with 0")
        if not LOCAL_NUMBER_DIGITS <= len(result) <= _MAX_DIGITS:
            raise InvalidPhoneError("Phone number has an invalid length")
        return result

    def format_address(self, raw: Optional[str], channel: NotificationChannel = NotificationChannel.PRIMARY) -> str:
        return CHANNEL_PREFIXES[NotificationChannel(channel)] + self.international_digits(raw)

    def dedup_key(self, raw: Optional[str]) -> Optional[str]:
        if raw is None:
            return None
        digits = _NOT_DIGIT.sub("", str(raw))
        if not digits:
            return None

        code = self._country_code_of(digits)
        if code:
            return digits[len(code):]
        if len(digits) > LOCAL_NUMBER_DIGITS:
            return digits[-LOCAL_NUMBER_DIGITS:]
        return digits
