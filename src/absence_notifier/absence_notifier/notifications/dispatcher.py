"""Single-notification delivery with dedup, channel fallback and logging.

``NotificationDispatcher.send`` never raises for expected failures: invalid
input, duplicate suppression and channel errors all come back as a
``NotificationResult``.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Hashable, Iterator, Optional

from ..common.validators import is_blank
from ..core.enums import AttendanceStatus, NotificationChannel
from ..core.exceptions import ChannelError, InvalidPhoneError
from ..core.logging import get_logger, mask_phone
from .gateways.base import MessagingGateway
from .model import NotificationLogEntry, NotificationRequest, NotificationResult, TemplateMessage
from .phone import PhoneNormalizer
from .repository import NotificationLogRepository
from .templates import compose_message, template_message

logger = get_logger(__name__)

REASON_MISSING_FIELDS = "missing required fields"
REASON_UNKNOWN_STATUS = "unknown status"
REASON_INVALID_PHONE = "invalid phone"
REASON_DUPLICATE = "duplicate prevented"
REASON_DELIVERY_FAILED = "delivery failed"
REASON_UNEXPECTED = "unexpected error"


@dataclass(frozen=True)
class DeliveryAttempt:
    channel: NotificationChannel
    ok: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class KeyedLocks:
    """One lock per key, created on demand and dropped when no thread holds or waits on it."""

    def __init__(self):
        self._guard = threading.Lock()
        self._entries: dict[Hashable, list] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            entry = self._entries.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._entries[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


class NotificationDispatcher:
    def __init__(
        self,
        primary: MessagingGateway,
        logs: NotificationLogRepository,
        *,
        fallback: Optional[MessagingGateway] = None,
        normalizer: Optional[PhoneNormalizer] = None,
        today: Optional[Callable[[], date]] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self._primary = primary
        self._fallback = fallback
        self._logs = logs
        self._phones = normalizer or PhoneNormalizer()
        self._now = now or datetime.now
        self._today = today or (lambda: self._now().date())
        self._in_flight = KeyedLocks()

    def send(self, request: NotificationRequest) -> NotificationResult:
        try:
            return self._send(request)
        except Exception as e:
            logger.exception("Notification for student %s failed unexpectedly", request.student_id)
            return NotificationResult(success=False, reason=REASON_UNEXPECTED, error=str(e))

    def _send(self, req: NotificationRequest) -> NotificationResult:
        if is_blank(req.recipient) or is_blank(req.student_name) or is_blank(req.student_id):
            logger.warning("Missing required fields for notification (student_id=%s)", req.student_id)
            return NotificationResult(success=False, reason=REASON_MISSING_FIELDS, error="Missing required fields")

        try:
            status = AttendanceStatus(req.status)
        except ValueError:
            logger.warning("Unknown notification status %r for student %s", req.status, req.student_id)
            return NotificationResult(success=False, reason=REASON_UNKNOWN_STATUS, error=f"Unknown status: {req.status!r}")

        try:
            primary_address = self._phones.format_address(req.recipient, NotificationChannel.PRIMARY)
            fallback_address = self._phones.format_address(req.recipient, NotificationChannel.FALLBACK)
        except InvalidPhoneError as e:
            logger.warning("Invalid phone %s for %s: %s", mask_phone(req.recipient), req.student_name, e)
            return NotificationResult(success=False, reason=REASON_INVALID_PHONE, error=str(e))

        dedup_key = self._phones.dedup_key(req.recipient)
        day = req.notification_date or self._today()

        # Concurrent sends for one dedup tuple are serialised so the second
        # sees the first one's log row.
        with self._in_flight.hold((dedup_key, req.student_id, status, day)):
            return self._deliver(req, status, primary_address, fallback_address, dedup_key, day)

    def _deliver(
        self,
        req: NotificationRequest,
        status: AttendanceStatus,
        primary_address: str,
        fallback_address: str,
        dedup_key: str,
        day: date,
    ) -> NotificationResult:
        existing = self._logs.find_existing(
            dedup_key=dedup_key,
            student_id=req.student_id,
            status=status,
            notification_date=day,
        )
        if existing:
            logger.info("Already notified %s for %s (%s)", mask_phone(req.recipient), req.student_name, status.value)
            return NotificationResult(
                success=True,
                message_id=existing.message_id,
                channel=existing.channel,
                skipped=True,
                reason=REASON_DUPLICATE,
            )

        params = dict(
            student_name=req.student_name,
            tenant_name=req.tenant_name or "School",
            display_time=req.display_time or self._now().strftime("%I:%M %p"),
            day=day,
        )

        attempt = self._attempt(
            self._primary,
            NotificationChannel.PRIMARY,
            primary_address,
            compose_message(status, NotificationChannel.PRIMARY, **params),
            template=template_message(status, **params),
            tenant_id=req.tenant_id,
        )
        attempts = [attempt]
        if not attempt.ok and self._fallback is not None:
            attempt = self._attempt(
                self._fallback,
                NotificationChannel.FALLBACK,
                fallback_address,
                compose_message(status, NotificationChannel.FALLBACK, **params),
                tenant_id=req.tenant_id,
            )
            attempts.append(attempt)

        error = None if attempt.ok else "; ".join(f"{a.channel.value}: {a.error}" for a in attempts)
        self._write_log(
            NotificationLogEntry(
                dedup_key=dedup_key,
                student_id=req.student_id,
                tenant_id=req.tenant_id,
                student_name=req.student_name,
                status=status,
                notification_date=day,
                sent_at=self._now(),
                channel=attempt.channel if attempt.ok else None,
                message_id=attempt.message_id,
                error=error,
            )
        )

        if attempt.ok:
            logger.info(
                "Notified %s for %s via %s (%s)",
                mask_phone(req.recipient),
                req.student_name,
                attempt.channel.value,
                attempt.message_id,
            )
            return NotificationResult(success=True, message_id=attempt.message_id, channel=attempt.channel)

        logger.error("Notification failed for %s: %s", req.student_name, error)
        return NotificationResult(success=False, reason=REASON_DELIVERY_FAILED, error=error)

    def _attempt(
        self,
        gateway: MessagingGateway,
        channel: NotificationChannel,
        address: str,
        body: str,
        *,
        template: Optional[TemplateMessage] = None,
        tenant_id: Optional[int] = None,
    ) -> DeliveryAttempt:
        try:
            response = gateway.send(address, body, template=template, tenant_id=tenant_id)
        except ChannelError as e:
            logger.warning("%s send failed: %s", channel.value, e)
            return DeliveryAttempt(channel=channel, ok=False, error=str(e))
        except Exception as e:
            logger.exception("%s gateway raised unexpectedly", channel.value)
            return DeliveryAttempt(channel=channel, ok=False, error=str(e) or e.__class__.__name__)
        return DeliveryAttempt(channel=channel, ok=True, message_id=response.message_id)

    def _write_log(self, entry: NotificationLogEntry) -> None:
        try:
            self._logs.append(entry)
        except Exception:
            logger.exception("Failed to write notification log for student %s", entry.student_id)
