from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType
from typing import Optional

from .attendance.detector import AbsenceDetector
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .common.datetime_utils import now_in_timezone
from .core import constants
from .core.logging import get_logger
from .database.connection import DBConfig, DatabaseConnection
from .holidays.mysql_holiday_repository import MySQLHolidayCalendar
from .notifications.batch import BatchSender
from .notifications.dispatcher import NotificationDispatcher
from .notifications.gateways.base import DisabledGateway, MessagingGateway
from .notifications.gateways.twilio_gateway import TwilioSMSGateway
from .notifications.gateways.ycloud_gateway import DEFAULT_TEMPLATE_NAMES, DEFAULT_YCLOUD_BASE_URL, YCloudWhatsAppGateway
from .notifications.mysql_notification_log_repository import MySQLNotificationLogRepository
from .notifications.phone import PhoneNormalizer
from .scheduler.service import AbsenceScheduler
from .students.mysql_roster_repository import MySQLRosterRepository
from .tenants.mysql_tenant_repository import MySQLTenantPolicyRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    tenants_repo: MySQLTenantPolicyRepository
    roster_repo: MySQLRosterRepository
    attendance_repo: MySQLAttendanceRepository
    holidays_repo: MySQLHolidayCalendar
    notification_logs_repo: MySQLNotificationLogRepository

    phone_normalizer: PhoneNormalizer
    primary_gateway: MessagingGateway
    fallback_gateway: Optional[MessagingGateway]
    dispatcher: NotificationDispatcher
    batch_sender: BatchSender
    absence_detector: AbsenceDetector
    absence_scheduler: AbsenceScheduler


def _setting(settings: Optional[ModuleType], name: str, default):
    if settings is None:
        return default
    return getattr(settings, name, default)


def _template_names(settings: Optional[ModuleType]) -> Optional[dict]:
    if not _setting(settings, "WHATSAPP_USE_TEMPLATES", True):
        return None
    shared = _setting(settings, "WHATSAPP_TEMPLATE_NAME", "")
    names = {}
    for status, default in DEFAULT_TEMPLATE_NAMES.items():
        names[status] = shared or _setting(settings, f"WHATSAPP_TEMPLATE_{status.name}", default)
    return names


def _build_primary_gateway(settings: Optional[ModuleType], tenants_repo: MySQLTenantPolicyRepository) -> MessagingGateway:
    api_key = _setting(settings, "YCLOUD_API_KEY", "")
    from_number = _setting(settings, "YCLOUD_FROM_NUMBER", "")
    if not api_key or not from_number:
        logger.warning("WhatsApp channel not configured (YCLOUD_API_KEY / YCLOUD_FROM_NUMBER)")
        return DisabledGateway("whatsapp")
    return YCloudWhatsAppGateway(
        api_key=api_key,
        from_number=from_number,
        base_url=_setting(settings, "YCLOUD_BASE_URL", DEFAULT_YCLOUD_BASE_URL),
        timeout=float(_setting(settings, "SEND_TIMEOUT_SECONDS", constants.DEFAULT_SEND_TIMEOUT_SECONDS)),
        template_names=_template_names(settings),
        language_code=_setting(settings, "WHATSAPP_TEMPLATE_LANGUAGE", "en"),
        api_key_for_tenant=tenants_repo.get_whatsapp_api_key if _setting(settings, "WHATSAPP_TENANT_KEYS", True) else None,
    )


def _build_fallback_gateway(settings: Optional[ModuleType]) -> Optional[MessagingGateway]:
    sid = _setting(settings, "TWILIO_ACCOUNT_SID", "")
    token = _setting(settings, "TWILIO_AUTH_TOKEN", "")
    from_number = _setting(settings, "TWILIO_FROM_NUMBER", "")
    if not sid or not token or not from_number:
        logger.info("SMS fallback not configured, WhatsApp only")
        return None
    return TwilioSMSGateway(
        account_sid=sid,
        auth_token=token,
        from_number=from_number,
        timeout=float(_setting(settings, "SEND_TIMEOUT_SECONDS", constants.DEFAULT_SEND_TIMEOUT_SECONDS)),
    )


def build_container(*, db_config: dict, settings: Optional[ModuleType] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    tenants_repo = MySQLTenantPolicyRepository(conn)
    roster_repo = MySQLRosterRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    holidays_repo = MySQLHolidayCalendar(conn)
    notification_logs_repo = MySQLNotificationLogRepository(conn)

    timezone = _setting(settings, "SCHEDULER_TIMEZONE", constants.DEFAULT_TIMEZONE)

    phone_normalizer = PhoneNormalizer(
        default_country_code=str(_setting(settings, "DEFAULT_COUNTRY_CODE", constants.DEFAULT_COUNTRY_CODE)),
        known_country_codes=tuple(_setting(settings, "KNOWN_COUNTRY_CODES", constants.DEFAULT_KNOWN_COUNTRY_CODES)),
    )
    primary_gateway = _build_primary_gateway(settings, tenants_repo)
    fallback_gateway = _build_fallback_gateway(settings)

    dispatcher = NotificationDispatcher(
        primary_gateway,
        notification_logs_repo,
        fallback=fallback_gateway,
        normalizer=phone_normalizer,
        today=lambda: now_in_timezone(timezone).date(),
        now=lambda: now_in_timezone(timezone).replace(tzinfo=None),
    )
    batch_sender = BatchSender(
        dispatcher,
        chunk_size=int(_setting(settings, "BATCH_CHUNK_SIZE", constants.DEFAULT_BATCH_CHUNK_SIZE)),
        delay_seconds=float(_setting(settings, "BATCH_DELAY_SECONDS", constants.DEFAULT_BATCH_DELAY_SECONDS)),
        send_timeout_seconds=float(_setting(settings, "SEND_TIMEOUT_SECONDS", constants.DEFAULT_SEND_TIMEOUT_SECONDS)),
    )
    absence_detector = AbsenceDetector(
        roster_repo,
        attendance_repo,
        dispatcher,
        page_size=int(_setting(settings, "ROSTER_PAGE_SIZE", constants.DEFAULT_ROSTER_PAGE_SIZE)),
        batch_sender=batch_sender if _setting(settings, "NOTIFY_IN_BATCHES", False) else None,
    )
    absence_scheduler = AbsenceScheduler(
        tenants_repo,
        holidays_repo,
        absence_detector,
        timezone=timezone,
        interval_seconds=int(_setting(settings, "SCHEDULER_INTERVAL_SECONDS", constants.DEFAULT_INTERVAL_SECONDS)),
        off_days=tuple(_setting(settings, "SCHEDULER_OFF_DAYS", constants.DEFAULT_OFF_DAYS)),
        tenant_workers=int(_setting(settings, "TENANT_WORKERS", 1)),
    )

    return Container(
        conn=conn,
        tenants_repo=tenants_repo,
        roster_repo=roster_repo,
        attendance_repo=attendance_repo,
        holidays_repo=holidays_repo,
        notification_logs_repo=notification_logs_repo,
        phone_normalizer=phone_normalizer,
        primary_gateway=primary_gateway,
        fallback_gateway=fallback_gateway,
        dispatcher=dispatcher,
        batch_sender=batch_sender,
        absence_detector=absence_detector,
        absence_scheduler=absence_scheduler,
    )
