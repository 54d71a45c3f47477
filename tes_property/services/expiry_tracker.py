"""Reservation expiry tracking - warn about deadlines that are close or past."""

import math
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from pydantic import BaseModel

from tes_property.models.inquiry import Inquiry, RESERVATION_STATUSES
from tes_property.models.results import ExpiryWarning
from tes_property.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

WARNING_WINDOW_DAYS = 2
DAILY_CHECK_INTERVAL = timedelta(hours=24)

_SECONDS_PER_DAY = 24 * 60 * 60


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _now(now: Optional[datetime]) -> datetime:
    return _utc(now) if now is not None else datetime.now(timezone.utc)


def days_until_expiry(expiry: Optional[datetime], now: Optional[datetime] = None) -> int:
    """Whole days left until `expiry`, rounded up; 0 once it has passed."""
    if expiry is None:
        return 0
    remaining = (_utc(expiry) - _now(now)).total_seconds()
    days = math.ceil(remaining / _SECONDS_PER_DAY)
    return days if days > 0 else 0


def is_expired(expiry: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """True once the expiry instant has passed; False when there is no expiry."""
    if expiry is None:
        return False
    return _utc(expiry) < _now(now)


def is_expiry_warning(expiry: Optional[datetime], now: Optional[datetime] = None) -> bool:
    days = days_until_expiry(expiry, now)
    return 0 < days <= WARNING_WINDOW_DAYS


def _plural_days(days: int) -> str:
    return f"{days} day" if days == 1 else f"{days} days"


def scan_for_expiry_warnings(
    all_inquiries: Iterable[Inquiry],
    now: Optional[datetime] = None
) -> list[ExpiryWarning]:
    """
    Collect warnings for reservations that expired or expire within two days.

    Only inquiries in a reservation-holding status with an expiry date are
    considered. Results are ordered by days remaining, expired ones first.
    """
    now = _now(now)
    warnings: list[ExpiryWarning] = []

    for inquiry in all_inquiries:
        expiry = inquiry.reservation_expiry_date
        if expiry is None or inquiry.status not in RESERVATION_STATUSES:
            continue

        if is_expired(expiry, now):
            warnings.append(ExpiryWarning(
                inquiry=inquiry,
                days_remaining=0,
                is_expired=True,
                message=f'Reservation for "{inquiry.property_name}" has expired!',
                severity="danger",
            ))
        elif is_expiry_warning(expiry, now):
            days = days_until_expiry(expiry, now)
            warnings.append(ExpiryWarning(
                inquiry=inquiry,
                days_remaining=days,
                is_expired=False,
                message=f'Reservation for "{inquiry.property_name}" expires in {_plural_days(days)}',
                severity="warning",
            ))

    warnings.sort(key=lambda w: w.days_remaining)
    return warnings


def agent_expiry_warnings(
    all_inquiries: Iterable[Inquiry],
    agent_id: int,
    now: Optional[datetime] = None
) -> list[ExpiryWarning]:
    return [w for w in scan_for_expiry_warnings(all_inquiries, now) if w.inquiry.assigned_agent_id == agent_id]


def count_expiring_reservations(all_inquiries: Iterable[Inquiry], now: Optional[datetime] = None) -> int:
    """Expired plus soon-to-expire reservations."""
    return len(scan_for_expiry_warnings(all_inquiries, now))


def count_expired_reservations(all_inquiries: Iterable[Inquiry], now: Optional[datetime] = None) -> int:
    return sum(1 for w in scan_for_expiry_warnings(all_inquiries, now) if w.is_expired)


class ExpiryCheckState(BaseModel):
    """Caller-owned record of when the daily expiry check last ran."""
    last_check_at: Optional[datetime] = None


def should_run_daily_expiry_check(state: ExpiryCheckState, now: Optional[datetime] = None) -> bool:
    if state.last_check_at is None:
        return True
    return _now(now) - _utc(state.last_check_at) >= DAILY_CHECK_INTERVAL


def run_daily_expiry_check(
    all_inquiries: Iterable[Inquiry],
    state: ExpiryCheckState,
    now: Optional[datetime] = None
) -> list[ExpiryWarning]:
    """
    Scan at most once per 24 hours.

    Returns an empty list when the last run was less than a day ago;
    otherwise scans and stamps `state.last_check_at`.
    """
    now = _now(now)
    if not should_run_daily_expiry_check(state, now):
        logger.debug("Daily expiry check skipped", last_check_at=state.last_check_at.isoformat())
        return []

    warnings = scan_for_expiry_warnings(all_inquiries, now)
    state.last_check_at = now

    if warnings:
        logger.info(
            f"Found {len(warnings)} reservation(s) expiring soon or expired",
            warnings_count=len(warnings),
            expired_count=sum(1 for w in warnings if w.is_expired)
        )
        for w in warnings:
            logger.info(
                w.message,
                inquiry_id=w.inquiry.id,
                severity=w.severity,
                days_remaining=w.days_remaining,
                assigned_agent_id=w.inquiry.assigned_agent_id
            )

    return warnings
