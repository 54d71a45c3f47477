"""Duplicate inquiry detection - one active inquiry per customer and property."""

import re
from typing import Iterable, Optional

from tes_property.models.inquiry import Inquiry
from tes_property.models.results import DuplicateCheckResult
from tes_property.utils.logging import get_structured_logger, mask_email, mask_phone

logger = get_structured_logger(__name__)

_NON_DIGITS = re.compile(r"\D")

# Philippine country code; local numbers use a leading 0 instead
COUNTRY_PREFIX = "63"


def normalize_phone(phone: Optional[str]) -> str:
    """Reduce a phone number to local digits: '+63 917 111 2222' -> '09171112222'."""
    if not phone:
        return ""
    cleaned = _NON_DIGITS.sub("", phone)
    if cleaned.startswith(COUNTRY_PREFIX):
        cleaned = "0" + cleaned[len(COUNTRY_PREFIX):]
    return cleaned


def normalize_email(email: Optional[str]) -> str:
    """Trimmed, lower-cased email; empty string when missing."""
    if not email:
        return ""
    return email.strip().lower()


def format_phone_number(phone: Optional[str]) -> str:
    """Display form 0917-123-4567; input is returned unchanged if it doesn't fit."""
    if not phone:
        return ""
    cleaned = normalize_phone(phone)
    if len(cleaned) == 11 and cleaned.startswith("0"):
        return f"{cleaned[:4]}-{cleaned[4:7]}-{cleaned[7:]}"
    return phone


def detect_duplicate(
    email: Optional[str],
    phone: Optional[str],
    property_id: int,
    all_inquiries: Iterable[Inquiry]
) -> DuplicateCheckResult:
    """
    Look for an active inquiry by the same customer for the same property.

    The customer matches on normalized phone or normalized email. Inquiries
    that reached Successful or Cancelled don't count, so a customer can
    inquire again after a closed one. Only the first match is reported.
    """
    wanted_phone = normalize_phone(phone)
    wanted_email = normalize_email(email)

    for inquiry in all_inquiries:
        if inquiry.property_id != property_id or not inquiry.is_active:
            continue

        phone_match = bool(wanted_phone) and normalize_phone(inquiry.customer_phone) == wanted_phone
        email_match = bool(wanted_email) and normalize_email(inquiry.customer_email) == wanted_email

        if phone_match or email_match:
            logger.info(
                "Duplicate inquiry detected",
                property_id=property_id,
                existing_inquiry_id=inquiry.id,
                existing_status=inquiry.status.value,
                customer_email=mask_email(wanted_email),
                customer_phone=mask_phone(wanted_phone),
                matched_on="phone" if phone_match else "email"
            )
            return DuplicateCheckResult(is_duplicate=True, existing_inquiry=inquiry)

    return DuplicateCheckResult(is_duplicate=False)
