"""Reservation expiry check endpoint (meant to be called daily via Vercel cron)."""

import json
from datetime import datetime, timezone

from tes_property.services.expiry_tracker import agent_expiry_warnings, scan_for_expiry_warnings
from tes_property.services.storage import get_storage, storage_mode
from tes_property.utils.logging import correlation_context, get_structured_logger, log_timing
from tes_property.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()
logger = get_structured_logger(__name__)


def _response(status_code: int, payload: dict) -> dict:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(payload)
    }


def handler(request):
    """
    Scan reservations and return expiry warnings.

    Optional query parameter `agent_id` limits the result to one agent.
    Scheduling is the cron's job; every call runs a fresh scan.
    """
    with correlation_context():
        try:
            query_params = request.get("query", {}) or {}
            agent_id = query_params.get("agent_id")
            agent_id = int(agent_id) if agent_id not in (None, "") else None
        except (TypeError, ValueError):
            return _response(400, {"error": "agent_id must be an integer"})

        # A fresh in-memory store has no reservations to scan
        if storage_mode() == "memory":
            logger.error("Reservation expiry check needs persistent storage", storage_mode="memory")
            return _response(500, {"error": "STORAGE_MODE must be json or supabase for the expiry check"})

        try:
            now = datetime.now(timezone.utc)
            with log_timing("reservation_expiry_scan", logger=logger):
                inquiries = get_storage().list_inquiries()
                if agent_id is None:
                    warnings = scan_for_expiry_warnings(inquiries, now=now)
                else:
                    warnings = agent_expiry_warnings(inquiries, agent_id, now=now)

            logger.info(
                "Reservation expiry check completed",
                warnings_count=len(warnings),
                expired_count=sum(1 for w in warnings if w.is_expired),
                agent_id=agent_id
            )
            return _response(200, {
                "ok": True,
                "checked_at": now.isoformat(),
                "expired": sum(1 for w in warnings if w.is_expired),
                "warnings": [
                    {
                        "inquiry_id": w.inquiry.id,
                        "assigned_agent_id": w.inquiry.assigned_agent_id,
                        "customer_name": w.inquiry.customer_name,
                        "days_remaining": w.days_remaining,
                        "is_expired": w.is_expired,
                        "severity": w.severity,
                        "message": w.message,
                    }
                    for w in warnings
                ]
            })

        except Exception as e:
            logger.error("Error running reservation expiry check", error=str(e), exc_info=True)
            return _response(500, {"error": str(e)})
