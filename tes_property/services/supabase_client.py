"""Supabase-backed persistence adapter (remote database deployment mode)."""

import os
from typing import Any, Optional

from supabase import create_client, Client
from supabase.client import ClientOptions

from tes_property.models.calendar_event import CalendarEvent
from tes_property.models.inquiry import Inquiry
from tes_property.services.storage import (
    CALENDAR_EVENTS,
    INQUIRIES,
    StorageAdapter,
    camel_keys,
    next_id,
    utc_now_iso,
)
from tes_property.utils.errors import SupabaseError
from tes_property.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

# Global client instance (singleton pattern)
_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """Get or create Supabase client singleton."""
    global _client

    if _client is None:
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

        if not url or not key:
            raise SupabaseError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        _client = create_client(url, key, options)
        logger.info("Supabase client initialized", supabase_url=url)

    return _client


def close_supabase_client() -> None:
    """Drop the cached client; supabase-py has no explicit close."""
    global _client
    if _client:
        _client = None
        logger.info("Supabase client closed")


class SupabaseClient:
    """Context manager for Supabase client."""

    def __init__(self):
        self.client: Optional[Client] = None

    def __enter__(self) -> Client:
        self.client = get_supabase_client()
        return self.client

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                error=str(exc_val),
                error_type=exc_type.__name__
            )
        return False


class SupabaseStorage(StorageAdapter):
    """
    Tables `inquiries`, `calendar_events`, `properties` and `users` with
    snake_case columns matching the model field names.
    """

    def _load(self, collection: str) -> list[dict]:
        with SupabaseClient() as client:
            try:
                result = client.table(collection).select("*").order("id").execute()
                return result.data if result.data else []
            except Exception as e:
                raise SupabaseError(f"Failed to read {collection}: {e}")

    def _save(self, collection: str, records: list[dict]) -> None:
        with SupabaseClient() as client:
            try:
                client.table(collection).upsert(records).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to save {collection}: {e}")

    def _select_one(self, collection: str, record_id: int) -> Optional[dict]:
        with SupabaseClient() as client:
            try:
                result = client.table(collection).select("*").eq("id", record_id).execute()
                return result.data[0] if result.data else None
            except Exception as e:
                raise SupabaseError(f"Failed to get {collection} record {record_id}: {e}")

    def _insert(self, collection: str, row: dict) -> dict:
        with SupabaseClient() as client:
            try:
                result = client.table(collection).insert(row).execute()
                if result.data:
                    return result.data[0]
                raise SupabaseError(f"Failed to insert into {collection}: no data returned")
            except SupabaseError:
                raise
            except Exception as e:
                raise SupabaseError(f"Failed to insert into {collection}: {e}")

    def _update(self, collection: str, record_id: int, changes: dict) -> Optional[dict]:
        with SupabaseClient() as client:
            try:
                result = client.table(collection).update(changes).eq("id", record_id).execute()
                return result.data[0] if result.data else None
            except Exception as e:
                raise SupabaseError(f"Failed to update {collection} record {record_id}: {e}")

    def get_inquiry(self, inquiry_id: int) -> Optional[Inquiry]:
        row = self._select_one(INQUIRIES, inquiry_id)
        return Inquiry.model_validate(row) if row else None

    def add_inquiry(self, fields: dict[str, Any]) -> Inquiry:
        now = utc_now_iso()
        inquiry = Inquiry.model_validate({
            **camel_keys(fields),
            "id": next_id(self._load(INQUIRIES)),
            "createdAt": now,
            "updatedAt": now,
        })
        row = self._insert(INQUIRIES, inquiry.model_dump(mode="json"))
        logger.info("Inquiry stored", inquiry_id=inquiry.id, property_id=inquiry.property_id)
        return Inquiry.model_validate(row)

    def apply_inquiry_update(self, inquiry_id: int, fields: dict[str, Any]) -> bool:
        current = self.get_inquiry(inquiry_id)
        if current is None:
            logger.warning("Inquiry update skipped, record not found", inquiry_id=inquiry_id)
            return False

        merged = Inquiry.model_validate({**current.to_record(), **camel_keys(fields), "updatedAt": utc_now_iso()})
        changed = merged.model_dump(mode="json", exclude={"id", "created_at"})
        updated = self._update(INQUIRIES, inquiry_id, changed)
        logger.info("Inquiry updated", inquiry_id=inquiry_id, fields=sorted(fields))
        return updated is not None

    def get_calendar_event(self, event_id: int) -> Optional[CalendarEvent]:
        row = self._select_one(CALENDAR_EVENTS, event_id)
        return CalendarEvent.model_validate(row) if row else None

    def add_calendar_event(self, fields: dict[str, Any]) -> CalendarEvent:
        event = CalendarEvent.model_validate({
            **camel_keys(fields),
            "id": next_id(self._load(CALENDAR_EVENTS)),
            "createdAt": utc_now_iso(),
        })
        row = self._insert(CALENDAR_EVENTS, event.model_dump(mode="json"))
        logger.info("Calendar event stored", event_id=event.id, agent_id=event.agent_id)
        return CalendarEvent.model_validate(row)

    def update_calendar_event(self, event_id: int, fields: dict[str, Any]) -> Optional[CalendarEvent]:
        current = self.get_calendar_event(event_id)
        if current is None:
            return None
        merged = CalendarEvent.model_validate({**current.to_record(), **camel_keys(fields)})
        row = self._update(CALENDAR_EVENTS, event_id, merged.model_dump(mode="json", exclude={"id"}))
        return CalendarEvent.model_validate(row) if row else None

    def delete_calendar_event(self, event_id: int) -> bool:
        with SupabaseClient() as client:
            try:
                result = client.table(CALENDAR_EVENTS).delete().eq("id", event_id).execute()
                return bool(result.data)
            except Exception as e:
                raise SupabaseError(f"Failed to delete calendar event {event_id}: {e}")

