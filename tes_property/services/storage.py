"""Persistence adapters for inquiries, calendar events, properties and users.

Adapters are last-write-wins with no locking: a check followed by a write is
not atomic, so two admins editing the same record can overwrite each other.
"""

import json
import os
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from tes_property.models.calendar_event import CalendarEvent
from tes_property.models.inquiry import Inquiry
from tes_property.models.property import Property
from tes_property.models.user import User
from tes_property.utils.errors import StorageError
from tes_property.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)

INQUIRIES = "inquiries"
CALENDAR_EVENTS = "calendar_events"
PROPERTIES = "properties"
USERS = "users"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def next_id(records: list[dict]) -> int:
    return max((int(r["id"]) for r in records if r.get("id") is not None), default=0) + 1


def camel_keys(fields: dict[str, Any]) -> dict[str, Any]:
    """Convert snake_case keys to the stored camelCase form; camelCase keys pass through."""
    return {(to_camel(k) if "_" in k else k): v for k, v in fields.items()}


class StorageAdapter(ABC):
    """Record-level persistence contract; records are camelCase dicts at rest."""

    @abstractmethod
    def _load(self, collection: str) -> list[dict]:
        """Return every stored record of a collection."""

    @abstractmethod
    def _save(self, collection: str, records: list[dict]) -> None:
        """Replace a collection's records."""

    # Inquiries
    def list_inquiries(self) -> list[Inquiry]:
        return [Inquiry.model_validate(r) for r in self._load(INQUIRIES)]

    def get_inquiry(self, inquiry_id: int) -> Optional[Inquiry]:
        for record in self._load(INQUIRIES):
            if record.get("id") == inquiry_id:
                return Inquiry.model_validate(record)
        return None

    def add_inquiry(self, fields: dict[str, Any]) -> Inquiry:
        """Store a new inquiry, assigning its id and timestamps."""
        records = self._load(INQUIRIES)
        now = utc_now_iso()
        inquiry = Inquiry.model_validate({**camel_keys(fields), "id": next_id(records), "createdAt": now, "updatedAt": now})
        records.append(inquiry.to_record())
        self._save(INQUIRIES, records)
        logger.info("Inquiry stored", inquiry_id=inquiry.id, property_id=inquiry.property_id)
        return inquiry

    def apply_inquiry_update(self, inquiry_id: int, fields: dict[str, Any]) -> bool:
        """Merge `fields` (camelCase) into a stored inquiry. False if it doesn't exist."""
        records = self._load(INQUIRIES)
        for index, record in enumerate(records):
            if record.get("id") != inquiry_id:
                continue
            try:
                merged = Inquiry.model_validate({**record, **camel_keys(fields), "updatedAt": utc_now_iso()})
            except ValidationError as e:
                raise StorageError(f"Update would produce an invalid inquiry {inquiry_id}: {e}")
            records[index] = merged.to_record()
            self._save(INQUIRIES, records)
            logger.info("Inquiry updated", inquiry_id=inquiry_id, fields=sorted(fields))
            return True

        logger.warning("Inquiry update skipped, record not found", inquiry_id=inquiry_id)
        return False

    # Calendar
    def list_calendar_events(self) -> list[CalendarEvent]:
        return [CalendarEvent.model_validate(r) for r in self._load(CALENDAR_EVENTS)]

    def get_calendar_event(self, event_id: int) -> Optional[CalendarEvent]:
        for record in self._load(CALENDAR_EVENTS):
            if record.get("id") == event_id:
                return CalendarEvent.model_validate(record)
        return None

    def add_calendar_event(self, fields: dict[str, Any]) -> CalendarEvent:
        records = self._load(CALENDAR_EVENTS)
        event = CalendarEvent.model_validate({**camel_keys(fields), "id": next_id(records), "createdAt": utc_now_iso()})
        records.append(event.to_record())
        self._save(CALENDAR_EVENTS, records)
        logger.info("Calendar event stored", event_id=event.id, agent_id=event.agent_id)
        return event

    def update_calendar_event(self, event_id: int, fields: dict[str, Any]) -> Optional[CalendarEvent]:
        records = self._load(CALENDAR_EVENTS)
        for index, record in enumerate(records):
            if record.get("id") == event_id:
                try:
                    event = CalendarEvent.model_validate({**record, **camel_keys(fields)})
                except ValidationError as e:
                    raise StorageError(f"Update would produce an invalid calendar event {event_id}: {e}")
                records[index] = event.to_record()
                self._save(CALENDAR_EVENTS, records)
                return event
        return None

    def delete_calendar_event(self, event_id: int) -> bool:
        records = self._load(CALENDAR_EVENTS)
        remaining = [r for r in records if r.get("id") != event_id]
        if len(remaining) == len(records):
            return False
        self._save(CALENDAR_EVENTS, remaining)
        return True

    # Read-only context
    def list_properties(self) -> list[Property]:
        return [Property.model_validate(r) for r in self._load(PROPERTIES)]

    def list_users(self) -> list[User]:
        return [User.model_validate(r) for r in self._load(USERS)]


class MemoryStorage(StorageAdapter):
    """Process-local storage, the server-side stand-in for browser local storage."""

    def __init__(self, seed: Optional[dict[str, list[dict]]] = None):
        self._collections: dict[str, list[dict]] = {
            name: [dict(r) for r in records] for name, records in (seed or {}).items()
        }

    def _load(self, collection: str) -> list[dict]:
        return [dict(r) for r in self._collections.get(collection, [])]

    def _save(self, collection: str, records: list[dict]) -> None:
        self._collections[collection] = [dict(r) for r in records]


class JsonFileStorage(StorageAdapter):
    """Flat-file storage: one JSON document per collection under `data_dir`.

    Documents look like {"data": [...], "_metadata": {"lastModified": ..., "recordCount": N}}.
    """

    FILENAMES = {
        INQUIRIES: "inquiries.json",
        CALENDAR_EVENTS: "calendar-events.json",
        PROPERTIES: "properties.json",
        USERS: "users.json",
    }

    def __init__(self, data_dir: str | os.PathLike):
        self.data_dir = Path(data_dir)

    def _path(self, collection: str) -> Path:
        return self.data_dir / self.FILENAMES[collection]

    def _read_document(self, collection: str) -> dict:
        path = self._path(collection)
        if not path.exists():
            return {"data": []}
        try:
            with log_timing("read_json_file", logger=logger, data_file=path.name):
                document = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to read data file", data_file=path.name, error=str(e))
            raise StorageError(f"Failed to read {path.name}: {e}")
        if not isinstance(document, dict) or not isinstance(document.get("data"), list):
            raise StorageError(f"Malformed data file {path.name}: expected an object with a 'data' list")
        return document

    def _load(self, collection: str) -> list[dict]:
        return self._read_document(collection)["data"]

    def _save(self, collection: str, records: list[dict]) -> None:
        document = self._read_document(collection)
        document["data"] = records
        document["_metadata"] = {
            **document.get("_metadata", {}),
            "lastModified": utc_now_iso(),
            "recordCount": len(records),
        }
        path = self._path(collection)
        try:
            with log_timing("write_json_file", logger=logger, data_file=path.name):
                self.data_dir.mkdir(parents=True, exist_ok=True)
                path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as e:
            logger.error("Failed to write data file", data_file=path.name, error=str(e))
            raise StorageError(f"Failed to write {path.name}: {e}")


def storage_mode() -> str:
    """The configured STORAGE_MODE, lower-cased; memory when unset."""
    return os.environ.get("STORAGE_MODE", "memory").strip().lower()


def get_storage(mode: Optional[str] = None) -> StorageAdapter:
    """Build the adapter selected by STORAGE_MODE (memory, json or supabase)."""
    mode = (mode or storage_mode()).lower()

    if mode == "memory":
        return MemoryStorage()
    if mode == "json":
        return JsonFileStorage(os.environ.get("DATA_DIR", "data"))
    if mode == "supabase":
        from tes_property.services.supabase_client import SupabaseStorage
        return SupabaseStorage()

    raise StorageError(f"Unknown STORAGE_MODE '{mode}', expected memory, json or supabase")
