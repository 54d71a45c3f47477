"""Calendar workflows: validate the time range and check conflicts before writing."""

from typing import Any, Optional

from pydantic import ValidationError

from tes_property.models.calendar_event import CalendarEvent, ProposedEvent
from tes_property.models.results import ScheduleResult, SlotSearchResult
from tes_property.services.calendar_conflict import (
    DateLike,
    check_conflict,
    find_available_slots,
    get_conflict_message,
    validate_event_time,
)
from tes_property.services.storage import StorageAdapter, camel_keys
from tes_property.utils.errors import InvalidTimeFormatError
from tes_property.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


class SchedulingService:
    """Agent calendar management on top of a storage adapter."""

    def __init__(self, storage: StorageAdapter):
        self.storage = storage

    def schedule_event(self, fields: dict[str, Any]) -> ScheduleResult:
        """Store a new viewing or unavailability block if the agent is free."""
        try:
            # id is a placeholder; storage allocates the real one
            proposal = CalendarEvent.model_validate({**camel_keys(fields), "id": 0})
        except ValidationError as e:
            return ScheduleResult(success=False, error=f"Invalid calendar event: {e.error_count()} error(s)")

        rejected = self._check(proposal)
        if rejected:
            return rejected

        event = self.storage.add_calendar_event(fields)
        logger.info(
            "Calendar event scheduled",
            event_id=event.id,
            event_type=event.type.value,
            agent_id=event.agent_id,
            event_date=str(event.date),
            inquiry_id=event.inquiry_id
        )
        return ScheduleResult(success=True, event=event)

    def reschedule_event(self, event_id: int, changes: dict[str, Any]) -> ScheduleResult:
        """Edit an event; the event's own current slot doesn't count as a conflict."""
        current = self.storage.get_calendar_event(event_id)
        if current is None:
            return ScheduleResult(success=False, error=f"Calendar event {event_id} not found")

        try:
            candidate = CalendarEvent.model_validate({**current.to_record(), **camel_keys(changes)})
        except ValidationError as e:
            return ScheduleResult(success=False, event=current, error=f"Invalid calendar event: {e.error_count()} error(s)")

        rejected = self._check(candidate, exclude_event_id=event_id)
        if rejected:
            rejected.event = current
            return rejected

        event = self.storage.update_calendar_event(event_id, changes)
        if event is None:
            return ScheduleResult(success=False, event=current, error=f"Failed to update calendar event {event_id}")

        logger.info("Calendar event rescheduled", event_id=event_id, agent_id=event.agent_id)
        return ScheduleResult(success=True, event=event)

    def cancel_event(self, event_id: int) -> ScheduleResult:
        if not self.storage.delete_calendar_event(event_id):
            return ScheduleResult(success=False, error=f"Calendar event {event_id} not found")
        logger.info("Calendar event cancelled", event_id=event_id)
        return ScheduleResult(success=True)

    def available_slots(self, agent_id: int, day: DateLike, slot_duration: int = 60) -> SlotSearchResult:
        """Free windows for the agent on `day`; malformed dates or times come back as `error`."""
        try:
            slots = find_available_slots(agent_id, day, self.storage.list_calendar_events(), slot_duration)
        except InvalidTimeFormatError as e:
            logger.warning("Slot search rejected malformed input", agent_id=agent_id, error=str(e))
            return SlotSearchResult(error=str(e))
        return SlotSearchResult(slots=slots)

    def _check(self, proposal: ProposedEvent, exclude_event_id: Optional[int] = None) -> Optional[ScheduleResult]:
        timing = validate_event_time(proposal.start_time, proposal.end_time)
        if not timing.valid:
            return ScheduleResult(success=False, error=timing.error)

        conflict = check_conflict(proposal, self.storage.list_calendar_events(), exclude_event_id=exclude_event_id)
        if conflict.error:
            return ScheduleResult(success=False, error=conflict.error)
        if conflict.has_conflict:
            return ScheduleResult(
                success=False,
                conflicting_events=conflict.conflicting_events,
                error=get_conflict_message(conflict.conflicting_events),
            )
        return None
