"""Calendar conflict detection - keep agents from being double-booked."""

from datetime import date, datetime, timezone
from typing import Iterable, Optional, Union

from tes_property.models.calendar_event import CalendarEvent, ProposedEvent
from tes_property.models.results import ConflictCheckResult, TimeSlot, TimeValidationResult
from tes_property.utils.errors import InvalidTimeFormatError
from tes_property.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

BUFFER_MINUTES = 30

# Business hours for slot suggestions
DAY_START_MINUTES = 8 * 60
DAY_END_MINUTES = 20 * 60

MIN_EVENT_MINUTES = 30
MAX_EVENT_MINUTES = 8 * 60

DateLike = Union[date, datetime, str]


def parse_time_to_minutes(time_str: str) -> int:
    """Parse 'HH:MM' into minutes since midnight."""
    try:
        hours_part, minutes_part = str(time_str).strip().split(":")[:2]
        hours, minutes = int(hours_part), int(minutes_part)
    except (ValueError, AttributeError):
        raise InvalidTimeFormatError(f"Invalid time '{time_str}', expected HH:MM")

    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise InvalidTimeFormatError(f"Invalid time '{time_str}', expected HH:MM")
    return hours * 60 + minutes


def format_minutes(total_minutes: int) -> str:
    """Minutes since midnight back to HH:MM."""
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours:02d}:{minutes:02d}"


def add_minutes_to_time(time_str: str, minutes: int) -> str:
    """Shift an HH:MM time by `minutes`."""
    return format_minutes(parse_time_to_minutes(time_str) + minutes)


def normalize_date(value: DateLike) -> date:
    """Reduce a date, datetime or ISO string to its calendar day (UTC for aware values)."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return normalize_date(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        raise InvalidTimeFormatError(f"Invalid date '{value}'")


def time_ranges_overlap(
    start1: str,
    end1: str,
    start2: str,
    end2: str,
    buffer_minutes: int = BUFFER_MINUTES
) -> bool:
    """
    Check whether two HH:MM ranges overlap once each is padded by the buffer.

    Both ranges grow by `buffer_minutes` on each side and are compared as
    half-open intervals, so events need a gap of at least twice the buffer.
    """
    start1_minutes = parse_time_to_minutes(start1) - buffer_minutes
    end1_minutes = parse_time_to_minutes(end1) + buffer_minutes
    start2_minutes = parse_time_to_minutes(start2) - buffer_minutes
    end2_minutes = parse_time_to_minutes(end2) + buffer_minutes

    return start1_minutes < end2_minutes and end1_minutes > start2_minutes


def check_conflict(
    new_event: ProposedEvent,
    existing_events: Iterable[CalendarEvent],
    exclude_event_id: Optional[int] = None
) -> ConflictCheckResult:
    """
    Find every existing event of the same agent on the same day that collides
    with `new_event`.

    `exclude_event_id` skips the event being edited. Unparseable dates or
    times yield a result with `error` set instead of raising.
    """
    try:
        new_date = normalize_date(new_event.date)
        conflicting = []
        for event in existing_events:
            if exclude_event_id is not None and event.id == exclude_event_id:
                continue
            if event.agent_id != new_event.agent_id:
                continue
            if normalize_date(event.date) != new_date:
                continue
            if time_ranges_overlap(new_event.start_time, new_event.end_time, event.start_time, event.end_time):
                conflicting.append(event)
    except InvalidTimeFormatError as e:
        logger.warning(
            "Calendar conflict check rejected malformed input",
            agent_id=new_event.agent_id,
            error=str(e)
        )
        return ConflictCheckResult(has_conflict=False, error=str(e))

    if conflicting:
        logger.info(
            "Calendar conflict detected",
            agent_id=new_event.agent_id,
            event_date=new_date.isoformat(),
            start_time=new_event.start_time,
            end_time=new_event.end_time,
            conflicting_event_ids=[e.id for e in conflicting]
        )

    return ConflictCheckResult(has_conflict=bool(conflicting), conflicting_events=conflicting)


def get_conflict_message(conflicting_events: list[CalendarEvent]) -> str:
    """Human-readable summary of a conflict, empty when there is none."""
    if not conflicting_events:
        return ""

    lines = []
    for event in conflicting_events:
        try:
            day = normalize_date(event.date)
            day_text = f"{day:%B} {day.day}, {day.year}"
        except InvalidTimeFormatError:
            day_text = str(event.date)
        lines.append(f"- {event.title} on {day_text} from {event.start_time} to {event.end_time}")

    return (
        f"This time slot conflicts with existing event(s) (including {BUFFER_MINUTES}-minute buffer):\n"
        + "\n".join(lines)
    )


def find_available_slots(
    agent_id: int,
    day: DateLike,
    existing_events: Iterable[CalendarEvent],
    slot_duration: int = 60
) -> list[TimeSlot]:
    """
    Free windows for an agent within business hours (08:00-20:00).

    Walks the agent's events for the day in start order and emits the gap
    before each one when it can hold `slot_duration` plus the buffer, then
    the window from the last event to closing time.
    """
    target = normalize_date(day)
    agent_events = sorted(
        (e for e in existing_events if e.agent_id == agent_id and normalize_date(e.date) == target),
        key=lambda e: parse_time_to_minutes(e.start_time)
    )

    slots: list[TimeSlot] = []
    current = DAY_START_MINUTES

    for event in agent_events:
        padded_start = parse_time_to_minutes(event.start_time) - BUFFER_MINUTES
        if current + slot_duration + BUFFER_MINUTES <= padded_start:
            slots.append(TimeSlot(
                start_time=format_minutes(current),
                end_time=format_minutes(padded_start - BUFFER_MINUTES)
            ))
        # overlapping events must not move the cursor backwards
        current = max(current, parse_time_to_minutes(event.end_time) + BUFFER_MINUTES)

    if current + slot_duration <= DAY_END_MINUTES:
        slots.append(TimeSlot(start_time=format_minutes(current), end_time=format_minutes(DAY_END_MINUTES)))

    return slots


def get_recommended_time_slots(
    agent_id: int,
    day: DateLike,
    existing_events: Iterable[CalendarEvent],
    limit: int = 5
) -> list[TimeSlot]:
    slots = find_available_slots(agent_id, day, existing_events, slot_duration=60)
    return [
        slot.model_copy(update={"label": f"{slot.start_time} - {slot.end_time}"})
        for slot in slots[:limit]
    ]


def validate_event_time(start_time: str, end_time: str) -> TimeValidationResult:
    """Reject inverted ranges and durations outside 30 minutes to 8 hours."""
    try:
        start_minutes = parse_time_to_minutes(start_time)
        end_minutes = parse_time_to_minutes(end_time)
    except InvalidTimeFormatError as e:
        return TimeValidationResult(valid=False, error=str(e))

    if end_minutes <= start_minutes:
        return TimeValidationResult(valid=False, error="End time must be after start time")

    duration = end_minutes - start_minutes
    if duration < MIN_EVENT_MINUTES:
        return TimeValidationResult(valid=False, error="Event duration must be at least 30 minutes")
    if duration > MAX_EVENT_MINUTES:
        return TimeValidationResult(valid=False, error="Event duration cannot exceed 8 hours")

    return TimeValidationResult(valid=True)


def is_agent_available(
    agent_id: int,
    day: DateLike,
    start_time: str,
    end_time: str,
    existing_events: Iterable[CalendarEvent]
) -> bool:
    proposal = ProposedEvent(agent_id=agent_id, date=day, start_time=start_time, end_time=end_time)
    return check_conflict(proposal, existing_events).ok
