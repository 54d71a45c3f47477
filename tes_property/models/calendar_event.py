"""Calendar models - scheduled blocks of an agent's time."""

from enum import Enum
from typing import Optional, Union
from datetime import date as date_type, datetime
from pydantic import Field

from tes_property.models.base import RecordModel


class EventType(str, Enum):
    VIEWING = "viewing"
    UNAVAILABLE = "unavailable"


class EventStatus(str, Enum):
    CONFIRMED = "confirmed"
    TENTATIVE = "tentative"
    UNAVAILABLE = "unavailable"


class ProposedEvent(RecordModel):
    """An agent time block under consideration.

    Date and time values are kept as given; parsing happens in the conflict
    checker so malformed input comes back as a rejected result.
    """
    agent_id: int = Field(..., description="Agent user ID")
    date: Union[datetime, date_type, str] = Field(..., description="Calendar day (ISO date or datetime)")
    start_time: str = Field(..., description="Start time, HH:MM")
    end_time: str = Field(..., description="End time, HH:MM")


class CalendarEvent(ProposedEvent):
    """Stored calendar event."""
    id: int = Field(..., description="Event ID")
    title: str = ""
    type: EventType = EventType.VIEWING
    status: EventStatus = EventStatus.CONFIRMED
    property_id: Optional[int] = None
    property_name: Optional[str] = None
    inquiry_id: Optional[int] = Field(None, description="Linked inquiry, if any")
    agent_name: str = ""
    customer_name: Optional[str] = None
    notes: str = ""
    created_at: Optional[datetime] = None
