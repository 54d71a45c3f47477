"""Structured outcomes of validation checks and workflows.

Validation failures are reported through these models rather than raised,
so callers can surface them to the user without exception handling.
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field

from tes_property.models.inquiry import Inquiry
from tes_property.models.calendar_event import CalendarEvent


class DuplicateCheckResult(BaseModel):
    is_duplicate: bool = False
    existing_inquiry: Optional[Inquiry] = None


class ConflictCheckResult(BaseModel):
    has_conflict: bool = False
    conflicting_events: list[CalendarEvent] = Field(default_factory=list)
    error: Optional[str] = Field(None, description="Set when input dates/times could not be parsed")

    @property
    def ok(self) -> bool:
        return not self.has_conflict and self.error is None


class TimeSlot(BaseModel):
    start_time: str
    end_time: str
    label: Optional[str] = None


class SlotSearchResult(BaseModel):
    """Free windows in an agent's day, or why they couldn't be computed."""
    slots: list[TimeSlot] = Field(default_factory=list)
    error: Optional[str] = None


class TimeValidationResult(BaseModel):
    valid: bool
    error: Optional[str] = None


class ExpiryWarning(BaseModel):
    inquiry: Inquiry
    days_remaining: int
    is_expired: bool
    message: str
    severity: Literal["danger", "warning"]


class InquiryResult(BaseModel):
    """Outcome of an inquiry workflow (submit, status change, assignment)."""
    success: bool
    inquiry: Optional[Inquiry] = None
    error: Optional[str] = None
    duplicate_of: Optional[Inquiry] = Field(None, description="Existing active inquiry blocking a submission")


class BulkUpdateResult(BaseModel):
    updated_ids: list[int] = Field(default_factory=list)
    errors: dict[int, str] = Field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def updated_count(self) -> int:
        return len(self.updated_ids)

    @property
    def failed_count(self) -> int:
        return len(self.errors)


class ScheduleResult(BaseModel):
    """Outcome of a calendar workflow (schedule, reschedule, cancel)."""
    success: bool
    event: Optional[CalendarEvent] = None
    conflicting_events: list[CalendarEvent] = Field(default_factory=list)
    error: Optional[str] = None


class AgentStats(BaseModel):
    agent_id: int
    agent_name: str
    active_inquiries: int = 0
    total_inquiries: int = 0
    properties_sold: int = 0
    total_commission: float = 0.0
    avg_commission: float = 0.0
    success_rate: float = 0.0
    viewings_scheduled: int = 0
    deposits_received: int = 0


class GlobalStats(BaseModel):
    total_inquiries: int = 0
    active_inquiries: int = 0
    total_properties: int = 0
    available_properties: int = 0
    properties_sold: int = 0
    total_commission: float = 0.0
    success_rate: float = 0.0
