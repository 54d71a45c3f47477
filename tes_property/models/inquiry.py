"""Inquiry models - a customer's request regarding one property."""

from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import Field, model_validator

from tes_property.models.base import RecordModel


class InquiryStatus(str, Enum):
    """Inquiry lifecycle statuses, in pipeline order."""
    NEW = "New"
    ASSIGNED = "Assigned"
    IN_PROGRESS = "In Progress"
    WAITING_PROPERTY_RESERVED = "Waiting - Property Reserved"
    VIEWING_SCHEDULED = "Viewing Scheduled"
    VIEWED_INTERESTED = "Viewed - Interested"
    VIEWED_NOT_INTERESTED = "Viewed - Not Interested"
    VIEWED_UNDECIDED = "Viewed - Undecided"
    DEPOSIT_PAID = "Deposit Paid"
    SUCCESSFUL = "Successful"
    CANCELLED = "Cancelled"


TERMINAL_STATUSES = frozenset({InquiryStatus.SUCCESSFUL, InquiryStatus.CANCELLED})

ACTIVE_STATUSES = frozenset(s for s in InquiryStatus if s not in TERMINAL_STATUSES)

# Statuses during which a reservation deadline is tracked
RESERVATION_STATUSES = frozenset({
    InquiryStatus.WAITING_PROPERTY_RESERVED,
    InquiryStatus.VIEWING_SCHEDULED,
    InquiryStatus.VIEWED_INTERESTED,
    InquiryStatus.VIEWED_UNDECIDED,
    InquiryStatus.DEPOSIT_PAID,
})


class InquirySubmission(RecordModel):
    """Customer-supplied fields of a new inquiry."""
    property_id: int = Field(..., gt=0, description="Property ID")
    property_name: str = Field("", description="Property name at submission time")
    customer_name: str = Field(..., min_length=2, max_length=100)
    customer_email: str = Field(..., description="Customer email address")
    customer_phone: str = Field(..., description="Customer phone number")
    customer_address: str = Field("", max_length=300)
    message: str = Field("", max_length=1000)


class Inquiry(RecordModel):
    """Stored inquiry record."""
    id: int = Field(..., description="Inquiry ID")
    property_id: int = Field(..., description="Property ID (FK)")
    property_name: str = ""
    customer_name: str = ""
    customer_email: str = ""
    customer_phone: str = ""
    customer_address: str = ""
    message: str = ""
    status: InquiryStatus = InquiryStatus.NEW
    assigned_agent_id: Optional[int] = Field(None, description="Assigned agent user ID")
    assigned_agent_name: Optional[str] = Field(None, description="Assigned agent name")
    viewing_date: Optional[datetime] = None
    deposit_amount: Optional[float] = Field(None, ge=0)
    reservation_expiry_date: Optional[datetime] = None
    notes: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _agent_pair(self) -> "Inquiry":
        if (self.assigned_agent_id is None) != (self.assigned_agent_name is None):
            raise ValueError("assignedAgentId and assignedAgentName must both be set or both be null")
        return self

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES
