"""User model - admins and agents."""

from typing import Literal, Optional
from datetime import datetime
from pydantic import Field

from tes_property.models.base import RecordModel


class User(RecordModel):
    """Portal user; agents are the ones inquiries get assigned to."""
    id: int = Field(..., description="User ID")
    name: str = Field(..., description="Full name")
    email: str = Field(..., description="Email address")
    role: Literal["admin", "agent"] = "agent"
    phone: Optional[str] = None
    active: bool = True
    created_at: Optional[datetime] = None
