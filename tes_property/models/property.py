"""Property listing models (read-only context for inquiries and stats)."""

from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import Field

from tes_property.models.base import RecordModel


class PropertyStatus(str, Enum):
    AVAILABLE = "Available"
    RESERVED = "Reserved"
    PENDING = "Pending"
    SOLD = "Sold"
    WITHDRAWN = "Withdrawn"


class PropertyAddress(RecordModel):
    street: str = ""
    barangay: str = ""
    city: str = ""
    province: str = ""
    zip: str = ""


class Property(RecordModel):
    """Real estate listing."""
    id: int = Field(..., description="Property ID")
    name: str = Field(..., description="Listing name")
    address: PropertyAddress = Field(default_factory=PropertyAddress)
    price: float = Field(0, ge=0)
    status: PropertyStatus = PropertyStatus.AVAILABLE
    type: Optional[str] = Field(None, description="House, Condo, Townhouse, Lot or Commercial")
    photos: list = Field(default_factory=list)
    description: str = ""
    features: list[str] = Field(default_factory=list)
    reservation_fee: float = 0
    commission: float = Field(0, description="Listed commission")
    final_commission: Optional[float] = Field(None, description="Commission actually earned on sale")
    sale_price: Optional[float] = None
    created_at: Optional[datetime] = None
