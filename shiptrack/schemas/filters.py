"""
Closed filter configurations, one per listing.

Unknown keys are rejected so a misspelled filter fails loudly instead of
being ignored.
"""
from typing import Literal, Optional
from datetime import date, datetime
from decimal import Decimal
import uuid
from pydantic import BaseModel, ConfigDict, model_validator


class NumericRange(BaseModel):
    """Inclusive range; a missing bound is open on that side."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    min: Optional[Decimal] = None
    max: Optional[Decimal] = None

    @property
    def is_empty(self) -> bool:
        return self.min is None and self.max is None


class DateRange(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @property
    def is_empty(self) -> bool:
        return self.start is None and self.end is None


class DayRange(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    start: Optional[date] = None
    end: Optional[date] = None

    @model_validator(mode="after")
    def _ordered(self):
        if self.start and self.end and self.start > self.end:
            raise ValueError("start must not be after end")
        return self


class ProductFilters(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    search: Optional[str] = None
    supplier_id: Optional[uuid.UUID] = None
    category_id: Optional[uuid.UUID] = None
    cost_range: Optional[NumericRange] = None
    date_range: Optional[DateRange] = None
    profit_range: Optional[NumericRange] = None
    roi_range: Optional[NumericRange] = None


ShipmentStatus = Literal["pending", "in_transit", "delivered", "cancelled"]


class ShipmentFilters(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    search: Optional[str] = None
    carrier: Optional[str] = None
    status: Optional[ShipmentStatus] = None
    date_range: Optional[DayRange] = None
