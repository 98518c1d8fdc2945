"""
Pydantic schemas for Shipment and ShipmentItem models.
"""
from typing import Annotated, Optional, Literal
from datetime import date, datetime
import uuid
from decimal import Decimal
from pydantic import AfterValidator, BaseModel, Field, ConfigDict, model_validator

from shiptrack.schemas.filters import ShipmentStatus


def _not_in_future(value: date) -> date:
    if value > date.today():
        raise ValueError("shipment date cannot be in the future")
    return value


ShipmentDate = Annotated[date, AfterValidator(_not_in_future)]


class ShipmentItemCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    quantity: int = Field(..., gt=0)
    unit_shipping_cost: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    barcode_scanned: bool = False


class ShipmentItemProduct(BaseModel):
    """Product summary embedded in a shipment item."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    asin: Optional[str] = None
    merchant_sku: Optional[str] = None


class ShipmentItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    unit_shipping_cost: Decimal
    barcode_scanned: bool
    product: Optional[ShipmentItemProduct] = None


class ShipmentBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    fba_shipment_id: str = Field(..., min_length=1, max_length=100)
    shipment_date: ShipmentDate
    carrier_company: str = Field(..., min_length=1, max_length=255)
    total_shipping_cost: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    status: ShipmentStatus = "pending"
    notes: Optional[str] = None


class ShipmentCreate(ShipmentBase):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    items: list[ShipmentItemCreate] = Field(..., min_length=1)


class ShipmentUpdate(BaseModel):
    """Header fields only; items are fixed once the shipment exists."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    fba_shipment_id: Optional[str] = Field(None, min_length=1, max_length=100)
    shipment_date: Optional[ShipmentDate] = None
    carrier_company: Optional[str] = Field(None, min_length=1, max_length=255)
    total_shipping_cost: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    status: Optional[ShipmentStatus] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _no_null_required(self) -> "ShipmentUpdate":
        # Only notes may be cleared; the other columns are NOT NULL
        nulled = sorted(
            name for name in self.model_fields_set - {"notes"} if getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"cannot be null: {', '.join(nulled)}")
        return self


class ShipmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    fba_shipment_id: str
    shipment_date: date
    carrier_company: str
    total_shipping_cost: Decimal
    status: ShipmentStatus
    display_status: Literal["completed", "draft"]
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ShipmentWithItems(ShipmentResponse):
    items: list[ShipmentItemResponse] = Field(default_factory=list)


class ShipmentListResponse(BaseModel):
    items: list[ShipmentResponse]
    total: int
    page: int
    page_size: int
    pages: int
