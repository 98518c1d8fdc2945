"""
Pydantic schemas for Dashboard and insight endpoints.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel


class DashboardStats(BaseModel):
    """Headline numbers for the caller's account."""
    total_products: int
    total_shipments: int
    total_shipped_quantity: int
    total_shipping_cost: Decimal
    last_updated: datetime


class InsightResponse(BaseModel):
    topic: str
    content: str
    generated_at: datetime


class HealthCheck(BaseModel):
    """Health check response."""
    status: str
    version: str
    database: str
    timestamp: datetime


class MonthlyShipments(BaseModel):
    month: str  # YYYY-MM
    shipments: int
    shipping_cost: Decimal
    average_cost: Optional[Decimal] = None


class CarrierShare(BaseModel):
    carrier: str
    shipments: int
    percentage: Decimal
    total_cost: Decimal
    average_cost: Decimal


class StatusCount(BaseModel):
    status: Literal["completed", "draft"]
    shipments: int


class ShipmentReportSummary(BaseModel):
    total_shipments: int
    total_shipping_cost: Decimal
    average_shipping_cost: Optional[Decimal] = None
    active_carriers: int


class ShipmentReport(BaseModel):
    """Shipment volume and cost over a date range, by month, carrier and status."""
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    summary: ShipmentReportSummary
    monthly: list[MonthlyShipments]
    carriers: list[CarrierShare]
    statuses: list[StatusCount]
