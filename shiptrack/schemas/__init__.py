"""
Pydantic schemas for request/response validation.
"""
from shiptrack.schemas.product import (
    ProductBase, ProductCreate, ProductUpdate, ProductResponse, ProductListResponse,
    ProductBulkUpdate, ProductBulkDelete, BatchResult,
    CostBreakdownRow, ProfitabilitySummary, ProfitabilityReport
)
from shiptrack.schemas.filters import (
    NumericRange, DateRange, DayRange, ProductFilters, ShipmentStatus, ShipmentFilters
)
from shiptrack.schemas.supplier import (
    SupplierBase, SupplierCreate, SupplierUpdate, SupplierResponse,
    CategoryBase, CategoryCreate, CategoryUpdate, CategoryResponse
)
from shiptrack.schemas.shipment import (
    ShipmentItemCreate, ShipmentItemProduct, ShipmentItemResponse,
    ShipmentBase, ShipmentCreate, ShipmentUpdate, ShipmentResponse,
    ShipmentWithItems, ShipmentListResponse
)
from shiptrack.schemas.dashboard import (
    DashboardStats, InsightResponse, HealthCheck,
    MonthlyShipments, CarrierShare, StatusCount, ShipmentReportSummary, ShipmentReport
)

__all__ = [
    # Product schemas
    "ProductBase", "ProductCreate", "ProductUpdate", "ProductResponse", "ProductListResponse",
    "ProductBulkUpdate", "ProductBulkDelete", "BatchResult",
    "CostBreakdownRow", "ProfitabilitySummary", "ProfitabilityReport",

    # Filters
    "NumericRange", "DateRange", "DayRange", "ProductFilters", "ShipmentStatus", "ShipmentFilters",

    # Supplier and category schemas
    "SupplierBase", "SupplierCreate", "SupplierUpdate", "SupplierResponse",
    "CategoryBase", "CategoryCreate", "CategoryUpdate", "CategoryResponse",

    # Shipment schemas
    "ShipmentItemCreate", "ShipmentItemProduct", "ShipmentItemResponse",
    "ShipmentBase", "ShipmentCreate", "ShipmentUpdate", "ShipmentResponse",
    "ShipmentWithItems", "ShipmentListResponse",

    # Dashboard schemas
    "DashboardStats", "InsightResponse", "HealthCheck",
    "MonthlyShipments", "CarrierShare", "StatusCount", "ShipmentReportSummary", "ShipmentReport",
]
