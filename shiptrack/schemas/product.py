"""
Pydantic schemas for Product model.
"""
from typing import Optional
from datetime import datetime
import uuid
from decimal import Decimal
from pydantic import BaseModel, Field, ConfigDict, model_validator

BUSINESS_KEY_REQUIRED = "ASIN or Merchant SKU is required"


class ProductBase(BaseModel):
    """Base product schema."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=500)
    asin: Optional[str] = Field(None, min_length=10, max_length=20)
    merchant_sku: Optional[str] = Field(None, min_length=3, max_length=100)
    manufacturer_code: Optional[str] = Field(None, max_length=100)
    amazon_barcode: Optional[str] = Field(None, min_length=8, max_length=50)

    product_cost: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    amazon_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    referral_fee_percent: Optional[Decimal] = Field(None, ge=0, le=100, decimal_places=2)
    fulfillment_fee: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    advertising_cost: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    initial_investment: Optional[Decimal] = Field(None, ge=0, decimal_places=2)

    supplier_id: Optional[uuid.UUID] = None
    category_id: Optional[uuid.UUID] = None
    image_url: Optional[str] = None
    notes: Optional[str] = None


class ProductCreate(ProductBase):
    """Schema for creating a product. Derived fields are not accepted."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    @model_validator(mode="after")
    def _has_business_key(self) -> "ProductCreate":
        if not self.asin and not self.merchant_sku:
            raise ValueError(BUSINESS_KEY_REQUIRED)
        return self


class ProductUpdate(BaseModel):
    """Schema for updating a product. Only provided fields are changed."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=500)
    asin: Optional[str] = Field(None, min_length=10, max_length=20)
    merchant_sku: Optional[str] = Field(None, min_length=3, max_length=100)
    manufacturer_code: Optional[str] = Field(None, max_length=100)
    amazon_barcode: Optional[str] = Field(None, min_length=8, max_length=50)

    product_cost: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    amazon_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    referral_fee_percent: Optional[Decimal] = Field(None, ge=0, le=100, decimal_places=2)
    fulfillment_fee: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    advertising_cost: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    initial_investment: Optional[Decimal] = Field(None, ge=0, decimal_places=2)

    supplier_id: Optional[uuid.UUID] = None
    category_id: Optional[uuid.UUID] = None
    image_url: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _keeps_required_values(self) -> "ProductUpdate":
        # Omitted means unchanged; an explicit null would clear the column
        if "name" in self.model_fields_set and self.name is None:
            raise ValueError("name cannot be null")
        keys = {"asin", "merchant_sku"}
        if keys <= self.model_fields_set and not self.asin and not self.merchant_sku:
            raise ValueError(BUSINESS_KEY_REQUIRED)
        return self


class ProductResponse(ProductBase):
    """Schema for product response, including joined display fields."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    estimated_profit: Optional[Decimal] = None
    roi_percentage: Optional[Decimal] = None
    profit_margin: Optional[Decimal] = None
    created_at: datetime
    updated_at: datetime

    # Read-only projections of the linked supplier and category
    supplier_name: Optional[str] = None
    supplier_country: Optional[str] = None
    category_name: Optional[str] = None
    category_color: Optional[str] = None
    category_icon: Optional[str] = None


class ProductListResponse(BaseModel):
    """Paginated product list response."""
    items: list[ProductResponse]
    total: int
    page: int
    page_size: int
    pages: int


class ProductBulkUpdate(BaseModel):
    """Same partial change set applied to every selected product."""
    ids: list[uuid.UUID] = Field(..., min_length=1)
    changes: ProductUpdate


class ProductBulkDelete(BaseModel):
    ids: list[uuid.UUID] = Field(..., min_length=1)


class BatchResult(BaseModel):
    """Per-run ledger for bulk edits and CSV imports."""
    success: int
    failed: int
    errors: list[str] = Field(default_factory=list)


class CostBreakdownRow(BaseModel):
    product_id: uuid.UUID
    product_name: str
    product_cost: Decimal
    referral_fee: Decimal
    fulfillment_fee: Decimal
    advertising_cost: Decimal
    total_cost: Decimal
    estimated_profit: Optional[Decimal] = None
    profit_margin: Optional[Decimal] = None
    roi_percentage: Optional[Decimal] = None
    product_cost_percentage: Optional[Decimal] = None
    referral_fee_percentage: Optional[Decimal] = None
    fulfillment_cost_percentage: Optional[Decimal] = None
    advertising_cost_percentage: Optional[Decimal] = None


class ProfitabilitySummary(BaseModel):
    total_products: int
    computable_products: int
    total_estimated_profit: Decimal
    average_roi_percentage: Optional[Decimal] = None
    average_profit_margin: Optional[Decimal] = None
    unprofitable_products: int


class ProfitabilityReport(BaseModel):
    summary: ProfitabilitySummary
    items: list[CostBreakdownRow]
