"""
Product model for the seller catalog.
"""
from typing import Optional
import uuid
from decimal import Decimal
from sqlalchemy import String, Text, ForeignKey, Index, CheckConstraint, DECIMAL, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from shiptrack.core.database import Base
from shiptrack.profit import calculate_profitability, round_money


# Inputs of the profitability formula
PROFIT_INPUT_FIELDS = (
    "product_cost",
    "amazon_price",
    "referral_fee_percent",
    "fulfillment_fee",
    "advertising_cost",
    "initial_investment",
)

DERIVED_FIELDS = ("estimated_profit", "roi_percentage", "profit_margin")


class Product(Base):
    """Catalog product with cost inputs and derived profitability."""

    __tablename__ = "products"

    # Foreign keys
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )
    supplier_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("suppliers.id", ondelete="SET NULL"),
        nullable=True
    )
    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True
    )

    # Product identification
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    asin: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    merchant_sku: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    manufacturer_code: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    amazon_barcode: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Cost inputs
    product_cost: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(12, 2), nullable=True)
    amazon_price: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(12, 2), nullable=True)
    referral_fee_percent: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(5, 2), nullable=True)
    fulfillment_fee: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(12, 2), nullable=True)
    advertising_cost: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(12, 2), nullable=True)
    initial_investment: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(12, 2), nullable=True)

    # Derived, never written directly
    estimated_profit: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(12, 2), nullable=True)
    roi_percentage: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(10, 2), nullable=True)
    profit_margin: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(10, 2), nullable=True)

    # Additional information
    image_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Indexes
    __table_args__ = (
        Index("idx_products_user_id", "user_id"),
        Index("idx_products_asin", "user_id", "asin"),
        Index("idx_products_merchant_sku", "user_id", "merchant_sku"),
        Index("idx_products_supplier", "supplier_id"),
        # CSV update matching needs at least one business key
        CheckConstraint("asin IS NOT NULL OR merchant_sku IS NOT NULL", name="business_key"),
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, asin={self.asin}, sku={self.merchant_sku}, name={self.name})>"

    def refresh_profitability(self) -> None:
        """Recompute the derived columns from the current cost inputs."""
        breakdown = calculate_profitability(
            cost=self.product_cost,
            price=self.amazon_price,
            referral_fee_percent=self.referral_fee_percent,
            fulfillment_fee=self.fulfillment_fee,
            advertising_cost=self.advertising_cost,
            initial_investment=self.initial_investment,
        )
        self.estimated_profit = round_money(breakdown.estimated_profit)
        self.roi_percentage = round_money(breakdown.roi_percentage)
        self.profit_margin = round_money(breakdown.profit_margin)
