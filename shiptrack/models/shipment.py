"""
Shipment models for tracking inbound FBA shipments.
"""
from typing import Optional
import uuid
from datetime import date
from decimal import Decimal
from sqlalchemy import String, Text, Integer, Boolean, Date, ForeignKey, Index, CheckConstraint, DECIMAL, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shiptrack.core.database import Base


class Shipment(Base):
    """A shipment sent to the marketplace warehouse."""

    __tablename__ = "shipments"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )

    fba_shipment_id: Mapped[str] = mapped_column(String(100), nullable=False)
    shipment_date: Mapped[date] = mapped_column(Date, nullable=False)
    carrier_company: Mapped[str] = mapped_column(String(255), nullable=False)
    total_shipping_cost: Mapped[Decimal] = mapped_column(DECIMAL(12, 2), default=Decimal("0"), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    items = relationship(
        "ShipmentItem",
        back_populates="shipment",
        cascade="all, delete-orphan",
        order_by="ShipmentItem.created_at"
    )

    __table_args__ = (
        Index("idx_shipments_user_id", "user_id"),
        Index("idx_shipments_date", "user_id", "shipment_date"),
        CheckConstraint(
            "status IN ('pending', 'in_transit', 'delivered', 'cancelled')",
            name="status"
        ),
    )

    def __repr__(self) -> str:
        return f"<Shipment(id={self.id}, fba_shipment_id={self.fba_shipment_id}, status={self.status})>"

    @property
    def display_status(self) -> str:
        """Two-state status used by the listing screens."""
        return "completed" if self.status == "delivered" else "draft"


class ShipmentItem(Base):
    """One product line inside a shipment."""

    __tablename__ = "shipment_items"

    shipment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("shipments.id", ondelete="CASCADE"),
        nullable=False
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_shipping_cost: Mapped[Decimal] = mapped_column(DECIMAL(12, 2), default=Decimal("0"), nullable=False)
    barcode_scanned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    shipment = relationship("Shipment", back_populates="items")
    product = relationship("Product")

    __table_args__ = (
        Index("idx_shipment_items_shipment", "shipment_id"),
        CheckConstraint("quantity > 0", name="quantity_positive"),
    )

    def __repr__(self) -> str:
        return f"<ShipmentItem(id={self.id}, product_id={self.product_id}, quantity={self.quantity})>"
