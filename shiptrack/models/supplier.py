"""
Supplier and category models referenced by products.
"""
from typing import Optional
import uuid
from sqlalchemy import String, Text, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from shiptrack.core.database import Base


class Supplier(Base):
    """Where products are sourced from."""

    __tablename__ = "suppliers"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    company_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_suppliers_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Supplier(id={self.id}, name={self.name})>"


class Category(Base):
    """User-defined product grouping with display color and icon."""

    __tablename__ = "categories"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    color: Mapped[Optional[str]] = mapped_column(String(7), nullable=True)
    icon: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    __table_args__ = (
        Index("idx_categories_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name={self.name})>"
