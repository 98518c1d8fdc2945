"""
Local mirror of identity-provider accounts.

Rows are keyed by the token's ``sub`` claim; the provider owns passwords
and sign-in, so nothing here is a credential.
"""
from typing import Optional

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from shiptrack.core.database import Base


class User(Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(255))
    # Seller's storefront name as registered with the provider
    company_name: Mapped[Optional[str]] = mapped_column(String(255))

    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<User {self.email} admin={self.is_admin}>"
