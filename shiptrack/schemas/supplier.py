"""
Pydantic schemas for Supplier and Category models.
"""
from typing import Optional
from datetime import datetime
import uuid
from pydantic import BaseModel, Field, ConfigDict, field_validator


def _name_not_null(value: Optional[str]) -> Optional[str]:
    # Runs only for values the client sent; omitted names stay unchanged
    if value is None:
        raise ValueError("name cannot be null")
    return value


class SupplierBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    company_name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    country: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class SupplierCreate(SupplierBase):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")


class SupplierUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    company_name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    country: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None

    _name = field_validator("name")(_name_not_null)


class SupplierResponse(SupplierBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class CategoryBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)
    icon: Optional[str] = Field(None, max_length=50)


class CategoryCreate(CategoryBase):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")


class CategoryUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)
    icon: Optional[str] = Field(None, max_length=50)

    _name = field_validator("name")(_name_not_null)


class CategoryResponse(CategoryBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
