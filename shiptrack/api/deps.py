"""
Shared API dependencies.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, TypeVar
import uuid

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from shiptrack.core.config import settings
from shiptrack.core.database import get_db
from shiptrack.error_handlers import (
    AppException,
    ResourceConflictError,
    ResourceNotFoundError,
    StorageUnavailableError,
)
from shiptrack.query import DEFAULT_SORT_DIRECTION, DEFAULT_SORT_FIELD, ProductQuery, build_product_query
from shiptrack.repository import SqlProductStore, StorageErrorKind, StorageResult
from shiptrack.schemas.filters import ProductFilters

T = TypeVar("T")


async def get_product_store(db: AsyncSession = Depends(get_db)) -> SqlProductStore:
    """A store bound to this request's session."""
    return SqlProductStore(db)


def unwrap(result: StorageResult[T], resource: str = "Product", identifier=None) -> T:
    """Value of an ok result, or the matching HTTP error."""
    if result.ok:
        return result.value
    error = result.error
    if error.kind is StorageErrorKind.NOT_FOUND:
        raise ResourceNotFoundError(resource, identifier if identifier is not None else "")
    if error.kind is StorageErrorKind.CONFLICT:
        raise ResourceConflictError(resource, error.message)
    raise StorageUnavailableError(error.message)


def _range(lo, hi) -> Optional[dict]:
    if lo is None and hi is None:
        return None
    return {"min": lo, "max": hi}


def get_product_filters(
    search: Optional[str] = Query(None, description="Name, ASIN, SKU or supplier name"),
    supplier_id: Optional[uuid.UUID] = None,
    category_id: Optional[uuid.UUID] = None,
    cost_min: Optional[Decimal] = Query(None, ge=0),
    cost_max: Optional[Decimal] = Query(None, ge=0),
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    profit_min: Optional[Decimal] = None,
    profit_max: Optional[Decimal] = None,
    roi_min: Optional[Decimal] = None,
    roi_max: Optional[Decimal] = None,
) -> ProductFilters:
    date_range = None
    if date_from is not None or date_to is not None:
        date_range = {"start": date_from, "end": date_to}
    return ProductFilters(
        search=search,
        supplier_id=supplier_id,
        category_id=category_id,
        cost_range=_range(cost_min, cost_max),
        date_range=date_range,
        profit_range=_range(profit_min, profit_max),
        roi_range=_range(roi_min, roi_max),
    )


def get_product_query(
    filters: ProductFilters = Depends(get_product_filters),
    sort_by: str = Query(DEFAULT_SORT_FIELD),
    sort_order: str = Query(DEFAULT_SORT_DIRECTION, pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
) -> ProductQuery:
    try:
        return build_product_query(filters, sort_by, sort_order, page, page_size)
    except ValueError as e:
        raise AppException(str(e), status_code=400, details={"sort_by": sort_by})
