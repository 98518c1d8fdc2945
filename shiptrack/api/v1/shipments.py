"""
Shipments API endpoints.
"""
from typing import Optional
from datetime import date
import uuid
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload

from shiptrack.core.config import settings
from shiptrack.core.database import get_db
from shiptrack.core.security import OwnerScope, get_owner_scope
from shiptrack.error_handlers import AppException, ResourceNotFoundError
from shiptrack.logging_config import get_logger
from shiptrack.models.product import Product
from shiptrack.models.shipment import Shipment, ShipmentItem
from shiptrack.query import normalize_search, total_pages
from shiptrack.repository import escape_like
from shiptrack.schemas.filters import ShipmentFilters, ShipmentStatus
from shiptrack.schemas.shipment import (
    ShipmentCreate,
    ShipmentUpdate,
    ShipmentResponse,
    ShipmentWithItems,
    ShipmentListResponse
)

logger = get_logger("api.shipments")

router = APIRouter(prefix="/shipments", tags=["Shipments"])


def get_shipment_filters(
    search: Optional[str] = Query(None, description="FBA shipment id or carrier"),
    carrier: Optional[str] = None,
    status: Optional[ShipmentStatus] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> ShipmentFilters:
    date_range = None
    if date_from is not None or date_to is not None:
        if date_from and date_to and date_from > date_to:
            raise AppException("date_from must not be after date_to", status_code=400)
        date_range = {"start": date_from, "end": date_to}
    return ShipmentFilters(search=search, carrier=carrier, status=status, date_range=date_range)


def apply_shipment_filters(query, filters: ShipmentFilters):
    term = normalize_search(filters.search)
    if term:
        pattern = f"%{escape_like(term)}%"
        query = query.where(
            or_(
                Shipment.fba_shipment_id.ilike(pattern, escape="\\"),
                Shipment.carrier_company.ilike(pattern, escape="\\")
            )
        )
    if filters.carrier:
        query = query.where(Shipment.carrier_company == filters.carrier)
    if filters.status:
        query = query.where(Shipment.status == filters.status)
    if filters.date_range:
        if filters.date_range.start:
            query = query.where(Shipment.shipment_date >= filters.date_range.start)
        if filters.date_range.end:
            query = query.where(Shipment.shipment_date <= filters.date_range.end)
    return query


def owned_shipments(query, scope: OwnerScope):
    if scope.is_admin:
        return query
    return query.where(Shipment.user_id == scope.user_id)


async def _load_with_items(db: AsyncSession, shipment_id: uuid.UUID, scope: OwnerScope) -> Shipment:
    query = owned_shipments(
        select(Shipment)
        .where(Shipment.id == shipment_id)
        .options(selectinload(Shipment.items).selectinload(ShipmentItem.product))
        .execution_options(populate_existing=True),
        scope
    )
    shipment = (await db.execute(query)).scalar_one_or_none()
    if shipment is None:
        raise ResourceNotFoundError("Shipment", shipment_id)
    return shipment


@router.get("", response_model=ShipmentListResponse)
async def list_shipments(
    filters: ShipmentFilters = Depends(get_shipment_filters),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    scope: OwnerScope = Depends(get_owner_scope),
    db: AsyncSession = Depends(get_db)
):
    """List shipments, newest shipment date first."""
    query = apply_shipment_filters(owned_shipments(select(Shipment), scope), filters)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

    query = query.order_by(Shipment.shipment_date.desc(), Shipment.id)
    query = query.offset((page - 1) * page_size).limit(page_size)
    shipments = (await db.execute(query)).scalars().all()

    return ShipmentListResponse(
        items=[ShipmentResponse.model_validate(s) for s in shipments],
        total=total,
        page=page,
        page_size=page_size,
        pages=total_pages(total, page_size)
    )


@router.get("/{shipment_id}", response_model=ShipmentWithItems)
async def get_shipment(
    shipment_id: uuid.UUID,
    scope: OwnerScope = Depends(get_owner_scope),
    db: AsyncSession = Depends(get_db)
):
    return await _load_with_items(db, shipment_id, scope)


@router.post("", response_model=ShipmentWithItems, status_code=status.HTTP_201_CREATED)
async def create_shipment(
    shipment_data: ShipmentCreate,
    scope: OwnerScope = Depends(get_owner_scope),
    db: AsyncSession = Depends(get_db)
):
    """Create a shipment together with its items. Every product must belong to the caller."""
    product_ids = {item.product_id for item in shipment_data.items}
    owned = await db.execute(
        select(Product.id).where(Product.id.in_(product_ids), Product.user_id == scope.user_id)
    )
    missing = product_ids - set(owned.scalars().all())
    if missing:
        raise ResourceNotFoundError("Product", ", ".join(sorted(str(m) for m in missing)))

    shipment = Shipment(
        user_id=scope.user_id,
        **shipment_data.model_dump(exclude={"items"}),
        items=[ShipmentItem(**item.model_dump()) for item in shipment_data.items]
    )
    db.add(shipment)
    await db.commit()
    logger.info(f"Shipment {shipment.id} created with {len(shipment_data.items)} items")

    return await _load_with_items(db, shipment.id, scope)


@router.put("/{shipment_id}", response_model=ShipmentResponse)
async def update_shipment(
    shipment_id: uuid.UUID,
    shipment_data: ShipmentUpdate,
    scope: OwnerScope = Depends(get_owner_scope),
    db: AsyncSession = Depends(get_db)
):
    shipment = await _load_with_items(db, shipment_id, scope)
    for field, value in shipment_data.model_dump(exclude_unset=True).items():
        setattr(shipment, field, value)
    await db.commit()
    return shipment


@router.delete("/{shipment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shipment(
    shipment_id: uuid.UUID,
    scope: OwnerScope = Depends(get_owner_scope),
    db: AsyncSession = Depends(get_db)
):
    """Delete a shipment and all of its items."""
    shipment = await _load_with_items(db, shipment_id, scope)
    await db.delete(shipment)
    await db.commit()
    logger.info(f"Shipment {shipment_id} deleted")
