"""
Dashboard API endpoints: headline totals and the shipment report.
"""
from datetime import datetime, timezone
from decimal import Decimal
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from shiptrack.api.v1.shipments import apply_shipment_filters, get_shipment_filters, owned_shipments
from shiptrack.core.database import get_db
from shiptrack.core.security import OwnerScope, get_owner_scope
from shiptrack.models.product import Product
from shiptrack.models.shipment import Shipment, ShipmentItem
from shiptrack.reports import build_shipment_report
from shiptrack.schemas.dashboard import DashboardStats, ShipmentReport
from shiptrack.schemas.filters import ShipmentFilters

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    scope: OwnerScope = Depends(get_owner_scope),
    db: AsyncSession = Depends(get_db)
):
    """
    Headline metrics for the caller's account.

    Returns product and shipment counts, total shipped quantity and total shipping cost.
    """
    products_query = select(func.count(Product.id))
    shipments_query = select(
        func.count(Shipment.id),
        func.coalesce(func.sum(Shipment.total_shipping_cost), 0)
    )
    quantity_query = (
        select(func.coalesce(func.sum(ShipmentItem.quantity), 0))
        .join(Shipment, ShipmentItem.shipment_id == Shipment.id)
    )

    if not scope.is_admin:
        products_query = products_query.where(Product.user_id == scope.user_id)
        shipments_query = shipments_query.where(Shipment.user_id == scope.user_id)
        quantity_query = quantity_query.where(Shipment.user_id == scope.user_id)

    total_products = (await db.execute(products_query)).scalar() or 0
    total_shipments, total_cost = (await db.execute(shipments_query)).one()
    total_quantity = (await db.execute(quantity_query)).scalar() or 0

    return DashboardStats(
        total_products=total_products,
        total_shipments=total_shipments or 0,
        total_shipped_quantity=int(total_quantity),
        total_shipping_cost=Decimal(str(total_cost or 0)).quantize(Decimal("0.01")),
        last_updated=datetime.now(timezone.utc)
    )


@router.get("/reports", response_model=ShipmentReport)
async def get_shipment_report(
    filters: ShipmentFilters = Depends(get_shipment_filters),
    scope: OwnerScope = Depends(get_owner_scope),
    db: AsyncSession = Depends(get_db)
):
    """
    Shipment report over a date range.

    - **date_from** / **date_to**: Inclusive shipment-date range
    - **carrier** / **status**: Optional exact filters

    Monthly counts and cost trend, carrier distribution and status
    distribution (completed vs draft).
    """
    query = apply_shipment_filters(owned_shipments(select(Shipment), scope), filters)
    shipments = (await db.execute(query)).scalars().all()
    date_range = filters.date_range
    return build_shipment_report(
        shipments,
        date_from=date_range.start if date_range else None,
        date_to=date_range.end if date_range else None,
    )
