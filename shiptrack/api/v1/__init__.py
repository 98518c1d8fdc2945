"""API v1 Router."""
from fastapi import APIRouter

from shiptrack.api.v1 import products, suppliers, shipments, dashboard, insights

api_router = APIRouter(prefix="/api/v1")

# Include all route modules
api_router.include_router(products.router)
api_router.include_router(suppliers.suppliers_router)
api_router.include_router(suppliers.categories_router)
api_router.include_router(shipments.router)
api_router.include_router(dashboard.router)
api_router.include_router(insights.router)

__all__ = ["api_router"]
