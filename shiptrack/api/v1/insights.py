"""
AI insight endpoints.
"""
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, Request

from shiptrack.api.deps import get_product_query, get_product_store, unwrap
from shiptrack.catalog import CatalogReader
from shiptrack.core.security import OwnerScope, get_owner_scope
from shiptrack.insights import PRODUCT_TOPIC, generate_product_insights
from shiptrack.query import ProductQuery
from shiptrack.reports import build_report
from shiptrack.repository import SqlProductStore
from shiptrack.schemas.dashboard import InsightResponse

router = APIRouter(prefix="/insights", tags=["Insights"])


@router.post("/products", response_model=InsightResponse)
async def product_insights(
    request: Request,
    query: ProductQuery = Depends(get_product_query),
    scope: OwnerScope = Depends(get_owner_scope),
    store: SqlProductStore = Depends(get_product_store)
):
    """Narrative analysis of the caller's product portfolio. Returns 503 without a provider."""
    records = unwrap(await CatalogReader(store).read_all(query, scope))
    provider = getattr(request.app.state, "insight_provider", None)
    content = await generate_product_insights(provider, build_report(records))
    return InsightResponse(
        topic=PRODUCT_TOPIC,
        content=content,
        generated_at=datetime.now(timezone.utc)
    )
