"""
Products API endpoints: catalog listing, CRUD, CSV import/export and bulk edits.
"""
import uuid
from fastapi import APIRouter, Depends, File, Query, Request, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from shiptrack.api.deps import get_product_query, get_product_store, unwrap
from shiptrack.bulk import BulkMutationExecutor, deletes, updates
from shiptrack.catalog import CatalogReader, CatalogRecord
from shiptrack.core.config import settings
from shiptrack.core.database import get_db
from shiptrack.core.security import OwnerScope, get_owner_scope
from shiptrack.error_handlers import ImportFileError
from shiptrack.logging_config import get_logger
from shiptrack.middleware import IMPORT_RATE_LIMIT, limiter
from shiptrack.parsers import CsvFormatError, export_products, template
from shiptrack.query import ProductQuery
from shiptrack.reconcile import ImportMode, import_catalog_csv
from shiptrack.reports import build_report
from shiptrack.repository import SqlProductStore, load_suppliers
from shiptrack.schemas.product import (
    BatchResult,
    ProductBulkDelete,
    ProductBulkUpdate,
    ProductCreate,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
    ProfitabilityReport,
)

logger = get_logger("api.products")

router = APIRouter(prefix="/products", tags=["Products"])

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def _response(record: CatalogRecord) -> ProductResponse:
    return ProductResponse.model_validate(record.as_dict())


def _csv(body: str, filename: str) -> Response:
    return Response(
        content=body.encode("utf-8"),
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.get("", response_model=ProductListResponse)
async def list_products(
    query: ProductQuery = Depends(get_product_query),
    scope: OwnerScope = Depends(get_owner_scope),
    store: SqlProductStore = Depends(get_product_store)
):
    """
    List products with filtering, sorting and pagination.

    - **search**: Name, ASIN, merchant SKU or supplier name (2+ characters)
    - **supplier_id** / **category_id**: Exact match
    - **cost_min** / **cost_max**, **profit_min** / **profit_max**, **roi_min** / **roi_max**: Inclusive ranges
    - **date_from** / **date_to**: Creation time range
    - **sort_by** / **sort_order**: Any product attribute, asc or desc
    - **page** / **page_size**: 1-based page window
    """
    page = unwrap(await CatalogReader(store).execute(query, scope))
    return ProductListResponse(
        items=[_response(r) for r in page.records],
        total=page.total_count,
        page=page.page,
        page_size=page.page_size,
        pages=page.total_pages
    )


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    scope: OwnerScope = Depends(get_owner_scope),
    store: SqlProductStore = Depends(get_product_store)
):
    """Create a product. Profit, ROI and margin are computed from the cost fields."""
    product = unwrap(await store.create(scope.user_id, product_data.model_dump(exclude_unset=True)))
    record = unwrap(await CatalogReader(store).get(product.id, scope), identifier=product.id)
    logger.info(f"Product {product.id} created by user {scope.user_id}")
    return _response(record)


@router.get("/import/template")
async def download_import_template(scope: OwnerScope = Depends(get_owner_scope)):
    """CSV template: header row plus one sample product."""
    return _csv(template(), "products_template.csv")


@router.get("/export")
async def export_catalog(
    query: ProductQuery = Depends(get_product_query),
    scope: OwnerScope = Depends(get_owner_scope),
    store: SqlProductStore = Depends(get_product_store)
):
    """
    Export the caller's matching products in the import layout (page window ignored).

    Admins get their own catalog too: imports match against it, so the
    file must re-import cleanly.
    """
    records = unwrap(await CatalogReader(store).read_all(query, scope.own()))
    return _csv(export_products(r.as_dict() for r in records), "products.csv")


@router.post("/import", response_model=BatchResult)
@limiter.limit(IMPORT_RATE_LIMIT)
async def import_catalog(
    request: Request,
    file: UploadFile = File(...),
    mode: ImportMode = Query(ImportMode.CREATE),
    scope: OwnerScope = Depends(get_owner_scope),
    store: SqlProductStore = Depends(get_product_store),
    db: AsyncSession = Depends(get_db)
):
    """
    Import products from CSV.

    - **create**: every valid row becomes a new product
    - **update**: rows are matched to existing products by ASIN, then merchant SKU

    Always returns both counts and the full error list.
    """
    contents = await file.read()
    if len(contents) > settings.csv_max_upload_size:
        raise ImportFileError(
            f"File exceeds maximum upload size of {settings.csv_max_upload_size} bytes",
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            filename=file.filename
        )

    suppliers = await load_suppliers(db, scope.user_id)
    try:
        result = await import_catalog_csv(
            store, contents, mode, scope, suppliers, encoding=settings.csv_encoding
        )
    except CsvFormatError as e:
        raise ImportFileError(str(e), filename=file.filename)

    ledger = unwrap(result)
    logger.info(
        f"CSV import ({mode.value}) by user {scope.user_id}: "
        f"{ledger.success} succeeded, {ledger.failed} failed"
    )
    return ledger


@router.post("/bulk-update", response_model=BatchResult)
async def bulk_update_products(
    request_data: ProductBulkUpdate,
    scope: OwnerScope = Depends(get_owner_scope),
    store: SqlProductStore = Depends(get_product_store)
):
    """Apply the same changes to every selected product; failures are per item."""
    changes = request_data.changes.model_dump(exclude_unset=True)
    outcome = await BulkMutationExecutor(store).run(updates(request_data.ids, changes), scope)
    return BatchResult(
        success=outcome.success_count,
        failed=outcome.failure_count,
        errors=[str(f) for f in outcome.failures]
    )


@router.post("/bulk-delete", response_model=BatchResult)
async def bulk_delete_products(
    request_data: ProductBulkDelete,
    scope: OwnerScope = Depends(get_owner_scope),
    store: SqlProductStore = Depends(get_product_store)
):
    outcome = await BulkMutationExecutor(store).run(deletes(request_data.ids), scope)
    return BatchResult(
        success=outcome.success_count,
        failed=outcome.failure_count,
        errors=[str(f) for f in outcome.failures]
    )


@router.get("/profitability", response_model=ProfitabilityReport)
async def profitability_report(
    query: ProductQuery = Depends(get_product_query),
    scope: OwnerScope = Depends(get_owner_scope),
    store: SqlProductStore = Depends(get_product_store)
):
    """Per-product cost breakdown and portfolio totals over every matching product."""
    records = unwrap(await CatalogReader(store).read_all(query, scope))
    return build_report(records)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: uuid.UUID,
    scope: OwnerScope = Depends(get_owner_scope),
    store: SqlProductStore = Depends(get_product_store)
):
    record = unwrap(await CatalogReader(store).get(product_id, scope), identifier=product_id)
    return _response(record)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: uuid.UUID,
    product_data: ProductUpdate,
    scope: OwnerScope = Depends(get_owner_scope),
    store: SqlProductStore = Depends(get_product_store)
):
    """Update only the provided fields; derived values are recomputed."""
    unwrap(
        await store.update(product_id, product_data.model_dump(exclude_unset=True), scope),
        identifier=product_id
    )
    record = unwrap(await CatalogReader(store).get(product_id, scope), identifier=product_id)
    return _response(record)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: uuid.UUID,
    scope: OwnerScope = Depends(get_owner_scope),
    store: SqlProductStore = Depends(get_product_store)
):
    unwrap(await store.delete(product_id, scope), identifier=product_id)
    logger.info(f"Product {product_id} deleted by user {scope.user_id}")
