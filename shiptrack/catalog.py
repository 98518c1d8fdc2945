"""
Paginated catalog reader.

Runs a ``ProductQuery`` against a ``ProductStore`` under the caller's
ownership scope and returns one page of display records with the total
count. Each call is a single attempt; retry policy belongs to the caller.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from shiptrack.core.security import OwnerScope
from shiptrack.logging_config import get_logger
from shiptrack.models.product import Product
from shiptrack.profit import calculate_profitability, round_money
from shiptrack.query import ProductQuery, owner_predicate, total_pages
from shiptrack.repository import ProductRow, ProductStore, StorageResult

logger = get_logger("catalog")


@dataclass(frozen=True)
class CatalogRecord:
    """A product with read-only supplier/category projections."""
    product: Product
    supplier_name: Optional[str] = None
    supplier_country: Optional[str] = None
    category_name: Optional[str] = None
    category_color: Optional[str] = None
    category_icon: Optional[str] = None

    @classmethod
    def from_row(cls, row: ProductRow) -> "CatalogRecord":
        return cls(
            product=row.product,
            supplier_name=row.supplier_name,
            supplier_country=row.supplier_country,
            category_name=row.category_name,
            category_color=row.category_color,
            category_icon=row.category_icon,
        )

    def _derived(self) -> dict[str, Optional[Decimal]]:
        p = self.product
        stored = {
            "estimated_profit": p.estimated_profit,
            "roi_percentage": p.roi_percentage,
            "profit_margin": p.profit_margin,
        }
        if all(v is not None for v in stored.values()):
            return stored

        # Rows written before derived columns existed; compute for display only
        breakdown = calculate_profitability(
            cost=p.product_cost,
            price=p.amazon_price,
            referral_fee_percent=p.referral_fee_percent,
            fulfillment_fee=p.fulfillment_fee,
            advertising_cost=p.advertising_cost,
            initial_investment=p.initial_investment,
        )
        return {
            "estimated_profit": round_money(breakdown.estimated_profit),
            "roi_percentage": round_money(breakdown.roi_percentage),
            "profit_margin": round_money(breakdown.profit_margin),
        }

    def as_dict(self) -> dict[str, Any]:
        p = self.product
        data = {
            "id": p.id,
            "user_id": p.user_id,
            "supplier_id": p.supplier_id,
            "category_id": p.category_id,
            "name": p.name,
            "asin": p.asin,
            "merchant_sku": p.merchant_sku,
            "manufacturer_code": p.manufacturer_code,
            "amazon_barcode": p.amazon_barcode,
            "product_cost": p.product_cost,
            "amazon_price": p.amazon_price,
            "referral_fee_percent": p.referral_fee_percent,
            "fulfillment_fee": p.fulfillment_fee,
            "advertising_cost": p.advertising_cost,
            "initial_investment": p.initial_investment,
            "image_url": p.image_url,
            "notes": p.notes,
            "created_at": p.created_at,
            "updated_at": p.updated_at,
            "supplier_name": self.supplier_name,
            "supplier_country": self.supplier_country,
            "category_name": self.category_name,
            "category_color": self.category_color,
            "category_icon": self.category_icon,
        }
        data.update(self._derived())
        return data


@dataclass(frozen=True)
class CatalogPage:
    records: list[CatalogRecord]
    total_count: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return total_pages(self.total_count, self.page_size)


def scope_query(query: ProductQuery, scope: OwnerScope) -> ProductQuery:
    """Restrict to the caller's own products unless they are an admin."""
    if scope.is_admin:
        return query
    return query.where(owner_predicate(scope.user_id))


class CatalogReader:
    def __init__(self, store: ProductStore):
        self.store = store

    async def execute(self, query: ProductQuery, scope: OwnerScope) -> StorageResult[CatalogPage]:
        """
        Fetch one page.

        Filters, then sort, then the offset window are applied in that order
        by the store. A page past the end is an empty page, not an error.
        """
        scoped = scope_query(query, scope)
        result = await self.store.fetch(scoped)
        if not result.ok:
            logger.warning(f"Catalog read failed for user {scope.user_id}: {result.error}")
            return StorageResult(error=result.error)

        page = CatalogPage(
            records=[CatalogRecord.from_row(row) for row in result.value.rows],
            total_count=result.value.total_count,
            page=query.page,
            page_size=query.page_size,
        )
        logger.debug(
            f"Catalog page {page.page} ({len(page.records)}/{page.total_count}) "
            f"for user {scope.user_id}, admin={scope.is_admin}"
        )
        return StorageResult.success(page)

    async def get(self, product_id, scope: OwnerScope) -> StorageResult[CatalogRecord]:
        result = await self.store.get(product_id, scope)
        if not result.ok:
            return StorageResult(error=result.error)
        return StorageResult.success(CatalogRecord.from_row(result.value))

    async def read_all(self, query: ProductQuery, scope: OwnerScope) -> StorageResult[list[CatalogRecord]]:
        """All matching records in query order; used by export and reports."""
        result = await self.execute(query.unpaged(), scope)
        if not result.ok:
            return StorageResult(error=result.error)
        return StorageResult.success(result.value.records)
