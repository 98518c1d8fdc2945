"""
Storage boundary for the product catalog.

``ProductStore`` is the contract the catalog reader, reconciliation and
bulk executor depend on. ``SqlProductStore`` implements it on an async
SQLAlchemy session. Backend exceptions are converted to ``StorageResult``
failures here and nowhere else.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, Protocol, Sequence, TypeVar
import uuid

from sqlalchemy import Select, and_, asc, desc, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shiptrack.core.security import OwnerScope
from shiptrack.logging_config import get_logger
from shiptrack.models.product import Product
from shiptrack.models.supplier import Category, Supplier
from shiptrack.query import Between, Equals, Predicate, ProductQuery, SearchAny

logger = get_logger("repository")

T = TypeVar("T")


class StorageErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    BACKEND = "backend"


@dataclass(frozen=True)
class StorageError:
    kind: StorageErrorKind
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class StorageResult(Generic[T]):
    """Either ``ok`` with a value or a failure carrying a StorageError."""
    value: Optional[T] = None
    error: Optional[StorageError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T = None) -> "StorageResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: StorageErrorKind, message: str) -> "StorageResult[T]":
        return cls(error=StorageError(kind, message))


@dataclass(frozen=True)
class ProductRow:
    """A product plus the joined supplier/category display columns."""
    product: Product
    supplier_name: Optional[str] = None
    supplier_country: Optional[str] = None
    category_name: Optional[str] = None
    category_color: Optional[str] = None
    category_icon: Optional[str] = None


@dataclass(frozen=True)
class RowPage:
    rows: list[ProductRow]
    total_count: int


class ProductStore(Protocol):
    """Queryable product collection with point mutations by id."""

    async def fetch(self, query: ProductQuery) -> StorageResult[RowPage]: ...

    async def get(self, product_id: uuid.UUID, scope: OwnerScope) -> StorageResult[ProductRow]: ...

    async def snapshot(self, owner_id: uuid.UUID) -> StorageResult[list[Product]]: ...

    async def create(self, owner_id: uuid.UUID, payload: dict[str, Any]) -> StorageResult[Product]: ...

    async def update(
        self, product_id: uuid.UUID, changes: dict[str, Any], scope: OwnerScope
    ) -> StorageResult[Product]: ...

    async def delete(self, product_id: uuid.UUID, scope: OwnerScope) -> StorageResult[None]: ...


# Columns a predicate or sort may reference
_COLUMNS = {
    "user_id": Product.user_id,
    "supplier_id": Product.supplier_id,
    "category_id": Product.category_id,
    "name": Product.name,
    "asin": Product.asin,
    "merchant_sku": Product.merchant_sku,
    "manufacturer_code": Product.manufacturer_code,
    "product_cost": Product.product_cost,
    "amazon_price": Product.amazon_price,
    "referral_fee_percent": Product.referral_fee_percent,
    "fulfillment_fee": Product.fulfillment_fee,
    "advertising_cost": Product.advertising_cost,
    "initial_investment": Product.initial_investment,
    "estimated_profit": Product.estimated_profit,
    "roi_percentage": Product.roi_percentage,
    "profit_margin": Product.profit_margin,
    "created_at": Product.created_at,
    "updated_at": Product.updated_at,
    "supplier.name": Supplier.name,
}

# Fields a caller may write; everything else (ids, owner, derived) is ignored
WRITABLE_FIELDS = frozenset({
    "name", "asin", "merchant_sku", "manufacturer_code", "amazon_barcode",
    "product_cost", "amazon_price", "referral_fee_percent", "fulfillment_fee",
    "advertising_cost", "initial_investment", "supplier_id", "category_id",
    "image_url", "notes",
})


def escape_like(term: str) -> str:
    """Make % and _ literal in an ILIKE pattern (used with escape="\\")."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _compile_predicate(predicate: Predicate):
    if isinstance(predicate, Equals):
        return _COLUMNS[predicate.field] == predicate.value
    if isinstance(predicate, Between):
        column = _COLUMNS[predicate.field]
        clauses = []
        if predicate.lower is not None:
            clauses.append(column >= predicate.lower)
        if predicate.upper is not None:
            clauses.append(column <= predicate.upper)
        return and_(*clauses) if clauses else None
    if isinstance(predicate, SearchAny):
        pattern = f"%{escape_like(predicate.term)}%"
        return or_(*(_COLUMNS[f].ilike(pattern, escape="\\") for f in predicate.fields))
    raise TypeError(f"Unsupported predicate: {predicate!r}")


def _base_select() -> Select:
    return (
        select(
            Product,
            Supplier.name,
            Supplier.country,
            Category.name,
            Category.color,
            Category.icon,
        )
        .outerjoin(Supplier, Product.supplier_id == Supplier.id)
        .outerjoin(Category, Product.category_id == Category.id)
    )


def _scoped(stmt, scope: OwnerScope):
    if scope.is_admin:
        return stmt
    return stmt.where(Product.user_id == scope.user_id)


def _clean_payload(payload: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in payload.items() if k in WRITABLE_FIELDS}


def _backend_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


class SqlProductStore:
    """ProductStore on an AsyncSession. Each mutation commits on its own."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _fail(self, exc: SQLAlchemyError, action: str) -> StorageResult:
        await self.session.rollback()
        message = _backend_message(exc)
        logger.error(f"[STORAGE] {action} failed: {message}")
        if isinstance(exc, IntegrityError):
            return StorageResult.failure(StorageErrorKind.CONFLICT, message)
        return StorageResult.failure(StorageErrorKind.BACKEND, message)

    async def fetch(self, query: ProductQuery) -> StorageResult[RowPage]:
        stmt = _base_select()
        for predicate in query.predicates:
            clause = _compile_predicate(predicate)
            if clause is not None:
                stmt = stmt.where(clause)

        count_stmt = select(func.count()).select_from(stmt.subquery())

        order = asc if query.sort_direction == "asc" else desc
        # id as tie-breaker keeps windows disjoint across pages
        stmt = stmt.order_by(order(_COLUMNS[query.sort_field]), Product.id.asc())
        if query.is_paged:
            stmt = stmt.offset(query.offset).limit(query.limit)

        try:
            total = (await self.session.execute(count_stmt)).scalar_one()
            result = await self.session.execute(stmt)
            rows = [ProductRow(*row) for row in result.all()]
        except SQLAlchemyError as exc:
            return await self._fail(exc, "fetch")

        return StorageResult.success(RowPage(rows=rows, total_count=total))

    async def get(self, product_id: uuid.UUID, scope: OwnerScope) -> StorageResult[ProductRow]:
        stmt = _scoped(_base_select().where(Product.id == product_id), scope)
        try:
            row = (await self.session.execute(stmt)).first()
        except SQLAlchemyError as exc:
            return await self._fail(exc, "get")

        if row is None:
            return StorageResult.failure(StorageErrorKind.NOT_FOUND, f"Product {product_id} not found")
        return StorageResult.success(ProductRow(*row))

    async def snapshot(self, owner_id: uuid.UUID) -> StorageResult[list[Product]]:
        """Point-in-time read of one owner's catalog, used for key matching."""
        stmt = select(Product).where(Product.user_id == owner_id).order_by(Product.created_at, Product.id)
        try:
            products = list((await self.session.execute(stmt)).scalars().all())
        except SQLAlchemyError as exc:
            return await self._fail(exc, "snapshot")
        return StorageResult.success(products)

    async def create(self, owner_id: uuid.UUID, payload: dict[str, Any]) -> StorageResult[Product]:
        product = Product(user_id=owner_id, **_clean_payload(payload))
        product.refresh_profitability()
        self.session.add(product)
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            return await self._fail(exc, "create")
        return StorageResult.success(product)

    async def _load(self, product_id: uuid.UUID, scope: OwnerScope) -> StorageResult[Product]:
        stmt = _scoped(select(Product).where(Product.id == product_id), scope)
        try:
            product = (await self.session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as exc:
            return await self._fail(exc, "load")
        if product is None:
            return StorageResult.failure(StorageErrorKind.NOT_FOUND, f"Product {product_id} not found")
        return StorageResult.success(product)

    async def update(
        self, product_id: uuid.UUID, changes: dict[str, Any], scope: OwnerScope
    ) -> StorageResult[Product]:
        loaded = await self._load(product_id, scope)
        if not loaded.ok:
            return loaded

        product = loaded.value
        for field_name, value in _clean_payload(changes).items():
            setattr(product, field_name, value)
        product.refresh_profitability()

        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            return await self._fail(exc, "update")
        return StorageResult.success(product)

    async def delete(self, product_id: uuid.UUID, scope: OwnerScope) -> StorageResult[None]:
        loaded = await self._load(product_id, scope)
        if not loaded.ok:
            return loaded

        await self.session.delete(loaded.value)
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            return await self._fail(exc, "delete")
        return StorageResult.success(None)


async def load_suppliers(session: AsyncSession, owner_id: uuid.UUID) -> Sequence[Supplier]:
    result = await session.execute(
        select(Supplier).where(Supplier.user_id == owner_id).order_by(Supplier.name)
    )
    return result.scalars().all()
