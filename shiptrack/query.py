"""
Query descriptors for the product listing.

Turns the listing's filter, sort and page state into a ``ProductQuery``:
a backend-agnostic list of predicates plus ordering and a page window.
Nothing here touches storage.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Literal, Optional, Union, get_args
import uuid

from shiptrack.schemas.filters import ProductFilters, NumericRange, DateRange

MIN_SEARCH_LENGTH = 2

SortDirection = Literal["asc", "desc"]

SortField = Literal[
    "name",
    "asin",
    "merchant_sku",
    "manufacturer_code",
    "product_cost",
    "amazon_price",
    "referral_fee_percent",
    "fulfillment_fee",
    "advertising_cost",
    "initial_investment",
    "estimated_profit",
    "roi_percentage",
    "profit_margin",
    "created_at",
    "updated_at",
]

SORTABLE_FIELDS: frozenset[str] = frozenset(get_args(SortField))

DEFAULT_SORT_FIELD: SortField = "created_at"
DEFAULT_SORT_DIRECTION: SortDirection = "desc"

# Fields a search term is matched against, OR-ed together.
# "supplier.name" is the joined supplier's name.
SEARCH_FIELDS = ("name", "asin", "merchant_sku", "supplier.name")


@dataclass(frozen=True)
class Equals:
    field: str
    value: Any


@dataclass(frozen=True)
class Between:
    """Inclusive range; ``None`` leaves that side unbounded."""
    field: str
    lower: Any = None
    upper: Any = None


@dataclass(frozen=True)
class SearchAny:
    """Case-insensitive substring match on any of ``fields``."""
    term: str
    fields: tuple[str, ...] = SEARCH_FIELDS


Predicate = Union[Equals, Between, SearchAny]


@dataclass(frozen=True)
class ProductQuery:
    predicates: tuple[Predicate, ...] = ()
    sort_field: SortField = DEFAULT_SORT_FIELD
    sort_direction: SortDirection = DEFAULT_SORT_DIRECTION
    page: int = 1
    page_size: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size

    def where(self, *predicates: Predicate) -> "ProductQuery":
        return replace(self, predicates=self.predicates + tuple(predicates))

    def unpaged(self) -> "ProductQuery":
        """Same filters and ordering, page window dropped (page_size 0)."""
        return replace(self, page=1, page_size=0)

    @property
    def is_paged(self) -> bool:
        return self.page_size > 0


def normalize_search(term: Optional[str]) -> Optional[str]:
    """Trimmed, lower-cased term, or None when too short to filter on."""
    if term is None:
        return None
    term = term.strip()
    if len(term) < MIN_SEARCH_LENGTH:
        return None
    return term.lower()


def _range(field_name: str, rng: Optional[Union[NumericRange, DateRange]]) -> list[Predicate]:
    if rng is None or rng.is_empty:
        return []
    if isinstance(rng, DateRange):
        return [Between(field_name, rng.start, rng.end)]
    return [Between(field_name, rng.min, rng.max)]


def build_predicates(filters: ProductFilters) -> tuple[Predicate, ...]:
    predicates: list[Predicate] = []

    term = normalize_search(filters.search)
    if term:
        predicates.append(SearchAny(term))

    if filters.supplier_id is not None:
        predicates.append(Equals("supplier_id", filters.supplier_id))
    if filters.category_id is not None:
        predicates.append(Equals("category_id", filters.category_id))

    predicates += _range("product_cost", filters.cost_range)
    predicates += _range("created_at", filters.date_range)
    predicates += _range("estimated_profit", filters.profit_range)
    predicates += _range("roi_percentage", filters.roi_range)

    return tuple(predicates)


def build_product_query(
    filters: Optional[ProductFilters] = None,
    sort_field: str = DEFAULT_SORT_FIELD,
    sort_direction: str = DEFAULT_SORT_DIRECTION,
    page: int = 1,
    page_size: int = 20,
) -> ProductQuery:
    """
    Build the descriptor for one page request.

    Raises:
        ValueError: unknown sort field/direction or a non-positive page window
    """
    if sort_field not in SORTABLE_FIELDS:
        raise ValueError(f"Unsupported sort field: {sort_field}")
    if sort_direction not in ("asc", "desc"):
        raise ValueError(f"Unsupported sort direction: {sort_direction}")
    if page < 1:
        raise ValueError("page must be >= 1")
    if page_size < 1:
        raise ValueError("page_size must be >= 1")

    return ProductQuery(
        predicates=build_predicates(filters or ProductFilters()),
        sort_field=sort_field,
        sort_direction=sort_direction,
        page=page,
        page_size=page_size,
    )


def owner_predicate(user_id: uuid.UUID) -> Equals:
    return Equals("user_id", user_id)


def total_pages(total_count: int, page_size: int) -> int:
    if page_size <= 0:
        return 1 if total_count else 0
    return (total_count + page_size - 1) // page_size


@dataclass(frozen=True)
class ListingState:
    """
    Filter, sort and page state of the product listing.

    Every transition returns a new state. Changing filters, sort or page
    size moves back to page 1 so the window never points past the end of
    a shrunken result set; re-applying identical filters is a no-op.
    """
    filters: ProductFilters = field(default_factory=ProductFilters)
    sort_field: SortField = DEFAULT_SORT_FIELD
    sort_direction: SortDirection = DEFAULT_SORT_DIRECTION
    page: int = 1
    page_size: int = 20

    def with_filters(self, **changes: Any) -> "ListingState":
        merged = self.filters.model_copy(update=changes)
        return self.replace_filters(ProductFilters.model_validate(merged.model_dump()))

    def replace_filters(self, filters: ProductFilters) -> "ListingState":
        if filters == self.filters:
            return self
        return replace(self, filters=filters, page=1)

    def with_sort(self, sort_field: str, sort_direction: str) -> "ListingState":
        if sort_field not in SORTABLE_FIELDS:
            raise ValueError(f"Unsupported sort field: {sort_field}")
        if (sort_field, sort_direction) == (self.sort_field, self.sort_direction):
            return self
        return replace(self, sort_field=sort_field, sort_direction=sort_direction, page=1)

    def toggle_sort(self, sort_field: str) -> "ListingState":
        """Same field flips direction; a new field starts ascending."""
        if sort_field == self.sort_field:
            flipped = "desc" if self.sort_direction == "asc" else "asc"
            return self.with_sort(sort_field, flipped)
        return self.with_sort(sort_field, "asc")

    def go_to_page(self, page: int) -> "ListingState":
        if page < 1:
            raise ValueError("page must be >= 1")
        return replace(self, page=page)

    def with_page_size(self, page_size: int) -> "ListingState":
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        if page_size == self.page_size:
            return self
        return replace(self, page_size=page_size, page=1)

    def clear(self) -> "ListingState":
        return ListingState(page_size=self.page_size)

    def to_query(self) -> ProductQuery:
        return build_product_query(
            self.filters,
            sort_field=self.sort_field,
            sort_direction=self.sort_direction,
            page=self.page,
            page_size=self.page_size,
        )
