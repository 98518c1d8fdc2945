# shiptrack/match.py
"""
Business-key matching of import rows against a catalog snapshot.

Matching is exact: ASIN first, merchant SKU as the fallback. A key that
hits more than one product is ambiguous and never resolved by guessing.
Fuzzy scoring is only used to suggest the closest existing key in an
error message.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple, Union
import uuid

from rapidfuzz import fuzz, process


@dataclass(frozen=True)
class Matched:
    product_id: uuid.UUID
    key: str          # "ASIN" or "Merchant SKU"
    value: str


@dataclass(frozen=True)
class Ambiguous:
    key: str
    value: str
    count: int


@dataclass(frozen=True)
class NoMatch:
    asin: Optional[str]
    sku: Optional[str]
    suggestion: Optional[str] = None


MatchOutcome = Union[Matched, Ambiguous, NoMatch]


def _norm(value: Optional[str]) -> str:
    return (value or "").strip()


@dataclass
class KeyIndex:
    by_asin: Dict[str, List[uuid.UUID]]
    by_sku: Dict[str, List[uuid.UUID]]

    def keys(self) -> List[str]:
        return list(self.by_asin.keys()) + list(self.by_sku.keys())


def build_key_index(products: Iterable) -> KeyIndex:
    """
    Products (anything with id/asin/merchant_sku) ->
    {"B000000001": [id1], ...} for ASINs and SKUs separately.
    """
    by_asin: Dict[str, List[uuid.UUID]] = {}
    by_sku: Dict[str, List[uuid.UUID]] = {}
    for p in products:
        asin = _norm(p.asin)
        sku = _norm(p.merchant_sku)
        if asin:
            by_asin.setdefault(asin, []).append(p.id)
        if sku:
            by_sku.setdefault(sku, []).append(p.id)
    return KeyIndex(by_asin=by_asin, by_sku=by_sku)


def suggest_key(
    value: str,
    index: KeyIndex,
    score_cutoff: int = 80
) -> Optional[str]:
    """Closest existing ASIN/SKU to ``value``, for hints only."""
    choices = index.keys()
    if not value or not choices:
        return None
    best: Optional[Tuple[str, float, int]] = process.extractOne(
        value, choices, scorer=fuzz.ratio, score_cutoff=score_cutoff
    )
    if not best:
        return None
    return best[0]


def resolve(asin: Optional[str], sku: Optional[str], index: KeyIndex) -> MatchOutcome:
    """Find the single product an import row refers to."""
    asin = _norm(asin)
    sku = _norm(sku)

    if asin:
        hits = index.by_asin.get(asin, [])
        if len(hits) == 1:
            return Matched(hits[0], "ASIN", asin)
        if len(hits) > 1:
            return Ambiguous("ASIN", asin, len(hits))

    if sku:
        hits = index.by_sku.get(sku, [])
        if len(hits) == 1:
            return Matched(hits[0], "Merchant SKU", sku)
        if len(hits) > 1:
            return Ambiguous("Merchant SKU", sku, len(hits))

    return NoMatch(
        asin=asin or None,
        sku=sku or None,
        suggestion=suggest_key(asin or sku, index),
    )
