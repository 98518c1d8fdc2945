"""
CSV reconciliation.

``reconcile`` turns an uploaded file plus a snapshot of the caller's
catalog into create/update payloads and a list of row errors. It does no
I/O. ``import_catalog_csv`` takes a fresh snapshot, reconciles, hands the
payloads to the bulk executor and merges both error lists into one ledger.

Each row stands alone: a bad row is reported and skipped, the rest go on.
The snapshot is a point-in-time read, so a product changed between the
snapshot and the write may be matched on stale keys.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional, Sequence, Union
import uuid

from pydantic import ValidationError

from shiptrack.bulk import BatchOutcome, BulkMutationExecutor, Mutation, MutationKind
from shiptrack.core.security import OwnerScope
from shiptrack.logging_config import get_logger
from shiptrack.match import Ambiguous, Matched, NoMatch, build_key_index, resolve
from shiptrack.parsers import LABELS, NUMERIC_FIELDS, CsvFormatError, CsvRow, parse_amount, read_rows
from shiptrack.repository import ProductStore, StorageResult
from shiptrack.schemas.product import BatchResult, ProductCreate, ProductUpdate

logger = get_logger("reconcile")

TEXT_FIELDS = ("name", "asin", "merchant_sku", "manufacturer_code", "amazon_barcode", "notes")


class ImportMode(str, Enum):
    CREATE = "create"
    UPDATE = "update"


@dataclass(frozen=True)
class RowError:
    row: int
    message: str

    def __str__(self) -> str:
        return f"Row {self.row}: {self.message}"


@dataclass(frozen=True)
class CreatePayload:
    row: int
    payload: dict[str, Any]


@dataclass(frozen=True)
class UpdatePayload:
    row: int
    product_id: uuid.UUID
    payload: dict[str, Any]


@dataclass
class ReconcileResult:
    creates: list[CreatePayload] = field(default_factory=list)
    updates: list[UpdatePayload] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.creates) + len(self.updates) + len(self.errors)

    def error_messages(self) -> list[str]:
        return [str(e) for e in sorted(self.errors, key=lambda e: e.row)]

    def mutations(self) -> list[Mutation]:
        items = [Mutation(MutationKind.CREATE, payload=c.payload, row=c.row) for c in self.creates]
        items += [
            Mutation(MutationKind.UPDATE, payload=u.payload, product_id=u.product_id, row=u.row)
            for u in self.updates
        ]
        return sorted(items, key=lambda m: m.row)


def _required_columns(mode: ImportMode, fields: Sequence[str]) -> list[str]:
    missing = []
    if mode is ImportMode.CREATE and "name" not in fields:
        missing.append(LABELS["name"])
    if "asin" not in fields and "merchant_sku" not in fields:
        missing.append(f"{LABELS['asin']} or {LABELS['merchant_sku']}")
    return missing


def _supplier_lookup(suppliers: Iterable) -> dict[str, list[uuid.UUID]]:
    lookup: dict[str, list[uuid.UUID]] = {}
    for s in suppliers:
        lookup.setdefault(s.name.strip().casefold(), []).append(s.id)
    return lookup


def _validation_messages(exc: ValidationError) -> list[str]:
    messages = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        name = LABELS.get(str(loc[0]), str(loc[0])) if loc else "row"
        messages.append(f"{name}: {err.get('msg')}")
    return messages


def parse_row(
    row: CsvRow,
    mode: ImportMode,
    suppliers: dict[str, list[uuid.UUID]],
) -> tuple[Optional[dict[str, Any]], list[str]]:
    """
    Validate one row into a product payload.

    Blank cells are left out of the payload: "not provided" when creating,
    "leave unchanged" when updating.
    """
    raw: dict[str, Any] = {}
    problems: list[str] = []

    for f in TEXT_FIELDS:
        if row.get(f):
            raw[f] = row.get(f)

    for f in NUMERIC_FIELDS:
        try:
            value = parse_amount(row.get(f))
        except ValueError as e:
            problems.append(f"{LABELS[f]}: {e}")
            continue
        if value is not None:
            raw[f] = value

    supplier_name = row.get("supplier_name")
    if supplier_name:
        ids = suppliers.get(supplier_name.casefold(), [])
        if len(ids) == 1:
            raw["supplier_id"] = ids[0]
        elif not ids:
            problems.append(f"{LABELS['supplier_name']}: unknown supplier '{supplier_name}'")
        else:
            problems.append(f"{LABELS['supplier_name']}: supplier name '{supplier_name}' is ambiguous")

    if mode is ImportMode.CREATE and not raw.get("name"):
        problems.append(f"{LABELS['name']} is required")
    if not raw.get("asin") and not raw.get("merchant_sku"):
        problems.append(f"{LABELS['asin']} or {LABELS['merchant_sku']} is required")

    if problems:
        return None, problems

    schema = ProductCreate if mode is ImportMode.CREATE else ProductUpdate
    try:
        model = schema(**raw)
    except ValidationError as e:
        return None, _validation_messages(e)
    return model.model_dump(exclude_unset=True), []


def _describe_miss(outcome: Union[Ambiguous, NoMatch]) -> str:
    if isinstance(outcome, Ambiguous):
        return (
            f"{outcome.key} '{outcome.value}' matches {outcome.count} products; "
            f"ambiguous target, row not applied"
        )
    keys = " / ".join(v for v in (outcome.asin, outcome.sku) if v)
    message = f"no matching product for {keys}"
    if outcome.suggestion:
        message += f" (closest existing key: {outcome.suggestion})"
    return message


def reconcile(
    contents: Union[bytes, str],
    snapshot: Iterable,
    mode: Union[ImportMode, str],
    suppliers: Iterable = (),
    encoding: str = "utf-8-sig",
) -> ReconcileResult:
    """
    Split an import file into creates, updates and row errors.

    Update mode matches each row to exactly one product in ``snapshot`` by
    ASIN, then by merchant SKU. Create mode does not look for duplicates.

    Raises:
        CsvFormatError: the file cannot be read or lacks required columns
    """
    mode = ImportMode(mode)
    fields, rows = read_rows(contents, encoding)

    missing = _required_columns(mode, fields)
    if missing:
        raise CsvFormatError(f"Missing required column(s): {', '.join(missing)}")

    supplier_ids = _supplier_lookup(suppliers)
    index = build_key_index(snapshot) if mode is ImportMode.UPDATE else None
    result = ReconcileResult()

    for row in rows:
        payload, problems = parse_row(row, mode, supplier_ids)
        if problems:
            result.errors.append(RowError(row.line, "; ".join(problems)))
            continue

        if mode is ImportMode.CREATE:
            result.creates.append(CreatePayload(row.line, payload))
            continue

        outcome = resolve(row.get("asin"), row.get("merchant_sku"), index)
        if isinstance(outcome, Matched):
            result.updates.append(UpdatePayload(row.line, outcome.product_id, payload))
        else:
            result.errors.append(RowError(row.line, _describe_miss(outcome)))

    logger.info(
        f"[RECONCILE] mode={mode.value} rows={len(rows)} creates={len(result.creates)} "
        f"updates={len(result.updates)} errors={len(result.errors)}"
    )
    return result


def merge_ledger(result: ReconcileResult, outcome: BatchOutcome) -> BatchResult:
    """Row errors and write failures in one list, in file order."""
    entries: list[tuple[int, str]] = [(e.row, str(e)) for e in result.errors]
    entries += [(f.mutation.row or 0, str(f)) for f in outcome.failures]
    entries.sort(key=lambda e: e[0])
    return BatchResult(
        success=outcome.success_count,
        failed=len(entries),
        errors=[message for _, message in entries],
    )


async def import_catalog_csv(
    store: ProductStore,
    contents: Union[bytes, str],
    mode: Union[ImportMode, str],
    scope: OwnerScope,
    suppliers: Iterable = (),
    encoding: str = "utf-8-sig",
) -> StorageResult[BatchResult]:
    """
    Reconcile against the caller's own catalog and apply the result.

    Matching only ever looks at the caller's products, admin or not.

    Raises:
        CsvFormatError: see ``reconcile``
    """
    snapshot = await store.snapshot(scope.user_id)
    if not snapshot.ok:
        return StorageResult(error=snapshot.error)

    result = reconcile(contents, snapshot.value, mode, suppliers, encoding)
    outcome = await BulkMutationExecutor(store).run(result.mutations(), scope)
    return StorageResult.success(merge_ledger(result, outcome))
