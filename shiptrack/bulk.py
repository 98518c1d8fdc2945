"""
Bulk mutation executor.

Applies create/update/delete items one at a time, each in its own commit.
A failed item is recorded and the batch moves on; nothing is rolled back
across items. Callers re-read the catalog afterwards.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional
import uuid

from shiptrack.core.security import OwnerScope
from shiptrack.logging_config import get_logger
from shiptrack.repository import ProductStore, StorageError, StorageResult

logger = get_logger("bulk")


class MutationKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class Mutation:
    kind: MutationKind
    payload: dict[str, Any] = field(default_factory=dict)
    product_id: Optional[uuid.UUID] = None
    row: Optional[int] = None  # source file line, for CSV items

    @property
    def label(self) -> str:
        if self.row is not None:
            return f"Row {self.row}"
        if self.product_id is not None:
            return f"Product {self.product_id}"
        return "Item"


@dataclass(frozen=True)
class ItemFailure:
    mutation: Mutation
    error: StorageError

    def __str__(self) -> str:
        return f"{self.mutation.label}: {self.mutation.kind.value} failed: {self.error.message}"


@dataclass
class BatchOutcome:
    succeeded: list[Mutation] = field(default_factory=list)
    failures: list[ItemFailure] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failures)


def creates(payloads: Iterable[dict[str, Any]]) -> list[Mutation]:
    return [Mutation(MutationKind.CREATE, payload=p) for p in payloads]


def updates(ids: Iterable[uuid.UUID], changes: dict[str, Any]) -> list[Mutation]:
    """The same change set for every id (multi-select bulk edit)."""
    return [Mutation(MutationKind.UPDATE, payload=dict(changes), product_id=pid) for pid in ids]


def deletes(ids: Iterable[uuid.UUID]) -> list[Mutation]:
    return [Mutation(MutationKind.DELETE, product_id=pid) for pid in ids]


class BulkMutationExecutor:
    def __init__(self, store: ProductStore):
        self.store = store

    async def apply(self, mutation: Mutation, scope: OwnerScope) -> StorageResult:
        if mutation.kind is MutationKind.CREATE:
            return await self.store.create(scope.user_id, mutation.payload)
        if mutation.kind is MutationKind.UPDATE:
            return await self.store.update(mutation.product_id, mutation.payload, scope)
        return await self.store.delete(mutation.product_id, scope)

    async def run(self, mutations: Iterable[Mutation], scope: OwnerScope) -> BatchOutcome:
        """Apply items in order; each awaits the previous one."""
        outcome = BatchOutcome()
        for mutation in mutations:
            result = await self.apply(mutation, scope)
            if result.ok:
                outcome.succeeded.append(mutation)
                continue
            failure = ItemFailure(mutation, result.error)
            logger.warning(f"[BULK] {failure}")
            outcome.failures.append(failure)

        logger.info(
            f"[BULK] user={scope.user_id} applied={outcome.success_count} "
            f"failed={outcome.failure_count}"
        )
        return outcome
