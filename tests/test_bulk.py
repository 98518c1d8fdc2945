"""Tests for the bulk mutation executor."""
from decimal import Decimal
import uuid

from shiptrack.bulk import BulkMutationExecutor, Mutation, MutationKind, creates, deletes, updates
from shiptrack.core.security import OwnerScope
from shiptrack.repository import SqlProductStore, StorageErrorKind, StorageResult


class FlakyStore(SqlProductStore):
    """Fails updates for one product id as if the backend dropped out."""

    def __init__(self, session, broken_id):
        super().__init__(session)
        self.broken_id = broken_id

    async def update(self, product_id, changes, scope):
        if product_id == self.broken_id:
            return StorageResult.failure(StorageErrorKind.BACKEND, "server closed the connection")
        return await super().update(product_id, changes, scope)


class TestBulkUpdate:

    async def test_same_changes_applied_to_each(self, store, scope, sample_products):
        ids = [p.id for p in sample_products[:2]]
        outcome = await BulkMutationExecutor(store).run(
            updates(ids, {"advertising_cost": Decimal("2.00")}), scope
        )
        assert outcome.success_count == 2
        assert outcome.failure_count == 0
        assert [p.advertising_cost for p in sample_products[:2]] == [Decimal("2.00")] * 2
        # 20 - (5 + 3 + 3 + 2)
        assert sample_products[0].estimated_profit == Decimal("7.00")

    async def test_missing_id_does_not_stop_batch(self, store, scope, sample_products):
        """A stale id fails on its own; the items after it still apply."""
        missing = uuid.uuid4()
        ids = [sample_products[0].id, missing, sample_products[2].id]
        outcome = await BulkMutationExecutor(store).run(updates(ids, {"notes": "checked"}), scope)

        assert outcome.success_count == 2
        assert len(outcome.failures) == 1
        failure = outcome.failures[0]
        assert failure.error.kind is StorageErrorKind.NOT_FOUND
        assert str(failure) == f"Product {missing}: update failed: Product {missing} not found"
        assert sample_products[2].notes == "checked"

    async def test_backend_failure_is_isolated(self, test_db, scope, sample_products):
        broken = sample_products[1].id
        store = FlakyStore(test_db, broken)
        outcome = await BulkMutationExecutor(store).run(
            updates([p.id for p in sample_products], {"notes": "x"}), scope
        )
        assert outcome.success_count == 2
        assert outcome.failures[0].mutation.product_id == broken
        assert "server closed the connection" in str(outcome.failures[0])

    async def test_other_users_products_are_not_found(self, store, sample_products, other_user):
        outcome = await BulkMutationExecutor(store).run(
            updates([sample_products[0].id], {"notes": "hijack"}), OwnerScope(other_user.id)
        )
        assert outcome.success_count == 0
        assert sample_products[0].notes is None


class TestBulkCreateDelete:

    async def test_creates_belong_to_caller(self, store, scope):
        outcome = await BulkMutationExecutor(store).run(
            creates([{"name": "Tava", "asin": "B00000TAVA"}, {"name": "Cezve", "merchant_sku": "CEZ-01", "user_id": uuid.uuid4()}]),
            scope,
        )
        assert outcome.success_count == 2
        page = await store.snapshot(scope.user_id)
        assert sorted(p.name for p in page.value) == ["Cezve", "Tava"]

    async def test_delete_reports_missing(self, store, scope, sample_products):
        missing = uuid.uuid4()
        outcome = await BulkMutationExecutor(store).run(
            deletes([sample_products[0].id, missing]), scope
        )
        assert outcome.success_count == 1
        assert outcome.failures[0].mutation.kind is MutationKind.DELETE
        remaining = await store.snapshot(scope.user_id)
        assert len(remaining.value) == 2


class TestMutationLabel:

    def test_labels(self):
        pid = uuid.uuid4()
        assert Mutation(MutationKind.CREATE, row=7).label == "Row 7"
        assert Mutation(MutationKind.DELETE, product_id=pid).label == f"Product {pid}"
        assert Mutation(MutationKind.CREATE).label == "Item"
