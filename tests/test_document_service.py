"""Tests for batch insert/delete/update semantics."""

import pytest

from tests.factories import DocumentDraftFactory
from tests.fakes import StoreFailure
from trace_docs.errors import NotFoundError, PartialFailureError, ValidationError
from trace_docs.services.documents import BatchProgress, BatchStatus


class TestAddDocuments:
    async def test_inserts_in_order(self, document_service, memory_store):
        drafts = DocumentDraftFactory.build_batch(3)

        ids = await document_service.add_documents(drafts)

        assert len(ids) == 3
        assert list(memory_store.rows) == ids
        assert [memory_store.rows[i]["id_asset"] for i in ids] == [d["idAsset"] for d in drafts]

    async def test_empty_batch_rejected(self, document_service, memory_store):
        with pytest.raises(ValidationError):
            await document_service.add_documents([])
        assert memory_store.calls == []

    async def test_failure_rolls_back_earlier_inserts(self, document_service, memory_store):
        memory_store.fail_nth_insert(2, StoreFailure("write timeout on D2"))
        drafts = DocumentDraftFactory.build_batch(3)

        with pytest.raises(PartialFailureError) as exc_info:
            await document_service.add_documents(drafts)

        error = exc_info.value
        assert str(error) == "write timeout on D2"
        assert isinstance(error.__cause__, StoreFailure)
        assert error.failed_index == 1
        assert len(error.created_ids) == 1
        assert error.rolled_back_ids == error.created_ids
        assert error.failed_rollback_ids == []
        assert error.rollback_attempted and error.rollback_succeeded
        # D1 rolled back, D3 never attempted
        assert memory_store.rows == {}
        assert len(memory_store.queries("INSERT")) == 2

    async def test_first_insert_failure_has_nothing_to_roll_back(self, document_service, memory_store):
        memory_store.fail_nth_insert(1)

        with pytest.raises(PartialFailureError) as exc_info:
            await document_service.add_documents(DocumentDraftFactory.build_batch(2))

        assert exc_info.value.failed_index == 0
        assert not exc_info.value.rollback_attempted
        assert memory_store.queries("DELETE") == []

    async def test_rollback_failures_do_not_stop_remaining_rollbacks(self, document_service, memory_store):
        drafts = DocumentDraftFactory.build_batch(4)
        memory_store.fail_nth_insert(3)
        # The first insert's id is not known in advance; fail whichever delete comes first.
        memory_store.fail_when(lambda q, p: q.startswith("DELETE"), StoreFailure("delete failed"))

        with pytest.raises(PartialFailureError) as exc_info:
            await document_service.add_documents(drafts)

        error = exc_info.value
        assert str(error) == "injected failure"
        assert len(error.created_ids) == 2
        assert error.failed_rollback_ids == error.created_ids[:1]
        assert error.rolled_back_ids == error.created_ids[1:]
        assert not error.rollback_succeeded
        assert list(memory_store.rows) == error.created_ids[:1]

    async def test_unknown_field_aborts_with_rollback(self, document_service, memory_store):
        drafts = [DocumentDraftFactory(), {**DocumentDraftFactory(), "color": "red"}]

        with pytest.raises(PartialFailureError) as exc_info:
            await document_service.add_documents(drafts)

        assert isinstance(exc_info.value.__cause__, ValidationError)
        assert memory_store.rows == {}


class TestRemoveDocuments:
    async def test_removes_all(self, document_service, gateway, memory_store):
        ids = [await gateway.insert(DocumentDraftFactory()) for _ in range(3)]

        assert await document_service.remove_documents(ids) == 3
        assert memory_store.rows == {}

    async def test_missing_id_aborts_after_earlier_deletions(self, document_service, gateway, memory_store):
        id1 = await gateway.insert(DocumentDraftFactory())
        id3 = await gateway.insert(DocumentDraftFactory())

        with pytest.raises(NotFoundError, match="Document id2 not found") as exc_info:
            await document_service.remove_documents([id1, "id2", id3])

        assert exc_info.value.document_id == "id2"
        assert id1 not in memory_store.rows
        assert id3 in memory_store.rows


class TestUpdateDocuments:
    async def test_updates_each_document(self, document_service, gateway, memory_store):
        ids = [await gateway.insert(DocumentDraftFactory()) for _ in range(2)]

        count = await document_service.update_documents(ids, {"txStatus": "CONFIRMED", "blockNumber": "42"})

        assert count == 2
        for document_id in ids:
            assert memory_store.rows[document_id]["tx_status"] == "CONFIRMED"
            assert memory_store.rows[document_id]["block_number"] == "42"

    async def test_missing_id_aborts(self, document_service, gateway, memory_store):
        id1 = await gateway.insert(DocumentDraftFactory(status="ACTIVE"))
        id3 = await gateway.insert(DocumentDraftFactory(status="ACTIVE"))

        with pytest.raises(NotFoundError):
            await document_service.update_documents([id1, "missing", id3], {"status": "INACTIVE"})

        assert memory_store.rows[id1]["status"] == "INACTIVE"
        assert memory_store.rows[id3]["status"] == "ACTIVE"

    async def test_empty_ids_rejected(self, document_service):
        with pytest.raises(ValidationError):
            await document_service.update_documents([], {"status": "X"})


class TestBatchProgress:
    def test_transitions(self):
        progress = BatchProgress("add_documents", 3)
        assert progress.status is BatchStatus.PENDING

        progress.processing(1)
        assert progress.status is BatchStatus.PROCESSING
        assert progress.index == 1

        progress.failed("boom")
        assert progress.status is BatchStatus.FAILED
        assert progress.reason == "boom"

    def test_completed(self):
        progress = BatchProgress("remove_documents", 1)
        progress.processing(0)
        progress.completed()
        assert progress.status is BatchStatus.COMPLETED
