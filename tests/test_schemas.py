"""Tests for request/response schemas."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from tests.factories import DocumentDraftFactory
from trace_docs.models.document import UPDATABLE_FIELDS, AssetOperation, AssetStatus, TransactionStatus
from trace_docs.schemas import (
    DocumentCreate,
    DocumentResponse,
    DocumentUpdates,
    SearchByAssetIdRequest,
    SearchByTxHashRequest,
    SearchResponse,
)


class TestDocumentCreate:
    def test_draft_drops_server_assigned_fields(self):
        model = DocumentCreate.model_validate(
            DocumentDraftFactory(idDocument="x", createdAt="2024-01-01T00:00:00Z", status=None)
        )
        draft = model.to_draft()

        assert "idDocument" not in draft
        assert "createdAt" not in draft
        assert "status" not in draft
        assert draft["operation"] is AssetOperation.CREATE_ASSET
        assert draft["amount"] == Decimal("10.5")

    @pytest.mark.parametrize("missing", ["idAsset", "owner", "processId", "data", "dataHash", "channelName"])
    def test_required_fields(self, missing):
        draft = DocumentDraftFactory()
        del draft[missing]
        with pytest.raises(ValidationError):
            DocumentCreate.model_validate(draft)

    def test_empty_tx_hash_allowed(self):
        assert DocumentCreate.model_validate(DocumentDraftFactory(txHash="")).tx_hash == ""


class TestDocumentUpdates:
    def test_only_set_fields_dumped(self):
        updates = DocumentUpdates.model_validate({"txStatus": "CONFIRMED"})
        assert updates.to_field_updates() == {"txStatus": "CONFIRMED"}

    def test_empty_rejected(self):
        with pytest.raises(ValidationError, match="must not be empty"):
            DocumentUpdates.model_validate({})

    def test_fields_outside_allow_list_rejected(self):
        with pytest.raises(ValidationError):
            DocumentUpdates.model_validate({"owner": "someone"})

    def test_decimal_column_parsed(self):
        updates = DocumentUpdates.model_validate({"amount": "7.25"})
        assert updates.to_field_updates() == {"amount": Decimal("7.25")}


class TestSearchRequests:
    def test_batch_wins(self):
        request = SearchByAssetIdRequest.model_validate({"idAsset": "a", "idAssets": ["b", "c"]})
        assert request.lookup == ["b", "c"]

    def test_single(self):
        assert SearchByTxHashRequest.model_validate({"txHash": "0x1"}).lookup == "0x1"

    @pytest.mark.parametrize("page_size", [0, 1001])
    def test_page_size_bounds(self, page_size):
        with pytest.raises(ValidationError):
            SearchByTxHashRequest.model_validate({"txHash": "0x1", "pageSize": page_size})


def test_search_response_serializes_camel_case():
    response = SearchResponse(
        count=1,
        documents=[DocumentResponse.model_validate({"idDocument": "d1", "txHash": "0x1"})],
    )
    assert response.model_dump(by_alias=True, exclude_none=True) == {
        "count": 1,
        "documents": [{"idDocument": "d1", "txHash": "0x1"}],
    }


def test_update_schema_follows_updatable_fields():
    aliases = [field.alias for field in DocumentUpdates.model_fields.values()]
    assert aliases == list(UPDATABLE_FIELDS)


@pytest.mark.parametrize("model", [DocumentCreate, DocumentUpdates])
def test_status_fields_list_enum_values(model):
    assert model.model_fields["status"].examples == [s.value for s in AssetStatus]
    assert model.model_fields["tx_status"].examples == [s.value for s in TransactionStatus]


def test_status_outside_enum_values_accepted():
    assert DocumentUpdates.model_validate({"status": "ARCHIVED"}).status == "ARCHIVED"
