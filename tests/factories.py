"""Test data factories using factory_boy.

Usage:
    draft = DocumentDraftFactory()                      # API-shaped dict
    draft = DocumentDraftFactory(assetIdBlockchain="A") # with overrides
"""

import factory

from trace_docs.models.document import AssetOperation, AssetStatus


class DocumentDraftFactory(factory.DictFactory):
    """A valid ``addDocument`` draft (JSON-ready, camelCase keys)."""

    idAsset = factory.Sequence(lambda n: f"asset-{n}")
    assetIdBlockchain = factory.Sequence(lambda n: f"0xasset{n:04d}")
    owner = "org-owner"
    operation = AssetOperation.CREATE_ASSET.value
    status = AssetStatus.ACTIVE.value
    amount = 10.5
    idExternal = factory.LazyFunction(lambda: ["ext-1"])
    processId = "process-1"
    natureId = "nature-1"
    stageId = "stage-1"
    data = factory.LazyFunction(lambda: [{"field": "weight", "value": 42}])
    dataHash = factory.Sequence(lambda n: f"hash-{n}")
    groupedBy = factory.LazyFunction(list)
    channelName = "trace-channel"
    txHash = factory.Sequence(lambda n: f"0xtx{n:04d}")
    blockNumber = "1"
    timestamp = "2024-05-01T12:00:00+00:00"
