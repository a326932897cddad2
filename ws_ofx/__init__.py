"""Export Wealthsimple activity as OFX statements, one per account."""

from ws_ofx.errors import (
    ClassificationGap,
    FetchError,
    SkipTransaction,
    TransferResolutionGap,
)
from ws_ofx.export import ExportRequest, ExportResult, OfxDocument, export_transactions

__all__: list[str] = [
    "ClassificationGap",
    "ExportRequest",
    "ExportResult",
    "FetchError",
    "OfxDocument",
    "SkipTransaction",
    "TransferResolutionGap",
    "export_transactions",
]
