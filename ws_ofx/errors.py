"""Exception types raised while exporting activity to OFX."""

from typing import Optional


class FetchError(RuntimeError):
    """The GraphQL endpoint answered with a non-success status.

    Fatal for the whole export: the raw response body is kept so the caller
    can show it as-is.
    """

    def __init__(self, operation_name: str, status_code: int, body: str) -> None:
        self.operation_name = operation_name
        self.status_code = status_code
        self.body = body
        super().__init__(
            f"Failed to fetch {operation_name} (HTTP {status_code}): {body}"
        )


class SkipTransaction(Exception):
    """Base class for per-transaction problems that drop one entry only."""

    def __init__(self, message: str, transaction: Optional[dict] = None) -> None:
        self.transaction = transaction
        super().__init__(message)


class ClassificationGap(SkipTransaction):
    """The transaction's type/subtype has no classification rule."""


class TransferResolutionGap(SkipTransaction):
    """The funds-transfer lookup returned no bank account to name the payee."""


__all__ = [
    "FetchError",
    "SkipTransaction",
    "ClassificationGap",
    "TransferResolutionGap",
]
