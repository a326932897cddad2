"""Look up the external bank behind an EFT deposit or withdrawal."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

from ws_ofx.client import GraphQLClient
from ws_ofx.queries import FETCH_FUNDS_TRANSFER

logger = logging.getLogger(__name__)

TransferSide = Literal["source", "destination"]


@dataclass(frozen=True)
class BankCounterpartyInfo:
    institution_name: Optional[str]
    nickname: Optional[str] = None
    account_name: Optional[str] = None
    account_number: Optional[str] = None

    @property
    def display_name(self) -> str:
        parts = (
            self.institution_name or "",
            self.nickname or self.account_name or "",
            self.account_number or "",
        )
        return " ".join(part for part in parts if part)

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> "BankCounterpartyInfo":
        return cls(
            institution_name=node.get("institutionName"),
            nickname=node.get("nickname"),
            account_name=node.get("accountName"),
            account_number=node.get("accountNumber"),
        )


async def fetch_funds_transfer(
    client: GraphQLClient, transfer_id: str
) -> Optional[Dict[str, Any]]:
    data = await client.execute(
        "FetchFundsTransfer", FETCH_FUNDS_TRANSFER, {"id": transfer_id}
    )
    return data.get("fundsTransfer")


class TransferResolver:
    """Resolve EFT counterparties on demand.

    Nothing is cached: two transfers to the same bank issue two lookups.
    """

    def __init__(self, client: GraphQLClient) -> None:
        self.client = client

    async def counterparty(
        self, transfer_id: Optional[str], side: TransferSide
    ) -> Optional[BankCounterpartyInfo]:
        """Bank on *side* of the transfer, or ``None`` when it is not reported."""

        if not transfer_id:
            return None
        transfer = await fetch_funds_transfer(self.client, transfer_id)
        owner = (transfer or {}).get(side) or {}
        bank_account = owner.get("bankAccount")
        if not bank_account:
            logger.debug("Transfer %s has no %s bank account", transfer_id, side)
            return None
        return BankCounterpartyInfo.from_node(bank_account)


__all__ = [
    "BankCounterpartyInfo",
    "TransferResolver",
    "TransferSide",
    "fetch_funds_transfer",
]
