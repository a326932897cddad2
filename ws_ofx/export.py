"""End-to-end export: fetch accounts and activity, classify, render OFX.

Stages run strictly one after another on a single task: the account list,
then the activity, then (per transaction, only when needed) transfer lookups.
A :class:`~ws_ofx.errors.FetchError` anywhere aborts the whole export before
any document is returned.  Transactions that cannot be classified are dropped
one by one and reported in :attr:`ExportResult.diagnostics`.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Literal, Mapping, Optional, Sequence

from ws_ofx.accounts import AccountInfo, account_type_map, fetch_accounts, nickname_map
from ws_ofx.activity import RawTransaction, fetch_activity_feed_items, fetch_activity_list
from ws_ofx.build_ofx import build_ofx, transactions_frame
from ws_ofx.client import GraphQLClient
from ws_ofx.config import Settings
from ws_ofx.date_time import utc_now
from ws_ofx.detect_account_type import detect_account_type
from ws_ofx.errors import SkipTransaction
from ws_ofx.transfers import TransferResolver
from ws_ofx.trntype import ClassifiedTransaction, classify_transaction

logger = logging.getLogger(__name__)

OFX_MEDIA_TYPE = "application/x-ofx"

PageType = Literal["account-details", "activity"]


@dataclass(frozen=True)
class ExportRequest:
    """What the page asked for: which accounts and from when."""

    page_type: PageType
    account_ids: Sequence[str] = ()
    from_date: Optional[datetime] = None


@dataclass(frozen=True)
class OfxDocument:
    account_id: str
    content: bytes
    media_type: str = OFX_MEDIA_TYPE

    @property
    def filename(self) -> str:
        return f"{self.account_id}.ofx"


@dataclass
class ExportResult:
    documents: Dict[str, OfxDocument] = field(default_factory=dict)
    diagnostics: List[SkipTransaction] = field(default_factory=list)


def group_by_account(
    transactions: Sequence[RawTransaction],
    account_ids: Sequence[str] = (),
) -> Dict[str, List[RawTransaction]]:
    """Group activity by ``accountId``, keeping the original order.

    Every id in *account_ids* gets an entry even when it has no activity.
    """

    groups: Dict[str, List[RawTransaction]] = {acc: [] for acc in account_ids}
    for txn in transactions:
        groups.setdefault(txn["accountId"], []).append(txn)
    return groups


async def classify_account_transactions(
    transactions: Sequence[RawTransaction],
    nicknames: Mapping[str, str],
    transfers: Optional[TransferResolver],
    diagnostics: List[SkipTransaction],
    *,
    brokerage_name: str = "Wealthsimple",
) -> List[ClassifiedTransaction]:
    classified: List[ClassifiedTransaction] = []
    for txn in transactions:
        try:
            classified.append(
                await classify_transaction(
                    txn, nicknames, transfers, brokerage_name=brokerage_name
                )
            )
        except SkipTransaction as exc:
            logger.warning("Skipping transaction: %s", exc)
            logger.debug("Skipped transaction payload: %s", txn)
            diagnostics.append(exc)
    return classified


async def render_account(
    account_id: str,
    transactions: Sequence[RawTransaction],
    accounts: Sequence[AccountInfo],
    transfers: Optional[TransferResolver],
    diagnostics: List[SkipTransaction],
    *,
    settings: Settings = Settings(),
) -> OfxDocument:
    """Classify one account's activity and render its OFX document."""

    kinds = account_type_map(accounts)
    accttype = detect_account_type(kinds.get(account_id), transactions)
    nicknames = nickname_map(accounts)
    logger.info(
        "Building %s statement for %s (%s) from %s transaction(s)",
        accttype,
        nicknames.get(account_id, account_id),
        account_id,
        len(transactions),
    )

    classified = await classify_account_transactions(
        transactions,
        nicknames,
        transfers,
        diagnostics,
        brokerage_name=settings.brokerage_name,
    )
    ofx_text = build_ofx(
        transactions_frame(classified),
        acctid=account_id,
        accttype=accttype,
        org=settings.brokerage_name,
        currency=settings.currency,
        now=utc_now(),
    )
    return OfxDocument(account_id=account_id, content=ofx_text.encode("utf-8"))


async def export_transactions(
    request: ExportRequest,
    client: GraphQLClient,
    identity_id: str,
    *,
    settings: Settings = Settings(),
) -> ExportResult:
    """Run one export action and return a document per account."""

    logger.info("Fetching account details")
    accounts = await fetch_accounts(
        client, identity_id, page_size=settings.account_page_size
    )

    logger.info("Fetching transactions")
    if request.page_type == "account-details":
        account_ids = list(request.account_ids)
        transactions = await fetch_activity_list(
            client, account_ids, request.from_date, page_size=settings.page_size
        )
    elif request.page_type == "activity":
        account_ids = list(request.account_ids) or [acc.id for acc in accounts]
        transactions = await fetch_activity_feed_items(
            client, account_ids, request.from_date, page_size=settings.page_size
        )
    else:
        raise ValueError(f"Unsupported page type: {request.page_type}")

    result = ExportResult()
    transfers = TransferResolver(client)
    groups = group_by_account(transactions, request.account_ids)
    for account_id, account_txns in groups.items():
        result.documents[account_id] = await render_account(
            account_id,
            account_txns,
            accounts,
            transfers,
            result.diagnostics,
            settings=settings,
        )

    logger.info(
        "Exported %s document(s), skipped %s transaction(s)",
        len(result.documents),
        len(result.diagnostics),
    )
    return result


__all__ = [
    "ExportRequest",
    "ExportResult",
    "OfxDocument",
    "OFX_MEDIA_TYPE",
    "group_by_account",
    "classify_account_transactions",
    "render_account",
    "export_transactions",
]
