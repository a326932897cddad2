"""Fetch raw activity records for one or more accounts."""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence, TypedDict

from ws_ofx.client import GraphQLClient
from ws_ofx.queries import FETCH_ACTIVITY_FEED_ITEMS, FETCH_ACTIVITY_LIST

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


class RawTransaction(TypedDict, total=False):
    """Subset of the ``ActivityFeedItem`` node that classification reads."""

    accountId: str
    externalCanonicalId: Optional[str]
    canonicalId: Optional[str]
    amount: str
    amountSign: str
    occurredAt: str
    type: str
    subType: Optional[str]
    eTransferEmail: Optional[str]
    eTransferName: Optional[str]
    assetSymbol: Optional[str]
    assetQuantity: Optional[str]
    aftOriginatorName: Optional[str]
    p2pHandle: Optional[str]
    spendMerchant: Optional[str]
    billPayCompanyName: Optional[str]
    billPayPayeeNickname: Optional[str]
    opposingAccountId: Optional[str]


def _iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(timezone.utc).isoformat()


async def fetch_activity_list(
    client: GraphQLClient,
    account_ids: Sequence[str],
    start_date: Optional[datetime] = None,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> List[RawTransaction]:
    """Activity for specific accounts, as listed on the account-details page."""

    variables = {
        "first": page_size,
        "startDate": _iso(start_date),
        "endDate": _iso(datetime.now(timezone.utc)),
        "accountIds": list(account_ids),
    }
    nodes = await client.paginate(
        "FetchActivityList", FETCH_ACTIVITY_LIST, variables, ("activities",)
    )
    logger.info("Fetched %s activities for %s account(s)", len(nodes), len(account_ids))
    return nodes  # type: ignore[return-value]


async def fetch_activity_feed_items(
    client: GraphQLClient,
    account_ids: Sequence[str],
    start_date: Optional[datetime] = None,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> List[RawTransaction]:
    """Completed activity across accounts, as listed on the activity feed."""

    variables = {
        "first": page_size,
        "condition": {
            "startDate": _iso(start_date),
            "accountIds": list(account_ids),
            "unifiedStatuses": ["COMPLETED"],
        },
    }
    nodes = await client.paginate(
        "FetchActivityFeedItems",
        FETCH_ACTIVITY_FEED_ITEMS,
        variables,
        ("activityFeedItems",),
    )
    logger.info("Fetched %s feed items for %s account(s)", len(nodes), len(account_ids))
    return nodes  # type: ignore[return-value]


__all__ = [
    "RawTransaction",
    "fetch_activity_list",
    "fetch_activity_feed_items",
]
