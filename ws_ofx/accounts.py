"""Account listing and display-name derivation."""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ws_ofx.client import GraphQLClient
from ws_ofx.queries import FETCH_ALL_ACCOUNT_FINANCIALS

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNT_PAGE_SIZE = 25

_SELF_DIRECTED_RE = re.compile(r"^SELF_DIRECTED_(?P<name>.*)")

_SELF_DIRECTED_RENAMES = {
    "CRYPTO": "Crypto",
    "NON_REGISTERED": "Non-registered",
}


def _self_directed_name(kind: str) -> Optional[str]:
    match = _SELF_DIRECTED_RE.match(kind)
    if match is None:
        return None
    name = match.group("name")
    return _SELF_DIRECTED_RENAMES.get(name, name)


# First match wins.
_NICKNAME_RULES: Tuple[Callable[[str], Optional[str]], ...] = (
    lambda kind: "Cash" if kind == "CASH" else None,
    lambda kind: "Credit Card" if kind == "CREDIT_CARD" else None,
    _self_directed_name,
)


@dataclass(frozen=True)
class AccountInfo:
    id: str
    nickname: str
    unified_account_type: Optional[str] = None


def derive_nickname(unified_account_type: Optional[str]) -> str:
    """Display name for an account that has no nickname of its own."""

    if unified_account_type:
        for rule in _NICKNAME_RULES:
            name = rule(unified_account_type)
            if name is not None:
                return name
    return "Unknown"


def account_from_node(node: Dict) -> AccountInfo:
    kind = node.get("unifiedAccountType")
    return AccountInfo(
        id=node["id"],
        nickname=node.get("nickname") or derive_nickname(kind),
        unified_account_type=kind,
    )


async def fetch_accounts(
    client: GraphQLClient,
    identity_id: str,
    *,
    page_size: int = DEFAULT_ACCOUNT_PAGE_SIZE,
) -> List[AccountInfo]:
    """Every account owned by *identity_id*."""

    nodes = await client.paginate(
        "FetchAllAccountFinancials",
        FETCH_ALL_ACCOUNT_FINANCIALS,
        {"identityId": identity_id, "pageSize": page_size},
        ("identity", "accounts"),
    )
    accounts = [account_from_node(node) for node in nodes]
    logger.info("Fetched %s account(s)", len(accounts))
    return accounts


def nickname_map(accounts: Iterable[AccountInfo]) -> Dict[str, str]:
    return {account.id: account.nickname for account in accounts}


def account_type_map(accounts: Iterable[AccountInfo]) -> Dict[str, Optional[str]]:
    return {account.id: account.unified_account_type for account in accounts}


__all__ = [
    "AccountInfo",
    "derive_nickname",
    "account_from_node",
    "fetch_accounts",
    "nickname_map",
    "account_type_map",
]
