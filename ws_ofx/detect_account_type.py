from typing import Iterable, Mapping, Optional


_EXACT_ACCOUNT_TYPES: Mapping[str, str] = {
    "CASH": "CHECKING",
    "CHEQUING": "CHECKING",
    "SAVINGS": "SAVINGS",
    "CREDIT_CARD": "CREDITCARD",
    "SELF_DIRECTED_CRYPTO": "INVESTMENT",
    "SELF_DIRECTED_NON_REGISTERED": "INVESTMENT",
    "SELF_DIRECTED_TFSA": "INVESTMENT",
    "SELF_DIRECTED_RRSP": "INVESTMENT",
    "SELF_DIRECTED_RESP": "INVESTMENT",
    "SELF_DIRECTED_RRIF": "INVESTMENT",
    "SELF_DIRECTED_FHSA": "INVESTMENT",
    "SELF_DIRECTED_LIRA": "INVESTMENT",
    "MANAGED_TFSA": "INVESTMENT",
    "MANAGED_RRSP": "INVESTMENT",
    "MANAGED_RESP": "INVESTMENT",
    "MANAGED_RRIF": "INVESTMENT",
    "MANAGED_NON_REGISTERED": "INVESTMENT",
}

# Checked in order once the exact table misses.
_ACCOUNT_TYPE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("INVESTMENT", ("SELF_DIRECTED", "MANAGED")),
    ("CREDITCARD", ("CREDIT",)),
    ("SAVINGS", ("SAVING",)),
)


def map_account_type(kind: Optional[str]) -> str:
    """Map a ``unifiedAccountType`` to CHECKING, SAVINGS, CREDITCARD or INVESTMENT."""

    if not kind:
        return "CHECKING"
    if kind in _EXACT_ACCOUNT_TYPES:
        return _EXACT_ACCOUNT_TYPES[kind]
    for acct_type, keywords in _ACCOUNT_TYPE_KEYWORDS:
        if any(keyword in kind for keyword in keywords):
            return acct_type
    return "CHECKING"


def has_credit_card_activity(transactions: Iterable[Mapping]) -> bool:
    return any(
        str(txn.get("type") or "").startswith("CREDIT_CARD") for txn in transactions
    )


def detect_account_type(kind: Optional[str], transactions: Iterable[Mapping] = ()) -> str:
    """Statement account type for an account and its activity.

    Credit card activity wins over the declared kind, which can be stale or
    missing.
    """

    if has_credit_card_activity(transactions):
        return "CREDITCARD"
    return map_account_type(kind)
