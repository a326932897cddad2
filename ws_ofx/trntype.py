"""Transaction classification.

Turns one raw activity record into a :class:`ClassifiedTransaction` using the
closed table in :mod:`ws_ofx.rules`.  Activity that cannot be classified
raises a :class:`~ws_ofx.errors.SkipTransaction` subclass so the caller can
drop that single entry and carry on with the export.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

import pandas as pd

from ws_ofx.date_time import ofx_datetime, parse_date
from ws_ofx.errors import ClassificationGap, TransferResolutionGap
from ws_ofx.id import make_fitid
from ws_ofx.rules import ClassificationRule, PayeeSource, classification_key, lookup_rule
from ws_ofx.transfers import TransferResolver

logger = logging.getLogger(__name__)

DEFAULT_BROKERAGE_NAME = "Wealthsimple"


@dataclass(frozen=True)
class ClassifiedTransaction:
    date: pd.Timestamp
    amount: Decimal
    fitid: str
    payee: str
    memo: str
    trntype: str
    investment: bool = False


class _MemoFields(dict):
    def __missing__(self, key: str) -> str:
        return ""


def signed_amount(amount: Any, amount_sign: Optional[str]) -> Decimal:
    """Magnitude from ``amount``, negated when ``amountSign`` is ``negative``."""

    try:
        value = abs(Decimal(str(amount)))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid activity amount: {amount!r}") from exc
    return -value if amount_sign == "negative" else value


def render_memo(template: str, txn: Mapping[str, Any], payee: str) -> str:
    fields = _MemoFields(
        {key: "" if value is None else str(value) for key, value in txn.items()}
    )
    fields["payee"] = payee
    return template.format_map(fields)


async def resolve_payee(
    rule: ClassificationRule,
    txn: Mapping[str, Any],
    nicknames: Mapping[str, str],
    transfers: Optional[TransferResolver],
    brokerage_name: str,
) -> str:
    if rule.payee is PayeeSource.BROKERAGE:
        return brokerage_name
    if rule.payee is PayeeSource.FIELD:
        return str(txn.get(rule.payee_field) or "")
    if rule.payee is PayeeSource.OPPOSING_ACCOUNT:
        opposing = txn.get("opposingAccountId") or ""
        return nicknames.get(opposing, opposing)

    side = "source" if rule.payee is PayeeSource.TRANSFER_SOURCE else "destination"
    bank = None
    if transfers is not None:
        bank = await transfers.counterparty(txn.get("externalCanonicalId"), side)
    if bank is None:
        raise TransferResolutionGap(
            f"No {side} bank account for transfer {txn.get('externalCanonicalId')}",
            dict(txn),
        )
    return bank.display_name


async def classify_transaction(
    txn: Mapping[str, Any],
    nicknames: Mapping[str, str],
    transfers: Optional[TransferResolver] = None,
    *,
    brokerage_name: str = DEFAULT_BROKERAGE_NAME,
) -> ClassifiedTransaction:
    """Classify one raw activity record.

    Raises :class:`ClassificationGap` for an unknown type/subtype and
    :class:`TransferResolutionGap` when an EFT counterparty cannot be named.
    """

    key = classification_key(txn.get("type"), txn.get("subType"))
    occurred_at = parse_date(txn.get("occurredAt"))
    if pd.isna(occurred_at):
        raise ClassificationGap(
            f"Transaction [{key}] has unparseable occurredAt {txn.get('occurredAt')!r}",
            dict(txn),
        )

    rule = lookup_rule(key)
    if rule is None:
        raise ClassificationGap(
            f"{ofx_datetime(occurred_at)} transaction [{key}] has unexpected type",
            dict(txn),
        )

    try:
        amount = signed_amount(txn.get("amount"), txn.get("amountSign"))
    except ValueError as exc:
        raise ClassificationGap(f"Transaction [{key}]: {exc}", dict(txn)) from exc

    payee = await resolve_payee(rule, txn, nicknames, transfers, brokerage_name)
    return ClassifiedTransaction(
        date=occurred_at,
        amount=amount,
        fitid=make_fitid(txn.get("canonicalId"), occurred_at),
        payee=payee,
        memo=render_memo(rule.memo, txn, payee),
        trntype=rule.trntype,
        investment=rule.investment,
    )


__all__ = [
    "ClassifiedTransaction",
    "classify_transaction",
    "render_memo",
    "resolve_payee",
    "signed_amount",
]
