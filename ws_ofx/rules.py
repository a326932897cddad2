"""Classification table mapping activity types to OFX semantics.

Each activity is keyed by its ``type``, or ``type/subType`` when a subtype is
present.  The table is closed: keys that are not listed here are skipped by
:mod:`ws_ofx.trntype` rather than guessed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Tuple


class PayeeSource(Enum):
    """Where a rule takes the transaction's payee from."""

    BROKERAGE = "brokerage"
    FIELD = "field"
    OPPOSING_ACCOUNT = "opposing_account"
    TRANSFER_SOURCE = "transfer_source"
    TRANSFER_DESTINATION = "transfer_destination"


@dataclass(frozen=True)
class ClassificationRule:
    """How one activity key becomes a payee, memo and OFX ``TRNTYPE``.

    ``memo`` is a :meth:`str.format` template over the raw activity fields
    plus the resolved ``payee``.  ``investment`` marks buys, sells and
    reinvestments, which investment statements wrap in ``INVBANKTRAN``.
    """

    payee: PayeeSource
    trntype: str
    memo: str = ""
    payee_field: Optional[str] = None
    investment: bool = False

    def __post_init__(self) -> None:
        if (self.payee is PayeeSource.FIELD) != (self.payee_field is not None):
            raise ValueError("payee_field is required exactly when payee is FIELD")


def _brokerage(trntype: str, memo: str = "") -> ClassificationRule:
    return ClassificationRule(PayeeSource.BROKERAGE, trntype, memo)


def _field(
    field: str, trntype: str, memo: str = "", *, investment: bool = False
) -> ClassificationRule:
    return ClassificationRule(
        PayeeSource.FIELD, trntype, memo, payee_field=field, investment=investment
    )


_BOUGHT = _field("assetSymbol", "DEBIT", "Bought {assetQuantity} {assetSymbol}", investment=True)
_SOLD = _field("assetSymbol", "CREDIT", "Sold {assetQuantity} {assetSymbol}", investment=True)

_BUY_ORDERS = ("MARKET_ORDER", "RECURRING_ORDER", "LIMIT_ORDER", "FRACTIONAL_ORDER")
_SELL_ORDERS = ("MARKET_ORDER", "LIMIT_ORDER", "FRACTIONAL_ORDER")

_DEFAULT_RULES: Tuple[Tuple[str, ClassificationRule], ...] = (
    ("INTEREST", _brokerage("INT", "Interest")),
    ("INTEREST/FPL_INTEREST", _brokerage("INT", "Interest")),
    ("REIMBURSEMENT/ATM", _brokerage("CREDIT", "ATM Reimbursement")),
    ("REIMBURSEMENT/CASHBACK", _brokerage("CREDIT", "Cash back")),
    ("P2P_PAYMENT/SEND", _field("p2pHandle", "XFER", "P2P Payment")),
    (
        "DEPOSIT/E_TRANSFER",
        _field("eTransferEmail", "XFER", "INTERAC e-Transfer from {eTransferName}"),
    ),
    (
        "WITHDRAWAL/E_TRANSFER",
        _field("eTransferEmail", "XFER", "INTERAC e-Transfer to {eTransferName}"),
    ),
    (
        "DIVIDEND/DIY_DIVIDEND",
        _field("assetSymbol", "DIV", "Received dividend from {assetSymbol}"),
    ),
    ("CREDIT_CARD/PURCHASE", _field("spendMerchant", "POS")),
    ("CREDIT_CARD/REFUND", _field("spendMerchant", "POS")),
    ("CREDIT_CARD/PAYMENT", _brokerage("PAYMENT")),
    ("CREDIT_CARD_PAYMENT", _brokerage("PAYMENT")),
    (
        "DIY_BUY/DIVIDEND_REINVESTMENT",
        _field(
            "assetSymbol",
            "DEBIT",
            "Reinvested dividend into {assetQuantity} {assetSymbol}",
            investment=True,
        ),
    ),
    *((f"DIY_BUY/{order}", _BOUGHT) for order in _BUY_ORDERS),
    *((f"DIY_SELL/{order}", _SOLD) for order in _SELL_ORDERS),
    *((f"CRYPTO_BUY/{order}", _BOUGHT) for order in _BUY_ORDERS),
    *((f"CRYPTO_SELL/{order}", _SOLD) for order in _SELL_ORDERS),
    (
        "DEPOSIT/AFT",
        _field("aftOriginatorName", "DEP", "Direct deposit from {aftOriginatorName}"),
    ),
    (
        "WITHDRAWAL/AFT",
        _field("aftOriginatorName", "DEBIT", "Direct deposit to {aftOriginatorName}"),
    ),
    (
        "DEPOSIT/EFT",
        ClassificationRule(PayeeSource.TRANSFER_SOURCE, "DEP", "Direct deposit from {payee}"),
    ),
    (
        "WITHDRAWAL/EFT",
        ClassificationRule(
            PayeeSource.TRANSFER_DESTINATION, "DEBIT", "Direct deposit to {payee}"
        ),
    ),
    (
        "INTERNAL_TRANSFER/SOURCE",
        ClassificationRule(PayeeSource.OPPOSING_ACCOUNT, "XFER", "Internal transfer to {payee}"),
    ),
    (
        "INTERNAL_TRANSFER/DESTINATION",
        ClassificationRule(
            PayeeSource.OPPOSING_ACCOUNT, "XFER", "Internal transfer from {payee}"
        ),
    ),
    ("SPEND/PREPAID", _field("spendMerchant", "POS", "Prepaid to {payee}")),
    (
        "WITHDRAWAL/BILL_PAY",
        _field("billPayPayeeNickname", "PAYMENT", "Bill payment to {billPayCompanyName}"),
    ),
)

CLASSIFICATION_RULES: Mapping[str, ClassificationRule] = dict(_DEFAULT_RULES)

OFX_TRNTYPES = frozenset(
    {
        "CREDIT",
        "DEBIT",
        "INT",
        "DIV",
        "FEE",
        "SRVCHG",
        "DEP",
        "ATM",
        "POS",
        "XFER",
        "CHECK",
        "PAYMENT",
        "CASH",
        "DIRECTDEP",
        "DIRECTDEBIT",
        "REPEATPMT",
        "OTHER",
    }
)


def classification_key(activity_type: Optional[str], sub_type: Optional[str]) -> str:
    """``type`` alone, or ``type/subType`` when the subtype is set."""

    key = activity_type or ""
    if sub_type:
        key = f"{key}/{sub_type}"
    return key


def lookup_rule(key: str) -> Optional[ClassificationRule]:
    return CLASSIFICATION_RULES.get(key)


__all__ = [
    "PayeeSource",
    "ClassificationRule",
    "CLASSIFICATION_RULES",
    "OFX_TRNTYPES",
    "classification_key",
    "lookup_rule",
]
