import re
import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pandas as pd
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from ws_ofx.accounts import account_from_node, derive_nickname
from ws_ofx.build_ofx import build_ofx, escape_text, transactions_frame
from ws_ofx.date_time import DateRangePreset, ofx_datetime
from ws_ofx.detect_account_type import detect_account_type, map_account_type
from ws_ofx.id import make_fitid
from ws_ofx.trntype import ClassifiedTransaction
from ws_ofx.validate import assert_ofx_ready


NOW = pd.Timestamp("2024-06-15 12:00:00", tz="UTC")


def txn(date, amount="10.00", payee="Payee", memo="", trntype="CREDIT", fitid=None, investment=False):
    ts = pd.Timestamp(date, tz="UTC")
    return ClassifiedTransaction(
        date=ts,
        amount=Decimal(amount),
        fitid=fitid or f"id-{date}",
        payee=payee,
        memo=memo,
        trntype=trntype,
        investment=investment,
    )


def unescape(text):
    for entity, char in (("&lt;", "<"), ("&gt;", ">"), ("&quot;", '"'), ("&apos;", "'"), ("&amp;", "&")):
        text = text.replace(entity, char)
    return text


def tag_values(ofx_text, tag):
    return re.findall(rf"^<{tag}>(.*)$", ofx_text, flags=re.M)


def test_ofx_datetime_zeroes_time_of_day():
    ts = pd.Timestamp("2023-05-01 12:34:56", tz="UTC")
    assert ofx_datetime(ts) == "20230501000000"
    assert len(ofx_datetime(ts)) == 14


def test_ofx_datetime_handles_none():
    assert ofx_datetime(None) is None
    assert ofx_datetime(pd.NaT) is None


def test_date_range_presets():
    now = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

    assert DateRangePreset.ALL.from_date(now) is None
    assert DateRangePreset.LAST_2_WEEKS.from_date(now) == now - pd.Timedelta(days=14)

    month_start = DateRangePreset.THIS_MONTH.from_date(now)
    assert (month_start.day, month_start.hour, month_start.minute) == (1, 0, 0)
    assert month_start <= now


def test_make_fitid_prefers_canonical_id():
    assert make_fitid(" canon-1 ", NOW) == "canon-1"


def test_make_fitid_fallback_is_not_reused():
    assert make_fitid(None, NOW) != make_fitid(None, NOW)


@pytest.mark.parametrize(
    "kind, expected",
    [
        ("CASH", "Cash"),
        ("CREDIT_CARD", "Credit Card"),
        ("SELF_DIRECTED_CRYPTO", "Crypto"),
        ("SELF_DIRECTED_NON_REGISTERED", "Non-registered"),
        ("SELF_DIRECTED_TFSA", "TFSA"),
        ("MANAGED_RRSP", "Unknown"),
        (None, "Unknown"),
    ],
)
def test_derive_nickname(kind, expected):
    assert derive_nickname(kind) == expected


def test_account_from_node_keeps_explicit_nickname():
    account = account_from_node({"id": "a1", "unifiedAccountType": "CASH", "nickname": "Spending"})
    assert account.nickname == "Spending"
    assert account.unified_account_type == "CASH"


@pytest.mark.parametrize(
    "kind, expected",
    [
        ("CASH", "CHECKING"),
        ("CHEQUING", "CHECKING"),
        ("SAVINGS", "SAVINGS"),
        ("CREDIT_CARD", "CREDITCARD"),
        ("SELF_DIRECTED_FHSA", "INVESTMENT"),
        ("MANAGED_NON_REGISTERED", "INVESTMENT"),
        ("SELF_DIRECTED_SOMETHING_NEW", "INVESTMENT"),
        ("MANAGED_LIRA", "INVESTMENT"),
        ("LINE_OF_CREDIT", "CREDITCARD"),
        ("HIGH_INTEREST_SAVINGS", "SAVINGS"),
        ("PORTFOLIO_LINE", "CHECKING"),
        (None, "CHECKING"),
    ],
)
def test_map_account_type(kind, expected):
    assert map_account_type(kind) == expected


def test_credit_card_activity_overrides_declared_kind():
    transactions = [{"type": "DEPOSIT"}, {"type": "CREDIT_CARD", "subType": "PURCHASE"}]

    assert detect_account_type("CASH", transactions) == "CREDITCARD"
    assert detect_account_type("SELF_DIRECTED_TFSA", [{"type": "CREDIT_CARD_PAYMENT"}]) == "CREDITCARD"
    assert detect_account_type("CASH", [{"type": "DEPOSIT"}]) == "CHECKING"


def test_assert_ofx_ready_accepts_empty_frame():
    assert_ofx_ready(transactions_frame([]))


def test_assert_ofx_ready_rejects_missing_columns():
    df = pd.DataFrame({"date_parsed": [NOW]})

    with pytest.raises(ValueError, match="trnamt"):
        assert_ofx_ready(df)


def test_assert_ofx_ready_rejects_unknown_trntype():
    df = transactions_frame([txn("2024-05-01 12:00", trntype="BOGUS")])

    with pytest.raises(ValueError, match="BOGUS"):
        assert_ofx_ready(df)


def test_build_ofx_uses_sorted_transaction_date_range():
    df = transactions_frame(
        [
            txn("2024-05-10 12:00"),
            txn("2024-05-02 12:00"),
            txn("2024-05-06 12:00"),
        ]
    )

    ofx_text = build_ofx(df, acctid="acct-1", accttype="CHECKING", now=NOW)

    assert tag_values(ofx_text, "DTSTART") == ["20240502000000"]
    assert tag_values(ofx_text, "DTEND") == ["20240510000000"]
    assert tag_values(ofx_text, "DTPOSTED") == [
        "20240502000000",
        "20240506000000",
        "20240510000000",
    ]


def test_build_ofx_empty_account_uses_now():
    ofx_text = build_ofx(transactions_frame([]), acctid="acct-1", accttype="SAVINGS", now=NOW)

    assert tag_values(ofx_text, "DTSTART") == ["20240615000000"]
    assert tag_values(ofx_text, "DTEND") == ["20240615000000"]
    assert "<STMTTRN>" not in ofx_text
    assert "<ACCTTYPE>SAVINGS" in ofx_text
    assert ofx_text.rstrip().endswith("</OFX>")


def test_build_ofx_signs_amounts():
    df = transactions_frame(
        [
            txn("2024-05-01 12:00", amount="-4.75", fitid="a"),
            txn("2024-05-02 12:00", amount="12.34", fitid="b"),
        ]
    )

    ofx_text = build_ofx(df, acctid="acct-1", now=NOW)

    assert tag_values(ofx_text, "TRNAMT") == ["-4.75", "12.34"]
    assert tag_values(ofx_text, "BALAMT") == ["0"]


def test_build_ofx_escapes_text_fields():
    payee = "Tom & \"Jerry's\" <Shop>"
    memo = "A<B & C>'D'"
    df = transactions_frame([txn("2024-05-01 12:00", payee=payee, memo=memo, fitid="x&y")])

    ofx_text = build_ofx(df, acctid="acct<1>", now=NOW)

    [name] = tag_values(ofx_text, "NAME")
    [memo_out] = tag_values(ofx_text, "MEMO")
    assert not set("<>\"'") & set(name)
    assert unescape(name) == payee
    assert unescape(memo_out) == memo
    assert tag_values(ofx_text, "FITID") == ["x&amp;y"]
    assert tag_values(ofx_text, "ACCTID") == ["acct&lt;1&gt;"]


def test_escape_text_folds_newlines():
    assert escape_text("line one\nline two") == "line one line two"
    assert escape_text(None) == ""


def test_build_ofx_multiline_text_decodes_to_folded_text():
    payee = "Tom & Jerry\r\nUnit <4>"
    memo = "first\nsecond\rthird"
    df = transactions_frame([txn("2024-05-01 12:00", payee=payee, memo=memo)])

    ofx_text = build_ofx(df, acctid="acct-1", now=NOW)

    assert unescape(tag_values(ofx_text, "NAME")[0]) == "Tom & Jerry Unit <4>"
    assert unescape(tag_values(ofx_text, "MEMO")[0]) == "first second third"


def test_build_ofx_omits_empty_name_and_memo():
    df = transactions_frame([txn("2024-05-01 12:00", payee="", memo="")])

    ofx_text = build_ofx(df, acctid="acct-1", now=NOW)

    assert "<NAME>" not in ofx_text
    assert "<MEMO>" not in ofx_text


def test_build_ofx_makes_duplicate_fitids_unique():
    df = transactions_frame(
        [
            txn("2024-05-01 12:00", fitid="dup"),
            txn("2024-05-02 12:00", fitid="dup"),
        ]
    )

    ofx_text = build_ofx(df, acctid="acct-1", now=NOW)

    assert tag_values(ofx_text, "FITID") == ["dup", "dup-1"]


def test_build_ofx_duplicate_fitid_suffix_skips_existing_ids():
    df = transactions_frame(
        [
            txn("2024-05-01 12:00", fitid="dup"),
            txn("2024-05-02 12:00", fitid="dup"),
            txn("2024-05-03 12:00", fitid="dup-1"),
        ]
    )

    fitids = tag_values(build_ofx(df, acctid="acct-1", now=NOW), "FITID")

    assert fitids == ["dup", "dup-2", "dup-1"]
    assert len(set(fitids)) == len(fitids)


def test_build_ofx_shared_signon_block():
    ofx_text = build_ofx(transactions_frame([]), acctid="acct-1", accttype="INVESTMENT", now=NOW)

    assert "<CODE>0\n<SEVERITY>INFO" in ofx_text
    assert "<LANGUAGE>ENG" in ofx_text
    assert "<ORG>Wealthsimple" in ofx_text
    assert tag_values(ofx_text, "DTSERVER") == ["20240615000000"]


def test_build_ofx_credit_card_family():
    df = transactions_frame([txn("2024-05-01 12:00", trntype="POS")])

    ofx_text = build_ofx(df, acctid="cc-1", accttype="CREDITCARD", now=NOW)

    assert "<CREDITCARDMSGSRSV1>" in ofx_text
    assert "<CCACCTFROM>\n<ACCTID>cc-1\n</CCACCTFROM>" in ofx_text
    assert "<CURDEF>CAD" in ofx_text
    assert "<BANKID>" not in ofx_text
    assert "<LEDGERBAL>" in ofx_text
    assert ofx_text.count("<CCSTMTRS>") == 1


def test_build_ofx_investment_family_wraps_trades():
    df = transactions_frame(
        [
            txn("2024-05-01 12:00", trntype="DEBIT", fitid="buy", investment=True),
            txn("2024-05-02 12:00", trntype="DIV", fitid="div"),
        ]
    )

    ofx_text = build_ofx(df, acctid="tfsa-1", accttype="INVESTMENT", now=NOW)

    assert "<INVSTMTMSGSRSV1>" in ofx_text
    assert "<BROKERID>Wealthsimple" in ofx_text
    assert "<INVTRANLIST>" in ofx_text
    assert ofx_text.count("<INVBANKTRAN>") == 1
    assert "<INVBANKTRAN>\n<STMTTRN>\n<TRNTYPE>DEBIT" in ofx_text
    assert "<AVAILCASH>0" in ofx_text
    assert "<LEDGERBAL>" not in ofx_text


def test_build_ofx_bank_family_ignores_investment_flag():
    df = transactions_frame([txn("2024-05-01 12:00", trntype="DEBIT", investment=True)])

    ofx_text = build_ofx(df, acctid="cash-1", accttype="CHECKING", now=NOW)

    assert "<BANKMSGSRSV1>" in ofx_text
    assert "<BANKID>Wealthsimple" in ofx_text
    assert "<INVBANKTRAN>" not in ofx_text
