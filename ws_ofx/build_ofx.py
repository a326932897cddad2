"""Render classified transactions as an OFX 1.02 SGML statement.

The three statement families (bank, credit card, investment) share one
template: the signon block, status blocks, date range and escaping are
written once and only the message-set element names, the account block and
the balance block vary with the family.  Balances are always zero since the
export covers transaction history, not a statement of balances.
"""

from dataclasses import asdict, dataclass
from typing import Iterable, List, Optional
from uuid import uuid4

import pandas as pd

from ws_ofx.date_time import ofx_datetime, utc_now
from ws_ofx.trntype import ClassifiedTransaction
from ws_ofx.validate import assert_ofx_ready

OFX_HEADER = """OFXHEADER:100
DATA:OFXSGML
VERSION:102
SECURITY:NONE
ENCODING:UTF-8
CHARSET:UTF-8
COMPRESSION:NONE
OLDFILEUID:NONE
NEWFILEUID:NONE
"""

_FRAME_COLUMNS = [
    "date_parsed",
    "trnamt",
    "trntype",
    "fitid",
    "name",
    "memo",
    "investment",
]

_XML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)


@dataclass(frozen=True)
class StatementFamily:
    """Element names that distinguish one OFX message set from another."""

    msgsrs: str
    trnrs: str
    stmtrs: str
    acctfrom: str
    tranlist: str
    investment: bool = False
    with_bankid: bool = False


BANK = StatementFamily(
    msgsrs="BANKMSGSRSV1",
    trnrs="STMTTRNRS",
    stmtrs="STMTRS",
    acctfrom="BANKACCTFROM",
    tranlist="BANKTRANLIST",
    with_bankid=True,
)
CREDIT_CARD = StatementFamily(
    msgsrs="CREDITCARDMSGSRSV1",
    trnrs="CCSTMTTRNRS",
    stmtrs="CCSTMTRS",
    acctfrom="CCACCTFROM",
    tranlist="BANKTRANLIST",
)
INVESTMENT = StatementFamily(
    msgsrs="INVSTMTMSGSRSV1",
    trnrs="INVSTMTTRNRS",
    stmtrs="INVSTMTRS",
    acctfrom="INVACCTFROM",
    tranlist="INVTRANLIST",
    investment=True,
)


def statement_family(accttype: str) -> StatementFamily:
    accttype = accttype.upper()
    if accttype == "CREDITCARD":
        return CREDIT_CARD
    if accttype == "INVESTMENT":
        return INVESTMENT
    return BANK


def escape_text(value: object) -> str:
    """Escape the five XML metacharacters and fold newlines into spaces."""

    if value is None:
        return ""
    text = str(value).replace("\r\n", " ").replace("\n", " ").replace("\r", " ")
    for char, entity in _XML_ESCAPES:
        text = text.replace(char, entity)
    return text


def _escape_series(series: pd.Series) -> pd.Series:
    """Normalise OFX string fields while preserving XML entities."""

    normalised = (
        series.astype("string")
        .fillna("")
        .str.replace(r"\r?\n|\r", " ", regex=True)
    )
    for char, entity in _XML_ESCAPES:
        normalised = normalised.str.replace(char, entity, regex=False)
    return normalised


def _format_amount(value) -> str:
    return format(value, "f")


def transactions_frame(transactions: Iterable[ClassifiedTransaction]) -> pd.DataFrame:
    """Tabulate classified transactions with the columns ``build_ofx`` reads."""

    records = [asdict(txn) for txn in transactions]
    df = pd.DataFrame.from_records(records, columns=[
        "date", "amount", "fitid", "payee", "memo", "trntype", "investment"
    ])
    df = df.rename(columns={"date": "date_parsed", "amount": "trnamt", "payee": "name"})
    return df[_FRAME_COLUMNS]


def _unique_fitids(fitids: pd.Series) -> pd.Series:
    """Suffix repeated FITIDs so that each one is unique within the statement."""

    fitids = fitids.astype(str)
    occurrence = fitids.groupby(fitids).cumcount()
    if not (occurrence > 0).any():
        return fitids

    # first occurrences keep their id; suffixes skip any id already taken
    taken = set(fitids[occurrence == 0])
    unique = fitids.copy()
    for idx in fitids.index[occurrence > 0]:
        base = fitids[idx]
        n = 1
        while f"{base}-{n}" in taken:
            n += 1
        unique[idx] = f"{base}-{n}"
        taken.add(unique[idx])
    return unique


def _transaction_lines(df: pd.DataFrame, family: StatementFamily) -> List[str]:
    render_df = pd.DataFrame(
        {
            "trntype": df["trntype"].astype(str),
            "dtposted": df["date_parsed"].map(ofx_datetime),
            "trnamt": df["trnamt"].map(_format_amount),
            "fitid": _escape_series(_unique_fitids(df["fitid"])),
            "name": _escape_series(df["name"]),
            "memo": _escape_series(df["memo"]),
            "invbank": df["investment"].astype(bool) & family.investment,
        },
        index=df.index,
    )

    lines: List[str] = []
    for row in render_df.itertuples(index=False, name="Txn"):
        stmttrn = [
            "<STMTTRN>",
            f"<TRNTYPE>{row.trntype}",
            f"<DTPOSTED>{row.dtposted}",
            f"<TRNAMT>{row.trnamt}",
            f"<FITID>{row.fitid}",
        ]
        if row.name:
            stmttrn.append(f"<NAME>{row.name}")
        if row.memo:
            stmttrn.append(f"<MEMO>{row.memo}")
        stmttrn.append("</STMTTRN>")
        if row.invbank:
            stmttrn = ["<INVBANKTRAN>", *stmttrn, "</INVBANKTRAN>"]
        lines.extend(stmttrn)
    return lines


def _status_lines() -> List[str]:
    return ["<STATUS>", "<CODE>0", "<SEVERITY>INFO", "</STATUS>"]


# ---------- OFX ----------
def build_ofx(
    df_txn: pd.DataFrame,
    acctid: str,
    accttype: str = "CHECKING",
    *,
    org: str = "Wealthsimple",
    fid: str = "0",
    currency: str = "CAD",
    now: Optional[pd.Timestamp] = None,
) -> str:
    """Render one account's transactions as a complete OFX document.

    ``accttype`` is one of CHECKING, SAVINGS, CREDITCARD or INVESTMENT and
    selects the statement family.  ``DTSTART``/``DTEND`` are the first and
    last transaction dates, or ``now`` when there are no transactions.
    """

    assert_ofx_ready(df_txn)

    now = now if now is not None else utc_now()
    dtnow = ofx_datetime(now)

    accttype = accttype.upper()
    if accttype not in {"CHECKING", "SAVINGS", "CREDITCARD", "INVESTMENT"}:
        accttype = "CHECKING"
    family = statement_family(accttype)

    df_txn = df_txn.copy()
    df_txn["date_parsed"] = pd.to_datetime(df_txn["date_parsed"], utc=True)
    df_txn = df_txn.sort_values("date_parsed", kind="stable")

    if df_txn.empty:
        dtstart = dtend = dtnow
    else:
        dtstart = ofx_datetime(df_txn["date_parsed"].iloc[0])
        dtend = ofx_datetime(df_txn["date_parsed"].iloc[-1])

    acct = escape_text(acctid)
    org_text = escape_text(org)

    lines = [
        OFX_HEADER,
        "<OFX>",
        "<SIGNONMSGSRSV1>",
        "<SONRS>",
        *_status_lines(),
        f"<DTSERVER>{dtnow}",
        "<LANGUAGE>ENG",
        "<FI>",
        f"<ORG>{org_text}",
        f"<FID>{escape_text(fid)}",
        "</FI>",
        "</SONRS>",
        "</SIGNONMSGSRSV1>",
        f"<{family.msgsrs}>",
        f"<{family.trnrs}>",
        f"<TRNUID>{uuid4()}",
        *_status_lines(),
        f"<{family.stmtrs}>",
    ]
    if family.investment:
        lines.append(f"<DTASOF>{dtnow}")
    lines.append(f"<CURDEF>{currency}")

    lines.append(f"<{family.acctfrom}>")
    if family.with_bankid:
        lines.append(f"<BANKID>{org_text}")
    if family.investment:
        lines.append(f"<BROKERID>{org_text}")
    lines.append(f"<ACCTID>{acct}")
    if family.with_bankid:
        lines.append(f"<ACCTTYPE>{accttype}")
    lines.append(f"</{family.acctfrom}>")

    lines.extend(
        [
            f"<{family.tranlist}>",
            f"<DTSTART>{dtstart}",
            f"<DTEND>{dtend}",
            *_transaction_lines(df_txn, family),
            f"</{family.tranlist}>",
        ]
    )

    if family.investment:
        lines.extend(
            [
                "<INVBAL>",
                "<AVAILCASH>0",
                "<MARGINBALANCE>0",
                "<SHORTBALANCE>0",
                "</INVBAL>",
            ]
        )
    else:
        lines.extend(["<LEDGERBAL>", "<BALAMT>0", f"<DTASOF>{dtnow}", "</LEDGERBAL>"])

    lines.extend(
        [
            f"</{family.stmtrs}>",
            f"</{family.trnrs}>",
            f"</{family.msgsrs}>",
            "</OFX>",
        ]
    )
    return "\n".join(lines) + "\n"
