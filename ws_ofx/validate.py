"""Validation helpers for OFX generation."""

from __future__ import annotations

import pandas as pd

from ws_ofx.rules import OFX_TRNTYPES

# Columns produced by ``build_ofx.transactions_frame``.
REQUIRED_COLUMNS = {
    "date_parsed",
    "trnamt",
    "trntype",
    "fitid",
    "name",
    "memo",
    "investment",
}


def assert_ofx_ready(df: pd.DataFrame) -> None:
    """Validate that the DataFrame contains the fields required for OFX.

    An empty frame is valid: it renders as a statement with no transactions.
    """

    missing = sorted(REQUIRED_COLUMNS - set(df.columns))
    if missing:
        missing_list = ", ".join(missing)
        raise ValueError(
            f"OFX generation requires the following columns: {missing_list}"
        )

    if df.empty:
        return

    if df["trnamt"].isna().any():
        raise ValueError("OFX generation requires a 'trnamt' value on every row.")

    if pd.to_datetime(df["date_parsed"], errors="coerce", utc=True).isna().any():
        raise ValueError("OFX generation requires a 'date_parsed' value on every row.")

    unknown = sorted(set(df["trntype"].astype(str)) - OFX_TRNTYPES)
    if unknown:
        raise ValueError(f"Unsupported OFX transaction type(s): {', '.join(unknown)}")
