from typing import Optional
from uuid import uuid4

import pandas as pd


# ---------- ids ----------
def _normalize_fitid(value) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""

    text = str(value).strip()
    return "" if not text or text.lower() == "nan" else text


def make_fitid(canonical_id: Optional[str], occurred_at: pd.Timestamp) -> str:
    """Return the activity's canonical id, or a synthetic one.

    Settled activity always carries ``canonicalId``.  The fallback is
    ``<epoch millis>-<9 random chars>`` and differs between runs.
    """

    fitid = _normalize_fitid(canonical_id)
    if fitid:
        return fitid

    millis = int(occurred_at.timestamp() * 1000)
    return f"{millis}-{uuid4().hex[:9]}"
