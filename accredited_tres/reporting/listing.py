"""
Listing helpers for Accredited TREs.

Search, grouping, and summary views over normalized provider records, as the
listing UI presents them: records grouped under location headings, a free-text
search box, and an "As of" freshness line.
"""

import logging
from collections import OrderedDict
from typing import Dict, List, Sequence

import pandas as pd

from accredited_tres.normalize.records import RECORD_FIELDS, ProviderRecord

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ["name", "location", "enterpriseType", "address"]


def records_to_dataframe(records: Sequence[ProviderRecord]) -> pd.DataFrame:
    """
    Convert provider records to a DataFrame.

    Args:
        records: Provider records

    Returns:
        DataFrame with one row per record and the output fields as columns
    """
    rows = [record.to_dict() for record in records]
    df = pd.DataFrame(rows, columns=RECORD_FIELDS)
    df["email"] = df["email"].fillna("")
    return df


def search_records(records: Sequence[ProviderRecord], term: str) -> List[ProviderRecord]:
    """
    Filter records by a case-insensitive substring.

    Args:
        records: Provider records
        term: Search text; blank returns every record

    Returns:
        Matching records in their original order
    """
    if not term or not term.strip() or not records:
        return list(records)

    df = records_to_dataframe(records)
    needle = term.lower()
    mask = pd.Series(False, index=df.index)
    for column in SEARCH_FIELDS:
        mask |= df[column].str.lower().str.contains(needle, regex=False)

    matches = [record for record, hit in zip(records, mask.tolist()) if hit]
    logger.debug(f"Search '{term}' matched {len(matches)} of {len(records)} records")
    return matches


def group_by_location(records: Sequence[ProviderRecord]) -> "OrderedDict[str, List[ProviderRecord]]":
    """
    Group records under their location, in order of first appearance.
    """
    groups: "OrderedDict[str, List[ProviderRecord]]" = OrderedDict()
    for record in records:
        groups.setdefault(record.location, []).append(record)
    return groups


def summarize(records: Sequence[ProviderRecord]) -> Dict[str, object]:
    """
    Summarize records by location and enterprise type.

    Args:
        records: Provider records

    Returns:
        Dictionary with totals and per-location / per-type counts
    """
    df = records_to_dataframe(records)
    if df.empty:
        return {
            "total_records": 0,
            "locations": 0,
            "by_location": {},
            "by_enterprise_type": {},
            "with_email": 0,
        }

    by_location = df.groupby("location", sort=False).size()
    by_type = df.groupby("enterpriseType", sort=False).size()

    return {
        "total_records": int(len(df)),
        "locations": int(df["location"].nunique()),
        "by_location": {key: int(value) for key, value in by_location.items()},
        "by_enterprise_type": {key: int(value) for key, value in by_type.items()},
        "with_email": int((df["email"] != "").sum()),
    }


def freshness_label(freshness_date: str) -> str:
    """Display label for a freshness date; empty when the date is unknown."""
    if not freshness_date:
        return ""
    return f"As of {freshness_date}"
