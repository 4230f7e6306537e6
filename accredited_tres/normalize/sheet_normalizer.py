"""
Sheet normalization engine for Accredited TREs.

Turns the raw text of one or more province sheet exports into an ordered list
of provider records plus the "as of" freshness date. The engine is stateless:
every call re-derives the full result from the raw text it is given.
"""

import re
import logging
from typing import Any, Dict, Optional, Sequence

from accredited_tres.errors import SheetParseError
from accredited_tres.ingestion.sheet_reader import data_row_start, tokenize_rows
from accredited_tres.normalize.config import get_default_normalization_config, merge_configs
from accredited_tres.normalize.records import NormalizationResult
from accredited_tres.normalize.row_normalizer import RowNormalizer

logger = logging.getLogger(__name__)


class SheetNormalizer:
    """
    Normalizes raw sheet text into provider records.

    Holds only configuration; the running location heading lives inside a
    single ``normalize`` call.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize sheet normalizer with configuration.

        Args:
            config: Full configuration dictionary; missing keys take defaults
        """
        self.config = merge_configs(get_default_normalization_config(), config)
        norm_config = self.config["normalization"]

        self.header_marker = norm_config["header_marker"]
        self.fallback_preamble_rows = norm_config["fallback_preamble_rows"]
        self.strict_quoting = norm_config["strict_quoting"]
        self.freshness_pattern = re.compile(norm_config["freshness_pattern"])
        if self.freshness_pattern.groups < 1:
            raise ValueError("normalization.freshness_pattern must capture the date in a group")
        self.error_separator = self.config["aggregation"]["error_separator"]

        self.row_normalizer = RowNormalizer(norm_config)

    def extract_freshness_date(self, raw_text: str) -> str:
        """
        Extract the "As of <date>." text from a sheet.

        Args:
            raw_text: Raw sheet text

        Returns:
            Trimmed date text, or empty string when absent
        """
        match = self.freshness_pattern.search(raw_text or "")
        if not match:
            return ""
        return match.group(1).strip()

    def normalize(self, raw_text: str, province_hint: Optional[str] = None) -> NormalizationResult:
        """
        Normalize one sheet.

        Malformed sheets do not raise: they yield an empty result carrying a
        diagnostic in ``error``.

        Args:
            raw_text: Raw comma-delimited sheet text
            province_hint: Optional province id, used in record ids and logs

        Returns:
            NormalizationResult for this sheet
        """
        label = province_hint or "sheet"
        freshness_date = self.extract_freshness_date(raw_text)

        try:
            rows = tokenize_rows(raw_text or "", self.strict_quoting)
        except SheetParseError as e:
            logger.error(f"Failed to parse {label}: {e}")
            return NormalizationResult(freshness_date=freshness_date, error=f"{label}: {e}")

        start, degraded = data_row_start(rows, self.header_marker, self.fallback_preamble_rows)
        indexed_rows = [(index, rows[index]) for index in range(start, len(rows))]
        records = self.row_normalizer.normalize_rows(indexed_rows, province_hint)

        logger.info(f"Normalized {len(records)} records from {label} ({len(indexed_rows)} data rows)")
        return NormalizationResult(records=records, freshness_date=freshness_date, degraded=degraded)

    def aggregate(self, results: Sequence[NormalizationResult]) -> NormalizationResult:
        """
        Concatenate per-source results in source order.

        The freshness date comes from the first source only. Diagnostics of
        failed sources are joined into one error string.

        Args:
            results: Per-source results in source order

        Returns:
            Combined NormalizationResult
        """
        records = []
        errors = []
        for result in results:
            records.extend(result.records)
            if result.error:
                errors.append(result.error)

        freshness_date = results[0].freshness_date if results else ""
        return NormalizationResult(
            records=records,
            freshness_date=freshness_date,
            error=self.error_separator.join(errors) or None,
            degraded=any(result.degraded for result in results),
            source_count=len(results),
        )

    def normalize_all(self, raw_texts: Sequence[str],
                      province_hints: Optional[Sequence[Optional[str]]] = None) -> NormalizationResult:
        """
        Normalize several sheets and concatenate their records.

        A source without a hint is scoped by its ordinal (``source0``,
        ``source1``...) so ids stay unique across the combined result.

        Args:
            raw_texts: Raw sheet texts in source order
            province_hints: Optional province id per source

        Returns:
            Combined NormalizationResult

        Raises:
            ValueError: If the hints do not match the sources one to one
        """
        if province_hints is None:
            province_hints = [None] * len(raw_texts)
        if len(province_hints) != len(raw_texts):
            raise ValueError(
                f"Got {len(province_hints)} province hints for {len(raw_texts)} sources"
            )
        province_hints = [hint or f"source{position}" for position, hint in enumerate(province_hints)]
        if len(set(province_hints)) != len(province_hints):
            raise ValueError(f"Province hints must be distinct: {province_hints}")

        results = [self.normalize(raw_text, hint) for raw_text, hint in zip(raw_texts, province_hints)]
        combined = self.aggregate(results)

        logger.info(f"Aggregated {len(combined.records)} records from {len(results)} sources")
        return combined


def normalize(raw_text: str, province_hint: Optional[str] = None,
              config: Optional[Dict[str, Any]] = None) -> NormalizationResult:
    """
    Convenience function to normalize one sheet.

    Args:
        raw_text: Raw comma-delimited sheet text
        province_hint: Optional province id
        config: Optional configuration dictionary

    Returns:
        NormalizationResult
    """
    return SheetNormalizer(config).normalize(raw_text, province_hint)


def normalize_all(raw_texts: Sequence[str], province_hints: Optional[Sequence[Optional[str]]] = None,
                  config: Optional[Dict[str, Any]] = None) -> NormalizationResult:
    """
    Convenience function to normalize several sheets in order.

    Args:
        raw_texts: Raw sheet texts in source order
        province_hints: Optional province id per source
        config: Optional configuration dictionary

    Returns:
        Combined NormalizationResult
    """
    return SheetNormalizer(config).normalize_all(raw_texts, province_hints)
