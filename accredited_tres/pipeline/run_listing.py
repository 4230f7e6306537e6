"""
Fetch-all pipeline for Accredited TREs.

Resolves provinces from the registry, retrieves every province sheet
concurrently, normalizes each one, and aggregates the records in province
order. A province whose retrieval fails contributes no records and a
diagnostic; the others are still served.
"""

import argparse
import json
import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from accredited_tres.errors import RetrievalFailure, SourceNotFound
from accredited_tres.ingestion.source_fetcher import SourceFetcher
from accredited_tres.normalize.config import (
    DEFAULT_CONFIG_PATH,
    get_default_normalization_config,
    load_normalization_config,
    merge_configs,
    validate_normalization_config,
)
from accredited_tres.normalize.records import NormalizationResult, ProvinceDescriptor
from accredited_tres.normalize.sheet_normalizer import SheetNormalizer
from accredited_tres.registry.provinces import list_provinces, with_overrides
from accredited_tres.reporting.listing import freshness_label, records_to_dataframe, summarize

logger = logging.getLogger(__name__)

FetchOutcome = Union[str, RetrievalFailure]


class ListingPipeline:
    """
    Coordinates retrieval and normalization of province sheets.
    """

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH,
                 config: Optional[Dict[str, Any]] = None,
                 fetcher: Optional[SourceFetcher] = None):
        """
        Initialize pipeline with configuration.

        Args:
            config_path: Path to configuration file, read when ``config`` is not given
            config: Configuration dictionary
            fetcher: Source fetcher; built from the ``sources`` section when omitted
        """
        if config is not None:
            self.config = merge_configs(get_default_normalization_config(), config)
        else:
            self.config = load_normalization_config(config_path)
        if not validate_normalization_config(self.config):
            raise ValueError(f"Invalid configuration: {config_path}")

        sources_config = self.config.get("sources", {})
        self.max_workers = sources_config.get("max_workers", 5)
        self.provinces = with_overrides(sources_config.get("overrides") or {}, list_provinces())
        self.fetcher = fetcher or SourceFetcher(
            data_dir=sources_config.get("data_dir", "data"),
            timeout=sources_config.get("timeout", 20),
        )
        self.normalizer = SheetNormalizer(self.config)

        logger.info("Initialized listing pipeline")

    def resolve(self, province_ids: Optional[Sequence[str]] = None) -> List[ProvinceDescriptor]:
        """
        Resolve province ids against the configured registry.

        Args:
            province_ids: Ids to resolve; every province when omitted

        Returns:
            Descriptors in the requested order, repeated ids dropped

        Raises:
            SourceNotFound: If an id is unknown
        """
        if not province_ids:
            return list(self.provinces)

        by_id = {province.id: province for province in self.provinces}
        resolved = []
        for province_id in province_ids:
            if province_id not in by_id:
                raise SourceNotFound(province_id)
            if by_id[province_id] in resolved:
                logger.warning(f"Ignoring repeated province: {province_id}")
                continue
            resolved.append(by_id[province_id])
        return resolved

    def _fetch_one(self, province: ProvinceDescriptor) -> FetchOutcome:
        try:
            return self.fetcher.fetch(province.source_location)
        except RetrievalFailure as e:
            logger.warning(f"Retrieval failed for {province.id}: {e}")
            return e

    def fetch_sources(self, provinces: Sequence[ProvinceDescriptor]) -> List[Tuple[ProvinceDescriptor, FetchOutcome]]:
        """
        Retrieve every province sheet concurrently.

        Args:
            provinces: Provinces to fetch

        Returns:
            (province, raw text or RetrievalFailure) pairs in province order
        """
        if not provinces:
            return []

        workers = min(self.max_workers, len(provinces))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            outcomes = list(executor.map(self._fetch_one, provinces))

        return list(zip(provinces, outcomes))

    def run(self, province_ids: Optional[Sequence[str]] = None) -> NormalizationResult:
        """
        Fetch and normalize provinces.

        Args:
            province_ids: Ids to include; every province when omitted

        Returns:
            Combined NormalizationResult in province order

        Raises:
            SourceNotFound: If an id is unknown
        """
        start_time = time.time()
        provinces = self.resolve(province_ids)

        results = []
        for province, outcome in self.fetch_sources(provinces):
            if isinstance(outcome, RetrievalFailure):
                results.append(NormalizationResult(error=f"{province.id}: {outcome}"))
            else:
                results.append(self.normalizer.normalize(outcome, province.id))

        combined = self.normalizer.aggregate(results)

        duration = time.time() - start_time
        logger.info(
            f"Listed {len(combined.records)} records from {len(provinces)} provinces "
            f"in {duration:.2f} seconds"
        )
        if combined.error:
            logger.warning(f"Completed with source errors: {combined.error}")
        return combined

    def save_results(self, result: NormalizationResult, output_path: str):
        """Save records as CSV and the full result as JSON."""
        output_dir = Path(output_path)
        output_dir.mkdir(parents=True, exist_ok=True)

        records_to_dataframe(result.records).to_csv(output_dir / "providers.csv", index=False)
        with open(output_dir / "providers.json", "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)

        logger.info(f"Results saved to {output_path}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the listing pipeline."""
    parser = argparse.ArgumentParser(description="Accredited TREs listing pipeline")
    parser.add_argument("--province", action="append", dest="provinces",
                        help="Province id to include (repeatable); all provinces by default")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Configuration file path")
    parser.add_argument("--output", help="Output directory path")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        pipeline = ListingPipeline(args.config)
        result = pipeline.run(args.provinces)
    except (SourceNotFound, ValueError) as e:
        logger.error(f"Pipeline execution failed: {e}")
        return 1

    if args.output:
        pipeline.save_results(result, args.output)

    summary = summarize(result.records)

    print("\n" + "=" * 50)
    print("ACCREDITED TRES LISTING SUMMARY")
    print("=" * 50)
    label = freshness_label(result.freshness_date)
    if label:
        print(label)
    print(f"Sources: {result.source_count}")
    print(f"Records: {summary['total_records']:,}")
    print(f"Locations: {summary['locations']:,}")
    if result.degraded:
        print("Warning: at least one sheet had no header row")
    if result.error:
        print(f"Errors: {result.error}")
    print("=" * 50)

    return 0


if __name__ == "__main__":
    sys.exit(main())
