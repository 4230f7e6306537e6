"""
Row normalization for Accredited TREs.

Classifies tokenized sheet rows as location headings or provider rows,
reconciles the optional leading "No." column, and builds provider records
with stable ids.
"""

import re
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from accredited_tres.normalize.address_normalizer import AddressNormalizer
from accredited_tres.normalize.records import ProviderRecord

logger = logging.getLogger(__name__)

# Columns of a provider row after the "No." column
FIELD_COLUMNS = [
    "enterprise_type",
    "name",
    "address",
    "phone",
    "email",
    "accreditation_no",
    "validity",
    "status",
]


class RowNormalizer:
    """
    Turns sheet rows into provider records.

    Sheets are maintained by hand, so every decision here is made per row:
    a row may or may not carry its index number, and location headings may
    sit in any single cell.
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize row normalizer with configuration.

        Args:
            config: ``normalization`` section of the configuration
        """
        config = config or {}
        self.canonical_width = config.get("canonical_width", 9)
        self.id_prefix = config.get("id_prefix", "provider")
        self.address_normalizer = AddressNormalizer()

        self.integer_pattern = re.compile(r'^\d+$')
        self.numeric_pattern = re.compile(r'^\d+(?:\.\d+)?$')
        self.slug_pattern = re.compile(r'[^a-z0-9]+')

    def location_marker(self, row: List[str]) -> Optional[str]:
        """
        Return the heading text if the row is a location marker.

        A location marker has exactly one non-empty cell and that cell is
        not a number.

        Args:
            row: Tokenized row

        Returns:
            Trimmed heading text, or None for any other row
        """
        cells = [cell.strip() for cell in row if cell.strip()]
        if len(cells) != 1:
            return None
        if self.numeric_pattern.match(cells[0]):
            return None
        return cells[0]

    def has_index_column(self, row: List[str]) -> bool:
        """Whether the first cell is a non-negative integer "No." value."""
        return bool(row) and bool(self.integer_pattern.match(row[0].strip()))

    def extract_fields(self, row: List[str]) -> Dict[str, str]:
        """
        Map a provider row to named fields.

        The row is padded to the canonical width. When the first cell is not
        an integer the "No." column is taken to be missing and every field
        shifts one column left.

        Args:
            row: Tokenized row

        Returns:
            Dictionary of trimmed field values keyed by FIELD_COLUMNS
        """
        padded = list(row) + [""] * max(0, self.canonical_width - len(row))
        offset = 1 if self.has_index_column(padded) else 0
        values = padded[offset:offset + len(FIELD_COLUMNS)]
        return {column: value.strip() for column, value in zip(FIELD_COLUMNS, values)}

    def slugify(self, text: str) -> str:
        return self.slug_pattern.sub('-', text.lower()).strip('-')

    def make_id(self, index: int, name: str, province_hint: Optional[str] = None) -> str:
        """
        Build a record id from row position and name.

        Args:
            index: Position of the row among non-empty rows of its sheet
            name: Provider name
            province_hint: Optional province id scoping the id

        Returns:
            Deterministic id string
        """
        parts = [self.id_prefix]
        if province_hint:
            parts.append(self.slugify(province_hint))
        parts.append(str(index))
        parts.append(self.slugify(name))
        return "-".join(part for part in parts if part)

    def build_record(self, index: int, row: List[str], location: str,
                     province_hint: Optional[str] = None) -> Optional[ProviderRecord]:
        """
        Build a provider record from one row.

        Args:
            index: Position of the row among non-empty rows
            row: Tokenized row
            location: Current location heading, may be empty
            province_hint: Optional province id scoping the id

        Returns:
            ProviderRecord, or None when the row has no name
        """
        fields = self.extract_fields(row)
        if not fields["name"]:
            logger.debug(f"Dropped row {index}: no provider name")
            return None

        address = self.address_normalizer.normalize_address(fields["address"])
        if not location:
            location = self.address_normalizer.extract_locality(address)

        return ProviderRecord(
            id=self.make_id(index, fields["name"], province_hint),
            location=location,
            enterprise_type=fields["enterprise_type"],
            name=fields["name"],
            address=address,
            phone=fields["phone"],
            email=fields["email"] or None,
            accreditation_no=fields["accreditation_no"],
            validity=fields["validity"],
            status=fields["status"],
        )

    def normalize_rows(self, indexed_rows: Iterable[Tuple[int, List[str]]],
                       province_hint: Optional[str] = None) -> List[ProviderRecord]:
        """
        Normalize a sequence of data rows into provider records.

        The current location is threaded through the loop: a marker row
        replaces it, provider rows are tagged with it.

        Args:
            indexed_rows: (row index, row) pairs in sheet order
            province_hint: Optional province id scoping the ids

        Returns:
            Provider records in row order
        """
        records = []
        current_location = ""

        for index, row in indexed_rows:
            heading = self.location_marker(row)
            if heading is not None:
                current_location = heading
                continue

            record = self.build_record(index, row, current_location, province_hint)
            if record is not None:
                records.append(record)

        return records
