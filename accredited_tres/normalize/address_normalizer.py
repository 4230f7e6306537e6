"""
Address normalization for Accredited TREs.

Addresses are free text. The only structure relied upon is that the last
comma-separated segment usually names the town or city, which serves as a
location when a sheet has no location heading above a row.
"""

import re
import logging
from typing import List

logger = logging.getLogger(__name__)

_WHITESPACE_PATTERN = re.compile(r'\s+')


class AddressNormalizer:
    """
    Cleans address text and extracts its trailing locality.
    """

    def normalize_address(self, address: str) -> str:
        """
        Collapse runs of whitespace, including embedded line breaks.

        Args:
            address: Raw address text

        Returns:
            Cleaned address
        """
        if not isinstance(address, str):
            return ""
        return _WHITESPACE_PATTERN.sub(' ', address).strip()

    def split_segments(self, address: str) -> List[str]:
        """Split an address on commas, dropping blank segments."""
        segments = [segment.strip() for segment in self.normalize_address(address).split(',')]
        return [segment for segment in segments if segment]

    def extract_locality(self, address: str) -> str:
        """
        Extract the trailing locality of an address.

        Args:
            address: Raw address text

        Returns:
            Last non-empty comma-separated segment, or empty string
        """
        segments = self.split_segments(address)
        if not segments:
            return ""
        return segments[-1]
