"""
Source fetcher for Accredited TREs.

Retrieves the raw text of a province sheet export from an HTTP(S) URL, a
``file://`` URI, or a filesystem path. Transport problems are reported as
RetrievalFailure; the text itself is never inspected here.
"""

import logging
import threading
from pathlib import Path
from typing import Optional, Union

import requests

from accredited_tres.errors import RetrievalFailure

logger = logging.getLogger(__name__)


class SourceFetcher:
    """
    Fetches raw sheet text for a source location.
    """

    def __init__(self, data_dir: Union[str, Path] = "data", timeout: float = 20,
                 session: Optional[requests.Session] = None):
        """
        Initialize fetcher.

        Args:
            data_dir: Base directory for relative source paths
            timeout: HTTP timeout in seconds
            session: Optional requests session shared by every caller
        """
        self.data_dir = Path(data_dir)
        self.timeout = timeout
        self.session = session
        self._local = threading.local()

    def fetch(self, location: str) -> str:
        """
        Fetch raw text from a source location.

        Args:
            location: HTTP(S) URL, ``file://`` URI, or filesystem path

        Returns:
            Raw sheet text

        Raises:
            RetrievalFailure: If the location cannot be read
        """
        if location.startswith("http://") or location.startswith("https://"):
            return self._fetch_url(location)
        return self._fetch_file(location)

    def _session(self) -> requests.Session:
        """Session for the calling thread."""
        if self.session is not None:
            return self.session
        # requests.Session is not thread-safe; fetch_sources calls from a pool
        if not hasattr(self._local, "session"):
            self._local.session = requests.Session()
        return self._local.session

    def _fetch_url(self, url: str) -> str:
        """Fetch text over HTTP."""
        try:
            response = self._session().get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to fetch {url}: {e}")
            raise RetrievalFailure(url, str(e)) from e

        # Published sheets often omit the charset
        if not response.encoding or response.encoding.lower() == "iso-8859-1":
            response.encoding = "utf-8"

        logger.info(f"Fetched {len(response.text)} characters from {url}")
        return response.text

    def _fetch_file(self, location: str) -> str:
        """Read text from a local file."""
        path = Path(location.replace("file://", "", 1))
        if not path.is_absolute():
            path = self.data_dir / path

        try:
            text = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read {path}: {e}")
            raise RetrievalFailure(location, str(e)) from e

        logger.info(f"Read {len(text)} characters from {path}")
        return text
