"""
Outputs of the crawl: the record store, the failure log and the raw page cache.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse

import requests

from garden_crawler.errors import LogFailure, SaveFailure
from garden_crawler.models import FailureReason, Record

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8080/flower"
DEFAULT_FAILURE_LOG = "log/link_failures.txt"
DEFAULT_CACHE_DIR = "html"
RECORD_ID_FIELD = "flw_id"


class RecordClient:
    """HTTP client for the record store."""

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        session: Optional[requests.Session] = None,
        timeout_s: float = 15.0,
    ) -> None:
        self.api_url = api_url
        self.session = session or requests.Session()
        self.timeout_s = timeout_s

    def save(self, record: Record) -> str:
        """
        POST a record to the store and return the id it was assigned.

        Raises SaveFailure on connection errors, error statuses and
        responses without an id.
        """
        try:
            resp = self.session.post(self.api_url, json=record.to_payload(), timeout=self.timeout_s)
            resp.raise_for_status()
            body = resp.json()
        except requests.RequestException as e:
            raise SaveFailure(f"Saving {record.source} failed: {e}") from e
        except ValueError as e:
            raise SaveFailure(f"Record store returned invalid JSON for {record.source}: {e}") from e

        record_id = body.get(RECORD_ID_FIELD) if isinstance(body, dict) else None
        if not record_id:
            raise SaveFailure(f"Record store response for {record.source} has no {RECORD_ID_FIELD}")
        return str(record_id)


class FailureLog:
    """Append-only log of detail pages that could not be processed."""

    def __init__(self, path: Union[str, Path] = DEFAULT_FAILURE_LOG) -> None:
        self.path = Path(path)

    def append(self, link: str, reason: FailureReason) -> None:
        """Write one ``<link>,<reason>`` line. Raises LogFailure if the file cannot be written."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(f"{link},{reason.value}\n")
        except OSError as e:
            raise LogFailure(f"Could not append to {self.path}: {e}") from e


def cache_filename(link: str) -> str:
    """Last path segment of a link, e.g. "scene001.html"."""
    name = urlparse(link).path.rstrip("/").rsplit("/", 1)[-1]
    return name or "index.html"


class PageCache:
    """Local copies of fetched detail pages, kept for auditing."""

    def __init__(self, directory: Union[str, Path] = DEFAULT_CACHE_DIR) -> None:
        self.directory = Path(directory)

    def path_for(self, link: str) -> Path:
        return self.directory / cache_filename(link)

    def write(self, link: str, html: str) -> Path:
        """Write the page prefixed with a ``<link>`` provenance line."""
        path = self.path_for(link)
        self.directory.mkdir(parents=True, exist_ok=True)
        path.write_text(f"<link>{link}</link>\n{html}", encoding="utf-8")
        return path
