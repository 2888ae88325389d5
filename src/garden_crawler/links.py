"""
Child link discovery on list pages.
"""
from __future__ import annotations

from typing import List
from urllib.parse import urljoin

from bs4 import BeautifulSoup, SoupStrainer

from garden_crawler.models import FrontierEntry, PageKind

DEFAULT_BASE_URL = "http://www.gardening.cornell.edu/homegardening/"
DEFAULT_DETAIL_PREFIX = "scene"

# SoupStrainer to parse only <a> tags (faster link extraction)
LINK_STRAINER = SoupStrainer("a", href=True)


def extract_links(html: str) -> List[str]:
    """Extract all href values from <a> tags using optimized parsing."""
    soup = BeautifulSoup(html, "lxml", parse_only=LINK_STRAINER)
    return [a["href"] for a in soup.find_all("a", href=True) if a["href"]]


def extract_child_entries(
    html: str,
    base_url: str = DEFAULT_BASE_URL,
    detail_prefix: str = DEFAULT_DETAIL_PREFIX,
) -> List[FrontierEntry]:
    """
    Find the detail pages linked from a list page.

    Only hrefs starting with ``detail_prefix`` are kept. They are resolved
    against ``base_url`` and returned in document order as leaf entries;
    list pages on this site never link to further list pages.
    """
    return [
        FrontierEntry(link=urljoin(base_url, href), kind=PageKind.LEAF)
        for href in extract_links(html)
        if href.startswith(detail_prefix)
    ]
