"""
Crawler that walks a flower list page, extracts a structured record from every
linked detail page and saves the records to a record store.
"""
from garden_crawler.core import crawl, Crawler
from garden_crawler.models import CrawlStats, FrontierEntry, PageKind, Record

__version__ = "1.0.0"
__all__ = ["crawl", "Crawler", "CrawlStats", "FrontierEntry", "PageKind", "Record"]
