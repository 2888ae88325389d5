"""
Exception hierarchy shared by the crawler modules.
"""
from __future__ import annotations


class CrawlerError(Exception):
    """Base class for every error raised by the crawler."""


class ConfigError(CrawlerError):
    """Missing or invalid startup configuration."""


class TransportFailure(CrawlerError):
    """A page could not be fetched. Aborts the crawl."""


class ExtractionFailure(CrawlerError):
    """A required structured query found nothing on a detail page."""


class MalformedInput(ExtractionFailure):
    """A label list did not terminate within the step cap."""


class SaveFailure(CrawlerError):
    """The record store rejected a record or could not be reached."""


class LogFailure(CrawlerError):
    """The failure log could not be appended to."""
