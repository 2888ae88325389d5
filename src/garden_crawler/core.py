"""
Core crawling logic: the frontier queue and its traversal.
"""
from __future__ import annotations

import logging
import random
import time
from collections import deque
from typing import Callable, Deque, Optional, Tuple

import requests

from garden_crawler.config import CrawlerConfig
from garden_crawler.dedup import BloomFilter
from garden_crawler.errors import ExtractionFailure, LogFailure, SaveFailure, TransportFailure
from garden_crawler.extract import parse_record
from garden_crawler.links import DEFAULT_BASE_URL, DEFAULT_DETAIL_PREFIX, extract_child_entries
from garden_crawler.models import CrawlStats, FailureReason, FrontierEntry
from garden_crawler.normalize import normalize_html
from garden_crawler.storage import FailureLog, PageCache, RecordClient

logger = logging.getLogger(__name__)


class Crawler:
    """
    Breadth-first crawl of a list page and the detail pages it links to.

    Owns the frontier queue and the duplicate filter for one run. Pages are
    processed strictly one at a time, with a random pause between fetches.
    """

    def __init__(
        self,
        root: FrontierEntry,
        *,
        session: requests.Session,
        client: RecordClient,
        failure_log: FailureLog,
        cache: Optional[PageCache] = None,
        base_url: str = DEFAULT_BASE_URL,
        detail_prefix: str = DEFAULT_DETAIL_PREFIX,
        delay_range: Tuple[float, float] = (1.0, 10.0),
        timeout_s: float = 15.0,
        max_pages: Optional[int] = None,
        seen: Optional[BloomFilter] = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.session = session
        self.client = client
        self.failure_log = failure_log
        self.cache = cache
        self.base_url = base_url
        self.detail_prefix = detail_prefix
        self.delay_range = delay_range
        self.timeout_s = timeout_s
        self.max_pages = max_pages
        self.seen = seen if seen is not None else BloomFilter()
        self.sleep = sleep
        self.rng = rng or random.Random()
        self.stats = CrawlStats()

        self.queue: Deque[FrontierEntry] = deque([root])
        self.seen.add(root.link)

    def run(self) -> CrawlStats:
        """
        Process the frontier until it is empty (or max_pages is reached).

        Detail pages that fail to parse or save are logged and skipped.
        TransportFailure from a fetch ends the run.
        """
        while self.queue:
            if self.max_pages is not None and self.stats.pages_fetched >= self.max_pages:
                logger.info("Reached max pages (%d), %d left in queue", self.max_pages, len(self.queue))
                break

            entry = self.queue.popleft()
            self.process(entry)

            if self.queue:
                self.pause()

        return self.stats

    def process(self, entry: FrontierEntry) -> None:
        html = normalize_html(self.fetch(entry.link))
        if entry.is_list:
            self.expand(entry, html)
        else:
            self.harvest(entry, html)

    def fetch(self, link: str) -> str:
        """GET a page and return its text. Raises TransportFailure."""
        logger.debug("Fetching %s", link)
        try:
            resp = self.session.get(link, timeout=self.timeout_s, allow_redirects=True)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise TransportFailure(f"Fetching {link} failed: {e}") from e
        self.stats.pages_fetched += 1
        return resp.text

    def expand(self, entry: FrontierEntry, html: str) -> None:
        """Queue the not yet seen detail pages linked from a list page."""
        children = extract_child_entries(html, self.base_url, self.detail_prefix)
        new_links = 0
        for child in children:
            if self.seen.observe(child.link):
                self.stats.duplicates_skipped += 1
                continue
            self.queue.append(child)
            new_links += 1

        self.stats.lists_expanded += 1
        self.stats.links_discovered += len(children)
        self.stats.links_enqueued += new_links
        logger.info("List %s: %d links, %d new (queue: %d)", entry.link, len(children), new_links, len(self.queue))

    def harvest(self, entry: FrontierEntry, html: str) -> None:
        """Extract and save the record of a detail page, logging any failure."""
        link = entry.link
        self.cache_page(link, html)

        try:
            record = parse_record(html, link, self.base_url)
        except ExtractionFailure as e:
            logger.error("Parsing %s failed: %s", link, e)
            self.log_failure(link, FailureReason.PARSE_FAILURE)
            return

        try:
            record_id = self.client.save(record)
        except SaveFailure as e:
            logger.error("Saving %s failed: %s", record.name, e)
            self.log_failure(link, FailureReason.SAVE_FAILURE)
            return

        self.stats.records_saved += 1
        logger.info("%s saved as id %s", record.name, record_id)

    def cache_page(self, link: str, html: str) -> None:
        if self.cache is None:
            return
        try:
            path = self.cache.write(link, html)
        except OSError as e:
            logger.warning("Could not cache %s: %s", link, e)
            return
        logger.debug("Cached %s at %s", link, path)

    def log_failure(self, link: str, reason: FailureReason) -> None:
        self.stats.record_failure(reason)
        try:
            self.failure_log.append(link, reason)
        except LogFailure as e:
            self.stats.log_failures += 1
            logger.error("Log failure failed: %s", e)

    def pause(self) -> None:
        """Block for a random delay within delay_range."""
        delay = self.rng.uniform(*self.delay_range)
        logger.debug("Sleeping %.1fs", delay)
        self.sleep(delay)


def crawl(config: CrawlerConfig, sleep: Callable[[float], None] = time.sleep) -> CrawlStats:
    """
    Crawl from the configured root link using BFS traversal.

    Builds the HTTP session and the output collaborators from ``config``.
    Returns the crawl statistics.
    """
    session = requests.Session()
    session.headers["User-Agent"] = config.user_agent

    crawler = Crawler(
        config.root_entry,
        session=session,
        client=RecordClient(config.api_url, session=session, timeout_s=config.timeout_s),
        failure_log=FailureLog(config.failure_log),
        cache=PageCache(config.cache_dir),
        base_url=config.base_url,
        detail_prefix=config.detail_prefix,
        delay_range=(config.delay_min, config.delay_max),
        timeout_s=config.timeout_s,
        max_pages=config.max_pages,
        sleep=sleep,
    )
    logger.info("Starting crawl from %s (%s)", config.feed, config.root_entry.kind.value)
    try:
        return crawler.run()
    finally:
        session.close()
