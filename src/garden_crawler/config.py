"""
Startup configuration, read from the environment.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from garden_crawler.errors import ConfigError
from garden_crawler.links import DEFAULT_BASE_URL, DEFAULT_DETAIL_PREFIX
from garden_crawler.models import FrontierEntry, PageKind
from garden_crawler.storage import DEFAULT_API_URL, DEFAULT_CACHE_DIR, DEFAULT_FAILURE_LOG


@dataclass(slots=True)
class CrawlerConfig:
    """Settings for one crawl run."""
    feed: str
    feed_is_list: bool = True
    base_url: str = DEFAULT_BASE_URL
    detail_prefix: str = DEFAULT_DETAIL_PREFIX
    api_url: str = DEFAULT_API_URL
    cache_dir: str = DEFAULT_CACHE_DIR
    failure_log: str = DEFAULT_FAILURE_LOG
    delay_min: float = 1.0
    delay_max: float = 10.0
    timeout_s: float = 15.0
    user_agent: str = "GardenCrawler/1.0"
    max_pages: Optional[int] = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if not self.feed:
            raise ConfigError("Root link is required (set FEED or pass it on the command line)")
        if self.delay_min < 0 or self.delay_max < self.delay_min:
            raise ConfigError(
                f"Invalid delay range {self.delay_min}..{self.delay_max}: "
                "expected 0 <= min <= max"
            )
        if self.timeout_s <= 0:
            raise ConfigError(f"Timeout must be positive, got {self.timeout_s}")
        if self.max_pages is not None and self.max_pages <= 0:
            raise ConfigError(f"max_pages must be positive, got {self.max_pages}")

    @property
    def root_entry(self) -> FrontierEntry:
        kind = PageKind.LIST if self.feed_is_list else PageKind.LEAF
        return FrontierEntry(link=self.feed, kind=kind)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CrawlerConfig":
        """
        Build the configuration from environment variables.

        FEED is the root link. The root is treated as a list page unless
        IS_NOT_LIST is set (to any value). The remaining CRAWLER_* variables
        override the defaults.
        """
        env = os.environ if environ is None else environ
        max_pages = env.get("CRAWLER_MAX_PAGES")
        return cls(
            feed=env.get("FEED", ""),
            feed_is_list="IS_NOT_LIST" not in env,
            base_url=env.get("CRAWLER_BASE_URL", DEFAULT_BASE_URL),
            detail_prefix=env.get("CRAWLER_DETAIL_PREFIX", DEFAULT_DETAIL_PREFIX),
            api_url=env.get("CRAWLER_API_URL", DEFAULT_API_URL),
            cache_dir=env.get("CRAWLER_CACHE_DIR", DEFAULT_CACHE_DIR),
            failure_log=env.get("CRAWLER_FAILURE_LOG", DEFAULT_FAILURE_LOG),
            delay_min=_number(env, "CRAWLER_DELAY_MIN", 1.0),
            delay_max=_number(env, "CRAWLER_DELAY_MAX", 10.0),
            timeout_s=_number(env, "CRAWLER_TIMEOUT", 15.0),
            user_agent=env.get("CRAWLER_USER_AGENT", "GardenCrawler/1.0"),
            max_pages=int(_number(env, "CRAWLER_MAX_PAGES", 0)) if max_pages else None,
        )


def _number(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
