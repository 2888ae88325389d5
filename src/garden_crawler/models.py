"""
Data structures passed between the crawler stages.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple

from garden_crawler.labels import LabelGroup


class PageKind(Enum):
    """Role of a page in the site hierarchy."""
    LIST = "list"
    LEAF = "leaf"


class FailureReason(Enum):
    """Reason written to the failure log."""
    PARSE_FAILURE = "ParseFailure"
    SAVE_FAILURE = "SaveFailure"


@dataclass(frozen=True, slots=True)
class FrontierEntry:
    """A page waiting in the crawl queue."""
    link: str
    kind: PageKind

    @property
    def is_list(self) -> bool:
        return self.kind is PageKind.LIST


FrozenGroup = Mapping[str, Tuple[str, ...]]
GROUPED_FIELDS = ("site_characteristics", "plant_traits", "special_considerations", "growing_info")


def freeze_group(group: LabelGroup) -> FrozenGroup:
    """Read-only view of a label group with tuple values."""
    return MappingProxyType({label: tuple(values) for label, values in group.items()})


def thaw_group(group: FrozenGroup) -> LabelGroup:
    return {label: list(values) for label, values in group.items()}


@dataclass(frozen=True, slots=True)
class Record:
    """
    Structured data extracted from one flower detail page.

    Grouped fields and varieties are frozen on creation: groups become
    read-only mappings of tuples and varieties a tuple.
    """
    source: str
    name: str
    season: str
    family: str
    description: str
    image: str
    site_characteristics: FrozenGroup = field(default_factory=dict)
    plant_traits: FrozenGroup = field(default_factory=dict)
    special_considerations: FrozenGroup = field(default_factory=dict)
    growing_info: FrozenGroup = field(default_factory=dict)
    varieties: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for name in GROUPED_FIELDS:
            object.__setattr__(self, name, freeze_group(getattr(self, name)))
        object.__setattr__(self, "varieties", tuple(self.varieties))

    def to_payload(self) -> Dict[str, Any]:
        """Serialize with the field names expected by the record store."""
        return {
            "flw_source": self.source,
            "flw_name": self.name,
            "flw_season": self.season,
            "flw_img": self.image,
            "flw_family": self.family,
            "flw_desc": self.description,
            "flw_site_chars": thaw_group(self.site_characteristics),
            "flw_plant_traits": thaw_group(self.plant_traits),
            "flw_special_cons": thaw_group(self.special_considerations),
            "flw_growing_infos": thaw_group(self.growing_info),
            "flw_varieties": list(self.varieties),
        }



@dataclass(slots=True)
class CrawlStats:
    """Statistics collected during crawl for summary output."""
    pages_fetched: int = 0
    lists_expanded: int = 0
    links_discovered: int = 0
    links_enqueued: int = 0
    duplicates_skipped: int = 0
    records_saved: int = 0
    failure_counts: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    log_failures: int = 0

    def record_failure(self, reason: FailureReason) -> None:
        """Record a failed detail page by reason."""
        self.failure_counts[reason.value] += 1

    @property
    def total_failures(self) -> int:
        return sum(self.failure_counts.values())
