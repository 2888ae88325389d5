"""
Grouping of flat "Label:" / value text runs into a label -> values mapping.

Detail pages list plant attributes as a flat sequence of text nodes:

    ["Light:", "Full sun", "Part shade", "Soil:", "Well-drained"]

which becomes

    {"Light": ["Full sun", "Part shade"], "Soil": ["Well-drained"]}
"""
from __future__ import annotations

from typing import Dict, List, Sequence

from garden_crawler.errors import MalformedInput

LabelGroup = Dict[str, List[str]]

LABEL_SUFFIX = ":"
MAX_STEPS = 100


def is_label(fragment: str) -> bool:
    """Check if a text fragment is a section label ("Soil:")."""
    return fragment.endswith(LABEL_SUFFIX)


def _label_key(fragment: str) -> str:
    return fragment[: -len(LABEL_SUFFIX)]


def group_labels(fragments: Sequence[str], max_steps: int = MAX_STEPS) -> LabelGroup:
    """
    Group values under the nearest preceding label.

    Walks a cursor over ``fragments``. A label collects every following
    fragment up to the next label or the end of input. A fragment at the
    cursor that is not a label is skipped without moving the cursor, so a
    sequence that starts with a value never gets anywhere and is reported as
    MalformedInput once ``max_steps`` label groups have been attempted.

    A repeated label replaces the earlier group; key order is the order in
    which labels were first seen.
    """
    groups: LabelGroup = {}
    if not fragments:
        return groups

    last = len(fragments) - 1
    cursor = 0
    steps = 0
    while True:
        steps += 1
        fragment = fragments[cursor]
        if is_label(fragment):
            values: List[str] = []
            next_label = False
            while cursor < last:
                cursor += 1
                if is_label(fragments[cursor]):
                    next_label = True
                    break
                values.append(fragments[cursor])
            groups[_label_key(fragment)] = values

            # The loop below stops on the last fragment, so a label sitting
            # there has to be recorded now.
            if next_label and cursor == last:
                groups[_label_key(fragments[last])] = []

        if cursor >= last:
            break
        if steps > max_steps:
            raise MalformedInput(
                f"Label list did not terminate after {max_steps} groups "
                f"(stuck at fragment {cursor}: {fragments[cursor]!r})"
            )
    return groups
