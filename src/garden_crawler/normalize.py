"""
Markup clean-up applied before any structured query runs.
"""
from __future__ import annotations

import re

CARRIAGE_RETURN = re.compile(r"\r")
TAB = re.compile(r"\t")

# Text stranded between a closing tag and the next tag, e.g.
# "</ul>\n\nSome text\n\n<b>". XPath queries can only address it once it
# lives inside an element, so it gets wrapped in a <p>.
BARE_TEXT = re.compile(r"</(\w+)>\s*\n*\s*([\w,.: -]+)\n*\s*(?=<)")
BARE_TEXT_REPLACEMENT = r"</\1>\n<p>\2</p>"


def normalize_html(html: str) -> str:
    """
    Rewrite raw markup so that later XPath queries behave predictably.

    - Turns carriage returns into newlines
    - Drops tab characters
    - Wraps bare text runs found between tags in a paragraph element

    Running it on its own output returns the text unchanged.
    """
    html = CARRIAGE_RETURN.sub("\n", html)
    html = TAB.sub("", html)
    return BARE_TEXT.sub(BARE_TEXT_REPLACEMENT, html)
