"""
Record extraction from flower detail pages.

Pages are addressed with XPath over the lxml tree of the normalized markup.
The layout is fixed apart from the number of "intro" blocks that precede the
grouped attribute sections, which is counted on each page:

    div.head2 > p > b            name
    div.caption > a[@href]       image
    div.normal > p[1..3]         season, family, description
    div.intro[n + 2, 4, 6, 8]    grouped sections (label lists)
    div.intro[n + 10]            varieties
"""
from __future__ import annotations

import logging
import re
from typing import List

import lxml.etree
import lxml.html

from garden_crawler.errors import ExtractionFailure
from garden_crawler.labels import LabelGroup, group_labels
from garden_crawler.links import DEFAULT_BASE_URL
from garden_crawler.models import Record

logger = logging.getLogger(__name__)

NAME_XPATH = "//div[@class='head2']/p/b/text()"
IMAGE_XPATH = "//div[@class='caption']/a/@href"
NORMAL_PARAGRAPH_XPATH = "//div[@class='normal']/p[{index}]//text()"
INTRO_LINKS_XPATH = "//div[@class='intro']/a/text()"
INTRO_SECTION_XPATH = "//div[@class='intro'][{index}]//text()"

SEASON_PARAGRAPH = 1
FAMILY_PARAGRAPH = 2
DESCRIPTION_PARAGRAPH = 3

# Positions of the sections after the intro link blocks. Each section is
# preceded by its heading block, hence the even steps.
SITE_CHARACTERISTICS_OFFSET = 2
PLANT_TRAITS_OFFSET = 4
SPECIAL_CONSIDERATIONS_OFFSET = 6
GROWING_INFO_OFFSET = 8
VARIETIES_OFFSET = 10

NEWLINES_AND_TABS = re.compile(r"\n|\t")
MULTIPLE_SPACES = re.compile(r" {2,}")
# lxml refuses str input that carries an encoding declaration.
XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")


def clean_fragments(fragments) -> List[str]:
    """Trim, strip newlines/tabs, collapse repeated spaces and drop empty fragments."""
    cleaned = []
    for fragment in fragments:
        text = NEWLINES_AND_TABS.sub("", str(fragment).strip())
        text = MULTIPLE_SPACES.sub(" ", text)
        if text:
            cleaned.append(text)
    return cleaned


def parse_document(html: str) -> lxml.html.HtmlElement:
    """Parse normalized markup into an lxml tree."""
    if not html or not html.strip():
        raise ExtractionFailure("Empty document")
    html = XML_DECLARATION.sub("", html, count=1)
    try:
        return lxml.html.document_fromstring(html)
    except (lxml.etree.ParserError, ValueError) as e:
        raise ExtractionFailure(f"Unparseable document: {e}") from e


def parse_name(doc: lxml.html.HtmlElement) -> str:
    texts = doc.xpath(NAME_XPATH)
    name = str(texts[-1]).strip() if texts else ""
    if not name:
        raise ExtractionFailure(f"No name found at {NAME_XPATH}")
    return name


def parse_image(doc: lxml.html.HtmlElement, base_url: str) -> str:
    """Return the image link, or just ``base_url`` when the page has no caption link."""
    hrefs = doc.xpath(IMAGE_XPATH)
    href = str(hrefs[-1]).strip() if hrefs else ""
    return f"{base_url}{href}"


def parse_field(doc: lxml.html.HtmlElement, xpath: str, field: str) -> List[str]:
    logger.debug("Parsing field %s", field)
    fragments = clean_fragments(doc.xpath(xpath))
    logger.debug("Field %s: %s", field, fragments)
    return fragments


def parse_paragraph(doc: lxml.html.HtmlElement, index: int, field: str) -> str:
    return " ".join(parse_field(doc, NORMAL_PARAGRAPH_XPATH.format(index=index), field))


def count_intro_links(doc: lxml.html.HtmlElement) -> int:
    """
    Count the intro link blocks at the top of the page.

    Their number differs between pages and shifts the position of every
    grouped section that follows.
    """
    return len(doc.xpath(INTRO_LINKS_XPATH))


def parse_intro_section(doc: lxml.html.HtmlElement, index: int, field: str) -> List[str]:
    return parse_field(doc, INTRO_SECTION_XPATH.format(index=index), field)


def parse_grouped_section(doc: lxml.html.HtmlElement, index: int, field: str) -> LabelGroup:
    return group_labels(parse_intro_section(doc, index, field))


def parse_record(html: str, link: str, base_url: str = DEFAULT_BASE_URL) -> Record:
    """
    Extract a Record from the normalized markup of a detail page.

    Raises ExtractionFailure when the page has no name, and MalformedInput
    when a grouped section cannot be split into labels.
    """
    logger.info("Parsing link %s", link)
    doc = parse_document(html)

    offset = count_intro_links(doc)
    logger.debug("Intro link blocks: %d", offset)

    return Record(
        source=link,
        name=parse_name(doc),
        image=parse_image(doc, base_url),
        season=parse_paragraph(doc, SEASON_PARAGRAPH, "season"),
        family=parse_paragraph(doc, FAMILY_PARAGRAPH, "family"),
        description=parse_paragraph(doc, DESCRIPTION_PARAGRAPH, "description"),
        site_characteristics=parse_grouped_section(
            doc, offset + SITE_CHARACTERISTICS_OFFSET, "site_characteristics"
        ),
        plant_traits=parse_grouped_section(doc, offset + PLANT_TRAITS_OFFSET, "plant_traits"),
        special_considerations=parse_grouped_section(
            doc, offset + SPECIAL_CONSIDERATIONS_OFFSET, "special_considerations"
        ),
        growing_info=parse_grouped_section(doc, offset + GROWING_INFO_OFFSET, "growing_info"),
        varieties=parse_intro_section(doc, offset + VARIETIES_OFFSET, "varieties"),
    )
