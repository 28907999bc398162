"""
Menu extraction from a rendered document.

Client-rendered menus place section headings and item cards side by side rather
than nesting items under their section, so the category of a card is recovered
from document order: a single pass over every element keeps the most recently
seen qualifying heading and stamps it onto each card that follows.

A heading qualifies when:
- its tag is one of the configured heading tags (`h2`/`h3` by default)
- it is not inside a card
- its trimmed text is non-empty and shorter than `max_heading_length`

Inside a card, each field is read with an ordered list of selectors; the first
selector that finds an element wins. A card without a name yields no record.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import structlog

from src.scraper.config import (
    Config,
    DEFAULT_CARD_SELECTOR,
    DEFAULT_DESCRIPTION_SELECTORS,
    DEFAULT_HEADING_TAGS,
    DEFAULT_NAME_SELECTORS,
    DEFAULT_PRICE_SELECTORS,
)
from src.scraper.dom import Document, Element
from src.scraper.models import UNAVAILABLE, UNCATEGORIZED, MenuRecord

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class FieldRule:
    """Ordered selectors for one card field, evaluated first to last."""

    name: str
    selectors: Tuple[str, ...]

    def find(self, card: Element) -> Optional[Element]:
        for selector in self.selectors:
            found = card.select_one(selector)
            if found is not None:
                return found
        return None

    def extract(self, card: Element) -> str:
        found = self.find(card)
        return found.text() if found is not None else ""


@dataclass(frozen=True)
class ExtractionRules:
    card_selector: str = DEFAULT_CARD_SELECTOR
    heading_tags: Tuple[str, ...] = DEFAULT_HEADING_TAGS
    max_heading_length: int = 100
    name: FieldRule = FieldRule("name", DEFAULT_NAME_SELECTORS)
    price: FieldRule = FieldRule("price", DEFAULT_PRICE_SELECTORS)
    description: FieldRule = FieldRule("description", DEFAULT_DESCRIPTION_SELECTORS)
    unavailable_marker: str = UNAVAILABLE
    default_category: str = UNCATEGORIZED

    @classmethod
    def from_config(cls, config: Config) -> ExtractionRules:
        return cls(
            card_selector=config.card_selector,
            heading_tags=config.heading_tags,
            max_heading_length=config.max_heading_length,
            name=FieldRule("name", config.name_selectors),
            price=FieldRule("price", config.price_selectors),
            description=FieldRule("description", config.description_selectors),
            unavailable_marker=config.unavailable_marker,
            default_category=config.default_category,
        )


def is_card(element: Element, rules: ExtractionRules) -> bool:
    """A top-level card: matches the card selector and is not inside another card."""
    if not element.matches(rules.card_selector):
        return False
    return element.enclosing(rules.card_selector) is None


def heading_text(element: Element, rules: ExtractionRules) -> Optional[str]:
    """Return the category text if `element` is a qualifying heading."""
    if element.tag not in rules.heading_tags:
        return None
    if element.closest(rules.card_selector) is not None:
        return None

    text = element.text()
    if not text or len(text) >= rules.max_heading_length:
        return None
    return text


def read_card(card: Element, category: str, rules: ExtractionRules) -> Optional[MenuRecord]:
    name = rules.name.extract(card)
    if not name:
        return None

    # Availability is judged on the whole card, not just the named fields.
    comment = UNAVAILABLE if rules.unavailable_marker in card.text() else ""

    return MenuRecord(
        category=category,
        item=name,
        description=rules.description.extract(card),
        price=rules.price.extract(card),
        comment=comment,
    )


def extract_menu(document: Document, rules: Optional[ExtractionRules] = None) -> List[MenuRecord]:
    """
    Extract menu records from `document` in document order.

    Never raises on irregular markup: missing sub-fields become empty strings
    and nameless cards are skipped.
    """
    rules = rules or ExtractionRules()

    current_category = rules.default_category
    records: List[MenuRecord] = []
    num_cards = 0
    num_headings = 0

    for element in document.elements():
        text = heading_text(element, rules)
        if text is not None:
            current_category = text
            num_headings += 1
            continue

        if not is_card(element, rules):
            continue

        num_cards += 1
        record = read_card(element, current_category, rules)
        if record is not None:
            records.append(record)

    records = [record for record in records if record.item]

    logger.debug(
        "Menu document scanned",
        num_headings=num_headings,
        num_cards=num_cards,
        num_records=len(records),
    )
    return records
