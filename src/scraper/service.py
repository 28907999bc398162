"""
Fetch a menu URL end to end: render, extract, release.

Rendering failures never escape: they are logged and reported as an empty
record list so callers can treat them as "no data".
"""

from __future__ import annotations

import time
from typing import List, Optional

import structlog

from src.scraper.config import Config, get_config
from src.scraper.extract import ExtractionRules, extract_menu
from src.scraper.models import MenuRecord
from src.scraper.snapshot import RenderFailure, SnapshotProvider

logger = structlog.get_logger(__name__)


async def fetch_menu(
    url: str,
    *,
    config: Optional[Config] = None,
    provider: Optional[SnapshotProvider] = None,
    rules: Optional[ExtractionRules] = None,
) -> List[MenuRecord]:
    config = config or get_config()
    provider = provider or SnapshotProvider.from_config(config)
    rules = rules or ExtractionRules.from_config(config)

    start = time.monotonic()
    try:
        async with provider.snapshot(
            url,
            page_timeout_ms=config.page_timeout_ms,
            card_timeout_ms=config.card_timeout_ms,
            card_selector=rules.card_selector,
        ) as handle:
            records = extract_menu(handle.document, rules)
    except RenderFailure as e:
        logger.error("Failed to render menu page", url=url, error=e.reason)
        return []
    except Exception as e:
        logger.error("Menu extraction failed", url=url, error=str(e))
        return []

    logger.info(
        "Menu extracted",
        url=url,
        num_records=len(records),
        num_categories=len({record.category for record in records}),
        latency_ms=round((time.monotonic() - start) * 1000, 1),
    )
    return records
