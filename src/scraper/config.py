"""
Configuration management for the menu scraper.

Loads environment variables and provides a strongly-typed configuration object.
Validates selectors and timeouts at startup.
"""

import os
import re
import tempfile
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

from dotenv import load_dotenv
import soupsieve
import structlog

load_dotenv()

logger = structlog.get_logger(__name__)

DEFAULT_CARD_SELECTOR = '[data-testid="card"]'
DEFAULT_HEADING_TAGS = ("h2", "h3")
DEFAULT_NAME_SELECTORS = ("h3", "h4", '[data-testid*="item-name"]')
DEFAULT_PRICE_SELECTORS = ('[data-testid="card-item-price"]',)
DEFAULT_DESCRIPTION_SELECTORS = ('[class*="styles_description"]',)
DEFAULT_BROWSER_ARGS = ("--no-sandbox", "--disable-setuid-sandbox")

_SHEET_TITLE_FORBIDDEN = re.compile(r"[\[\]:*?/\\]")


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""
    pass


@dataclass(frozen=True)
class Config:
    """Strongly-typed configuration object."""

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    # Rendering
    # - page_timeout_ms bounds navigation (hard failure when exceeded)
    # - card_timeout_ms bounds the wait for the first menu card (soft)
    page_timeout_ms: int = 60000
    card_timeout_ms: int = 15000
    browser_headless: bool = True
    browser_args: Tuple[str, ...] = DEFAULT_BROWSER_ARGS
    browser_user_agent: str = ""
    stealth_enabled: bool = True

    # Extraction
    card_selector: str = DEFAULT_CARD_SELECTOR
    heading_tags: Tuple[str, ...] = DEFAULT_HEADING_TAGS
    max_heading_length: int = 100
    name_selectors: Tuple[str, ...] = DEFAULT_NAME_SELECTORS
    price_selectors: Tuple[str, ...] = DEFAULT_PRICE_SELECTORS
    description_selectors: Tuple[str, ...] = DEFAULT_DESCRIPTION_SELECTORS
    unavailable_marker: str = "Unavailable"
    default_category: str = "Uncategorized"

    # Export
    export_dir: str = ""
    export_prefix: str = "CloverMenu"
    sheet_title: str = "Menu"

    @property
    def resolved_export_dir(self) -> str:
        """Directory for download artifacts; falls back to the system temp dir."""
        return self.export_dir or tempfile.gettempdir()

    def validate(self) -> None:
        """Validate timeouts, selectors and export settings."""
        problems = []

        if self.page_timeout_ms <= 0:
            problems.append("PAGE_TIMEOUT_MS must be positive")
        if self.card_timeout_ms <= 0:
            problems.append("CARD_TIMEOUT_MS must be positive")
        if self.max_heading_length <= 0:
            problems.append("MAX_HEADING_LENGTH must be positive")
        if not self.heading_tags:
            problems.append("HEADING_TAGS must name at least one tag")

        selector_groups = {
            "CARD_SELECTOR": (self.card_selector,) if self.card_selector else (),
            "NAME_SELECTORS": self.name_selectors,
            "PRICE_SELECTORS": self.price_selectors,
            "DESCRIPTION_SELECTORS": self.description_selectors,
        }
        for key, selectors in selector_groups.items():
            if not selectors:
                problems.append(f"{key} must not be empty")
                continue
            for selector in selectors:
                try:
                    soupsieve.compile(selector)
                except soupsieve.SelectorSyntaxError as e:
                    problems.append(f"{key} has an invalid selector {selector!r}: {e}")

        if not self.unavailable_marker:
            problems.append("UNAVAILABLE_MARKER must not be empty")
        if not self.sheet_title or len(self.sheet_title) > 31:
            problems.append("SHEET_TITLE must be 1-31 characters")
        elif _SHEET_TITLE_FORBIDDEN.search(self.sheet_title):
            problems.append("SHEET_TITLE must not contain any of []:*?/\\")

        if problems:
            raise ConfigError(
                "Invalid configuration:\n- " + "\n- ".join(problems) + "\n"
                "Please check your .env file."
            )

    def log_config(self) -> None:
        """Log configuration."""
        logger.info(
            "Configuration loaded",
            host=self.host,
            port=self.port,
            log_level=self.log_level,
            page_timeout_ms=self.page_timeout_ms,
            card_timeout_ms=self.card_timeout_ms,
            browser_headless=self.browser_headless,
            stealth_enabled=self.stealth_enabled,
            card_selector=self.card_selector,
            heading_tags=list(self.heading_tags),
            name_selectors=list(self.name_selectors),
            export_dir=self.resolved_export_dir,
        )


def _get_bool(key: str, default: bool = False) -> bool:
    """Get a boolean from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ("true", "1", "yes", "on")


def _get_int(key: str, default: int) -> int:
    """Get an integer from environment variable."""
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


def _get_list(key: str, default: Tuple[str, ...], sep: str = ",") -> Tuple[str, ...]:
    """
    Get a list of strings from an environment variable.

    Selector lists use ";" since "," is meaningful inside CSS selectors.
    """
    raw = os.getenv(key)
    if raw is None:
        return default
    return tuple(part.strip() for part in raw.split(sep) if part.strip())


@lru_cache(maxsize=1)
def get_config() -> Config:
    """
    Get the application configuration.

    Uses lru_cache to ensure we only load config once.
    """
    config = Config(
        # Server
        host=os.getenv("HOST", "0.0.0.0"),
        port=_get_int("PORT", 3000),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),

        # Rendering
        page_timeout_ms=_get_int("PAGE_TIMEOUT_MS", 60000),
        card_timeout_ms=_get_int("CARD_TIMEOUT_MS", 15000),
        browser_headless=_get_bool("BROWSER_HEADLESS", True),
        browser_args=_get_list("BROWSER_ARGS", DEFAULT_BROWSER_ARGS),
        browser_user_agent=os.getenv("BROWSER_USER_AGENT", ""),
        stealth_enabled=_get_bool("STEALTH_ENABLED", True),

        # Extraction
        card_selector=os.getenv("CARD_SELECTOR", DEFAULT_CARD_SELECTOR).strip(),
        heading_tags=tuple(
            tag.lower() for tag in _get_list("HEADING_TAGS", DEFAULT_HEADING_TAGS)
        ),
        max_heading_length=_get_int("MAX_HEADING_LENGTH", 100),
        name_selectors=_get_list("NAME_SELECTORS", DEFAULT_NAME_SELECTORS, sep=";"),
        price_selectors=_get_list("PRICE_SELECTORS", DEFAULT_PRICE_SELECTORS, sep=";"),
        description_selectors=_get_list(
            "DESCRIPTION_SELECTORS", DEFAULT_DESCRIPTION_SELECTORS, sep=";"
        ),
        unavailable_marker=os.getenv("UNAVAILABLE_MARKER", "Unavailable"),
        default_category=os.getenv("DEFAULT_CATEGORY", "Uncategorized"),

        # Export
        export_dir=os.getenv("EXPORT_DIR", ""),
        export_prefix=os.getenv("EXPORT_PREFIX", "CloverMenu"),
        sheet_title=os.getenv("SHEET_TITLE", "Menu"),
    )

    return config


def init_config() -> Config:
    """
    Initialize and validate configuration.

    Call this at application startup to fail fast if config is invalid.
    """
    config = get_config()
    config.validate()
    config.log_config()
    return config
