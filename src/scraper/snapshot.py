"""
Rendered page snapshots via headless Chromium.

`SnapshotProvider.acquire()` navigates to a URL, waits for the network to settle
and then (softly) for the first menu card, and captures the rendered HTML into a
`DocumentHandle`. The browser stays up until `release()`, which is idempotent;
`snapshot()` wraps both so every exit path tears the browser down.

Two independent bounds apply:
- page_timeout_ms: navigation must complete within it, otherwise RenderFailure
- card_timeout_ms: waiting for a card; running out only means "few or no cards"
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Optional, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright
from playwright_stealth import Stealth
import structlog

from src.scraper.config import Config, DEFAULT_BROWSER_ARGS, DEFAULT_CARD_SELECTOR
from src.scraper.dom import SoupDocument

logger = structlog.get_logger(__name__)


class RenderFailure(Exception):
    """Raised when a page could not be rendered at all."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to render {url}: {reason}")
        self.url = url
        self.reason = reason


@dataclass
class DocumentHandle:
    """A rendered page plus the browser session that produced it."""

    url: str
    html: str = ""
    cards_visible: bool = False
    released: bool = False

    _playwright: Any = field(default=None, repr=False)
    _browser: Any = field(default=None, repr=False)
    _document: Optional[SoupDocument] = field(default=None, repr=False)

    @property
    def document(self) -> SoupDocument:
        if self._document is None:
            self._document = SoupDocument.from_html(self.html)
        return self._document


class SnapshotProvider:
    def __init__(
        self,
        *,
        headless: bool = True,
        browser_args: Sequence[str] = DEFAULT_BROWSER_ARGS,
        user_agent: str = "",
        stealth: bool = True,
    ) -> None:
        self.headless = headless
        self.browser_args = list(browser_args)
        self.user_agent = user_agent
        self.stealth = stealth

    @classmethod
    def from_config(cls, config: Config) -> SnapshotProvider:
        return cls(
            headless=config.browser_headless,
            browser_args=config.browser_args,
            user_agent=config.browser_user_agent,
            stealth=config.stealth_enabled,
        )

    async def acquire(
        self,
        url: str,
        page_timeout_ms: int,
        card_timeout_ms: int,
        card_selector: str = DEFAULT_CARD_SELECTOR,
    ) -> DocumentHandle:
        handle = DocumentHandle(url=url)
        logger.info("Rendering page", url=url, page_timeout_ms=page_timeout_ms)

        try:
            try:
                handle._playwright = await async_playwright().start()
                handle._browser = await handle._playwright.chromium.launch(
                    headless=self.headless,
                    args=self.browser_args,
                )
                context_kwargs = {"user_agent": self.user_agent} if self.user_agent else {}
                context = await handle._browser.new_context(**context_kwargs)
                page = await context.new_page()

                if self.stealth:
                    await Stealth().apply_stealth_async(page)

                await page.goto(url, wait_until="networkidle", timeout=page_timeout_ms)
            except PlaywrightError as e:
                raise RenderFailure(url, str(e)) from e

            try:
                await page.wait_for_selector(card_selector, timeout=card_timeout_ms)
                handle.cards_visible = True
            except PlaywrightTimeoutError:
                logger.warning(
                    "No menu card rendered before timeout",
                    url=url,
                    card_selector=card_selector,
                    card_timeout_ms=card_timeout_ms,
                )

            try:
                handle.html = await page.content()
            except PlaywrightError as e:
                raise RenderFailure(url, str(e)) from e
        except BaseException:
            # Includes cancellation; the browser must not outlive a failed acquire.
            await self.release(handle)
            raise

        logger.info(
            "Page rendered",
            url=url,
            cards_visible=handle.cards_visible,
            html_bytes=len(handle.html),
        )
        return handle

    async def release(self, handle: DocumentHandle) -> None:
        if handle.released:
            return
        handle.released = True

        browser, playwright = handle._browser, handle._playwright
        handle._browser = None
        handle._playwright = None

        if browser is not None:
            try:
                await browser.close()
            except PlaywrightError as e:
                logger.warning("Error closing browser", url=handle.url, error=str(e))
        if playwright is not None:
            try:
                await playwright.stop()
            except PlaywrightError as e:
                logger.warning("Error stopping playwright", url=handle.url, error=str(e))

    @asynccontextmanager
    async def snapshot(
        self,
        url: str,
        page_timeout_ms: int,
        card_timeout_ms: int,
        card_selector: str = DEFAULT_CARD_SELECTOR,
    ) -> AsyncIterator[DocumentHandle]:
        handle = await self.acquire(url, page_timeout_ms, card_timeout_ms, card_selector)
        try:
            yield handle
        finally:
            await self.release(handle)
