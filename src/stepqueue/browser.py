"""Async Playwright browser scope for page handlers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from playwright.async_api import (
    Browser,
    BrowserContext,
    Dialog,
    Page,
    async_playwright,
)


@dataclass
class BrowserController:
    """Owns a Chromium instance for the duration of an `async with` block.

    The page is handed to handlers explicitly; nothing here is global.
    """

    headless: bool = True
    base_url: str = ""
    viewport: dict[str, int] = field(default_factory=lambda: {"width": 1280, "height": 720})
    _playwright: Any = field(default=None, repr=False)
    _browser: Browser | None = field(default=None, repr=False)
    _context: BrowserContext | None = field(default=None, repr=False)
    _page: Page | None = field(default=None, repr=False)

    async def __aenter__(self) -> "BrowserController":
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(headless=self.headless)
            self._context = await self._browser.new_context(
                viewport=self.viewport,
                base_url=self.base_url or None,
            )
            self._page = await self._context.new_page()
            self._page.on("dialog", self._handle_dialog)
        except Exception:
            await self.close()
            raise
        print(f"[browser] Started chromium (headless={self.headless})")
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        if self._browser:
            await self._browser.close()
        if self._playwright:
            await self._playwright.stop()
        self._page = None
        self._context = None
        self._browser = None
        self._playwright = None

    @staticmethod
    async def _handle_dialog(dialog: Dialog) -> None:
        await dialog.dismiss()

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("Browser not started — use async with")
        return self._page
