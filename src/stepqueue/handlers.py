"""Playwright-backed handlers: translate Actions into page calls.

The page is injected by the caller (usually from BrowserController) and is
never looked up globally. `target` is used as a Playwright selector as-is.
"""

from __future__ import annotations

import asyncio

from playwright.async_api import Page

from stepqueue.actions import Action
from stepqueue.chain import Handler, catch_all, handler_for
from stepqueue.results import Result


def _count(action: Action, key: str = "count", default: int = 1) -> int:
    raw = action.metadata.get(key)
    if raw is None:
        return default
    try:
        return max(int(raw), 1)
    except ValueError:
        return default


async def _do_click(page: Page, action: Action) -> bool:
    """Click the first element matching the target, `count` times."""
    n_clicks = _count(action)
    loc = page.locator(action.target).first
    for _ in range(n_clicks):
        await loc.click(timeout=2000)
        if n_clicks > 1:
            await page.wait_for_timeout(100)
    return True


async def _do_fill(page: Page, action: Action) -> bool:
    text = "" if action.payload is None else str(action.payload)
    await page.locator(action.target).first.fill(text, timeout=3000)
    return True


async def _do_press(page: Page, action: Action) -> bool:
    key = str(action.payload or action.target)
    if action.target and action.payload:
        await page.locator(action.target).first.press(key)
    else:
        await page.keyboard.press(key)
    return True


async def _do_hover(page: Page, action: Action) -> bool:
    loc = page.locator(action.target).first
    await loc.hover(timeout=2000)
    hold = float(action.payload or 0)
    if hold > 0:
        await asyncio.sleep(min(hold, 10.0))
    return True


async def _do_goto(page: Page, action: Action) -> bool:
    await page.goto(action.target, wait_until="domcontentloaded", timeout=10_000)
    return True


async def _do_scroll(page: Page, action: Action) -> bool:
    """Scroll down by a pixel amount using mouse.wheel (triggers scroll events)."""
    total = int(action.payload or 600)
    if action.target:
        box = await page.locator(action.target).first.bounding_box()
        if box:
            await page.mouse.move(box["x"] + box["width"] / 2, box["y"] + box["height"] / 2)
    step = 100
    scrolled = 0
    while scrolled < total:
        chunk = min(step, total - scrolled)
        await page.mouse.wheel(0, chunk)
        scrolled += chunk
        await page.wait_for_timeout(40)
    return True


async def _do_wait(page: Page, action: Action) -> bool:
    await asyncio.sleep(float(action.payload or 0))
    return True


async def _do_assert_text(page: Page, action: Action) -> Result:
    expected = str(action.payload or "")
    actual = await page.inner_text(action.target or "body")
    if expected in actual:
        return Result.ok(action)
    snippet = actual.strip().replace("\n", " ")[:80]
    return Result.fail(action, f"expected {expected!r} in {action.target or 'body'}, got {snippet!r}")


_HANDLERS = [
    ("click", ("click",), _do_click),
    ("fill", ("fill", "type"), _do_fill),
    ("press", ("press",), _do_press),
    ("hover", ("hover",), _do_hover),
    ("goto", ("goto",), _do_goto),
    ("scroll", ("scroll",), _do_scroll),
    ("wait", ("wait",), _do_wait),
    ("assert_text", ("assert_text",), _do_assert_text),
]


def _bind(fn, page: Page):
    async def execute(action: Action):
        return await fn(page, action)

    return execute


def page_handlers(page: Page, fallback: bool = False) -> list[Handler]:
    """Handlers for every built-in page kind, bound to `page`.

    With `fallback=True` a catch-all is appended that fails unknown kinds
    instead of letting dispatch raise.
    """
    handlers = [handler_for(name, kinds, _bind(fn, page)) for name, kinds, fn in _HANDLERS]
    if fallback:
        handlers.append(catch_all("unsupported", _unsupported))
    return handlers


def _unsupported(action: Action) -> Result:
    print(f"[handlers] Unknown action kind: {action.kind}")
    return Result.fail(action, f"unsupported action kind {action.kind!r}")
