"""Shared test fixtures."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from stepqueue.actions import Action
from stepqueue.chain import Handler, handler_for
from stepqueue.decorators import Decorator
from stepqueue.results import Result


def make_mock_page(
    url: str = "https://example.com/",
    inner_text: str = "",
) -> MagicMock:
    """Create a mock Playwright Page with common methods."""
    page = MagicMock()
    page.url = url

    # Common async methods
    page.evaluate = AsyncMock(return_value=None)
    page.inner_text = AsyncMock(return_value=inner_text)
    page.screenshot = AsyncMock(return_value=b"fake_png_data")
    page.wait_for_timeout = AsyncMock()
    page.goto = AsyncMock()
    page.keyboard = MagicMock()
    page.keyboard.press = AsyncMock()
    page.mouse = MagicMock()
    page.mouse.move = AsyncMock()
    page.mouse.wheel = AsyncMock()

    mock_locator = MagicMock()
    mock_locator.first = mock_locator
    mock_locator.is_visible = AsyncMock(return_value=True)
    mock_locator.click = AsyncMock()
    mock_locator.fill = AsyncMock()
    mock_locator.hover = AsyncMock()
    mock_locator.press = AsyncMock()
    mock_locator.bounding_box = AsyncMock(
        return_value={"x": 0, "y": 0, "width": 100, "height": 50}
    )

    page.locator = MagicMock(return_value=mock_locator)

    return page


def recording_handler(
    name: str,
    kinds: str | tuple[str, ...],
    calls: list[str],
    succeed: bool = True,
) -> Handler:
    """Handler that appends its name to `calls` each time it executes."""

    async def execute(action: Action) -> Result:
        calls.append(name)
        if succeed:
            return Result.ok(action)
        return Result.fail(action, f"{name} failed")

    return handler_for(name, kinds, execute)


def tracing_decorator(name: str, trace: list[str]) -> Decorator:
    """Decorator that records entry and exit in `trace`."""

    def wrap(inner):
        async def run(action):
            trace.append(f"{name}:in")
            result = await inner(action)
            trace.append(f"{name}:out")
            return result

        return run

    return Decorator(name=name, wrap=wrap)
