from __future__ import annotations

import logging
import os
from typing import Iterable, Protocol

LOGGER = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/128.0.0.0 Safari/537.36"
)
LAUNCH_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
)
HIDE_WEBDRIVER_SCRIPT = """
(() => {
  Object.defineProperty(navigator, 'webdriver', {get: () => undefined});
})();
"""
VIEWPORT = {"width": 1280, "height": 800}


class PageRenderer(Protocol):
    async def render(self, url: str, *, wait_selectors: Iterable[str] = ()) -> str:
        ...


class PlaywrightRenderer:
    """Renders a page in headless Chromium and returns the resulting DOM as HTML."""

    def __init__(
        self,
        *,
        timeout_seconds: float = 60.0,
        headless: bool = True,
        user_agent: str | None = None,
    ):
        self._timeout_ms = int(timeout_seconds * 1000)
        self._headless = headless
        self._user_agent = user_agent or DEFAULT_USER_AGENT

    async def render(self, url: str, *, wait_selectors: Iterable[str] = ()) -> str:
        try:
            from playwright.async_api import TimeoutError as PlaywrightTimeoutError
            from playwright.async_api import async_playwright
        except ImportError as exc:  # pragma: no cover - import guard
            raise RuntimeError(
                "Playwright is not installed. Run `pip install playwright` and `playwright install chromium`."
            ) from exc

        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=self._headless, args=list(LAUNCH_ARGS))
            try:
                context = await browser.new_context(user_agent=self._user_agent, viewport=VIEWPORT)
                await context.add_init_script(HIDE_WEBDRIVER_SCRIPT)
                page = await context.new_page()
                try:
                    await page.goto(url, wait_until="domcontentloaded", timeout=self._timeout_ms)
                except PlaywrightTimeoutError as exc:
                    raise TimeoutError(f"Timed out while waiting for {url} to finish loading") from exc
                for selector in wait_selectors:
                    try:
                        await page.wait_for_selector(selector, timeout=self._timeout_ms)
                    except PlaywrightTimeoutError:
                        LOGGER.debug("wait selector %s timed out for %s", selector, url)
                return await page.content()
            finally:
                await browser.close()


def browser_headless_from_env(default: bool = True) -> bool:
    value = os.getenv("CREATOR_RSS_BROWSER_HEADLESS")
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no"}


def browser_user_agent_from_env() -> str | None:
    value = os.getenv("CREATOR_RSS_BROWSER_USER_AGENT")
    if value and value.strip():
        return value.strip()
    return None
