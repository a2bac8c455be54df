"""
browser.py

What this module does
- Provisions one exclusive Playwright session (playwright + browser + context + page)
  per query, configured with the provider's locale, timezone and user agent.

Why it matters
- Sessions are never shared: concurrent checks only touch their own page.
- Teardown must run on every exit path without leaking Chromium processes.

Behavior summary
- Local runs use Playwright-managed Chromium. Deployments that ship their own binary
  set BROWSER_EXECUTABLE_PATH (or BROWSER_CHANNEL for an installed Chrome).
- PlaywrightSession.close() is safe to call multiple times.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from playwright.sync_api import Browser, BrowserContext, Page, Playwright, sync_playwright

from toll_checker.config.settings import Settings
from toll_checker.providers.models import ProviderAdapter

logger = logging.getLogger(__name__)

DEFAULT_VIEWPORT = {"width": 1280, "height": 900}


def _teardown(step: Callable[[], None], what: str) -> None:
    # A crashed target makes close() raise; later steps must still run.
    try:
        step()
    except Exception:
        logger.warning("Could not %s cleanly", what, exc_info=True)


class PlaywrightSession:
    def __init__(
        self,
        *,
        pw: Playwright,
        browser: Browser,
        context: BrowserContext,
        page: Page,
    ) -> None:
        self._pw: Playwright | None = pw
        self._browser: Browser | None = browser
        self._context: BrowserContext | None = context
        self._page: Page | None = page

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("Playwright session already closed.")
        return self._page

    @property
    def executable_path(self) -> str | None:
        return self._pw.chromium.executable_path if self._pw else None

    def close(self) -> None:
        """
        What it does:
        - Closes context/browser and stops Playwright.

        Why it matters:
        - Prevents zombie browser processes.

        Behavior:
        - Safe to call multiple times.
        - Never raises: a failing step is logged and the remaining steps still run.
        """
        context, browser, pw = self._context, self._browser, self._pw
        self._context = self._browser = self._pw = None
        self._page = None

        if context:
            _teardown(context.close, "close browser context")
        if browser:
            _teardown(browser.close, "close browser")
        if pw:
            _teardown(pw.stop, "stop Playwright")


class PlaywrightSessionProvisioner:
    def __init__(
        self,
        *,
        headless: bool = True,
        executable_path: str | None = None,
        channel: str | None = None,
        default_timeout_ms: int = 30_000,
    ) -> None:
        self.headless = headless
        self.executable_path = executable_path
        self.channel = channel
        self._default_timeout_ms = default_timeout_ms

    @classmethod
    def from_settings(cls, s: Settings, *, headless: bool | None = None) -> PlaywrightSessionProvisioner:
        return cls(
            headless=s.browser_headless if headless is None else headless,
            executable_path=s.browser_executable_path,
            channel=s.browser_channel,
            default_timeout_ms=s.default_timeout_ms,
        )

    def launch_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"headless": self.headless}
        if self.executable_path:
            options["executable_path"] = self.executable_path
        elif self.channel:
            options["channel"] = self.channel
        return options

    def open(self, adapter: ProviderAdapter) -> PlaywrightSession:
        """
        What it does:
        - Starts Playwright, launches Chromium, creates a context + page for `adapter`.

        Behavior:
        - If Chromium isn't installed, raises RuntimeError with the install command.
        - Anything started before a failure is torn down before re-raising.
        """
        pw = sync_playwright().start()
        try:
            browser = pw.chromium.launch(**self.launch_options())
        except Exception as e:
            _teardown(pw.stop, "stop Playwright")
            raise RuntimeError(
                "Failed to launch Playwright Chromium.\n"
                "If this is the first time on this machine, run:\n\n"
                "  playwright install chromium\n"
            ) from e

        try:
            context_options: dict[str, Any] = {
                "locale": adapter.locale,
                "timezone_id": adapter.timezone,
                "viewport": DEFAULT_VIEWPORT,
            }
            if adapter.user_agent:
                context_options["user_agent"] = adapter.user_agent

            context = browser.new_context(**context_options)
            page = context.new_page()
            page.set_default_timeout(self._default_timeout_ms)
        except Exception:
            _teardown(browser.close, "close browser")
            _teardown(pw.stop, "stop Playwright")
            raise

        return PlaywrightSession(pw=pw, browser=browser, context=context, page=page)
