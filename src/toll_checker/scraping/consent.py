"""
consent.py

What this module does
- Dismisses cookie / consent overlays before the pipeline touches the form.

Why it matters
- A banner left on screen intercepts every later click. Consent UIs come as plain DOM,
  iframe-hosted SDKs or shadow DOM, so one technique is never enough.

Behavior summary
Tiers, each tried only while the banner has not been seen to go away:
1) provider consent strategies against the top document
2) the same strategies against every child frame
3) mouse click at the centre of a visible "accept all" text node (any frame)
4) hide consent-looking elements and restore scrolling / pointer events
Never raises.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

from toll_checker.providers.models import ProviderAdapter, SelectorStrategy
from toll_checker.scraping.locator import ElementLocator
from toll_checker.services.enums import Scope
from toll_checker.utils.log import log_event

logger = logging.getLogger(__name__)

ACCEPT_ALL_PATTERN = re.compile(
    r"tout accepter|accepter tout|autoriser tous les cookies|accept all|allow all",
    re.IGNORECASE,
)

CONSENT_MARKERS = (
    "cookie",
    "consent",
    "didomi",
    "axeptio",
    "onetrust",
    "cookiebot",
    "gdpr",
    "tarteaucitron",
    "cmp",
)

CONSENT_MARKER_SELECTOR = ", ".join(
    f"[id*='{m}' i], [class*='{m}' i]" for m in CONSENT_MARKERS
)

_SUPPRESS_JS = """
(markers) => {
  const re = new RegExp(markers.join('|'), 'i');
  let hidden = 0;
  for (const el of Array.from(document.querySelectorAll('body *'))) {
    const cls = typeof el.className === 'string' ? el.className : '';
    if (re.test(el.id || '') || re.test(cls)) {
      el.style.setProperty('display', 'none', 'important');
      el.style.setProperty('pointer-events', 'none', 'important');
      hidden += 1;
    }
  }
  for (const root of [document.documentElement, document.body]) {
    if (!root) continue;
    root.style.setProperty('overflow', 'auto', 'important');
    root.style.setProperty('pointer-events', 'auto', 'important');
  }
  return hidden;
}
"""

SETTLE_AFTER_CLICK_MS = 300


class ConsentResolver:
    def __init__(self, locator: ElementLocator | None = None) -> None:
        self._locator = locator or ElementLocator()

    def resolve(self, page: Page, adapter: ProviderAdapter) -> str | None:
        """
        Best effort. Returns the name of the tier that made the banner go away
        ("document", "frames", "coordinates", "suppressed"), or None.
        """
        try:
            tier = self._resolve(page, adapter)
        except Exception:
            logger.debug("Consent resolution aborted", exc_info=True)
            tier = None

        log_event(logger, logging.INFO, "consent.resolved", provider=adapter.id, tier=tier)
        return tier

    def banner_present(self, page: Page) -> bool:
        for frame in page.frames:
            try:
                if frame.locator(CONSENT_MARKER_SELECTOR).locator("visible=true").count() > 0:
                    return True
                if frame.get_by_text(ACCEPT_ALL_PATTERN).locator("visible=true").count() > 0:
                    return True
            except PlaywrightError:
                continue
        return False

    # -------------------- Tiers --------------------

    def _resolve(self, page: Page, adapter: ProviderAdapter) -> str | None:
        strategies = adapter.consent_strategies

        if strategies:
            if self._click_first(page, _rescoped(strategies, Scope.DOCUMENT)) and self._gone(page):
                return "document"

            has_children = len(page.frames) > 1
            if has_children:
                if self._click_first(page, _rescoped(strategies, Scope.FRAME)) and self._gone(page):
                    return "frames"

        if self._click_accept_text(page) and self._gone(page):
            return "coordinates"

        if self.banner_present(page):
            self._suppress(page)
            return "suppressed"

        return None

    def _click_first(self, page: Page, strategies: tuple[SelectorStrategy, ...]) -> bool:
        located = self._locator.locate(page, strategies, target="consent")
        if located is None:
            return False
        try:
            located.element.click(timeout=2_000)
            return True
        except PlaywrightError:
            logger.debug("Consent control found but click failed", exc_info=True)
            return False

    def _click_accept_text(self, page: Page) -> bool:
        """
        Clicks by coordinates so the event reaches whatever sits on top of the text,
        which is what overlays that swallow synthetic clicks expect.
        """
        for frame in page.frames:
            try:
                text = frame.get_by_text(ACCEPT_ALL_PATTERN).locator("visible=true").first
                if text.count() == 0:
                    continue
                box = text.bounding_box()
                if not box:
                    continue
                page.mouse.click(box["x"] + box["width"] / 2, box["y"] + box["height"] / 2)
                return True
            except PlaywrightError:
                continue
        return False

    def _suppress(self, page: Page) -> None:
        for frame in page.frames:
            try:
                hidden = frame.evaluate(_SUPPRESS_JS, list(CONSENT_MARKERS))
                logger.debug("Suppressed %s consent elements in %s", hidden, frame.url)
            except PlaywrightError:
                logger.debug("Consent suppression failed in %s", frame.url, exc_info=True)

    def _gone(self, page: Page) -> bool:
        page.wait_for_timeout(SETTLE_AFTER_CLICK_MS)
        return not self.banner_present(page)


def _rescoped(strategies: tuple[SelectorStrategy, ...], scope: Scope) -> tuple[SelectorStrategy, ...]:
    return tuple(replace(s, scope=scope) for s in strategies)
