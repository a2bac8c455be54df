"""
locator.py

What this module does
- Resolves a logical target (plate input, submit control, consent button, ...) to a
  visible Playwright locator by walking an ordered list of SelectorStrategy rules.

Why it matters
- Portal markup changes without notice. Fault tolerance lives in the ordering of the
  strategies (specific first, generic last) instead of in nested try/except blocks.

Behavior summary
- Strategies are tried strictly in order; the first one with a visible match wins and
  later strategies are never queried.
- Each strategy polls its roots until its own timeout_ms runs out.
- Roots per scope: document = top frame, frame = every child frame (document order),
  shadow = top frame then child frames. Playwright's CSS and text engines pierce open
  shadow roots, so the shadow scope only widens where the query runs.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Frame, Locator, Page

from toll_checker.providers.models import SelectorStrategy
from toll_checker.services.enums import Scope
from toll_checker.utils.log import log_event

logger = logging.getLogger(__name__)

POLL_INTERVAL_MS = 100


@dataclass(frozen=True)
class Located:
    element: Locator
    frame: Frame
    strategy: SelectorStrategy
    index: int


def roots_for(page: Page, scope: Scope) -> list[Frame]:
    main = page.main_frame
    children = [f for f in page.frames if f != main]
    if scope == Scope.DOCUMENT:
        return [main]
    if scope == Scope.FRAME:
        return children
    return [main, *children]


class ElementLocator:
    def __init__(self, *, poll_interval_ms: int = POLL_INTERVAL_MS) -> None:
        self._poll_interval_ms = max(1, poll_interval_ms)

    def locate(
        self,
        page: Page,
        strategies: Sequence[SelectorStrategy],
        *,
        target: str = "element",
    ) -> Located | None:
        """
        Returns the first visible match, or None when every strategy timed out.
        Whether None is fatal is the caller's call.
        """
        for index, strategy in enumerate(strategies):
            hit = self._try_strategy(page, strategy)
            if hit is not None:
                frame, element = hit
                log_event(
                    logger,
                    logging.DEBUG,
                    "locate.hit",
                    target=target,
                    index=index,
                    scope=strategy.scope.value,
                    selector=strategy.selector,
                    frame=frame.url,
                )
                return Located(element=element, frame=frame, strategy=strategy, index=index)

        log_event(logger, logging.DEBUG, "locate.miss", target=target, tried=len(strategies))
        return None

    def _try_strategy(self, page: Page, strategy: SelectorStrategy) -> tuple[Frame, Locator] | None:
        attempts = max(1, strategy.timeout_ms // self._poll_interval_ms)

        for attempt in range(attempts):
            # Roots are re-read on every attempt: frames attach late on most portals.
            for frame in roots_for(page, strategy.scope):
                element = self._visible_in(frame, strategy.selector)
                if element is not None:
                    return frame, element

            if attempt < attempts - 1:
                page.wait_for_timeout(self._poll_interval_ms)

        return None

    def _visible_in(self, frame: Frame, selector: str) -> Locator | None:
        try:
            candidate = frame.locator(selector).locator("visible=true").first
            if candidate.count() > 0:
                return candidate
        except PlaywrightError:
            # Detached frame or a selector engine this frame rejects: no match here.
            logger.debug("Selector %r failed in frame %r", selector, frame.url, exc_info=True)
        return None
