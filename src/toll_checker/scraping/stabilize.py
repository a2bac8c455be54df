from __future__ import annotations

import logging

from playwright.sync_api import Page

from toll_checker.providers.models import StabilizationBudget

logger = logging.getLogger(__name__)


class StabilizationWaiter:
    """
    What it does:
    - Waits, within a fixed budget, for the page to calm down after navigation or submit.

    Why it matters:
    - Portals keep polling connections open, so strict network-idle may never fire.
      A timeout here means "assume stable", not "fail".

    Behavior:
    - domcontentloaded (<= dom_ms), then networkidle (<= network_ms), then an
      unconditional settle delay (settle_ms). Never raises.
    """

    def wait(self, page: Page, budget: StabilizationBudget) -> None:
        self._load_state(page, "domcontentloaded", budget.dom_ms)
        self._load_state(page, "networkidle", budget.network_ms)

        if budget.settle_ms > 0:
            try:
                page.wait_for_timeout(budget.settle_ms)
            except Exception:
                logger.debug("Settle delay interrupted", exc_info=True)

    def _load_state(self, page: Page, state: str, timeout_ms: int) -> None:
        if timeout_ms <= 0:
            return
        try:
            page.wait_for_load_state(state, timeout=timeout_ms)
        except Exception:
            logger.debug("No %s within %sms; assuming stable", state, timeout_ms)
