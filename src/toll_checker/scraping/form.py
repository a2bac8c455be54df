from __future__ import annotations

import logging
import re

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator

from toll_checker.utils.errors import SubmissionFailedError

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^0-9A-Za-z]+")


def _canonical(value: str | None) -> str:
    # Input masks often re-insert separators ("AB-123-CD"); compare without them.
    return _NON_ALNUM.sub("", value or "").upper()


class FormSubmitter:
    """
    What it does:
    - Puts the plate into the located input and activates the located submit control.

    Why it matters:
    - Some portal widgets ignore programmatic value changes and only react to real key
      events; some overlays swallow normal clicks.

    Behavior:
    - fill(): clear + direct fill, verified by reading the value back; otherwise clears
      again and types one character at a time.
    - submit(): normal click; on failure one forced no-wait click; if that fails too,
      raises SubmissionFailedError.
    """

    def __init__(self, *, type_delay_ms: int = 40, click_timeout_ms: int = 5_000) -> None:
        self._type_delay_ms = type_delay_ms
        self._click_timeout_ms = click_timeout_ms

    def fill(self, element: Locator, value: str) -> None:
        try:
            element.scroll_into_view_if_needed(timeout=self._click_timeout_ms)
            element.click(timeout=self._click_timeout_ms)
        except PlaywrightError:
            logger.debug("Could not focus plate input before fill (continuing)", exc_info=True)

        try:
            element.fill("")
            element.fill(value)
            if _canonical(self._read_back(element)) == _canonical(value):
                return
            logger.info("Direct fill did not stick; falling back to typed input")
        except PlaywrightError:
            logger.info("Direct fill failed; falling back to typed input", exc_info=True)

        try:
            element.fill("")
        except PlaywrightError:
            logger.debug("Could not clear plate input before typing", exc_info=True)

        element.press_sequentially(value, delay=self._type_delay_ms)

    def submit(self, element: Locator) -> None:
        try:
            element.click(timeout=self._click_timeout_ms)
            return
        except PlaywrightError:
            logger.info("Submit click failed (likely intercepted); retrying with a forced click")

        try:
            element.click(timeout=self._click_timeout_ms, force=True, no_wait_after=True)
        except PlaywrightError as e:
            raise SubmissionFailedError("submission failed") from e

    def _read_back(self, element: Locator) -> str | None:
        try:
            return element.input_value()
        except PlaywrightError:
            return None
