"""
extract.py

What this module does
- Reads the post-submit page: due amount, "no trip found" signal, payment link.

Behavior summary
- Amount: provider amount selectors first (first few matches each), then a free-text
  scan of body lines that carry a currency marker. First parseable match wins.
- No-trip: provider pattern searched in the visible text of every frame.
- Payment link: provider link strategies in order; only <a href> counts. Buttons that
  navigate client-side are skipped and the scan moves on.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from urllib.parse import urljoin

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Frame, Page

from toll_checker.providers.models import ProviderAdapter
from toll_checker.scraping.locator import ElementLocator
from toll_checker.utils.log import log_event

logger = logging.getLogger(__name__)

# integer part with optional thousands groups, then 1-2 fraction digits
_AMOUNT_RE = re.compile(r"(\d{1,3}(?:[.,]\d{3})+|\d+)[.,](\d{1,2})(?!\d)")
_WHITESPACE = re.compile(r"\s+")
# "1 234" or "12\u202f345": spaced thousands groups of a single number
_SPACED_THOUSANDS = re.compile(r"\b\d{1,3}(?:\s\d{3})+\b")
_CURRENCY_MARKER = re.compile(r"€|EUR|£|GBP|\$|USD", re.IGNORECASE)

_CURRENCIES = (
    (re.compile(r"€|\bEUR\b", re.IGNORECASE), "EUR"),
    (re.compile(r"£|\bGBP\b", re.IGNORECASE), "GBP"),
    (re.compile(r"\$|\bUSD\b", re.IGNORECASE), "USD"),
)

MAX_MATCHES_PER_SELECTOR = 5
BODY_TEXT_TIMEOUT_MS = 2_000


def parse_amount_to_minor_units(text: str | None) -> int | None:
    """
    "12,34" -> 1234, "5.9" -> 590, "0,05" -> 5, "1 234,56 €" -> 123456.

    A single fraction digit is right-padded ("5.9" is 5.90), never left-padded.
    Only whitespace inside a thousands group is dropped, so "A13 23,50" stays 2350.
    """
    if not text:
        return None
    joined = _SPACED_THOUSANDS.sub(lambda g: _WHITESPACE.sub("", g.group(0)), text)
    m = _AMOUNT_RE.search(joined)
    if not m:
        return None
    integer = int(re.sub(r"[.,]", "", m.group(1)))
    fraction = int(m.group(2).ljust(2, "0"))
    return integer * 100 + fraction


def detect_currency(text: str | None) -> str | None:
    for pattern, code in _CURRENCIES:
        if text and pattern.search(text):
            return code
    return None


@dataclass(frozen=True)
class Extraction:
    amount_minor_units: int | None
    currency: str | None
    no_trip: bool
    result_url: str | None
    pay_url: str | None


class ResultExtractor:
    def __init__(self, locator: ElementLocator | None = None) -> None:
        self._locator = locator or ElementLocator()

    def extract(self, page: Page, adapter: ProviderAdapter) -> Extraction:
        amount, currency = self._find_amount(page, adapter)
        no_trip = self._no_trip(page, adapter)
        pay_url = self._find_pay_link(page, adapter)

        extraction = Extraction(
            amount_minor_units=amount,
            currency=(currency or "EUR") if amount is not None else None,
            no_trip=no_trip,
            result_url=page.url,
            pay_url=pay_url,
        )
        log_event(
            logger,
            logging.INFO,
            "extract.done",
            provider=adapter.id,
            amount=amount,
            currency=extraction.currency,
            no_trip=no_trip,
            pay_url=pay_url,
        )
        return extraction

    # -------------------- Amount --------------------

    def _find_amount(self, page: Page, adapter: ProviderAdapter) -> tuple[int | None, str | None]:
        for selector in adapter.amount_selectors:
            for text in self._candidate_texts(page, selector):
                hit = self._match_amount(text, adapter)
                if hit is not None:
                    return hit

        for line in _body_text(page.main_frame).splitlines():
            if not _CURRENCY_MARKER.search(line):
                continue
            hit = self._match_amount(line, adapter)
            if hit is not None:
                return hit

        return None, None

    def _candidate_texts(self, page: Page, selector: str) -> list[str]:
        texts: list[str] = []
        try:
            matches = page.locator(selector)
            for i in range(min(matches.count(), MAX_MATCHES_PER_SELECTOR)):
                texts.append((matches.nth(i).text_content() or "").strip())
        except PlaywrightError:
            logger.debug("Amount selector %r failed", selector, exc_info=True)
        return texts

    def _match_amount(self, text: str, adapter: ProviderAdapter) -> tuple[int, str | None] | None:
        # the pattern decides which number is the amount; a named group "amount" narrows it further
        for pattern in adapter.amount_patterns:
            m = pattern.search(text)
            if not m:
                continue
            fragment = m.group("amount") if "amount" in pattern.groupindex else m.group(0)
            amount = parse_amount_to_minor_units(fragment)
            if amount is not None:
                return amount, detect_currency(text)
        return None

    # -------------------- No trip --------------------

    def _no_trip(self, page: Page, adapter: ProviderAdapter) -> bool:
        pattern = adapter.no_trip_pattern
        if pattern is None:
            return False
        return any(pattern.search(_body_text(frame)) for frame in page.frames)

    # -------------------- Payment link --------------------

    def _find_pay_link(self, page: Page, adapter: ProviderAdapter) -> str | None:
        for strategy in adapter.link_strategies:
            located = self._locator.locate(page, (strategy,), target="pay link")
            if located is None:
                continue
            try:
                tag = located.element.evaluate("n => n.tagName.toLowerCase()")
                if tag != "a":
                    continue
                href = located.element.get_attribute("href")
            except PlaywrightError:
                logger.debug("Pay link candidate vanished", exc_info=True)
                continue
            if href:
                return urljoin(page.url, href)
        return None


def _body_text(frame: Frame) -> str:
    try:
        return frame.locator("body").inner_text(timeout=BODY_TEXT_TIMEOUT_MS)
    except PlaywrightError:
        return ""
