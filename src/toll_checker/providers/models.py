"""
Provider configuration models.

A provider is data: where to go, how to find things, what the results look like.
The pipeline in `toll_checker.scraping.pipeline` is the only code that consumes it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from toll_checker.services.enums import Scope


@dataclass(frozen=True)
class SelectorStrategy:
    """
    One "where to look" rule.

    - scope: which roots are searched (top document, child frames, or both with piercing).
    - selector: any Playwright selector (css=, xpath=, text=, role=, or plain CSS).
    - timeout_ms: how long this strategy may wait for a visible match.
    """

    scope: Scope
    selector: str
    timeout_ms: int = 1_500


def doc(selector: str, timeout_ms: int = 1_500) -> SelectorStrategy:
    return SelectorStrategy(Scope.DOCUMENT, selector, timeout_ms)


def frames(selector: str, timeout_ms: int = 1_500) -> SelectorStrategy:
    return SelectorStrategy(Scope.FRAME, selector, timeout_ms)


def shadow(selector: str, timeout_ms: int = 1_500) -> SelectorStrategy:
    return SelectorStrategy(Scope.SHADOW, selector, timeout_ms)


@dataclass(frozen=True)
class ActionStep:
    """
    Optional click performed at a fixed point of the flow (reveal an input,
    pick a country, close a modal). Skipped when nothing resolves.
    """

    name: str
    strategies: tuple[SelectorStrategy, ...]


@dataclass(frozen=True)
class StabilizationBudget:
    dom_ms: int = 10_000
    network_ms: int = 10_000
    settle_ms: int = 800

    @property
    def ceiling_ms(self) -> int:
        return self.dom_ms + self.network_ms + self.settle_ms


# A whole localized amount: "23,50", "1 234,56", "1.234,56". Not glued to a word, so a
# road label such as "A13" never becomes the integer part.
DEFAULT_AMOUNT_PATTERN = re.compile(
    r"(?<![\w.,])(?:[0-9]{1,3}(?:[.,\s][0-9]{3})+|[0-9]+)[.,][0-9]{1,2}(?![0-9])"
)


@dataclass(frozen=True)
class ProviderAdapter:
    """
    Static per-site configuration.

    What it does:
    - Describes one toll portal: entry URL, browser locale, selector strategies and
      extraction patterns.

    Behavior:
    - Built once at process start and never mutated (frozen).
    - Strategy tuples are tried in declaration order, most specific first.
    """

    id: str
    label: str
    entry_url: str
    locale: str = "fr-FR"
    timezone: str = "Europe/Paris"
    user_agent: str | None = None

    consent_strategies: tuple[SelectorStrategy, ...] = ()
    plate_input_strategies: tuple[SelectorStrategy, ...] = ()
    submit_strategies: tuple[SelectorStrategy, ...] = ()

    amount_selectors: tuple[str, ...] = ()
    amount_patterns: tuple[re.Pattern[str], ...] = (DEFAULT_AMOUNT_PATTERN,)
    no_trip_pattern: re.Pattern[str] | None = None
    link_strategies: tuple[SelectorStrategy, ...] = ()

    before_fill_steps: tuple[ActionStep, ...] = ()
    before_submit_steps: tuple[ActionStep, ...] = ()
    after_submit_steps: tuple[ActionStep, ...] = ()

    after_navigation: StabilizationBudget = field(
        default_factory=lambda: StabilizationBudget(dom_ms=5_000, network_ms=5_000, settle_ms=0)
    )
    after_submit: StabilizationBudget = field(default_factory=StabilizationBudget)

    navigation_timeout_ms: int = 60_000
    payment_fallback_url: str | None = None
