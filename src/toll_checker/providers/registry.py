"""
Provider registry: built-in portals plus an optional JSON file, loaded once per process.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator, Mapping
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from toll_checker.config.paths import resolve_runtime_path
from toll_checker.config.settings import settings
from toll_checker.providers.builtin import builtin_providers
from toll_checker.providers.models import (
    DEFAULT_AMOUNT_PATTERN,
    ActionStep,
    ProviderAdapter,
    SelectorStrategy,
    StabilizationBudget,
)
from toll_checker.services.enums import Scope
from toll_checker.utils.errors import ProviderConfigError, UnknownProviderError


class _StrategyModel(BaseModel):
    scope: Scope = Scope.DOCUMENT
    selector: str
    timeout_ms: int = Field(default=1_500, ge=0)

    def build(self) -> SelectorStrategy:
        return SelectorStrategy(self.scope, self.selector, self.timeout_ms)


class _StepModel(BaseModel):
    name: str
    strategies: list[_StrategyModel]

    def build(self) -> ActionStep:
        return ActionStep(self.name, tuple(s.build() for s in self.strategies))


class _BudgetModel(BaseModel):
    dom_ms: int = Field(default=10_000, ge=0)
    network_ms: int = Field(default=10_000, ge=0)
    settle_ms: int = Field(default=800, ge=0)

    def build(self) -> StabilizationBudget:
        return StabilizationBudget(self.dom_ms, self.network_ms, self.settle_ms)


class _ProviderModel(BaseModel):
    id: str
    label: str | None = None
    entry_url: str
    locale: str = "fr-FR"
    timezone: str = "Europe/Paris"
    user_agent: str | None = None

    consent_strategies: list[_StrategyModel] = []
    plate_input_strategies: list[_StrategyModel]
    submit_strategies: list[_StrategyModel]

    amount_selectors: list[str] = []
    amount_patterns: list[str] = []
    no_trip_pattern: str | None = None
    link_strategies: list[_StrategyModel] = []

    before_fill_steps: list[_StepModel] = []
    before_submit_steps: list[_StepModel] = []
    after_submit_steps: list[_StepModel] = []

    after_navigation: _BudgetModel = _BudgetModel(dom_ms=5_000, network_ms=5_000, settle_ms=0)
    after_submit: _BudgetModel = _BudgetModel()

    navigation_timeout_ms: int = Field(default=60_000, gt=0)
    payment_fallback_url: str | None = None

    def build(self) -> ProviderAdapter:
        patterns = tuple(re.compile(p, re.IGNORECASE) for p in self.amount_patterns)
        return ProviderAdapter(
            id=self.id,
            label=self.label or self.id,
            entry_url=self.entry_url,
            locale=self.locale,
            timezone=self.timezone,
            user_agent=self.user_agent,
            consent_strategies=tuple(s.build() for s in self.consent_strategies),
            plate_input_strategies=tuple(s.build() for s in self.plate_input_strategies),
            submit_strategies=tuple(s.build() for s in self.submit_strategies),
            amount_selectors=tuple(self.amount_selectors),
            amount_patterns=patterns or (DEFAULT_AMOUNT_PATTERN,),
            no_trip_pattern=(
                re.compile(self.no_trip_pattern, re.IGNORECASE) if self.no_trip_pattern else None
            ),
            link_strategies=tuple(s.build() for s in self.link_strategies),
            before_fill_steps=tuple(s.build() for s in self.before_fill_steps),
            before_submit_steps=tuple(s.build() for s in self.before_submit_steps),
            after_submit_steps=tuple(s.build() for s in self.after_submit_steps),
            after_navigation=self.after_navigation.build(),
            after_submit=self.after_submit.build(),
            navigation_timeout_ms=self.navigation_timeout_ms,
            payment_fallback_url=self.payment_fallback_url,
        )


class _ProvidersFileModel(BaseModel):
    providers: list[_ProviderModel]


def load_providers_file(path: str | Path) -> dict[str, ProviderAdapter]:
    """
    What it does:
    - Reads a JSON provider file and converts it into ProviderAdapter objects.

    Behavior:
    - Raises ProviderConfigError when the file is missing, not JSON, fails validation,
      or carries an invalid regular expression.
    """
    p = Path(path)
    if not p.exists():
        raise ProviderConfigError(f"Providers file not found: {p}")

    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
        parsed = _ProvidersFileModel.model_validate(raw)
        return {m.id: m.build() for m in parsed.providers}
    except (json.JSONDecodeError, ValidationError, re.error) as e:
        raise ProviderConfigError(f"Invalid providers file {p}: {e}") from e


class ProviderRegistry(Mapping[str, ProviderAdapter]):
    """Read-only mapping of provider id -> ProviderAdapter."""

    def __init__(self, providers: Mapping[str, ProviderAdapter]) -> None:
        self._providers = dict(providers)

    def __getitem__(self, provider_id: str) -> ProviderAdapter:
        try:
            return self._providers[provider_id]
        except KeyError:
            raise UnknownProviderError(
                f"Unknown provider '{provider_id}'. Known: {sorted(self._providers)}"
            ) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)


def build_registry(providers_file: str | None = None) -> ProviderRegistry:
    providers = builtin_providers()
    if providers_file:
        providers.update(load_providers_file(resolve_runtime_path(providers_file)))
    return ProviderRegistry(providers)


@lru_cache(maxsize=1)
def get_registry() -> ProviderRegistry:
    return build_registry(settings.providers_file)
