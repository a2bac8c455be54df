from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from toll_checker.services.enums import Checkpoint, Outcome

if TYPE_CHECKING:
    from playwright.sync_api import Page

    from toll_checker.providers.models import ProviderAdapter


@dataclass(frozen=True)
class Screenshots:
    before: str | None = None
    after: str | None = None
    error: str | None = None

    def as_dict(self) -> dict[str, str]:
        return {
            name: ref
            for name, ref in (("before", self.before), ("after", self.after), ("error", self.error))
            if ref is not None
        }


@dataclass(frozen=True)
class AutomationResult:
    """
    What it does:
    - The single terminal result of one plate check against one provider.

    Behavior:
    - Immutable once returned; `to_response()` renders the JSON contract used by callers.
    - amount_due_minor_units is in cents.
    """

    provider_id: str
    plate: str
    outcome: Outcome
    amount_due_minor_units: int | None = None
    currency: str | None = None
    result_url: str | None = None
    pay_url: str | None = None
    error_message: str | None = None
    screenshots: Screenshots = field(default_factory=Screenshots)

    @property
    def ok(self) -> bool:
        return self.outcome in (Outcome.DUE, Outcome.NO_DUE)

    @property
    def has_due(self) -> bool:
        return self.outcome == Outcome.DUE

    def to_response(self) -> tuple[int, dict[str, Any]]:
        """
        Returns (http_status, payload).

        - no due  -> 200 {ok, hasDue: false, screenshots}
        - due     -> 200 {ok, hasDue: true, amountDue?, currency, resultUrl, payUrl, screenshots}
        - error   -> 500 {ok: false, error, screenshot?}
        """
        base: dict[str, Any] = {"provider": self.provider_id, "plate": self.plate}

        if self.outcome == Outcome.NO_DUE:
            return 200, {
                "ok": True,
                **base,
                "hasDue": False,
                "screenshots": self.screenshots.as_dict(),
            }

        if self.outcome == Outcome.DUE:
            payload: dict[str, Any] = {"ok": True, **base, "hasDue": True}
            if self.amount_due_minor_units is not None:
                payload["amountDue"] = self.amount_due_minor_units
            payload["currency"] = self.currency or "EUR"
            payload["resultUrl"] = self.result_url
            payload["payUrl"] = self.pay_url
            payload["screenshots"] = self.screenshots.as_dict()
            return 200, payload

        payload = {"ok": False, **base, "error": self.error_message or "unknown error"}
        shot = self.screenshots.error or self.screenshots.after
        if shot:
            payload["screenshot"] = shot
        return 500, payload


class ScreenshotSink(Protocol):
    """
    Decides where screenshot bytes go and what reference callers get back
    (inline data URL or a file path/URL).
    """

    def store(self, png: bytes, checkpoint: Checkpoint, provider_id: str) -> str: ...


class BrowserSession(Protocol):
    """
    One exclusive browsing session (browser + context + page) owned by one query.

    close() must be safe to call more than once.
    """

    @property
    def page(self) -> Page: ...

    def close(self) -> None: ...


class SessionProvisioner(Protocol):
    """Creates a fresh BrowserSession configured for a provider."""

    def open(self, adapter: ProviderAdapter) -> BrowserSession: ...
