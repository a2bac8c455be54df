from __future__ import annotations

from dataclasses import dataclass

from toll_checker.scraping.extract import Extraction
from toll_checker.services.contracts import AutomationResult, Screenshots
from toll_checker.services.enums import Outcome

ELEMENT_NOT_FOUND = "element not found"
SUBMISSION_FAILED = "submission failed"


@dataclass(frozen=True)
class PipelineFindings:
    """What the pipeline observed before reaching a terminal state."""

    element_missing: bool = False
    submission_failed: bool = False
    extraction: Extraction | None = None
    failure: str | None = None


class OutcomeClassifier:
    """
    What it does:
    - Maps pipeline findings to exactly one terminal outcome.

    Behavior (first matching rule wins):
    1) plate input / submit control missing  -> ERROR "element not found"
    2) submit activation failed               -> ERROR "submission failed"
    3) no-trip signal, or no amount and no link -> NO_DUE
    4) amount or link                         -> DUE
    5) anything else that went wrong           -> ERROR with the failure text
    Never returns PENDING.
    """

    def classify(
        self,
        findings: PipelineFindings,
        *,
        provider_id: str,
        plate: str,
        screenshots: Screenshots,
        fallback_pay_url: str | None = None,
    ) -> AutomationResult:
        def error(message: str) -> AutomationResult:
            return AutomationResult(
                provider_id=provider_id,
                plate=plate,
                outcome=Outcome.ERROR,
                error_message=message,
                screenshots=screenshots,
            )

        if findings.element_missing:
            return error(ELEMENT_NOT_FOUND)

        if findings.submission_failed:
            return error(SUBMISSION_FAILED)

        ex = findings.extraction
        if ex is None:
            return error(findings.failure or "unexpected failure")

        if ex.no_trip or (ex.amount_minor_units is None and ex.pay_url is None):
            return AutomationResult(
                provider_id=provider_id,
                plate=plate,
                outcome=Outcome.NO_DUE,
                result_url=ex.result_url,
                screenshots=screenshots,
            )

        return AutomationResult(
            provider_id=provider_id,
            plate=plate,
            outcome=Outcome.DUE,
            amount_due_minor_units=ex.amount_minor_units,
            currency=ex.currency or "EUR",
            result_url=ex.result_url,
            pay_url=ex.pay_url or fallback_pay_url or ex.result_url,
            screenshots=screenshots,
        )
