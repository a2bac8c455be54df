from __future__ import annotations

import pytest

from toll_checker.scraping.classify import OutcomeClassifier, PipelineFindings
from toll_checker.scraping.extract import Extraction
from toll_checker.services.contracts import Screenshots
from toll_checker.services.enums import Outcome

RESULT_URL = "https://tolls.example/result"


def _extraction(**overrides) -> Extraction:
    fields = dict(
        amount_minor_units=None,
        currency=None,
        no_trip=False,
        result_url=RESULT_URL,
        pay_url=None,
    )
    fields.update(overrides)
    return Extraction(**fields)


def _classify(findings: PipelineFindings, **kwargs):
    return OutcomeClassifier().classify(
        findings,
        provider_id="demo",
        plate="AB123CD",
        screenshots=Screenshots(before="b", after="a"),
        **kwargs,
    )


@pytest.mark.unit
def test_unsubmittable_button_with_amount_is_error_not_due():
    """
    What it does:
    - Submission failed, yet an amount is on the page (e.g. a stale total).

    Why it matters:
    - A number read off a page whose form never submitted is not an answer.

    Behavior:
    - Error "submission failed" wins over the extracted amount.
    """
    result = _classify(
        PipelineFindings(
            submission_failed=True,
            extraction=_extraction(amount_minor_units=2350, currency="EUR"),
        )
    )

    assert result.outcome == Outcome.ERROR
    assert result.error_message == "submission failed"
    assert result.ok is False


@pytest.mark.unit
def test_missing_element_outranks_submission_failure():
    result = _classify(PipelineFindings(element_missing=True, submission_failed=True))

    assert result.outcome == Outcome.ERROR
    assert result.error_message == "element not found"


@pytest.mark.unit
def test_no_trip_signal_forces_no_due_even_with_amount():
    result = _classify(
        PipelineFindings(
            extraction=_extraction(
                amount_minor_units=1200,
                currency="EUR",
                no_trip=True,
                pay_url="https://tolls.example/pay-now",
            )
        )
    )

    assert result.outcome == Outcome.NO_DUE
    assert result.amount_due_minor_units is None
    assert result.pay_url is None
    assert result.has_due is False


@pytest.mark.unit
def test_nothing_found_is_no_due():
    result = _classify(PipelineFindings(extraction=_extraction()))

    assert result.outcome == Outcome.NO_DUE
    assert result.ok is True


@pytest.mark.unit
def test_amount_is_due_with_result_url_as_pay_fallback():
    result = _classify(PipelineFindings(extraction=_extraction(amount_minor_units=2350, currency="EUR")))

    assert result.outcome == Outcome.DUE
    assert result.amount_due_minor_units == 2350
    assert result.currency == "EUR"
    assert result.pay_url == RESULT_URL


@pytest.mark.unit
def test_provider_fallback_pay_url_is_preferred_over_result_url():
    result = _classify(
        PipelineFindings(extraction=_extraction(amount_minor_units=990, currency="EUR")),
        fallback_pay_url="https://tolls.example/payer",
    )

    assert result.pay_url == "https://tolls.example/payer"


@pytest.mark.unit
def test_link_only_is_due_without_amount():
    result = _classify(PipelineFindings(extraction=_extraction(pay_url="https://tolls.example/pay-now")))

    assert result.outcome == Outcome.DUE
    assert result.amount_due_minor_units is None
    assert result.currency == "EUR"
    assert result.pay_url == "https://tolls.example/pay-now"


@pytest.mark.unit
def test_unexpected_failure_keeps_its_message():
    result = _classify(PipelineFindings(failure="navigation failed: net::ERR_NAME_NOT_RESOLVED"))

    assert result.outcome == Outcome.ERROR
    assert result.error_message.startswith("navigation failed")


@pytest.mark.unit
@pytest.mark.parametrize(
    "findings",
    [
        PipelineFindings(),
        PipelineFindings(element_missing=True),
        PipelineFindings(extraction=_extraction()),
        PipelineFindings(extraction=_extraction(amount_minor_units=1)),
    ],
)
def test_never_returns_pending(findings):
    assert _classify(findings).outcome != Outcome.PENDING
