import pytest

from toll_checker.services.contracts import AutomationResult, Screenshots
from toll_checker.services.enums import Outcome


@pytest.mark.unit
def test_due_without_amount_omits_amount_due():
    result = AutomationResult(
        provider_id="sanef",
        plate="AB123CD",
        outcome=Outcome.DUE,
        result_url="https://r.example",
        pay_url="https://p.example",
        screenshots=Screenshots(before="b"),
    )

    status, payload = result.to_response()

    assert status == 200
    assert "amountDue" not in payload
    assert payload["currency"] == "EUR"
    assert payload["payUrl"] == "https://p.example"
    assert payload["screenshots"] == {"before": "b"}


@pytest.mark.unit
def test_error_prefers_error_screenshot():
    result = AutomationResult(
        provider_id="aliae",
        plate="AB123CD",
        outcome=Outcome.ERROR,
        error_message="submission failed",
        screenshots=Screenshots(before="b", error="e"),
    )

    status, payload = result.to_response()

    assert status == 500
    assert payload["ok"] is False
    assert payload["error"] == "submission failed"
    assert payload["screenshot"] == "e"


@pytest.mark.unit
def test_error_without_any_screenshot_has_no_screenshot_key():
    result = AutomationResult(provider_id="aliae", plate="X", outcome=Outcome.ERROR, error_message="boom")

    _, payload = result.to_response()

    assert "screenshot" not in payload


@pytest.mark.unit
def test_pending_is_neither_ok_nor_due():
    result = AutomationResult(provider_id="aliae", plate="X", outcome=Outcome.PENDING)

    assert result.ok is False
    assert result.has_due is False
