import pytest

from shiplink.core.exceptions import RateCacheError, ShipStationError, WebhookError
from shiplink.core.utils import mask_secret, sanitize_for_logging
from shiplink.services.rate_cache import InMemoryRateCache


def test_mask_secret():
    assert mask_secret("sk_live_abcdef1234") == "**************1234"
    assert mask_secret("abc") == "***"
    assert mask_secret("") == ""


def test_sanitize_nested_payload():
    payload = {
        "ship_to": {
            "name": "John Doe",
            "phone": "604-555-0100",
            "city_locality": "Vancouver",
            "postal_code": "V6B 1A1",
        },
        "notes": ["call 604-555-0100", "email john@example.com"],
        "weight": 3.5,
    }

    clean = sanitize_for_logging(payload)

    assert clean["ship_to"]["name"] == "[REDACTED]"
    assert clean["ship_to"]["phone"] == "[REDACTED]"
    assert clean["ship_to"]["city_locality"] == "Vancouver"
    assert clean["ship_to"]["postal_code"] == "[POSTAL]"
    assert clean["notes"] == ["call [PHONE]", "email [EMAIL]"]
    assert clean["weight"] == 3.5
    assert payload["ship_to"]["name"] == "John Doe"


def test_sanitize_truncates():
    assert len(sanitize_for_logging("x" * 1000, max_length=50)) == 50


class TestExceptions:

    def test_provider_error_to_dict(self):
        error = ShipStationError.from_response_body(422, {"message": "Invalid", "error_code": "invalid_field"})

        data = error.to_dict()

        assert data["error_type"] == "ShipStationError"
        assert data["code"] == "invalid_field"
        assert data["details"]["status_code"] == 422
        assert not error.is_retryable

    def test_webhook_error_records_event(self):
        error = WebhookError("nope", event_type="tracking.updated", code="INVALID_PAYLOAD")

        assert error.code == "INVALID_PAYLOAD"
        assert error.details == {"event_type": "tracking.updated"}
        assert "INVALID_PAYLOAD" in repr(error)


@pytest.mark.parametrize("interval", [0, -5])
def test_sweeper_rejects_non_positive_interval(interval):
    with pytest.raises(RateCacheError):
        InMemoryRateCache().start_sweeper(interval)
