from datetime import datetime, timedelta, timezone

import pytest

from api.middleware.logging import LoggingMiddleware
from core.exceptions import business_code_to_http_status
from core.logging_config import redact_secrets
from core.response import error_response, success_response, to_utc_z
from shared.codes import BusinessCode


def test_redact_secrets_masks_known_keys():
    event = {"event": "store_request", "consumer_secret": "cs_live", "signature": "abc", "order_id": "123"}
    assert redact_secrets(None, "info", event) == {
        "event": "store_request", "consumer_secret": "***", "signature": "***", "order_id": "123",
    }


def test_request_query_is_sanitized():
    middleware = LoggingMiddleware(app=None)
    assert middleware._sanitize_data({"order_id": "123", "PayerID": "P1", "key": "wc_order_x"}) == {
        "order_id": "123", "PayerID": "***", "key": "***",
    }


def test_to_utc_z():
    assert to_utc_z(datetime(2024, 1, 1, 12, 0)) == "2024-01-01T12:00:00Z"
    plus_two = timezone(timedelta(hours=2))
    assert to_utc_z(datetime(2024, 1, 1, 12, 0, tzinfo=plus_two)) == "2024-01-01T10:00:00Z"


@pytest.mark.parametrize(
    "code,status",
    [
        (BusinessCode.PARAM_ERROR, 400),
        (BusinessCode.UNSUPPORTED_MEDIA_TYPE, 415),
        (BusinessCode.ORDER_NOT_FOUND, 404),
        (BusinessCode.ORDER_NOT_PAYABLE, 409),
        (BusinessCode.SIGNATURE_ERROR, 401),
        (BusinessCode.FORBIDDEN, 403),
        (BusinessCode.REQUEST_TIMEOUT, 408),
        (BusinessCode.UPSTREAM_TIMEOUT, 500),
        (12345, 400),
    ],
)
def test_business_code_to_http_status(code, status):
    assert business_code_to_http_status(code) == status


def test_response_envelopes():
    ok = success_response(data={"a": 1}).model_dump(mode="json")
    assert ok == {"code": 0, "message": "Success", "data": {"a": 1}, "error": None}

    err = error_response(BusinessCode.ORDER_NOT_FOUND, "Order 1 not found", error_type="OrderNotFound",
                         request_id="req-1").model_dump(mode="json")
    assert err["data"] is None
    assert err["error"]["type"] == "OrderNotFound"
    assert err["error"]["request_id"] == "req-1"
    assert err["error"]["timestamp"].endswith("Z")
