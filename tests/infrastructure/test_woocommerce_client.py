import base64
import json

import httpx
import pytest

from application.ports.order_store import OrderStore
from core.config import StoreSettings
from domain.common.exceptions import (
    OrderNotFoundException,
    UpstreamServiceException,
    UpstreamTimeoutException,
)
from domain.order.entity import OrderStatus
from domain.order.service import to_proxy_order
from domain.payment.entity import PaymentStatus
from domain.payment.service import create_payment_record
from infrastructure.external.woocommerce import WooCommerceClient


def _store_settings(**overrides) -> StoreSettings:
    values = dict(
        url="https://store.test/",
        consumer_key="ck_test",
        consumer_secret="cs_test",
        retry_attempts=3,
        retry_backoff=0,
    )
    values.update(overrides)
    return StoreSettings(**values)


class Recorder:
    """MockTransport handler returning queued responses and keeping requests."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        result = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(result, Exception):
            raise result
        return result


def _client(recorder: Recorder, **settings) -> WooCommerceClient:
    return WooCommerceClient(
        _store_settings(**settings),
        name="source",
        transport=httpx.MockTransport(recorder),
    )


@pytest.mark.asyncio
async def test_fetch_order_parses_payload_with_basic_auth(order_payload):
    recorder = Recorder(httpx.Response(200, json=order_payload()))
    async with _client(recorder) as client:
        order = await client.fetch_order("123")

    assert order.id == 123
    assert isinstance(client, OrderStore)
    assert order.total.to_store_format() == "59.97"
    assert order.line_items[0].price.to_store_format() == "19.99"

    request = recorder.requests[0]
    assert request.method == "GET"
    assert str(request.url) == "https://store.test/wp-json/wc/v3/orders/123"
    expected = base64.b64encode(b"ck_test:cs_test").decode()
    assert request.headers["Authorization"] == f"Basic {expected}"


@pytest.mark.asyncio
async def test_server_errors_are_retried_then_raised():
    recorder = Recorder(httpx.Response(500, json={"message": "boom"}))
    async with _client(recorder) as client:
        with pytest.raises(UpstreamServiceException) as exc_info:
            await client.fetch_order("123")

    assert len(recorder.requests) == 3
    assert exc_info.value.status_code == 500
    assert exc_info.value.store == "source"
    assert "boom" in (exc_info.value.body or "")


@pytest.mark.asyncio
async def test_transient_error_recovers_within_attempts(order_payload):
    recorder = Recorder(
        httpx.Response(503),
        httpx.ConnectError("connection refused"),
        httpx.Response(200, json=order_payload()),
    )
    async with _client(recorder) as client:
        order = await client.fetch_order("123")

    assert order.number == "123"
    assert len(recorder.requests) == 3


@pytest.mark.asyncio
async def test_not_found_is_not_retried():
    recorder = Recorder(httpx.Response(404, json={"code": "woocommerce_rest_shop_order_invalid_id"}))
    async with _client(recorder) as client:
        with pytest.raises(OrderNotFoundException) as exc_info:
            await client.fetch_order("999")

    assert len(recorder.requests) == 1
    assert exc_info.value.details == {"order_id": "999", "store": "source"}


@pytest.mark.asyncio
async def test_client_errors_are_terminal():
    recorder = Recorder(httpx.Response(401, json={"message": "Consumer key is invalid."}))
    async with _client(recorder) as client:
        with pytest.raises(UpstreamServiceException) as exc_info:
            await client.fetch_order("123")

    assert len(recorder.requests) == 1
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_single_attempt_configuration():
    recorder = Recorder(httpx.Response(502))
    async with _client(recorder, retry_attempts=1) as client:
        with pytest.raises(UpstreamServiceException):
            await client.fetch_order("123")
    assert len(recorder.requests) == 1


@pytest.mark.asyncio
async def test_timeout_maps_to_upstream_timeout():
    recorder = Recorder(httpx.ReadTimeout("timed out"))
    async with _client(recorder, retry_attempts=2) as client:
        with pytest.raises(UpstreamTimeoutException):
            await client.fetch_order("123")
    assert len(recorder.requests) == 2


@pytest.mark.asyncio
async def test_malformed_amount_is_upstream_error(order_payload):
    recorder = Recorder(httpx.Response(200, json=order_payload(total="12,34")))
    async with _client(recorder) as client:
        with pytest.raises(UpstreamServiceException) as exc_info:
            await client.fetch_order("123")
    assert exc_info.value.message == "malformed order payload"


@pytest.mark.asyncio
async def test_create_order_posts_anonymized_payload(make_order, order_payload):
    proxy = to_proxy_order(make_order())
    recorder = Recorder(httpx.Response(201, json=order_payload(id=901, order_key="wc_order_901")))
    async with _client(recorder) as client:
        created = await client.create_order(proxy)

    assert created.id == 901
    request = recorder.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://store.test/wp-json/wc/v3/orders"
    body = json.loads(request.content)
    assert body["status"] == "pending"
    assert body["set_paid"] is False
    assert body["currency"] == "USD"
    assert body["payment_method"] == "paypal"
    assert [item["name"] for item in body["line_items"]] == ["Item 1", "Item 2"]
    assert body["line_items"][0] == {
        "name": "Item 1", "quantity": 2, "sku": "W-1", "subtotal": "39.98", "total": "39.98",
    }
    assert "product_id" not in body["line_items"][1]
    assert body["billing"]["email"] == "noreply@example.com"
    assert body["shipping_lines"] == [{"method_id": "flat_rate", "method_title": "Flat rate", "total": "10.00"}]
    assert {"key": "_original_order_id", "value": "123"} in body["meta_data"]
    assert "total" not in body


@pytest.mark.asyncio
async def test_update_order_payment_sets_processing():
    recorder = Recorder(httpx.Response(200, json={"id": 123}))
    payment = create_payment_record("123", "PAY-9", "PAYER9", None, PaymentStatus.COMPLETED)
    async with _client(recorder) as client:
        await client.update_order_payment("123", payment)

    request = recorder.requests[0]
    assert request.method == "PUT"
    assert str(request.url) == "https://store.test/wp-json/wc/v3/orders/123"
    body = json.loads(request.content)
    assert body["status"] == "processing"
    assert body["transaction_id"] == "PAY-9"
    assert body["payment_method_title"] == "PayPal"
    assert "date_paid" in body
    meta = {m["key"]: m["value"] for m in body["meta_data"]}
    assert meta["_paypal_payment_id"] == "PAY-9"
    assert meta["_paypal_payer_id"] == "PAYER9"
    assert meta["_proxy_payment_processed"] == "true"


@pytest.mark.asyncio
async def test_update_order_status():
    recorder = Recorder(httpx.Response(200, json={"id": 123}))
    async with _client(recorder) as client:
        await client.update_order_status("123", OrderStatus.CANCELLED)

    assert json.loads(recorder.requests[0].content) == {"status": "cancelled"}


@pytest.mark.asyncio
async def test_missing_quantity_is_upstream_error(order_payload):
    payload = order_payload()
    del payload["line_items"][1]["quantity"]
    recorder = Recorder(httpx.Response(200, json=payload))
    async with _client(recorder) as client:
        with pytest.raises(UpstreamServiceException) as exc_info:
            await client.fetch_order("123")
    assert exc_info.value.message == "malformed order payload"
