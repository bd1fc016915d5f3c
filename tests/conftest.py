"""Pytest bootstrap configuration.

Ensure mandatory environment variables are set before test collection
and module imports that depend on application settings, and provide
shared fixtures: explicit Settings, WooCommerce payload builders and an
in-memory OrderStore that records every call.
"""
import copy
import dataclasses
import os

import pytest

# Mandatory store configuration for settings validation
os.environ.setdefault("SOURCE_STORE__URL", "https://source.test")
os.environ.setdefault("SOURCE_STORE__CONSUMER_KEY", "ck_source")
os.environ.setdefault("SOURCE_STORE__CONSUMER_SECRET", "cs_source")
os.environ.setdefault("PROCESSING_STORE__URL", "https://processing.test")
os.environ.setdefault("PROCESSING_STORE__CONSUMER_KEY", "ck_processing")
os.environ.setdefault("PROCESSING_STORE__CONSUMER_SECRET", "cs_processing")

from core.config import (  # noqa: E402
    ProcessingStoreSettings,
    ReturnUrlSettings,
    Settings,
    StoreSettings,
    WebhookSettings,
)
from domain.common.exceptions import OrderNotFoundException  # noqa: E402
from infrastructure.external.woocommerce.mapping import order_from_payload  # noqa: E402


_BASE_ORDER = {
    "id": 123,
    "number": "123",
    "status": "pending",
    "currency": "USD",
    "total": "59.97",
    "order_key": "wc_order_abc",
    "payment_method": "",
    "payment_method_title": "",
    "transaction_id": "",
    "customer_note": "Leave at the back door",
    "date_created": "2024-05-01T10:00:00",
    "date_created_gmt": "2024-05-01T08:00:00",
    "date_paid": None,
    "billing": {
        "first_name": "Jane", "last_name": "Doe", "company": "ACME",
        "address_1": "1 Main St", "address_2": "Apt 2", "city": "Springfield",
        "state": "IL", "postcode": "62701", "country": "US",
        "email": "jane@example.com", "phone": "555-0100",
    },
    "shipping": {
        "first_name": "Jane", "last_name": "Doe", "company": "",
        "address_1": "1 Main St", "address_2": "", "city": "Springfield",
        "state": "IL", "postcode": "62701", "country": "CA",
    },
    "line_items": [
        {
            "id": 1, "name": "Secret Widget", "product_id": 42, "variation_id": 0,
            "quantity": 2, "sku": "W-1", "price": 19.99,
            "subtotal": "39.98", "total": "39.98",
            "meta_data": [{"id": 9, "key": "gift_message", "value": "Happy birthday"}],
        },
        {
            "id": 2, "name": "Mystery Gadget", "product_id": 43, "variation_id": 7,
            "quantity": 1, "sku": "G-1", "price": 9.99,
            "subtotal": "9.99", "total": "9.99", "meta_data": [],
        },
    ],
    "shipping_lines": [
        {"id": 3, "method_id": "flat_rate", "method_title": "Flat rate", "total": "10.00", "meta_data": []},
    ],
    "fee_lines": [],
    "tax_lines": [],
    "coupon_lines": [],
    "meta_data": [{"id": 77, "key": "_customer_ref", "value": "crm-991"}],
}


def wc_order_payload(**overrides) -> dict:
    data = copy.deepcopy(_BASE_ORDER)
    data.update(overrides)
    return data


class FakeOrderStore:
    """In-memory OrderStore; ``fail_on[method] = exc`` makes that method raise."""

    def __init__(self, name: str, orders=None):
        self.name = name
        self.orders = dict(orders or {})
        self.calls: list[tuple] = []
        self.created = []
        self.fail_on: dict[str, Exception] = {}
        self._next_id = 900

    def _maybe_fail(self, method: str) -> None:
        exc = self.fail_on.get(method)
        if exc is not None:
            raise exc

    def calls_to(self, method: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == method]

    async def fetch_order(self, order_id):
        self.calls.append(("fetch_order", order_id))
        self._maybe_fail("fetch_order")
        if order_id not in self.orders:
            raise OrderNotFoundException(order_id, store=self.name)
        return self.orders[order_id]

    async def create_order(self, order):
        self.calls.append(("create_order", order))
        self._maybe_fail("create_order")
        created = dataclasses.replace(order, id=self._next_id, order_key=f"wc_order_{self._next_id}")
        self.orders[str(created.id)] = created
        self.created.append(created)
        self._next_id += 1
        return created

    async def update_order_status(self, order_id, status):
        self.calls.append(("update_order_status", order_id, status))
        self._maybe_fail("update_order_status")

    async def update_order_payment(self, order_id, payment):
        self.calls.append(("update_order_payment", order_id, payment))
        self._maybe_fail("update_order_payment")


@pytest.fixture
def order_payload():
    return wc_order_payload


@pytest.fixture
def make_order():
    def _make(**overrides):
        return order_from_payload(wc_order_payload(**overrides))
    return _make


@pytest.fixture
def store_factory():
    return FakeOrderStore


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        ENVIRONMENT="development",
        PUBLIC_BASE_URL="https://proxy.test",
        source_store=StoreSettings(
            url="https://source.test",
            consumer_key="ck_source",
            consumer_secret="cs_source",
            retry_backoff=0,
        ),
        processing_store=ProcessingStoreSettings(
            url="https://processing.test",
            consumer_key="ck_processing",
            consumer_secret="cs_processing",
            retry_backoff=0,
        ),
        return_urls=ReturnUrlSettings(
            success="https://source.test/checkout/order-received",
            cancel="https://source.test/cart",
            error="https://source.test/payment-error",
        ),
        webhook=WebhookSettings(secret=None),
    )
