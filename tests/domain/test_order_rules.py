import dataclasses
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from domain.common.exceptions import OrderNotPayableException
from domain.order.entity import OrderStatus
from domain.order.service import (
    has_totals_discrepancy,
    order_status_for_payment,
    to_proxy_order,
    totals_discrepancy,
    validate_for_payment,
)
from domain.payment.entity import PaymentStatus
from domain.payment.service import create_payment_record
from infrastructure.external.woocommerce.mapping import order_from_payload


@pytest.mark.parametrize(
    "status,total,payable",
    [
        ("pending", "59.97", True),
        ("pending", "0.00", False),
        ("processing", "59.97", False),
        ("on-hold", "59.97", False),
        ("failed", "59.97", False),
    ],
)
def test_can_be_processed(make_order, status, total, payable):
    assert make_order(status=status, total=total).can_be_processed() is payable


@pytest.mark.parametrize(
    "status,paid",
    [("completed", True), ("processing", True), ("on-hold", True), ("pending", False), ("cancelled", False)],
)
def test_is_payment_completed(make_order, status, paid):
    assert make_order(status=status).is_payment_completed() is paid


def test_validate_for_payment_rejects_unpayable_orders(make_order):
    validate_for_payment(make_order())

    with pytest.raises(OrderNotPayableException):
        validate_for_payment(make_order(line_items=[], total="10.00"))
    with pytest.raises(OrderNotPayableException):
        validate_for_payment(make_order(status="completed"))
    with pytest.raises(OrderNotPayableException):
        validate_for_payment(make_order(total="0.00"))


def test_totals_discrepancy(make_order):
    assert totals_discrepancy(make_order()) == Decimal("0")
    assert totals_discrepancy(make_order(total="70.00")) == Decimal("10.03")

    with_coupon = make_order(
        total="54.97",
        coupon_lines=[{"id": 5, "code": "SAVE5", "discount": "5.00", "discount_tax": "0.00"}],
    )
    assert totals_discrepancy(with_coupon) == Decimal("0")


def test_proxy_order_strips_customer_data(make_order):
    now = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
    source = make_order(
        coupon_lines=[{"id": 5, "code": "VIP", "discount": "1.00", "discount_tax": "0.00"}],
        fee_lines=[{"id": 6, "name": "Gift wrap", "total": "2.00"}],
        tax_lines=[{"id": 8, "rate_code": "US-IL", "rate_id": 1, "label": "Tax",
                    "compound": False, "tax_total": "3.00", "shipping_tax_total": "0.50"}],
    )
    proxy = to_proxy_order(source, now=now, placeholder_email="orders@proxy.test")

    assert proxy.id is None
    assert proxy.number == source.number
    assert proxy.status == OrderStatus.PENDING
    assert proxy.total == source.total
    assert proxy.currency == "USD"
    assert proxy.date_created == now
    assert proxy.payment_method == "paypal"
    assert proxy.payment_method_title == "PayPal"
    assert proxy.customer_note == ""

    assert proxy.billing.first_name == "Customer"
    assert proxy.billing.last_name == "Order"
    assert proxy.billing.address_1 == "Private"
    assert proxy.billing.city == "Private"
    assert proxy.billing.postcode == "00000"
    assert proxy.billing.country == "US"
    assert proxy.billing.email == "orders@proxy.test"
    assert proxy.billing.company == proxy.billing.phone == proxy.billing.state == ""
    assert proxy.shipping.country == "CA"
    assert proxy.shipping.email == ""

    assert [i.name for i in proxy.line_items] == ["Item 1", "Item 2"]
    assert [i.sku for i in proxy.line_items] == ["W-1", "G-1"]
    assert [i.quantity for i in proxy.line_items] == [2, 1]
    assert all(i.product_id is None and i.variation_id is None for i in proxy.line_items)
    assert all(i.meta_data == [] for i in proxy.line_items)
    assert proxy.line_items[0].total == source.line_items[0].total

    assert proxy.coupon_lines == []
    assert [f.name for f in proxy.fee_lines] == ["Gift wrap"]
    assert proxy.tax_lines[0].tax_total == source.tax_lines[0].tax_total
    assert proxy.shipping_lines[0].method_id == "flat_rate"

    assert proxy.meta_value("_original_order_id") == "123"
    assert proxy.meta_value("_original_order_number") == "123"
    assert proxy.meta_value("_proxy_order") == "true"
    assert proxy.meta_value("_customer_ref") is None


def test_proxy_order_is_deterministic_for_fixed_time(make_order):
    now = datetime(2024, 6, 1, tzinfo=timezone.utc)
    source = make_order()
    assert to_proxy_order(source, now=now) == to_proxy_order(source, now=now)


def test_payment_record_and_status_mapping():
    payment = create_payment_record("123", "PAY-1", "PAYER1", None, PaymentStatus.COMPLETED)
    assert payment.id.startswith("pay_")
    assert payment.transaction_id == "PAY-1"
    assert payment.metadata == {"payment_provider": "paypal", "payer_id": "PAYER1"}
    assert payment.is_final() and payment.is_successful()
    assert payment.processed_at is not None and payment.processed_at.tzinfo is not None

    assert order_status_for_payment(payment) == OrderStatus.PROCESSING
    cancelled = create_payment_record("123", "", "", None, PaymentStatus.CANCELLED)
    assert order_status_for_payment(cancelled) == OrderStatus.CANCELLED
    pending = create_payment_record("123", "", "", None, PaymentStatus.APPROVED)
    assert order_status_for_payment(pending) == OrderStatus.PENDING
    assert not pending.is_final()


def test_has_totals_discrepancy_uses_one_cent_tolerance(make_order):
    assert not has_totals_discrepancy(make_order())
    assert not has_totals_discrepancy(make_order(total="59.98"))
    assert has_totals_discrepancy(make_order(total="59.99"))


def test_validate_for_payment_rejects_non_positive_quantity(make_order):
    order = make_order()
    order.line_items[0] = dataclasses.replace(order.line_items[0], quantity=0)
    with pytest.raises(OrderNotPayableException):
        validate_for_payment(order)


@pytest.mark.parametrize("quantity", [None, 0, -1, "2", True])
def test_payload_with_bad_quantity_is_malformed(order_payload, quantity):
    payload = order_payload()
    payload["line_items"][0]["quantity"] = quantity
    with pytest.raises(ValueError):
        order_from_payload(payload)
