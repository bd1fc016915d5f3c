"""
订单领域服务 - 匿名化镜像订单、支付前校验
"""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from domain.common.exceptions import OrderNotPayableException
from domain.order.entity import (
    Address,
    LineItem,
    MetaData,
    Order,
    OrderStatus,
    ShippingLine,
    FeeLine,
    TaxLine,
)
from domain.payment.entity import Payment, PaymentStatus


ORIGINAL_ORDER_ID_META = "_original_order_id"
ORIGINAL_ORDER_NUMBER_META = "_original_order_number"
PROXY_ORDER_META = "_proxy_order"

DEFAULT_PLACEHOLDER_EMAIL = "noreply@example.com"

# 金额差异容忍度
TOTALS_TOLERANCE = Decimal("0.01")


def _placeholder_address(country: str, *, email: str = "") -> Address:
    return Address(
        first_name="Customer",
        last_name="Order",
        company="",
        address_1="Private",
        address_2="",
        city="Private",
        state="",
        postcode="00000",
        country=country,
        email=email,
        phone="",
    )


def to_proxy_order(
    source: Order,
    *,
    now: Optional[datetime] = None,
    payment_method: str = "paypal",
    payment_method_title: str = "PayPal",
    placeholder_email: str = DEFAULT_PLACEHOLDER_EMAIL,
) -> Order:
    """
    由源订单派生匿名化的镜像订单

    保留：订单号、币种、总额、配送/费用/税费行、商品的 sku/数量/价格/小计/合计
    替换：账单与收货地址（保留国家），商品名改为 "Item {i}"
    丢弃：优惠券行、商品/变体引用、商品元数据、源订单元数据

    纯函数，相同的 now 产生相同的结果。
    """
    created_at = now or datetime.now(timezone.utc)

    line_items = [
        LineItem(
            name=f"Item {index}",
            quantity=item.quantity,
            price=item.price,
            subtotal=item.subtotal,
            total=item.total,
            sku=item.sku,
        )
        for index, item in enumerate(source.line_items, start=1)
    ]

    shipping_lines = [
        ShippingLine(method_id=line.method_id, method_title=line.method_title, total=line.total)
        for line in source.shipping_lines
    ]
    fee_lines = [FeeLine(name=line.name, total=line.total) for line in source.fee_lines]
    tax_lines = [
        TaxLine(
            rate_code=line.rate_code,
            label=line.label,
            tax_total=line.tax_total,
            shipping_tax_total=line.shipping_tax_total,
            rate_id=line.rate_id,
            compound=line.compound,
        )
        for line in source.tax_lines
    ]

    return Order(
        id=None,
        number=source.number,
        status=OrderStatus.PENDING,
        currency=source.currency,
        total=source.total,
        payment_method=payment_method,
        payment_method_title=payment_method_title,
        date_created=created_at,
        billing=_placeholder_address(source.billing.country, email=placeholder_email),
        shipping=_placeholder_address(source.shipping.country),
        line_items=line_items,
        shipping_lines=shipping_lines,
        fee_lines=fee_lines,
        tax_lines=tax_lines,
        coupon_lines=[],
        meta_data=[
            MetaData(key=ORIGINAL_ORDER_ID_META, value=str(source.id) if source.id is not None else ""),
            MetaData(key=ORIGINAL_ORDER_NUMBER_META, value=source.number),
            MetaData(key=PROXY_ORDER_META, value="true"),
        ],
    )


def validate_for_payment(order: Order) -> None:
    """支付前校验，不满足条件时抛出 OrderNotPayableException"""
    if order.id is None:
        raise OrderNotPayableException(order.number or "", "order id is required")
    if not order.currency:
        raise OrderNotPayableException(order.id, "currency is required")
    if not order.line_items:
        raise OrderNotPayableException(order.id, "order must have at least one line item")
    if any(item.quantity <= 0 for item in order.line_items):
        raise OrderNotPayableException(order.id, "line item quantity must be positive")
    if not order.can_be_processed():
        raise OrderNotPayableException(
            order.id,
            "order must be pending with a positive total",
            status=order.status.value,
        )


def totals_discrepancy(order: Order) -> Decimal:
    """明细合计（商品 + 配送 + 费用 + 税 - 优惠券）与订单总额之差（绝对值）"""
    zero = Decimal("0")
    computed = (
        sum((item.total.amount for item in order.line_items), zero)
        + sum((line.total.amount for line in order.shipping_lines), zero)
        + sum((line.total.amount for line in order.fee_lines), zero)
        + sum((tax.tax_total.amount for tax in order.tax_lines), zero)
        - sum((coupon.discount.amount for coupon in order.coupon_lines), zero)
    )
    return abs(computed - order.total.amount)


def has_totals_discrepancy(order: Order) -> bool:
    return totals_discrepancy(order) > TOTALS_TOLERANCE


_PAYMENT_TO_ORDER_STATUS = {
    PaymentStatus.COMPLETED: OrderStatus.PROCESSING,
    PaymentStatus.FAILED: OrderStatus.FAILED,
    PaymentStatus.CANCELLED: OrderStatus.CANCELLED,
    PaymentStatus.REFUNDED: OrderStatus.REFUNDED,
}


def order_status_for_payment(payment: Payment) -> OrderStatus:
    """支付状态 → 订单状态"""
    return _PAYMENT_TO_ORDER_STATUS.get(payment.status, OrderStatus.PENDING)
