"""
WooCommerce REST (wc/v3) JSON 与领域实体的相互转换

金额字段为十进制字符串（"19.99"），商品行的 price 为 JSON 数字。
金额格式错误抛出 InvalidAmountException；缺失的金额字段按 0 处理。
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from domain.common.money import Money
from domain.common.exceptions import InvalidAmountException
from domain.order.entity import (
    Address,
    CouponLine,
    FeeLine,
    LineItem,
    MetaData,
    Order,
    OrderStatus,
    ShippingLine,
    TaxLine,
)
from domain.payment.entity import Payment

ADDRESS_FIELDS = (
    "first_name", "last_name", "company", "address_1", "address_2",
    "city", "state", "postcode", "country", "email", "phone",
)


def _money(data: dict, key: str, currency: str) -> Money:
    raw = data.get(key, "0")
    if isinstance(raw, bool):
        raise InvalidAmountException(raw, field=key)
    if isinstance(raw, (int, float)):
        raw = str(raw)
    if not isinstance(raw, str):
        raise InvalidAmountException(raw, field=key)
    try:
        return Money.parse(raw, currency)
    except InvalidAmountException as exc:
        exc.field = key
        raise


def _datetime(value: Optional[str]) -> Optional[datetime]:
    """商店时间为不带时区的 ISO-8601，*_gmt 字段为 UTC"""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _format_datetime(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")


def _meta_list(items: Optional[list]) -> list[MetaData]:
    return [
        MetaData(key=str(m.get("key", "")), value=m.get("value"), id=m.get("id"))
        for m in items or []
        if isinstance(m, dict)
    ]


def _address(data: Optional[dict]) -> Address:
    data = data or {}
    return Address(**{name: str(data.get(name) or "") for name in ADDRESS_FIELDS})


def _quantity(item: dict) -> int:
    raw = item.get("quantity")
    if isinstance(raw, bool) or not isinstance(raw, int) or raw <= 0:
        raise ValueError(f"invalid line item quantity: {raw!r}")
    return raw


def _status(value: Any) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        # 插件自定义状态（如 checkout-draft）按待支付处理
        return OrderStatus.PENDING


def order_from_payload(data: dict) -> Order:
    """wc/v3 订单对象 → Order 实体"""
    currency = str(data.get("currency") or "").upper()

    line_items = [
        LineItem(
            id=item.get("id"),
            name=str(item.get("name") or ""),
            product_id=item.get("product_id"),
            variation_id=item.get("variation_id"),
            quantity=_quantity(item),
            sku=str(item.get("sku") or ""),
            price=_money(item, "price", currency),
            subtotal=_money(item, "subtotal", currency),
            total=_money(item, "total", currency),
            meta_data=_meta_list(item.get("meta_data")),
        )
        for item in data.get("line_items") or []
    ]
    shipping_lines = [
        ShippingLine(
            id=line.get("id"),
            method_id=str(line.get("method_id") or ""),
            method_title=str(line.get("method_title") or ""),
            total=_money(line, "total", currency),
            meta_data=_meta_list(line.get("meta_data")),
        )
        for line in data.get("shipping_lines") or []
    ]
    fee_lines = [
        FeeLine(
            id=line.get("id"),
            name=str(line.get("name") or ""),
            total=_money(line, "total", currency),
            meta_data=_meta_list(line.get("meta_data")),
        )
        for line in data.get("fee_lines") or []
    ]
    tax_lines = [
        TaxLine(
            id=line.get("id"),
            rate_code=str(line.get("rate_code") or ""),
            rate_id=line.get("rate_id"),
            label=str(line.get("label") or ""),
            compound=bool(line.get("compound", False)),
            tax_total=_money(line, "tax_total", currency),
            shipping_tax_total=_money(line, "shipping_tax_total", currency),
            meta_data=_meta_list(line.get("meta_data")),
        )
        for line in data.get("tax_lines") or []
    ]
    coupon_lines = [
        CouponLine(
            id=line.get("id"),
            code=str(line.get("code") or ""),
            discount=_money(line, "discount", currency),
            discount_tax=_money(line, "discount_tax", currency),
            meta_data=_meta_list(line.get("meta_data")),
        )
        for line in data.get("coupon_lines") or []
    ]

    order_id = data.get("id")
    return Order(
        id=int(order_id) if order_id is not None else None,
        number=str(data.get("number") or order_id or ""),
        status=_status(data.get("status")),
        currency=currency,
        total=_money(data, "total", currency),
        payment_method=str(data.get("payment_method") or ""),
        payment_method_title=str(data.get("payment_method_title") or ""),
        transaction_id=str(data.get("transaction_id") or ""),
        order_key=str(data.get("order_key") or ""),
        customer_note=str(data.get("customer_note") or ""),
        date_created=_datetime(data.get("date_created_gmt") or data.get("date_created")),
        date_paid=_datetime(data.get("date_paid_gmt") or data.get("date_paid")),
        billing=_address(data.get("billing")),
        shipping=_address(data.get("shipping")),
        line_items=line_items,
        shipping_lines=shipping_lines,
        fee_lines=fee_lines,
        tax_lines=tax_lines,
        coupon_lines=coupon_lines,
        meta_data=_meta_list(data.get("meta_data")),
    )


def _address_payload(address: Address) -> dict:
    return {name: getattr(address, name) for name in ADDRESS_FIELDS}


def _meta_payload(items: list[MetaData]) -> list[dict]:
    return [{"key": m.key, "value": m.value} for m in items]


def order_to_create_payload(order: Order) -> dict:
    """
    POST /orders body.

    Order total and tax lines are computed by the store and are omitted;
    line items carry no product reference so the store keeps the given totals.
    """
    return {
        "status": order.status.value,
        "currency": order.currency,
        "payment_method": order.payment_method,
        "payment_method_title": order.payment_method_title,
        "set_paid": False,
        "billing": _address_payload(order.billing),
        "shipping": _address_payload(order.shipping),
        "line_items": [
            {
                "name": item.name,
                "quantity": item.quantity,
                "sku": item.sku,
                "subtotal": item.subtotal.to_store_format(),
                "total": item.total.to_store_format(),
            }
            for item in order.line_items
        ],
        "shipping_lines": [
            {
                "method_id": line.method_id,
                "method_title": line.method_title,
                "total": line.total.to_store_format(),
            }
            for line in order.shipping_lines
        ],
        "fee_lines": [
            {"name": line.name, "total": line.total.to_store_format()}
            for line in order.fee_lines
        ],
        "meta_data": _meta_payload(order.meta_data),
    }


def payment_update_payload(
    payment: Payment,
    *,
    method_id: str = "paypal",
    method_title: str = "PayPal",
    now: Optional[datetime] = None,
) -> dict:
    """PUT /orders/{id} 请求体：把支付结果写回订单"""
    processed_at = payment.processed_at or now or datetime.now(timezone.utc)
    meta = [
        {"key": "_paypal_payment_id", "value": payment.payment_id},
        {"key": "_payment_completed_at", "value": int(processed_at.timestamp())},
        {"key": "_proxy_payment_processed", "value": "true"},
    ]
    if payment.payer_id:
        meta.insert(1, {"key": "_paypal_payer_id", "value": payment.payer_id})

    payload: dict[str, Any] = {
        "payment_method": method_id,
        "payment_method_title": method_title,
        "transaction_id": payment.transaction_id,
        "meta_data": meta,
    }
    if payment.is_successful():
        payload["status"] = OrderStatus.PROCESSING.value
        payload["date_paid"] = _format_datetime(processed_at)
    return payload


def status_update_payload(status: OrderStatus) -> dict:
    return {"status": status.value}
