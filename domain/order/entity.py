"""
订单领域实体 - WooCommerce 订单在内存中的表示
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from domain.common.money import Money


class OrderStatus(str, Enum):
    """订单状态枚举（与商店 API 的取值一致）"""
    PENDING = "pending"
    PROCESSING = "processing"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    FAILED = "failed"


PAYMENT_COMPLETED_STATUSES = frozenset(
    {OrderStatus.COMPLETED, OrderStatus.PROCESSING, OrderStatus.ON_HOLD}
)


@dataclass
class MetaData:
    key: str
    value: Any
    id: Optional[int] = None


@dataclass
class Address:
    first_name: str = ""
    last_name: str = ""
    company: str = ""
    address_1: str = ""
    address_2: str = ""
    city: str = ""
    state: str = ""
    postcode: str = ""
    country: str = ""
    email: str = ""
    phone: str = ""


@dataclass
class LineItem:
    name: str
    quantity: int
    price: Money
    subtotal: Money
    total: Money
    sku: str = ""
    id: Optional[int] = None
    product_id: Optional[int] = None
    variation_id: Optional[int] = None
    meta_data: list[MetaData] = field(default_factory=list)


@dataclass
class ShippingLine:
    method_id: str
    method_title: str
    total: Money
    id: Optional[int] = None
    meta_data: list[MetaData] = field(default_factory=list)


@dataclass
class FeeLine:
    name: str
    total: Money
    id: Optional[int] = None
    meta_data: list[MetaData] = field(default_factory=list)


@dataclass
class TaxLine:
    rate_code: str
    label: str
    tax_total: Money
    shipping_tax_total: Money
    rate_id: Optional[int] = None
    compound: bool = False
    id: Optional[int] = None
    meta_data: list[MetaData] = field(default_factory=list)


@dataclass
class CouponLine:
    code: str
    discount: Money
    discount_tax: Money
    id: Optional[int] = None
    meta_data: list[MetaData] = field(default_factory=list)


@dataclass
class Order:
    """
    商店订单

    业务规则：
    1. number 在两个商店之间保持一致，是跨系统关联键
    2. 只有 pending 且总额大于0的订单可以发起支付
    3. completed / processing / on-hold 视为已支付
    """

    id: Optional[int]
    number: str
    status: OrderStatus
    currency: str
    total: Money
    payment_method: str = ""
    payment_method_title: str = ""
    transaction_id: str = ""
    order_key: str = ""
    customer_note: str = ""
    date_created: Optional[datetime] = None
    date_paid: Optional[datetime] = None
    billing: Address = field(default_factory=Address)
    shipping: Address = field(default_factory=Address)
    line_items: list[LineItem] = field(default_factory=list)
    shipping_lines: list[ShippingLine] = field(default_factory=list)
    fee_lines: list[FeeLine] = field(default_factory=list)
    tax_lines: list[TaxLine] = field(default_factory=list)
    coupon_lines: list[CouponLine] = field(default_factory=list)
    meta_data: list[MetaData] = field(default_factory=list)

    def can_be_processed(self) -> bool:
        """检查订单是否可以发起支付"""
        return self.status == OrderStatus.PENDING and self.total.amount > 0

    def is_payment_completed(self) -> bool:
        """检查订单是否已完成支付"""
        return self.status in PAYMENT_COMPLETED_STATUSES

    def meta_value(self, key: str, default: Any = None) -> Any:
        for meta in self.meta_data:
            if meta.key == key:
                return meta.value
        return default
