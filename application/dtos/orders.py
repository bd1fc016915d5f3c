"""
订单读取 DTO - 不包含账单/收货联系人信息
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from application.dtos.base import DTOBase
from domain.order.entity import Order


class OrderLineDTO(DTOBase):
    name: str
    quantity: int
    sku: str = ""
    total: str


class OrderDTO(DTOBase):
    id: Optional[int] = None
    number: str
    status: str
    currency: str
    total: str
    payment_method: str = ""
    payment_method_title: str = ""
    transaction_id: str = ""
    date_created: Optional[datetime] = None
    date_paid: Optional[datetime] = None
    line_items: list[OrderLineDTO] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, order: Order) -> "OrderDTO":
        return cls(
            id=order.id,
            number=order.number,
            status=order.status.value,
            currency=order.currency,
            total=order.total.to_store_format(),
            payment_method=order.payment_method,
            payment_method_title=order.payment_method_title,
            transaction_id=order.transaction_id,
            date_created=order.date_created,
            date_paid=order.date_paid,
            line_items=[
                OrderLineDTO(
                    name=item.name,
                    quantity=item.quantity,
                    sku=item.sku,
                    total=item.total.to_store_format(),
                )
                for item in order.line_items
            ],
        )


class OrderStatusDTO(DTOBase):
    order_id: str
    status: str
    is_paid: bool
    can_be_processed: bool
    total: str
    currency: str

    @classmethod
    def from_entity(cls, order: Order) -> "OrderStatusDTO":
        return cls(
            order_id=str(order.id) if order.id is not None else "",
            status=order.status.value,
            is_paid=order.is_payment_completed(),
            can_be_processed=order.can_be_processed(),
            total=order.total.to_store_format(),
            currency=order.currency,
        )
