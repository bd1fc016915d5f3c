"""
订单存储端口（application/ports）

应用层只依赖该 Protocol，基础设施层提供 WooCommerce REST 实现。
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from domain.order.entity import Order, OrderStatus
from domain.payment.entity import Payment


@runtime_checkable
class OrderStore(Protocol):
    """
    单个商店订单的异步访问

    错误以领域异常（OrderNotFoundException、UpstreamServiceException）抛出，不暴露 HTTP 错误。
    """

    name: str

    async def fetch_order(self, order_id: str) -> Order: ...

    async def create_order(self, order: Order) -> Order: ...

    async def update_order_status(self, order_id: str, status: OrderStatus) -> None: ...

    async def update_order_payment(self, order_id: str, payment: Payment) -> None: ...
