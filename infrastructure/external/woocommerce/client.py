"""
WooCommerce REST API 客户端（wc/v3 订单接口）

基于 BaseAPIClient 实现应用层 OrderStore 端口，并把传输层错误转换为领域异常。
"""
from __future__ import annotations

import base64
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx

from core.config import StoreSettings
from core.logging_config import get_logger
from domain.common.exceptions import (
    InvalidAmountException,
    OrderNotFoundException,
    UpstreamServiceException,
    UpstreamTimeoutException,
)
from domain.order.entity import Order, OrderStatus
from domain.payment.entity import Payment
from infrastructure.external.api_clients import (
    APIError,
    APIResponse,
    APITimeoutError,
    BaseAPIClient,
    NotFoundError,
)
from infrastructure.external.woocommerce.mapping import (
    order_from_payload,
    order_to_create_payload,
    payment_update_payload,
    status_update_payload,
)

logger = get_logger(__name__)

ORDERS_ENDPOINT = "wp-json/wc/v3/orders"

# 响应体在日志/异常中最多保留的字符数
MAX_BODY_CHARS = 2000


def basic_auth_token(consumer_key: str, consumer_secret: str) -> str:
    return base64.b64encode(f"{consumer_key}:{consumer_secret}".encode("utf-8")).decode("ascii")


class WooCommerceClient(BaseAPIClient):
    """
    单个商店的订单接口

    运行时有两个实例：源站与处理站点。
    """

    def __init__(
        self,
        settings: StoreSettings,
        *,
        name: str,
        payment_method_id: str = "paypal",
        payment_method_title: str = "PayPal",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_url=settings.url,
            timeout=settings.timeout,
            max_attempts=settings.retry_attempts,
            retry_backoff=settings.retry_backoff,
            verify_ssl=settings.verify_ssl,
            transport=transport,
        )
        self.name = name
        self.payment_method_id = payment_method_id
        self.payment_method_title = payment_method_title
        self.set_auth_token(
            basic_auth_token(settings.consumer_key, settings.consumer_secret),
            prefix="Basic",
        )

    @asynccontextmanager
    async def _translate_errors(self, operation: str, order_id: Optional[str] = None) -> AsyncIterator[None]:
        try:
            yield
        except APITimeoutError as exc:
            logger.error("store_request_timeout", store=self.name, operation=operation, order_id=order_id)
            raise UpstreamTimeoutException(exc.message, store=self.name) from exc
        except APIError as exc:
            body = (exc.body or "")[:MAX_BODY_CHARS] or None
            logger.error(
                "store_request_failed",
                store=self.name,
                operation=operation,
                order_id=order_id,
                status_code=exc.status_code,
                body=body,
            )
            raise UpstreamServiceException(
                f"{self.name} store {operation} failed: {exc.message}",
                store=self.name,
                status_code=exc.status_code,
                body=body,
            ) from exc

    def _parse_order(self, response: APIResponse, operation: str) -> Order:
        try:
            data = response.json()
            if not isinstance(data, dict):
                raise ValueError("order payload is not an object")
            return order_from_payload(data)
        except (InvalidAmountException, ValueError, TypeError) as exc:
            logger.error("store_payload_malformed", store=self.name, operation=operation, error=str(exc))
            raise UpstreamServiceException(
                "malformed order payload",
                store=self.name,
                status_code=response.status_code,
                body=response.text()[:MAX_BODY_CHARS],
            ) from exc

    async def fetch_order(self, order_id: str) -> Order:
        logger.info("store_order_fetch", store=self.name, order_id=order_id)
        async with self._translate_errors("fetch", order_id):
            try:
                response = await self.get(f"{ORDERS_ENDPOINT}/{order_id}")
            except NotFoundError as exc:
                logger.info("store_order_not_found", store=self.name, order_id=order_id)
                raise OrderNotFoundException(order_id, store=self.name) from exc
        order = self._parse_order(response, "fetch")
        logger.info(
            "store_order_fetched",
            store=self.name,
            order_id=order_id,
            status=order.status.value,
            total=order.total.to_store_format(),
            currency=order.currency,
        )
        return order

    async def create_order(self, order: Order) -> Order:
        logger.info(
            "store_order_create",
            store=self.name,
            order_number=order.number,
            line_items=len(order.line_items),
        )
        async with self._translate_errors("create"):
            response = await self.post(ORDERS_ENDPOINT, json_data=order_to_create_payload(order))
        created = self._parse_order(response, "create")
        logger.info(
            "store_order_created",
            store=self.name,
            order_number=order.number,
            order_id=created.id,
            status=created.status.value,
        )
        return created

    async def update_order_status(self, order_id: str, status: OrderStatus) -> None:
        logger.info("store_order_status_update", store=self.name, order_id=order_id, status=status.value)
        async with self._translate_errors("update_status", order_id):
            await self.put(f"{ORDERS_ENDPOINT}/{order_id}", json_data=status_update_payload(status))

    async def update_order_payment(self, order_id: str, payment: Payment) -> None:
        logger.info(
            "store_order_payment_update",
            store=self.name,
            order_id=order_id,
            payment_id=payment.payment_id,
            transaction_id=payment.transaction_id,
            status=payment.status.value,
        )
        payload = payment_update_payload(
            payment,
            method_id=self.payment_method_id,
            method_title=self.payment_method_title,
        )
        async with self._translate_errors("update_payment", order_id):
            await self.put(f"{ORDERS_ENDPOINT}/{order_id}", json_data=payload)
