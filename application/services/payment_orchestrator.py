"""
支付跳转编排服务

    redirect  -> 读取源站订单，在处理站点创建匿名镜像订单，跳转到处理站点支付页
    return    -> 确认支付（先看镜像订单，再看回调参数），把源站订单标记为已支付
    cancel    -> 尽力取消源站订单
    webhook   -> 把支付渠道的 capture 事件同步到源站订单

商店通过 OrderStore 端口注入，本模块不依赖 HTTP。
"""
from __future__ import annotations

from typing import Optional

from application.dtos.payments import (
    CancelRequest,
    CancelResult,
    RedirectRequest,
    RedirectResult,
    ReturnRequest,
    ReturnResult,
    WebhookResult,
)
from application.dtos.webhooks import (
    CaptureCompletedEvent,
    CaptureDeniedEvent,
    CaptureRefundedEvent,
    WebhookEvent,
)
from application.ports.order_store import OrderStore
from application.utils.locks import OrderLockRegistry
from application.utils.urls import (
    append_query,
    build_cancel_url,
    build_checkout_url,
    build_return_url,
    join_path,
)
from core.config import Settings
from core.logging_config import get_logger
from domain.common.exceptions import BusinessException, InvalidAmountException, WebhookPayloadException
from domain.common.money import Money
from domain.order.entity import Order, OrderStatus
from domain.order.service import (
    has_totals_discrepancy,
    order_status_for_payment,
    to_proxy_order,
    totals_discrepancy,
    validate_for_payment,
)
from domain.payment.entity import Payment, PaymentStatus
from domain.payment.service import create_payment_record
from shared.codes.payment_codes import WEBHOOK_EVENT_TO_PAYMENT_STATUS

logger = get_logger(__name__)


class PaymentOrchestrator:
    def __init__(
        self,
        source_store: OrderStore,
        processing_store: OrderStore,
        settings: Settings,
        locks: Optional[OrderLockRegistry] = None,
    ) -> None:
        self.source_store = source_store
        self.processing_store = processing_store
        self.settings = settings
        self.locks = locks or OrderLockRegistry()

    # ---- 源站跳转目标 ----

    def success_url(self, order_id: str, **params: str) -> str:
        return append_query(self.settings.return_urls.success, {"order": order_id, **params})

    def cancel_url(self, order_id: str) -> str:
        return append_query(self.settings.return_urls.cancel, {"order": order_id, "payment": "cancelled"})

    def error_url(self, error: str, order_id: str = "") -> str:
        return append_query(self.settings.return_urls.error, {"order": order_id, "error": error})

    @property
    def checkout_base(self) -> str:
        processing = self.settings.processing_store
        return join_path(processing.url, processing.checkout_path)

    def _record(self, payment: Payment) -> None:
        """支付记录只写审计日志，不落库"""
        logger.info(
            "payment_recorded",
            payment_record_id=payment.id,
            order_id=payment.order_id,
            payment_id=payment.payment_id,
            status=payment.status.value,
            amount=str(payment.amount) if payment.amount else None,
            transaction_id=payment.transaction_id,
            final=payment.is_final(),
        )

    # ---- redirect ----

    async def handle_redirect(self, req: RedirectRequest) -> RedirectResult:
        logger.info("payment_redirect_start", order_id=req.order_id)
        async with self.locks.hold(req.order_id):
            source = await self.source_store.fetch_order(req.order_id)

            if source.is_payment_completed():
                logger.info("payment_redirect_already_paid", order_id=req.order_id, status=source.status.value)
                return RedirectResult(
                    redirect_url=self.success_url(req.order_id, already_paid="1"),
                    already_paid=True,
                )

            validate_for_payment(source)

            if has_totals_discrepancy(source):
                logger.warning(
                    "order_totals_mismatch",
                    order_id=req.order_id,
                    order_total=source.total.to_store_format(),
                    difference=str(totals_discrepancy(source)),
                )

            proxy = to_proxy_order(
                source,
                payment_method=self.settings.payment_method.id,
                payment_method_title=self.settings.payment_method.title,
                placeholder_email=self.settings.anonymization.placeholder_email,
            )
            created = await self.processing_store.create_order(proxy)
            proxy_id = str(created.id) if created.id is not None else ""

            return_url = build_return_url(req.base_url, req.order_id, proxy_id, "success")
            cancel_url = build_cancel_url(req.base_url, req.order_id, proxy_id)
            checkout_url = build_checkout_url(self.checkout_base, created, return_url, cancel_url)

        logger.info(
            "payment_redirect_created",
            order_id=req.order_id,
            proxy_order_id=proxy_id,
        )
        return RedirectResult(redirect_url=checkout_url, proxy_order_id=created.id)

    # ---- return ----

    async def _mark_paid(
        self,
        order_id: str,
        *,
        payment_id: str,
        payer_id: str,
        transaction_id: str,
        amount: Optional[Money] = None,
    ) -> Payment:
        payment = create_payment_record(
            order_id,
            payment_id,
            payer_id,
            amount,
            PaymentStatus.COMPLETED,
            transaction_id=transaction_id,
        )
        self._record(payment)
        await self.source_store.update_order_payment(order_id, payment)
        return payment

    async def _confirmed_proxy(self, proxy_order_id: str) -> Optional[Order]:
        try:
            proxy = await self.processing_store.fetch_order(proxy_order_id)
        except BusinessException as exc:
            logger.warning(
                "payment_return_proxy_fetch_failed",
                proxy_order_id=proxy_order_id,
                error=exc.message,
            )
            return None
        return proxy if proxy.is_payment_completed() else None

    async def handle_return(self, req: ReturnRequest) -> ReturnResult:
        logger.info(
            "payment_return_start",
            order_id=req.order_id,
            proxy_order_id=req.proxy_order_id,
            payment_id=req.payment_id,
            status=req.status,
        )
        if not req.order_id:
            logger.error("payment_return_missing_order_id")
            return ReturnResult(redirect_url=self.error_url("missing_order_id"))

        # 代理订单的支付状态优先于回调参数
        if req.proxy_order_id:
            proxy = await self._confirmed_proxy(req.proxy_order_id)
            if proxy is not None:
                try:
                    await self._mark_paid(
                        req.order_id,
                        payment_id=req.payment_id,
                        payer_id=req.payer_id,
                        transaction_id=proxy.transaction_id or req.payment_id,
                        amount=proxy.total,
                    )
                except BusinessException as exc:
                    logger.error("payment_return_update_failed", order_id=req.order_id, error=exc.message)
                logger.info(
                    "payment_return_confirmed",
                    order_id=req.order_id,
                    proxy_order_id=req.proxy_order_id,
                    transaction_id=proxy.transaction_id,
                )
                return ReturnResult(
                    redirect_url=self.success_url(req.order_id, payment="confirmed"),
                    confirmed=True,
                )

        if req.payment_id or req.payer_id:
            try:
                await self._mark_paid(
                    req.order_id,
                    payment_id=req.payment_id,
                    payer_id=req.payer_id,
                    transaction_id=req.transaction_id or req.payment_id,
                )
            except BusinessException as exc:
                logger.error(
                    "payment_return_fallback_update_failed",
                    order_id=req.order_id,
                    payment_id=req.payment_id,
                    error=exc.message,
                )
            else:
                logger.info("payment_return_fallback_processed", order_id=req.order_id, payment_id=req.payment_id)
                return ReturnResult(redirect_url=self.success_url(req.order_id, payment="success"))

        logger.warning(
            "payment_return_unverified",
            order_id=req.order_id,
            proxy_order_id=req.proxy_order_id,
            payment_id=req.payment_id,
        )
        return ReturnResult(redirect_url=self.error_url("payment_verification_failed", req.order_id))

    # ---- cancel ----

    async def handle_cancel(self, req: CancelRequest) -> CancelResult:
        logger.info("payment_cancel_start", order_id=req.order_id, proxy_order_id=req.proxy_order_id)
        if not req.order_id:
            return CancelResult(redirect_url=self.cancel_url(""))
        payment = create_payment_record(req.order_id, "", "", None, PaymentStatus.CANCELLED)
        self._record(payment)
        try:
            await self.source_store.update_order_status(req.order_id, order_status_for_payment(payment))
        except BusinessException as exc:
            logger.error("payment_cancel_update_failed", order_id=req.order_id, error=exc.message)
        else:
            logger.info("payment_cancel_order_updated", order_id=req.order_id)
        return CancelResult(redirect_url=self.cancel_url(req.order_id))

    # ---- webhook ----

    async def handle_webhook(self, event: WebhookEvent) -> WebhookResult:
        logger.info("webhook_received", event_type=event.event_type, webhook_id=event.id)

        if isinstance(event, CaptureCompletedEvent):
            return await self._on_capture_completed(event)
        if isinstance(event, CaptureDeniedEvent):
            return await self._on_capture_status(event, "Payment capture denied processed")
        if isinstance(event, CaptureRefundedEvent):
            return await self._on_capture_status(event, "Payment capture refunded processed")

        logger.info("webhook_ignored", event_type=event.event_type, webhook_id=event.id)
        return WebhookResult(status="ignored", message=f"Event type {event.event_type} not handled")

    async def _on_capture_completed(self, event: CaptureCompletedEvent) -> WebhookResult:
        resource = event.resource
        order_id = resource.order_id()
        if not order_id:
            raise WebhookPayloadException(
                "Order ID not found in webhook",
                event_type=event.event_type,
                field="resource.custom_id",
            )

        amount = None
        if resource.amount is not None:
            try:
                amount = Money.parse(resource.amount.value, resource.amount.currency_code)
            except InvalidAmountException as exc:
                raise WebhookPayloadException(
                    "Invalid amount in webhook",
                    event_type=event.event_type,
                    field="resource.amount.value",
                ) from exc

        payment = create_payment_record(order_id, resource.id, "", amount, PaymentStatus.COMPLETED)
        self._record(payment)
        await self.source_store.update_order_payment(order_id, payment)

        logger.info(
            "webhook_capture_completed",
            order_id=order_id,
            payment_id=resource.id,
            amount=str(amount) if amount else None,
        )
        return WebhookResult(status="processed", message="Payment capture completed processed successfully")

    async def _on_capture_status(
        self,
        event: CaptureDeniedEvent | CaptureRefundedEvent,
        message: str,
    ) -> WebhookResult:
        resource = event.resource
        status = PaymentStatus(WEBHOOK_EVENT_TO_PAYMENT_STATUS[event.event_type])
        order_id = resource.order_id()
        logger.info(
            "webhook_capture_status",
            event_type=event.event_type,
            order_id=order_id,
            payment_id=resource.id,
        )
        if order_id:
            payment = create_payment_record(order_id, resource.id, "", None, status)
            self._record(payment)
            target: OrderStatus = order_status_for_payment(payment)
            await self.source_store.update_order_status(order_id, target)
        else:
            logger.warning("webhook_order_id_missing", event_type=event.event_type, payment_id=resource.id)
        return WebhookResult(status="processed", message=message)
