"""
支付跳转路由 - 浏览器跳转与支付渠道 webhook

这里只做参数校验，流程逻辑在 PaymentOrchestrator 中
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from api.dependencies import get_app_settings, get_orchestrator, get_webhook_verifier
from api.utils.params import (
    callback_base_url,
    check_referrer,
    require_order_id,
    return_params_valid,
    sanitize,
)
from application.dtos.payments import CancelRequest, RedirectRequest, ReturnRequest, WebhookResult
from application.dtos.webhooks import WebhookEnvelope, parse_webhook_event
from application.ports.webhook import WebhookVerifier
from application.services.payment_orchestrator import PaymentOrchestrator
from core.config import Settings
from core.logging_config import get_logger
from domain.common.exceptions import UnsupportedMediaTypeException, WebhookPayloadException


router = APIRouter(tags=["Payments"])
logger = get_logger(__name__)


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=302)


@router.get("/redirect", summary="跳转到处理站点的支付页")
@router.get("/paypal", include_in_schema=False)
async def payment_redirect(
    request: Request,
    order_id: Optional[str] = Query(None, alias="orderId"),
    settings: Settings = Depends(get_app_settings),
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
):
    """
    由源站结账页跳转而来：镜像订单并 302 到处理站点的 order-pay 页面

    - **orderId**: 源站订单号
    """
    check_referrer(request.headers.get("referer"), settings.referrer_hosts)
    order_id = require_order_id(order_id, enforce_format=settings.ENFORCE_ORDER_ID_FORMAT, field="orderId")

    result = await orchestrator.handle_redirect(
        RedirectRequest(order_id=order_id, base_url=callback_base_url(request, settings))
    )
    return _redirect(result.redirect_url)


@router.get("/paypal-return", summary="支付完成回跳")
async def paypal_return(
    order_id: Optional[str] = Query(None),
    proxy_order_id: Optional[str] = Query(None, alias="oitam_order_id"),
    payment_id: Optional[str] = Query(None, alias="paymentId"),
    payer_id: Optional[str] = Query(None, alias="PayerID"),
    status: Optional[str] = Query(None),
    transaction_id: Optional[str] = Query(None),
    settings: Settings = Depends(get_app_settings),
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
):
    req = ReturnRequest(
        order_id=sanitize(order_id),
        proxy_order_id=sanitize(proxy_order_id),
        payment_id=sanitize(payment_id),
        payer_id=sanitize(payer_id),
        status=sanitize(status),
        transaction_id=sanitize(transaction_id),
    )
    valid = return_params_valid(
        order_id=req.order_id,
        payment_id=req.payment_id,
        payer_id=req.payer_id,
        status=req.status,
        enforce_format=settings.ENFORCE_ORDER_ID_FORMAT,
    )
    if not valid or (req.proxy_order_id and not req.proxy_order_id.isalnum()):
        logger.warning("payment_return_invalid_parameters", order_id=req.order_id)
        return _redirect(orchestrator.error_url("invalid_return_parameters", req.order_id))

    try:
        result = await orchestrator.handle_return(req)
    except Exception:
        logger.exception("payment_return_failed", order_id=req.order_id)
        return _redirect(orchestrator.error_url("return_handler_failed", req.order_id))
    return _redirect(result.redirect_url)


@router.get("/paypal-cancel", summary="支付取消回跳")
async def paypal_cancel(
    order_id: Optional[str] = Query(None),
    proxy_order_id: Optional[str] = Query(None, alias="oitam_order_id"),
    settings: Settings = Depends(get_app_settings),
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
):
    raw_order_id = sanitize(order_id)
    if raw_order_id:
        raw_order_id = require_order_id(raw_order_id, enforce_format=settings.ENFORCE_ORDER_ID_FORMAT)

    try:
        result = await orchestrator.handle_cancel(
            CancelRequest(order_id=raw_order_id, proxy_order_id=sanitize(proxy_order_id))
        )
    except Exception:
        logger.exception("payment_cancel_failed", order_id=raw_order_id)
        return _redirect(orchestrator.error_url("cancel_handler_failed", raw_order_id))
    return _redirect(result.redirect_url)


@router.post("/webhook", summary="支付渠道 webhook", response_model=WebhookResult)
@router.post("/paypal-webhook", include_in_schema=False, response_model=WebhookResult)
async def payment_webhook(
    request: Request,
    verifier: WebhookVerifier = Depends(get_webhook_verifier),
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
):
    content_type = (request.headers.get("content-type") or "").lower()
    if "application/json" not in content_type:
        raise UnsupportedMediaTypeException(content_type)

    raw_body = await request.body()
    verifier.verify(request.headers, raw_body)

    try:
        envelope = WebhookEnvelope.model_validate_json(raw_body)
    except ValidationError as exc:
        raise WebhookPayloadException("Invalid webhook payload") from exc

    event = parse_webhook_event(envelope)
    return await orchestrator.handle_webhook(event)
