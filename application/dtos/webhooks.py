"""
Webhook DTO（Pydantic v2）- 按事件类型分派的类型化事件

已知的 capture 事件解析为对应模型，其余事件落到 UnrecognizedWebhookEvent，保留原始 resource。
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from domain.common.exceptions import WebhookPayloadException
from shared.codes.payment_codes import CAPTURE_COMPLETED, CAPTURE_DENIED, CAPTURE_REFUNDED


class WebhookAmount(BaseModel):
    value: str
    currency_code: str


class CaptureResource(BaseModel):
    """PayPal capture resource（只声明用到的字段）"""

    model_config = ConfigDict(extra="allow")

    id: str = ""
    status: Optional[str] = None
    custom_id: Optional[str] = None
    invoice_id: Optional[str] = None
    amount: Optional[WebhookAmount] = None

    def order_id(self) -> str:
        """custom_id 优先，其次 invoice_id"""
        return (self.custom_id or self.invoice_id or "").strip()


class WebhookEnvelope(BaseModel):
    """支付渠道推送的原始请求体"""

    model_config = ConfigDict(extra="allow")

    id: str = ""
    event_type: str = Field(..., min_length=1)
    resource: dict[str, Any] = Field(default_factory=dict)
    create_time: Optional[datetime] = None


class _CaptureEvent(BaseModel):
    id: str = ""
    resource: CaptureResource
    create_time: Optional[datetime] = None


class CaptureCompletedEvent(_CaptureEvent):
    event_type: Literal["PAYMENT.CAPTURE.COMPLETED"] = CAPTURE_COMPLETED


class CaptureDeniedEvent(_CaptureEvent):
    event_type: Literal["PAYMENT.CAPTURE.DENIED"] = CAPTURE_DENIED


class CaptureRefundedEvent(_CaptureEvent):
    event_type: Literal["PAYMENT.CAPTURE.REFUNDED"] = CAPTURE_REFUNDED


class UnrecognizedWebhookEvent(BaseModel):
    id: str = ""
    event_type: str
    resource: dict[str, Any] = Field(default_factory=dict)
    create_time: Optional[datetime] = None


WebhookEvent = Union[
    CaptureCompletedEvent,
    CaptureDeniedEvent,
    CaptureRefundedEvent,
    UnrecognizedWebhookEvent,
]

_EVENT_MODELS: dict[str, type[_CaptureEvent]] = {
    CAPTURE_COMPLETED: CaptureCompletedEvent,
    CAPTURE_DENIED: CaptureDeniedEvent,
    CAPTURE_REFUNDED: CaptureRefundedEvent,
}


def parse_webhook_event(envelope: WebhookEnvelope) -> WebhookEvent:
    """按 event_type 解析为具体事件模型"""
    model = _EVENT_MODELS.get(envelope.event_type)
    if model is None:
        return UnrecognizedWebhookEvent(
            id=envelope.id,
            event_type=envelope.event_type,
            resource=envelope.resource,
            create_time=envelope.create_time,
        )
    try:
        return model(
            id=envelope.id,
            resource=envelope.resource,
            create_time=envelope.create_time,
        )
    except ValidationError as exc:
        raise WebhookPayloadException(
            f"Invalid resource for {envelope.event_type}",
            event_type=envelope.event_type,
            field="resource",
        ) from exc
