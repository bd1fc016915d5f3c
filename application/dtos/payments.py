"""
支付跳转流程 DTO（Pydantic v2），在 API 层与编排服务之间传递
"""
from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from application.dtos.base import DTOBase


class RedirectRequest(BaseModel):
    order_id: str
    base_url: str = Field(..., description="回调地址前缀，如 https://proxy.example.com")


class RedirectResult(BaseModel):
    redirect_url: str
    proxy_order_id: Optional[int] = None
    already_paid: bool = False


class ReturnRequest(BaseModel):
    order_id: str = ""
    proxy_order_id: str = ""
    payment_id: str = ""
    payer_id: str = ""
    status: str = ""
    transaction_id: str = ""


class ReturnResult(BaseModel):
    redirect_url: str
    confirmed: bool = False


class CancelRequest(BaseModel):
    order_id: str = ""
    proxy_order_id: str = ""


class CancelResult(BaseModel):
    redirect_url: str


class WebhookResult(BaseModel):
    status: Literal["processed", "ignored"]
    message: str


class HealthResponse(DTOBase):
    status: str = "OK"
    check: str = "health"
    timestamp: datetime
    version: str
    uptime: str
