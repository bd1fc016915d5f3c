"""
查询参数工具：清洗、ID 格式校验、来源白名单
"""
from __future__ import annotations

import re
from typing import Iterable, Optional
from urllib.parse import urlsplit

from fastapi import Request

from core.config import Settings
from domain.common.exceptions import InvalidParameterException, UntrustedReferrerException

ORDER_ID_PATTERN = re.compile(r"^[A-Za-z0-9]{1,50}$")
PAYMENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,100}$")
PAYER_ID_PATTERN = re.compile(r"^[A-Za-z0-9]{1,50}$")
RETURN_STATUSES = {"success", "approved", "completed", "cancelled", "failed"}

_UNSAFE_CHARS = str.maketrans("", "", "<>'\";&")


def sanitize(value: Optional[str]) -> str:
    """去掉标记/引号字符与首尾空白"""
    if not value:
        return ""
    return value.translate(_UNSAFE_CHARS).strip()


def require_order_id(value: Optional[str], *, enforce_format: bool = True, field: str = "order_id") -> str:
    order_id = sanitize(value)
    if not order_id:
        raise InvalidParameterException("Order ID is required", field=field)
    if enforce_format and not ORDER_ID_PATTERN.match(order_id):
        raise InvalidParameterException("Invalid order ID format", field=field)
    return order_id


def return_params_valid(*, order_id: str, payment_id: str, payer_id: str, status: str, enforce_format: bool = True) -> bool:
    """支付回跳参数的格式校验，可选参数为空时通过"""
    if enforce_format and order_id and not ORDER_ID_PATTERN.match(order_id):
        return False
    if payment_id and not PAYMENT_ID_PATTERN.match(payment_id):
        return False
    if payer_id and not PAYER_ID_PATTERN.match(payer_id):
        return False
    if status and status.lower() not in RETURN_STATUSES:
        return False
    return True


def check_referrer(referrer: Optional[str], allowed_hosts: Iterable[str]) -> None:
    """Referer 不在白名单内时拒绝（白名单为空表示不限制）"""
    allowed = [h.lower() for h in allowed_hosts]
    if not allowed or not referrer:
        return
    host = (urlsplit(referrer).hostname or "").lower()
    if not any(host == h or host.endswith("." + h) for h in allowed):
        raise UntrustedReferrerException(referrer)


def callback_base_url(request: Request, settings: Settings) -> str:
    """回跳地址前缀：优先 PUBLIC_BASE_URL，否则 https://{Host}"""
    if settings.PUBLIC_BASE_URL:
        return settings.PUBLIC_BASE_URL
    host = request.headers.get("host") or request.url.netloc
    return f"https://{host}"
