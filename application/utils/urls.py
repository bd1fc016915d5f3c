"""支付页、回跳、取消等跳转地址的构造

构造函数不抛异常：无法解析出 scheme + host 的地址退化为直接拼接编码后的参数。
"""
from __future__ import annotations

from typing import Mapping, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from core.logging_config import get_logger
from domain.order.entity import Order

logger = get_logger(__name__)


def _clean(params: Mapping[str, Optional[str]]) -> list[tuple[str, str]]:
    return [(k, str(v)) for k, v in params.items() if v not in (None, "")]


def append_query(url: str, params: Mapping[str, Optional[str]]) -> str:
    """把参数合并进 url 的查询串，同名参数覆盖，空值丢弃"""
    pairs = _clean(params)
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        logger.warning("url_parse_fallback", url=url)
        if not pairs:
            return url
        sep = "&" if "?" in url else "?"
        return f"{url}{sep}{urlencode(pairs)}"

    overridden = {k for k, _ in pairs}
    existing = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True)
                if k not in overridden]
    query = urlencode(existing + pairs)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def join_path(base: str, *segments: str) -> str:
    path = "/".join(s.strip("/") for s in segments if s and s.strip("/"))
    return f"{base.rstrip('/')}/{path}" if path else base.rstrip("/")


def build_checkout_url(checkout_base: str, order: Order, return_url: str, cancel_url: str) -> str:
    """{checkout_base}/{order.id}/?pay_for_order=true&key=...&return_url=...&cancel_return=..."""
    target = join_path(checkout_base, str(order.id)) + "/"
    url = append_query(target, {
        "pay_for_order": "true",
        "key": order.order_key,
        "return_url": return_url,
        "cancel_return": cancel_url,
    })
    logger.info("checkout_url_built", order_id=order.id, checkout_url=url)
    return url


def build_return_url(base_url: str, order_id: str, proxy_order_id: str = "", status: str = "") -> str:
    url = append_query(join_path(base_url, "paypal-return"), {
        "order_id": order_id,
        "oitam_order_id": proxy_order_id,
        "status": status,
    })
    logger.debug("return_url_built", order_id=order_id, return_url=url)
    return url


def build_cancel_url(base_url: str, order_id: str, proxy_order_id: str = "") -> str:
    url = append_query(join_path(base_url, "paypal-cancel"), {
        "order_id": order_id,
        "oitam_order_id": proxy_order_id,
    })
    logger.debug("cancel_url_built", order_id=order_id, cancel_url=url)
    return url
