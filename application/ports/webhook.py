"""
Webhook 签名校验端口
"""
from __future__ import annotations

from typing import Mapping, Protocol, runtime_checkable


@runtime_checkable
class WebhookVerifier(Protocol):
    """校验失败时抛出 WebhookSignatureException"""

    def verify(self, headers: Mapping[str, str], body: bytes) -> None: ...
