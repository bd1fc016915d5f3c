"""
Webhook 签名校验

HMAC-SHA256(secret, raw_body) 的十六进制摘要，与请求头中的签名做常量时间比较。
"""
from __future__ import annotations

import hashlib
import hmac
import re
from typing import Mapping, Sequence

from core.config import Settings
from core.logging_config import get_logger
from domain.common.exceptions import WebhookSignatureException
from application.ports.webhook import WebhookVerifier

logger = get_logger(__name__)

SIGNATURE_PREFIX = "sha256="
# HMAC-SHA256 十六进制摘要
_HEX_DIGEST = re.compile(r"[0-9a-f]{64}")


def compute_signature(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


class HmacWebhookVerifier:
    def __init__(self, secret: str, header_names: Sequence[str]):
        if not secret:
            raise ValueError("webhook secret must not be empty")
        self._secret = secret
        self.header_names = list(header_names)

    def _find_signature(self, headers: Mapping[str, str]) -> str:
        lowered = {k.lower(): v for k, v in headers.items()}
        for name in self.header_names:
            value = lowered.get(name.lower())
            if value:
                return value.strip()
        return ""

    def verify(self, headers: Mapping[str, str], body: bytes) -> None:
        signature = self._find_signature(headers)
        if not signature:
            logger.warning("webhook_signature_missing", headers=self.header_names)
            raise WebhookSignatureException("Missing signature")

        if signature.lower().startswith(SIGNATURE_PREFIX):
            signature = signature[len(SIGNATURE_PREFIX):]

        signature = signature.lower()
        expected = compute_signature(self._secret, body)
        if not _HEX_DIGEST.fullmatch(signature) or not hmac.compare_digest(expected, signature):
            logger.warning("webhook_signature_mismatch")
            raise WebhookSignatureException()


class UnsignedWebhookVerifier:
    """仅用于开发环境：不校验签名"""

    def verify(self, headers: Mapping[str, str], body: bytes) -> None:
        logger.warning("webhook_signature_skipped", reason="no webhook secret configured")


def build_webhook_verifier(settings: Settings) -> WebhookVerifier:
    if settings.webhook.secret:
        return HmacWebhookVerifier(settings.webhook.secret, settings.webhook.signature_headers)
    if settings.is_production:
        raise ValueError("webhook secret is required in production")
    logger.warning("webhook_verifier_unsigned", environment=settings.ENVIRONMENT)
    return UnsignedWebhookVerifier()
