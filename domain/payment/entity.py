"""
支付领域实体 - 单次回调/事件中的支付记录
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from domain.common.money import Money


class PaymentStatus(str, Enum):
    """支付状态枚举"""
    PENDING = "pending"
    CREATED = "created"
    APPROVED = "approved"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    PAYPAL = "paypal"


FINAL_STATUSES = frozenset(
    {PaymentStatus.COMPLETED, PaymentStatus.FAILED, PaymentStatus.CANCELLED, PaymentStatus.REFUNDED}
)


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """确保时间为 UTC 时区"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class Payment:
    """
    支付记录

    每次 return / cancel / webhook 处理时临时创建，不做持久化。
    """

    id: str
    order_id: str
    status: PaymentStatus
    payment_id: str = ""  # 支付渠道的支付ID
    payer_id: str = ""
    amount: Optional[Money] = None
    method: PaymentMethod = PaymentMethod.PAYPAL
    transaction_id: str = ""
    processed_at: Optional[datetime] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.processed_at = _ensure_utc(self.processed_at)
        if self.metadata is None:
            self.metadata = {}

    def is_final(self) -> bool:
        """检查支付是否处于终态"""
        return self.status in FINAL_STATUSES

    def is_successful(self) -> bool:
        return self.status == PaymentStatus.COMPLETED
