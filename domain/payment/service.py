"""
支付领域服务 - 由回调/事件构造支付记录
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from domain.common.money import Money
from domain.payment.entity import Payment, PaymentMethod, PaymentStatus


def new_payment_id() -> str:
    return f"pay_{uuid.uuid4().hex}"


def create_payment_record(
    order_id: str,
    payment_id: str,
    payer_id: str,
    amount: Optional[Money],
    status: PaymentStatus,
    *,
    transaction_id: str = "",
    method: PaymentMethod = PaymentMethod.PAYPAL,
    processed_at: Optional[datetime] = None,
) -> Payment:
    """
    构造一次支付处理的记录

    transaction_id 缺省时使用支付渠道的 payment_id。
    记录不做持久化，由调用方写入审计日志。
    """
    return Payment(
        id=new_payment_id(),
        order_id=order_id,
        status=status,
        payment_id=payment_id,
        payer_id=payer_id,
        amount=amount,
        method=method,
        transaction_id=transaction_id or payment_id,
        processed_at=processed_at or datetime.now(timezone.utc),
        metadata={
            "payment_provider": method.value,
            "payer_id": payer_id,
        },
    )
