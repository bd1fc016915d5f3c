"""
Payment provider event names and status mapping.
"""
from __future__ import annotations


# PayPal webhook event types handled by the proxy
CAPTURE_COMPLETED = "PAYMENT.CAPTURE.COMPLETED"
CAPTURE_DENIED = "PAYMENT.CAPTURE.DENIED"
CAPTURE_REFUNDED = "PAYMENT.CAPTURE.REFUNDED"


# Provider event → internal payment status
WEBHOOK_EVENT_TO_PAYMENT_STATUS = {
    CAPTURE_COMPLETED: "completed",
    CAPTURE_DENIED: "failed",
    CAPTURE_REFUNDED: "refunded",
}
