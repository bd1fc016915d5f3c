"""领域层业务异常定义，供领域、应用与基础设施使用。

核心（core）层仅负责全局映射与异常处理，尽量避免领域层反向依赖核心层。
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
        )


class InvalidAmountException(DomainValidationException):
    def __init__(self, raw: object, *, field: str | None = None):
        super().__init__(
            f"Invalid amount format: {raw!r}",
            field=field,
            details={"value": str(raw)},
        )
        self.error_type = "InvalidAmount"


class CurrencyMismatchException(DomainValidationException):
    def __init__(self, left: str, right: str):
        super().__init__(
            f"Cannot combine different currencies: {left} and {right}",
            details={"left": left, "right": right},
        )
        self.error_type = "CurrencyMismatch"


class InvalidParameterException(BusinessException):
    def __init__(self, message: str, *, field: str | None = None, details: dict | None = None):
        super().__init__(
            code=BusinessCode.PARAM_ERROR,
            message=message,
            error_type="InvalidParameter",
            details=details,
            field=field,
        )


class UnsupportedMediaTypeException(BusinessException):
    def __init__(self, content_type: str):
        super().__init__(
            code=BusinessCode.UNSUPPORTED_MEDIA_TYPE,
            message="Invalid content type",
            error_type="UnsupportedMediaType",
            details={"content_type": content_type},
        )


class UntrustedReferrerException(BusinessException):
    def __init__(self, referrer: str):
        super().__init__(
            code=BusinessCode.FORBIDDEN,
            message="Invalid referrer",
            error_type="UntrustedReferrer",
            details={"referrer": referrer},
        )


class OrderNotFoundException(BusinessException):
    def __init__(self, order_id: str, *, store: Optional[str] = None):
        details = {"order_id": order_id}
        if store:
            details["store"] = store
        super().__init__(
            code=BusinessCode.ORDER_NOT_FOUND,
            message=f"Order {order_id} not found",
            error_type="OrderNotFound",
            details=details,
        )
        self.order_id = order_id


class OrderNotPayableException(BusinessException):
    def __init__(self, order_id: object, reason: str, *, status: Optional[str] = None):
        details = {"order_id": str(order_id), "reason": reason}
        if status:
            details["status"] = status
        super().__init__(
            code=BusinessCode.ORDER_NOT_PAYABLE,
            message=f"Order cannot be processed for payment: {reason}",
            error_type="OrderNotPayable",
            details=details,
        )


class UpstreamServiceException(BusinessException):
    """商店接口调用失败（重试耗尽）"""

    def __init__(
        self,
        message: str,
        *,
        store: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        code: int = BusinessCode.UPSTREAM_ERROR,
        error_type: str = "UpstreamError",
    ):
        super().__init__(
            code=code,
            message=message,
            error_type=error_type,
            details={"store": store, "status_code": status_code, "body": body},
        )
        self.store = store
        self.status_code = status_code
        self.body = body


class UpstreamTimeoutException(UpstreamServiceException):
    def __init__(self, message: str, *, store: str):
        super().__init__(
            message,
            store=store,
            code=BusinessCode.UPSTREAM_TIMEOUT,
            error_type="UpstreamTimeout",
        )


class RequestTimeoutException(BusinessException):
    def __init__(self, timeout: float):
        super().__init__(
            code=BusinessCode.REQUEST_TIMEOUT,
            message=f"Request timed out after {timeout}s",
            error_type="RequestTimeout",
            details={"timeout": timeout},
        )


class WebhookSignatureException(BusinessException):
    def __init__(self, message: str = "Invalid signature"):
        super().__init__(
            code=BusinessCode.SIGNATURE_ERROR,
            message=message,
            error_type="WebhookSignatureError",
        )


class WebhookPayloadException(BusinessException):
    def __init__(self, message: str, *, event_type: Optional[str] = None, field: Optional[str] = None):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="WebhookPayloadError",
            details={"event_type": event_type} if event_type else None,
            field=field,
        )
