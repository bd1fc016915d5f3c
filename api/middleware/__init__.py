from .request_id import RequestIDMiddleware, get_forwarded_ip
from .logging import LoggingMiddleware
from .security_headers import SecurityHeadersMiddleware
from .timeout import TimeoutMiddleware

__all__ = [
    "RequestIDMiddleware",
    "LoggingMiddleware",
    "SecurityHeadersMiddleware",
    "TimeoutMiddleware",
    "get_forwarded_ip",
]
