"""
请求超时中间件（纯 ASGI）
超时后取消正在执行的处理器（连同其中的上游 HTTP 调用），返回 408。
"""
import asyncio

from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.exceptions import business_exception_response
from core.logging_config import get_logger
from domain.common.exceptions import RequestTimeoutException


logger = get_logger(__name__)


class TimeoutMiddleware:
    def __init__(self, app: ASGIApp, *, timeout: float = 30.0):
        self.app = app
        self.timeout = timeout

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message):
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await asyncio.wait_for(self.app(scope, receive, send_wrapper), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error("request_timeout", path=scope.get("path"), timeout=self.timeout)
            if response_started:
                # 响应头已发出，无法再改写状态码
                return
            response = business_exception_response(Request(scope), RequestTimeoutException(self.timeout))
            await response(scope, receive, send)
