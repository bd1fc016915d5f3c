"""
REST API客户端基类

提供通用的HTTP请求功能，包括：
- 5xx / 网络错误自动重试（线性退避）
- 错误分类（4xx 直接失败）
- 请求/响应日志
- 认证支持
"""
import json
import time
from typing import Dict, Any, Optional, Union
from dataclasses import dataclass
from enum import Enum
import httpx

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from core.logging_config import get_logger

logger = get_logger(__name__)


class HTTPMethod(Enum):
    """HTTP方法枚举"""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"


@dataclass
class APIResponse:
    """API响应封装"""
    status_code: int
    headers: Dict[str, str]
    data: Any
    raw_content: bytes
    elapsed_ms: float

    @property
    def is_error(self) -> bool:
        return self.status_code >= 400

    def json(self) -> Any:
        """获取JSON响应"""
        if self.data is not None:
            return self.data
        return json.loads(self.raw_content)

    def text(self) -> str:
        return self.raw_content.decode("utf-8", errors="replace")


class APIError(Exception):
    """API错误基类"""
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Optional[APIResponse] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response = response
        super().__init__(self.message)

    @property
    def body(self) -> Optional[str]:
        return self.response.text() if self.response is not None else None

    def __str__(self):
        if self.status_code:
            return f"{self.message} | Status: {self.status_code}"
        return self.message


class AuthenticationError(APIError):
    """认证错误（401/403）"""


class NotFoundError(APIError):
    """资源未找到错误"""


class ServerError(APIError):
    """服务器错误（重试耗尽后的 5xx）"""


class APITimeoutError(APIError):
    """超时（重试耗尽）"""


class RetryableAPIError(APIError):
    """可重试的API错误，仅在重试循环内部使用"""


def _is_retryable_status(status_code: int) -> bool:
    return status_code >= 500


def _log_before_sleep(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "api_request_retry",
        attempt=retry_state.attempt_number,
        sleep_s=retry_state.next_action.sleep if retry_state.next_action else None,
        error=str(exc),
    )


class BaseAPIClient:
    """
    REST API客户端基类

    max_attempts 为总尝试次数（含首次）；仅网络错误与 5xx 会重试，
    第 n 次重试前等待 n * retry_backoff 秒。
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        max_attempts: int = 3,
        retry_backoff: float = 1.0,
        headers: Optional[Dict[str, str]] = None,
        verify_ssl: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.retry_backoff = retry_backoff
        self.verify_ssl = verify_ssl
        self._transport = transport

        self.default_headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": "WooCommerce-Payment-Proxy/1.0",
        }
        if headers:
            self.default_headers.update(headers)

        self._client: Optional[httpx.AsyncClient] = None

    def set_auth_token(self, token: str, header_name: str = "Authorization", prefix: str = "Bearer"):
        """设置认证令牌"""
        self.default_headers[header_name] = f"{prefix} {token}" if prefix else token

    @property
    def client(self) -> httpx.AsyncClient:
        """获取或创建HTTP客户端（连接池复用）"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                verify=self.verify_ssl,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """关闭HTTP客户端"""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _build_url(self, endpoint: str) -> str:
        endpoint = endpoint.lstrip('/')
        return f"{self.base_url}/{endpoint}"

    def _raise_for_status(self, response: APIResponse) -> None:
        """4xx/5xx 转换为类型化错误"""
        error_map = {
            401: AuthenticationError,
            403: AuthenticationError,
            404: NotFoundError,
        }
        if response.status_code >= 500:
            error_class = ServerError
        else:
            error_class = error_map.get(response.status_code, APIError)

        message = f"API request failed with status {response.status_code}"
        if isinstance(response.data, dict):
            message = response.data.get("message") or response.data.get("error") or message

        raise error_class(message=message, status_code=response.status_code, response=response)

    async def _send_once(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]],
        json_data: Any,
        headers: Dict[str, str],
    ) -> APIResponse:
        start = time.perf_counter()
        response = await self.client.request(
            method=method,
            url=url,
            params=params,
            json=json_data,
            headers=headers,
        )
        elapsed = (time.perf_counter() - start) * 1000

        response_data = None
        if "application/json" in response.headers.get("content-type", ""):
            try:
                response_data = response.json()
            except ValueError:
                response_data = None

        api_response = APIResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            data=response_data,
            raw_content=response.content,
            elapsed_ms=round(elapsed, 2),
        )

        logger.debug(
            "api_response",
            method=method,
            url=url,
            status_code=api_response.status_code,
            elapsed_ms=api_response.elapsed_ms,
        )

        if api_response.is_error and _is_retryable_status(api_response.status_code):
            raise RetryableAPIError(
                message=f"Transient API error with status {api_response.status_code}",
                status_code=api_response.status_code,
                response=api_response,
            )
        if api_response.is_error:
            self._raise_for_status(api_response)
        return api_response

    async def _request(
        self,
        method: Union[str, HTTPMethod],
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> APIResponse:
        """
        发送HTTP请求

        Raises:
            NotFoundError / AuthenticationError / APIError: 4xx，不重试
            ServerError: 5xx 重试耗尽
            APITimeoutError: 超时重试耗尽
            APIError: 其他网络错误重试耗尽
        """
        if isinstance(method, HTTPMethod):
            method = method.value

        url = self._build_url(endpoint)
        request_headers = {**self.default_headers}
        if headers:
            request_headers.update(headers)

        logger.debug("api_request", method=method, url=url, params=params)

        retrying = AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_incrementing(start=self.retry_backoff, increment=self.retry_backoff),
            retry=retry_if_exception_type((httpx.TransportError, RetryableAPIError)),
            before_sleep=_log_before_sleep,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    return await self._send_once(method, url, params, json_data, request_headers)
        except httpx.TimeoutException as exc:
            raise APITimeoutError(f"Request timeout after {self.timeout}s") from exc
        except httpx.TransportError as exc:
            raise APIError(f"Network error: {exc}") from exc
        except RetryableAPIError as exc:
            raise ServerError(
                message=f"Server error after {self.max_attempts} attempts",
                status_code=exc.status_code,
                response=exc.response,
            ) from exc

    async def get(self, endpoint: str, **kwargs) -> APIResponse:
        """GET请求"""
        return await self._request(HTTPMethod.GET, endpoint, **kwargs)

    async def post(self, endpoint: str, **kwargs) -> APIResponse:
        """POST请求"""
        return await self._request(HTTPMethod.POST, endpoint, **kwargs)

    async def put(self, endpoint: str, **kwargs) -> APIResponse:
        """PUT请求"""
        return await self._request(HTTPMethod.PUT, endpoint, **kwargs)
