"""
API客户端模块

提供与外部REST API集成的客户端基类
"""
from .base import (
    BaseAPIClient,
    APIResponse,
    APIError,
    APITimeoutError,
    AuthenticationError,
    NotFoundError,
    ServerError,
)

__all__ = [
    "BaseAPIClient",
    "APIResponse",
    "APIError",
    "APITimeoutError",
    "AuthenticationError",
    "NotFoundError",
    "ServerError",
]
