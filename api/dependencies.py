"""
API依赖项 - 从 app.state 取出组合根中创建的组件
"""
from fastapi import Request

from application.ports.order_store import OrderStore
from application.ports.webhook import WebhookVerifier
from application.services.payment_orchestrator import PaymentOrchestrator
from core.config import Settings


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_orchestrator(request: Request) -> PaymentOrchestrator:
    return request.app.state.orchestrator


def get_source_store(request: Request) -> OrderStore:
    return request.app.state.source_store


def get_webhook_verifier(request: Request) -> WebhookVerifier:
    return request.app.state.webhook_verifier
