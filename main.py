"""
FastAPI应用主入口（组合根）
"""
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import health as health_routes
from api.routes import orders as orders_routes
from api.routes import payments as payments_routes
from api.middleware import (
    LoggingMiddleware,
    RequestIDMiddleware,
    SecurityHeadersMiddleware,
    TimeoutMiddleware,
)
from application.ports.order_store import OrderStore
from application.ports.webhook import WebhookVerifier
from application.services.payment_orchestrator import PaymentOrchestrator
from application.utils.locks import OrderLockRegistry
from core.config import Settings, get_settings
from core.exceptions import register_exception_handlers
from core.logging_config import get_logger, configure_logging
from infrastructure.external.woocommerce import WooCommerceClient
from infrastructure.security.webhook_signature import build_webhook_verifier


logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    source_store: Optional[OrderStore] = None,
    processing_store: Optional[OrderStore] = None,
    webhook_verifier: Optional[WebhookVerifier] = None,
) -> FastAPI:
    """
    创建应用

    测试可注入自定义的商店实现与签名校验器；未注入时按配置创建 WooCommerce 客户端。
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL, json_logs=not settings.DEBUG)

    owned_clients: list[WooCommerceClient] = []
    if source_store is None:
        source_store = WooCommerceClient(
            settings.source_store,
            name="source",
            payment_method_id=settings.payment_method.id,
            payment_method_title=settings.payment_method.title,
        )
        owned_clients.append(source_store)
    if processing_store is None:
        processing_store = WooCommerceClient(
            settings.processing_store,
            name="processing",
            payment_method_id=settings.payment_method.id,
            payment_method_title=settings.payment_method.title,
        )
        owned_clients.append(processing_store)
    if webhook_verifier is None:
        webhook_verifier = build_webhook_verifier(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """应用生命周期管理"""
        app.state.started_at = time.monotonic()
        logger.info(
            "application_startup",
            environment=settings.ENVIRONMENT,
            version=settings.VERSION,
            source_store=settings.source_store.url,
            processing_store=settings.processing_store.url,
        )
        yield
        for client in owned_clients:
            await client.close()
        logger.info("application_shutdown")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        description="WooCommerce 订单支付跳转代理",
    )

    app.state.settings = settings
    app.state.started_at = time.monotonic()
    app.state.source_store = source_store
    app.state.processing_store = processing_store
    app.state.webhook_verifier = webhook_verifier
    app.state.orchestrator = PaymentOrchestrator(
        source_store,
        processing_store,
        settings,
        locks=OrderLockRegistry(),
    )

    # 添加中间件（注意顺序：后添加的先执行）
    # 1. 超时（最内层，只包住路由处理）
    app.add_middleware(TimeoutMiddleware, timeout=settings.REQUEST_TIMEOUT)
    # 2. 日志中间件（依赖request_id）
    app.add_middleware(LoggingMiddleware, log_body=settings.DEBUG and not settings.is_production)
    # 3. Request ID中间件
    app.add_middleware(RequestIDMiddleware)
    # 4. 安全响应头
    app.add_middleware(SecurityHeadersMiddleware)
    # 5. CORS中间件
    if settings.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
        )

    # 注册全局异常处理器
    register_exception_handlers(app, expose_details=settings.DEBUG and not settings.is_production)

    # 注册路由
    app.include_router(health_routes.router)
    app.include_router(payments_routes.router)
    app.include_router(orders_routes.router, prefix="/api/v1")

    return app


if __name__ == "__main__":
    import uvicorn
    _settings = get_settings()
    uvicorn.run(
        "main:create_app",
        factory=True,
        host=_settings.HOST,
        port=_settings.PORT,
        log_level=_settings.LOG_LEVEL.lower(),
    )
