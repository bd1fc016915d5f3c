"""
配置文件 - 项目配置管理
"""
from functools import lru_cache
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator
from typing import Annotated, Optional
from pydantic import model_validator


class StoreSettings(BaseModel):
    """单个 WooCommerce 商店的 REST API 配置"""
    url: str
    consumer_key: str
    consumer_secret: str
    timeout: float = Field(default=30.0, gt=0)
    # 总尝试次数（含首次请求）
    retry_attempts: int = Field(default=3, ge=1)
    retry_backoff: float = Field(default=1.0, ge=0)
    verify_ssl: bool = True

    @field_validator("url", "consumer_key", "consumer_secret")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class ProcessingStoreSettings(StoreSettings):
    checkout_path: str = "checkout/order-pay"


class ReturnUrlSettings(BaseModel):
    """源站上的跳转目标页"""
    success: str = "https://example.com/checkout/order-received"
    cancel: str = "https://example.com/cart"
    error: str = "https://example.com/checkout/payment-error"


class WebhookSettings(BaseModel):
    secret: Optional[str] = None
    signature_headers: list[str] = Field(
        default=["X-PayPal-Transmission-Sig", "X-Hub-Signature-256"]
    )


class PaymentMethodSettings(BaseModel):
    id: str = "paypal"
    title: str = "PayPal"


class AnonymizationSettings(BaseModel):
    placeholder_email: str = "noreply@example.com"


class Settings(BaseSettings):
    """项目配置"""

    # 基础配置
    PROJECT_NAME: str = "WooCommerce Payment Proxy"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    LOG_LEVEL: str = "INFO"

    # 单个请求的整体超时（秒）
    REQUEST_TIMEOUT: float = Field(default=30.0, gt=0)
    # 回调地址前缀；为空时使用 https://{Host}
    PUBLIC_BASE_URL: Optional[str] = None

    # CORS配置
    # NoDecode：环境变量原样交给 _parse_cors_origins，支持逗号分隔
    CORS_ORIGINS: Annotated[list[str], NoDecode] = Field(default=[])

    ENFORCE_ORDER_ID_FORMAT: bool = True
    # 逗号分隔；为空表示不限制来源
    ALLOWED_REFERRER_HOSTS: str = ""

    # 分组配置：嵌套模型，环境变量形如 SOURCE_STORE__URL
    source_store: StoreSettings
    processing_store: ProcessingStoreSettings
    return_urls: ReturnUrlSettings = Field(default_factory=ReturnUrlSettings)
    webhook: WebhookSettings = Field(default_factory=WebhookSettings)
    payment_method: PaymentMethodSettings = Field(default_factory=PaymentMethodSettings)
    anonymization: AnonymizationSettings = Field(default_factory=AnonymizationSettings)

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def referrer_hosts(self) -> list[str]:
        return [h.strip().lower() for h in self.ALLOWED_REFERRER_HOSTS.split(",") if h.strip()]

    @model_validator(mode="after")
    def _validate_webhook_secret(self):
        # 生产环境必须配置 webhook 签名密钥，拒绝接收未签名回调
        if self.is_production and not self.webhook.secret:
            raise ValueError(
                "WEBHOOK__SECRET 未配置。生产环境必须设置 webhook 签名密钥"
            )
        return self

    @field_validator("PUBLIC_BASE_URL")
    @classmethod
    def _strip_base_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip().rstrip("/")

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """允许 JSON 字符串或逗号分隔字符串两种格式。"""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                import json
                try:
                    arr = json.loads(s)
                except ValueError:
                    arr = None
                if isinstance(arr, list):
                    return arr
            if "," in s:
                return [item.strip() for item in s.split(",") if item.strip()]
            return [s] if s else []
        return v


@lru_cache
def get_settings() -> Settings:
    """组合根中使用；其余组件通过构造参数注入 Settings。"""
    return Settings()
