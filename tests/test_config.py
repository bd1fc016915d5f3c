import pytest
from pydantic import ValidationError

from core.config import Settings, StoreSettings

STORES = {
    "source_store": {"url": "https://source.test/", "consumer_key": "ck", "consumer_secret": "cs"},
    "processing_store": {"url": "https://processing.test", "consumer_key": "ck", "consumer_secret": "cs"},
}


def test_defaults_and_normalization():
    settings = Settings(_env_file=None, PUBLIC_BASE_URL=" https://proxy.test/ ", **STORES)

    assert settings.source_store.url == "https://source.test"
    assert settings.source_store.retry_attempts == 3
    assert settings.processing_store.checkout_path == "checkout/order-pay"
    assert settings.PUBLIC_BASE_URL == "https://proxy.test"
    assert settings.payment_method.id == "paypal"
    assert not settings.is_production


def test_blank_public_base_url_is_none():
    assert Settings(_env_file=None, PUBLIC_BASE_URL="  ", **STORES).PUBLIC_BASE_URL is None


def test_production_requires_webhook_secret():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, ENVIRONMENT="production", **STORES)

    settings = Settings(_env_file=None, ENVIRONMENT="production", webhook={"secret": "abc"}, **STORES)
    assert settings.is_production


@pytest.mark.parametrize("field,value", [("retry_attempts", 0), ("timeout", 0), ("retry_backoff", -1)])
def test_store_settings_bounds(field, value):
    with pytest.raises(ValidationError):
        StoreSettings(url="https://s.test", consumer_key="ck", consumer_secret="cs", **{field: value})


def test_store_credentials_must_not_be_blank():
    with pytest.raises(ValidationError):
        StoreSettings(url="https://s.test", consumer_key="  ", consumer_secret="cs")


def test_nested_env_variables(monkeypatch):
    monkeypatch.setenv("SOURCE_STORE__URL", "https://env-source.test")
    monkeypatch.setenv("SOURCE_STORE__RETRY_ATTEMPTS", "5")
    monkeypatch.setenv("ALLOWED_REFERRER_HOSTS", "Source.test, shop.test")

    settings = Settings(_env_file=None)

    assert settings.source_store.url == "https://env-source.test"
    assert settings.source_store.retry_attempts == 5
    assert settings.referrer_hosts == ["source.test", "shop.test"]


def test_cors_origins_accepts_comma_separated():
    settings = Settings(_env_file=None, CORS_ORIGINS="https://a.test, https://b.test", **STORES)
    assert settings.CORS_ORIGINS == ["https://a.test", "https://b.test"]


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("https://a.test,https://b.test", ["https://a.test", "https://b.test"]),
        ('["https://a.test"]', ["https://a.test"]),
        ("https://only.test", ["https://only.test"]),
        ("", []),
    ],
)
def test_cors_origins_from_environment(monkeypatch, raw, expected):
    monkeypatch.setenv("CORS_ORIGINS", raw)
    assert Settings(_env_file=None).CORS_ORIGINS == expected
