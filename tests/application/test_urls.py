from application.utils.urls import (
    append_query,
    build_cancel_url,
    build_return_url,
    join_path,
)


def test_append_query_merges_and_overrides():
    url = append_query("https://shop.test/thanks?order=1&lang=en", {"order": "2", "payment": "ok"})
    assert url == "https://shop.test/thanks?lang=en&order=2&payment=ok"


def test_append_query_drops_empty_values():
    assert append_query("https://shop.test/cart", {"order": "", "payment": None}) == "https://shop.test/cart"


def test_append_query_encodes_nested_urls():
    url = append_query("https://shop.test/pay", {"return_url": "https://p.test/r?a=1&b=2"})
    assert url == "https://shop.test/pay?return_url=https%3A%2F%2Fp.test%2Fr%3Fa%3D1%26b%3D2"


def test_append_query_falls_back_for_unparseable_base():
    assert append_query("/relative/path", {"a": "1"}) == "/relative/path?a=1"
    assert append_query("/relative/path?x=0", {"a": "1"}) == "/relative/path?x=0&a=1"


def test_join_path():
    assert join_path("https://shop.test/", "/checkout/order-pay/", "42") == "https://shop.test/checkout/order-pay/42"
    assert join_path("https://shop.test/", "") == "https://shop.test"


def test_callback_urls():
    assert build_return_url("https://proxy.test", "123", "900", "success") == (
        "https://proxy.test/paypal-return?order_id=123&oitam_order_id=900&status=success"
    )
    assert build_return_url("https://proxy.test/", "123") == "https://proxy.test/paypal-return?order_id=123"
    assert build_cancel_url("https://proxy.test", "123", "900") == (
        "https://proxy.test/paypal-cancel?order_id=123&oitam_order_id=900"
    )
