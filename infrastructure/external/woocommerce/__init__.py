"""
WooCommerce 商店 REST API 客户端
"""
from .client import WooCommerceClient, ORDERS_ENDPOINT

__all__ = ["WooCommerceClient", "ORDERS_ENDPOINT"]
