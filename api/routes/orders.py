"""
订单查询路由（只读，透传源站订单）
"""
from fastapi import APIRouter, Depends

from api.dependencies import get_app_settings, get_source_store
from api.utils.params import require_order_id
from application.dtos.orders import OrderDTO, OrderStatusDTO
from application.ports.order_store import OrderStore
from core.config import Settings
from core.response import Response as ApiResponse, success_response

router = APIRouter(tags=["Orders"])


@router.get("/order/{order_id}", summary="查询订单", response_model=ApiResponse[OrderDTO])
async def get_order(
    order_id: str,
    settings: Settings = Depends(get_app_settings),
    store: OrderStore = Depends(get_source_store),
):
    """返回订单概要（不含账单/收货联系人信息）"""
    order_id = require_order_id(order_id, enforce_format=settings.ENFORCE_ORDER_ID_FORMAT)
    order = await store.fetch_order(order_id)
    return success_response(data=OrderDTO.from_entity(order))


@router.get("/order/{order_id}/status", summary="查询订单支付状态", response_model=ApiResponse[OrderStatusDTO])
@router.get("/status/{order_id}", include_in_schema=False, response_model=ApiResponse[OrderStatusDTO])
async def get_order_status(
    order_id: str,
    settings: Settings = Depends(get_app_settings),
    store: OrderStore = Depends(get_source_store),
):
    order_id = require_order_id(order_id, enforce_format=settings.ENFORCE_ORDER_ID_FORMAT)
    order = await store.fetch_order(order_id)
    return success_response(data=OrderStatusDTO.from_entity(order))
