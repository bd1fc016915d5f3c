"""
DTO 基类 - 统一 datetime 序列化为 UTC-Z
"""
from datetime import datetime

from pydantic import BaseModel, model_serializer

from core.response import to_utc_z


def _convert(value):
    if isinstance(value, datetime):
        return to_utc_z(value)
    if isinstance(value, list):
        return [_convert(v) for v in value]
    if isinstance(value, dict):
        return {k: _convert(v) for k, v in value.items()}
    return value


class DTOBase(BaseModel):
    """DTO 基类：子类中的 datetime 一律序列化为 UTC ISO8601（Z 结尾）"""

    @model_serializer(mode="wrap")
    def _serialize_model(self, handler):  # type: ignore[override]
        return _convert(handler(self))
