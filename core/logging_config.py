"""
Structlog 日志配置模块

由组合根调用 configure_logging()；其余模块只通过 get_logger() 取 logger。
"""
import logging
import json
from typing import Any, List

import structlog
from structlog.contextvars import merge_contextvars
from structlog.dev import ConsoleRenderer
from structlog.processors import TimeStamper, add_log_level, JSONRenderer
from structlog.stdlib import ProcessorFormatter
from structlog.types import EventDict


# 第三方库日志过于冗长，统一提升到 WARNING
NOISY_LOGGERS = ("httpx", "httpcore")

# 任何日志事件中出现这些字段名时替换为 ***
REDACTED_KEYS = frozenset({
    "authorization", "consumer_key", "consumer_secret", "secret", "signature", "password",
})


def redact_secrets(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    for key in event_dict.keys() & REDACTED_KEYS:
        event_dict[key] = "***"
    return event_dict


def get_renderer(json_logs: bool) -> Any:
    """开发环境彩色控制台输出，其余 JSON（保留中文等非 ASCII 字符）"""
    if not json_logs:
        return ConsoleRenderer(colors=True)

    # structlog 会向 serializer 传入 default/sort_keys 等参数
    def _dumps(obj, default=None, **kwargs):
        return json.dumps(obj, ensure_ascii=False, default=default, **kwargs)
    return JSONRenderer(serializer=_dumps)


def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """配置 structlog 并把标准库 logging（uvicorn、httpx 等）桥接到同一处理链"""
    shared_pre_chain: List[Any] = [
        merge_contextvars,
        add_log_level,
        structlog.stdlib.add_logger_name,
        TimeStamper(fmt="iso", utc=True),
        redact_secrets,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*shared_pre_chain, ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = ProcessorFormatter(
        foreign_pre_chain=shared_pre_chain,
        processors=[
            ProcessorFormatter.remove_processors_meta,
            get_renderer(json_logs),
        ],
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
