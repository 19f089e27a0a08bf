"""核心模块

这个包包含了解析流水线的各个组成部分：
- validator: 版本/语言/架构兼容性校验
- session: 浏览器身份与会话ID
- network_client: HTTP传输客户端
- consumer: 下载门户的四个解析阶段
- enterprise: 评估中心解析
"""

from .consumer import (
    probe_anti_bot,
    resolve_download_link,
    resolve_product_id,
    resolve_sku,
)
from .enterprise import resolve_evaluation_link
from .network_client import HTTPClient
from .session import SessionContext
from .validator import validate, validate_combination, validate_request

__all__ = [
    "HTTPClient",
    "SessionContext",
    "probe_anti_bot",
    "resolve_download_link",
    "resolve_evaluation_link",
    "resolve_product_id",
    "resolve_sku",
    "validate",
    "validate_combination",
    "validate_request",
]
