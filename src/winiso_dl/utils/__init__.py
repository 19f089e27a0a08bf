"""工具模块

这个包包含了各解析阶段共用的工具：
- text_scan: 有界文本扫描与链接清理
"""

from .text_scan import (
    bounded_prefix,
    clean_url,
    contains_blocked_message,
    sanitize_url_for_logging,
)

__all__ = [
    "bounded_prefix",
    "clean_url",
    "contains_blocked_message",
    "sanitize_url_for_logging",
]
