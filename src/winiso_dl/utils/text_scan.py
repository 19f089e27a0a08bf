"""有界文本扫描工具

各解析阶段共用的字符串截断、片段查找和链接清理函数，不涉及网络
"""

import string
import urllib.parse
from typing import Iterable, Iterator, Optional

# 各阶段扫描上限（字节）
PRODUCT_PAGE_SCAN_LIMIT = 100 * 1024
SKU_TABLE_SCAN_LIMIT = 10 * 1024
DOWNLOAD_LINK_SCAN_LIMIT = 4 * 1024

BLOCKED_MESSAGES = (
    "We are unable to complete your request at this time.",
    "Sentinel marked this request as rejected.",
)

_ASCII_PUNCTUATION = frozenset(string.punctuation)


def bounded_prefix(text: str, limit: int) -> str:
    """返回文本的前 limit 个字节

    按 UTF-8 字节截断，被截断的多字节字符直接丢弃
    """
    encoded = text.encode("utf-8")
    if len(encoded) <= limit:
        return text
    return encoded[:limit].decode("utf-8", errors="ignore")


def iter_fragments(text: str, separator: str) -> Iterator[str]:
    """按分隔符切分文本"""
    return iter(text.split(separator))


def find_line_containing(text: str, needle: str) -> Optional[str]:
    """返回第一条包含 needle 的行"""
    for line in text.splitlines():
        if needle in line:
            return line
    return None


def nth_field(text: str, delimiter: str, index: int) -> Optional[str]:
    """返回按 delimiter 切分后的第 index 个字段，不存在时返回 None"""
    fields = text.split(delimiter)
    if index < len(fields):
        return fields[index]
    return None


def value_before_marker(fragment: str, opener: str, marker: str) -> Optional[str]:
    """提取 opener 之后、marker 之前的内容

    例如 value_before_marker('<option value="1">Windows', 'value="', '">Windows') == "1"
    """
    start = fragment.find(opener)
    if start == -1:
        return None
    start += len(opener)
    end = fragment.find(marker, start)
    if end == -1:
        return None
    return fragment[start:end]


def first_match(candidates: Iterable[Optional[str]]) -> Optional[str]:
    """返回第一个非空候选"""
    for candidate in candidates:
        if candidate:
            return candidate
    return None


def clean_url(url: str) -> str:
    """去掉非字母数字、非 ASCII 标点的字符，并解码 &amp;"""
    kept = "".join(c for c in url if c.isalnum() or c in _ASCII_PUNCTUATION)
    return kept.replace("&amp;", "&")


def contains_blocked_message(body: str) -> bool:
    """响应中是否包含厂商的拦截提示"""
    return any(message in body for message in BLOCKED_MESSAGES)


def sanitize_url_for_logging(url: str) -> str:
    """清理URL中的敏感信息用于日志记录

    Args:
        url: 原始URL

    Returns:
        清理后的URL，隐藏查询参数（会话ID、SKU等）
    """
    try:
        parsed = urllib.parse.urlparse(url)
        return f"{parsed.scheme}://{parsed.hostname}{parsed.path}"
    except Exception:
        return "[URL]"
