"""网络客户端模块

封装 aiohttp 会话，负责发送请求、读取文本响应，并把传输层异常转换为 NetworkError。
请求头由会话上下文按阶段提供，客户端本身不设置默认身份。
"""

import asyncio
import logging
import ssl
from typing import Any, Dict, Optional, Union

import aiohttp

from ..exceptions import NetworkError, map_http_exception
from ..models import Config
from ..utils.text_scan import sanitize_url_for_logging

logger = logging.getLogger(__name__)


def parse_retry_after(value: Optional[str]) -> Optional[int]:
    """解析 Retry-After 头的秒数形式，HTTP 日期形式和非法值返回 None"""
    if value is None:
        return None
    value = value.strip()
    if value.isascii() and value.isdigit():
        return int(value)
    return None


class HTTPClient:
    """HTTP客户端

    负责创建和管理HTTP会话，包括:
    - SSL验证配置
    - 超时配置（未配置时沿用 aiohttp 默认值）
    - 传输层异常和HTTP错误状态的统一转换
    """

    def __init__(self, config: Config):
        """初始化HTTP客户端

        Args:
            config: 配置对象
        """
        self.config = config
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "HTTPClient":
        """异步上下文管理器入口"""
        await self._create_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """异步上下文管理器退出"""
        await self.close()

    async def _create_session(self) -> None:
        """创建HTTP会话"""
        if self._session is not None:
            return

        connector = aiohttp.TCPConnector(ssl=self._create_ssl_context())
        session_kwargs: Dict[str, Any] = {}
        timeout = self._create_timeout_config()
        if timeout is not None:
            session_kwargs["timeout"] = timeout

        self._session = aiohttp.ClientSession(
            connector=connector,
            auto_decompress=True,
            raise_for_status=False,
            **session_kwargs,
        )

    def _create_ssl_context(self) -> Union[ssl.SSLContext, bool]:
        """创建SSL上下文配置

        Returns:
            ssl.SSLContext: 默认的证书校验上下文
            False: 禁用SSL验证（仅用于测试环境）
        """
        if not self.config.ssl_verify:
            import warnings

            warnings.warn(
                "SSL verification is disabled. This is not recommended for production use.",
                UserWarning,
                stacklevel=2,
            )
            return False

        return ssl.create_default_context()

    def _create_timeout_config(self) -> Optional[aiohttp.ClientTimeout]:
        """创建超时配置，未配置时返回 None 以沿用 aiohttp 默认超时"""
        if self.config.timeout is None:
            return None
        return aiohttp.ClientTimeout(total=self.config.timeout)

    async def close(self) -> None:
        """关闭HTTP会话"""
        if self._session:
            await self._session.close()
            self._session = None

    async def fetch_text(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        data: Optional[str] = None,
        raise_for_status: bool = True,
        discard_body: bool = False,
    ) -> str:
        """发送请求并返回响应文本

        Args:
            method: HTTP方法
            url: 请求URL（查询参数已拼接好，按原样发送）
            headers: 请求头
            data: 请求体，POST 时厂商接口要求一个空请求体
            raise_for_status: 为 False 时忽略HTTP错误状态
            discard_body: 为 True 时按字节读完响应后丢弃，返回空字符串

        Returns:
            响应文本，无法按字符集解码的字节以替换字符表示

        Raises:
            NetworkError: 连接失败、超时，或HTTP状态码 >= 400
        """
        if self._session is None:
            await self._create_session()

        safe_url = sanitize_url_for_logging(url)
        logger.debug("%s %s", method, safe_url)

        try:
            async with self._session.request(
                method, url, headers=headers or {}, data=data
            ) as response:
                if discard_body:
                    await response.read()
                    text = ""
                else:
                    text = await response.text(errors="replace")
                status = response.status
                reason = response.reason
                retry_after = parse_retry_after(response.headers.get("Retry-After"))
        except aiohttp.ClientError as e:
            raise NetworkError(f"Network error: {e}", url=safe_url) from e
        except asyncio.TimeoutError as e:
            raise NetworkError("Request timeout", url=safe_url) from e

        logger.debug("%s %s -> %d (%d chars)", method, safe_url, status, len(text))

        if raise_for_status and status >= 400:
            raise map_http_exception(
                status,
                f"HTTP {status}: {reason}",
                url=safe_url,
                retry_after=retry_after,
            )

        return text

    async def get_text(self, url: str, **kwargs: Any) -> str:
        return await self.fetch_text("GET", url, **kwargs)

    async def post_text(self, url: str, **kwargs: Any) -> str:
        kwargs.setdefault("data", "")
        return await self.fetch_text("POST", url, **kwargs)
