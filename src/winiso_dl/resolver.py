"""下载链接解析器核心模块

实现 WinIsoResolver 主类：先校验组合，再按顺序执行各网络阶段，
任何阶段失败都会立即终止，不返回部分结果。
"""

import logging
from typing import Any, Callable, Optional, Union

from .async_adapter import smart_run
from .config import get_config
from .core.consumer import (
    download_referer,
    probe_anti_bot,
    resolve_download_link,
    resolve_product_id,
    resolve_sku,
)
from .core.enterprise import resolve_evaluation_link
from .core.network_client import HTTPClient
from .core.session import SessionContext
from .core.validator import validate_request
from .models import (
    Config,
    EnterpriseRelease,
    ResolutionRequest,
    ResolutionResult,
    ResolutionState,
)
from .retry import RetryConfig, RetryStats, create_retry_decorator
from .utils.text_scan import sanitize_url_for_logging

logger = logging.getLogger(__name__)

StateCallback = Callable[[ResolutionState], None]

_STATE_ORDER = [
    ResolutionState.NOT_STARTED,
    ResolutionState.PRODUCT_RESOLVED,
    ResolutionState.PROBED,
    ResolutionState.SKU_RESOLVED,
    ResolutionState.LINK_RESOLVED,
]


class ResolutionProgress:
    """一次解析的状态机，只允许向前推进"""

    def __init__(self, callback: Optional[StateCallback] = None):
        self.state = ResolutionState.NOT_STARTED
        self._callback = callback

    def advance(self, state: ResolutionState) -> None:
        if self.state is ResolutionState.FAILED:
            raise RuntimeError("Resolution already failed")
        if _STATE_ORDER.index(state) <= _STATE_ORDER.index(self.state):
            raise RuntimeError(f"Cannot move from {self.state.value} to {state.value}")
        self._set(state)

    def fail(self) -> None:
        if self.state is not ResolutionState.FAILED:
            self._set(ResolutionState.FAILED)

    def _set(self, state: ResolutionState) -> None:
        logger.debug("Resolution state: %s -> %s", self.state.value, state.value)
        self.state = state
        if self._callback is not None:
            self._callback(state)


class WinIsoResolver:
    """Windows 镜像下载链接解析器 - 异步版本

    支持依赖注入（配置、HTTP客户端）和状态回调
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        client: Optional[HTTPClient] = None,
        state_callback: Optional[StateCallback] = None,
    ):
        """初始化解析器

        Args:
            config: 配置对象，如果为None则使用全局配置
            client: HTTP客户端，如果为None则按配置创建
            state_callback: 每次状态变化时调用
        """
        self.config = config or get_config()
        self.client = client or HTTPClient(self.config)
        self.state_callback = state_callback
        self.retry_stats = RetryStats()

    async def __aenter__(self) -> "WinIsoResolver":
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """异步上下文管理器退出"""
        await self.client.close()

    def build_request(
        self,
        release: str,
        language: str = "English (United States)",
        architecture: str = "x86_64",
    ) -> ResolutionRequest:
        """从字符串构造请求，响应格式取自配置"""
        return ResolutionRequest.from_strings(
            release,
            language,
            architecture,
            response_format=self.config.response_format,
        )

    async def resolve(
        self, request: Union[ResolutionRequest, str]
    ) -> ResolutionResult:
        """主解析方法

        Args:
            request: 解析请求对象，或只给出版本的字符串

        Returns:
            下载地址与可选校验和

        Raises:
            WinIsoDlException: 各类解析失败，异常的 kind 标明失败类别
        """
        if isinstance(request, str):
            request = self.build_request(request)

        # 非法组合不发送任何请求
        validate_request(request)
        self.retry_stats.reset()

        retry = create_retry_decorator(
            RetryConfig.from_config(self.config),
            stats=self.retry_stats,
            on_retry=self._log_retry,
        )
        return await retry(self._resolve_once)(request)

    def _log_retry(self, attempt: int, error: Exception, delay: float) -> None:
        logger.warning(
            "Attempt %d failed (%s), retrying in %.1fs with a new session",
            attempt,
            error,
            delay,
        )

    async def _resolve_once(self, request: ResolutionRequest) -> ResolutionResult:
        session = SessionContext.create(user_agent=self.config.user_agent)
        progress = ResolutionProgress(self.state_callback)

        try:
            if isinstance(request.release, EnterpriseRelease):
                result = await resolve_evaluation_link(
                    self.client,
                    session,
                    request.release,
                    request.language,
                    request.architecture,
                    allow_positional_fallback=self.config.allow_positional_fallback,
                )
            else:
                result = await self._resolve_consumer(request, session, progress)
            progress.advance(ResolutionState.LINK_RESOLVED)
        except Exception:
            progress.fail()
            raise

        logger.info(
            "Resolved %s (%s, %s): %s",
            request.release,
            request.language,
            request.architecture,
            sanitize_url_for_logging(result.url),
        )
        return result

    async def _resolve_consumer(
        self,
        request: ResolutionRequest,
        session: SessionContext,
        progress: ResolutionProgress,
    ) -> ResolutionResult:
        product_id = await resolve_product_id(self.client, session, request.release)
        progress.advance(ResolutionState.PRODUCT_RESOLVED)

        await probe_anti_bot(self.client, session)
        progress.advance(ResolutionState.PROBED)

        sku = await resolve_sku(
            self.client,
            session,
            request.release,
            product_id,
            request.language,
            request.response_format,
        )
        progress.advance(ResolutionState.SKU_RESOLVED)

        return await resolve_download_link(
            self.client,
            session,
            request.release,
            sku.sku_id,
            request.language,
            request.architecture,
            request.response_format,
            referer=download_referer(request.release, sku),
        )


# 便捷函数
async def resolve_image(
    release: str,
    language: str = "English (United States)",
    architecture: str = "x86_64",
    config: Optional[Config] = None,
) -> ResolutionResult:
    """解析单个镜像的下载地址"""
    async with WinIsoResolver(config=config) as resolver:
        request = resolver.build_request(release, language, architecture)
        return await resolver.resolve(request)


def resolve_image_sync(
    release: str,
    language: str = "English (United States)",
    architecture: str = "x86_64",
    config: Optional[Config] = None,
) -> ResolutionResult:
    """同步版本的解析函数

    在任何环境中都可以安全调用，包括已有事件循环的环境
    """
    return smart_run(resolve_image(release, language, architecture, config))
