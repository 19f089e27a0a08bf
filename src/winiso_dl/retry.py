"""重试机制模块

默认只尝试一次。配置 max_attempts > 1 时，对传输失败和拦截页整条流水线重试，
每次重试都使用新的会话上下文；单个阶段从不单独重试。
"""

import asyncio
import random
from typing import Any, Callable, Optional, TypeVar

import aiohttp
from pydantic import BaseModel, Field, field_validator

from .exceptions import BlockedRequestError, ErrorKind, NetworkError, WinIsoDlException

F = TypeVar("F", bound=Callable[..., Any])

RETRYABLE_STATUS_CODES = (429, 502, 503, 504)


class RetryConfig(BaseModel):
    """重试配置"""

    max_attempts: int = Field(default=1, description="最大尝试次数")
    base_delay: float = Field(default=1.0, description="基础延迟(秒)")
    backoff_factor: float = Field(default=2.0, description="退避因子")
    max_delay: float = Field(default=60.0, description="最大延迟(秒)")
    jitter: bool = Field(default=True, description="是否添加随机抖动")

    @field_validator("max_attempts")
    @classmethod
    def validate_max_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_attempts must be at least 1")
        return v

    @field_validator("base_delay")
    @classmethod
    def validate_base_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("base_delay cannot be negative")
        return v

    @classmethod
    def from_config(cls, config: Any) -> "RetryConfig":
        """从现有配置对象创建重试配置"""
        return cls(
            max_attempts=getattr(config, "max_attempts", 1),
            base_delay=getattr(config, "retry_base_delay", 1.0),
        )

    def delay_for(self, attempt: int) -> float:
        """第 attempt 次失败后的等待时间（attempt 从 0 开始）"""
        delay = min(self.base_delay * (self.backoff_factor**attempt), self.max_delay)
        if self.jitter:
            delay *= 0.5 + random.random() * 0.5
        return delay


class RetryStats(BaseModel):
    """最近一次 resolve 调用的尝试记录"""

    total_attempts: int = Field(default=0, description="总尝试次数")
    failed_attempts: int = Field(default=0, description="失败次数")
    total_delay: float = Field(default=0.0, description="累计等待时间(秒)")
    last_error: Optional[str] = Field(default=None, description="最后的错误信息")
    last_error_kind: Optional[ErrorKind] = Field(default=None, description="最后的错误类别")

    def reset(self) -> None:
        for name, field in type(self).model_fields.items():
            setattr(self, name, field.default)

    def record_success(self) -> None:
        self.total_attempts += 1

    def record_failure(self, error: Exception) -> None:
        self.total_attempts += 1
        self.failed_attempts += 1
        self.last_error = str(error)
        self.last_error_kind = getattr(error, "kind", None)

    def record_delay(self, delay: float) -> None:
        self.total_delay += delay


def is_retryable_error(error: BaseException) -> bool:
    """判断错误是否可重试"""

    # 拦截页换一个会话可能放行
    if isinstance(error, BlockedRequestError):
        return True

    # 网络错误，根据状态码判断
    if isinstance(error, NetworkError):
        if error.status_code is None:
            return True
        return error.status_code in RETRYABLE_STATUS_CODES

    # 其他应用异常（校验、解析）重试也不会改变结果
    if isinstance(error, WinIsoDlException):
        return False

    if isinstance(error, (aiohttp.ClientConnectionError, asyncio.TimeoutError)):
        return True

    if isinstance(error, (ConnectionError, TimeoutError)):
        return True

    # 检查错误链
    if error.__cause__ is not None:
        return is_retryable_error(error.__cause__)

    return False


def create_retry_decorator(
    config: RetryConfig,
    stats: Optional[RetryStats] = None,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None,
) -> Callable[[F], F]:
    """创建重试装饰器

    Args:
        config: 重试配置
        stats: 统计对象，默认新建
        on_retry: 每次重试前的回调 (attempt, error, delay)
    """

    if stats is None:
        stats = RetryStats()

    def decorator(func: F) -> F:
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(config.max_attempts):
                try:
                    result = await func(*args, **kwargs)
                    stats.record_success()
                    return result

                except Exception as e:
                    stats.record_failure(e)

                    # 不可重试或已是最后一次尝试，直接抛出
                    if not is_retryable_error(e) or attempt == config.max_attempts - 1:
                        raise

                    delay = config.delay_for(attempt)
                    if on_retry is not None:
                        on_retry(attempt + 1, e, delay)
                    stats.record_delay(delay)
                    await asyncio.sleep(delay)

            raise RuntimeError("Unexpected retry loop completion")

        return wrapper  # type: ignore

    return decorator
