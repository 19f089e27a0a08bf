"""异常定义模块

定义应用专用的异常类，每个异常都带有 ErrorKind，调用方可以据此区分失败类别
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """错误类别"""

    # 输入解析
    INVALID_RELEASE = "invalid_release"
    INVALID_LANGUAGE = "invalid_language"
    INVALID_ARCHITECTURE = "invalid_architecture"
    # 组合校验
    UNSUPPORTED_ARCHITECTURE = "unsupported_architecture"
    UNSUPPORTED_LANGUAGE = "unsupported_language"
    LANGUAGE_FAMILY_MISMATCH = "language_family_mismatch"
    # 响应内容
    EMPTY_RESPONSE = "empty_response"
    BLOCKED_REQUEST = "blocked_request"
    MALFORMED_RESPONSE = "malformed_response"
    PRODUCT_ID_NOT_FOUND = "product_id_not_found"
    SKU_ID_NOT_FOUND = "sku_id_not_found"
    DOWNLOAD_URL_NOT_FOUND = "download_url_not_found"
    # 其他
    TRANSPORT = "transport"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


class WinIsoDlException(Exception):
    """WinISO-DL 基础异常类"""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class ValidationError(WinIsoDlException):
    """输入解析异常 - 无法识别的 release/language/arch 字符串"""

    def __init__(
        self,
        message: str,
        value: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.value = value


class InvalidReleaseError(ValidationError):
    kind = ErrorKind.INVALID_RELEASE


class InvalidLanguageError(ValidationError):
    kind = ErrorKind.INVALID_LANGUAGE


class InvalidArchitectureError(ValidationError):
    kind = ErrorKind.INVALID_ARCHITECTURE


class CompatibilityError(WinIsoDlException):
    """组合校验异常 - 记录出问题的 release 和 language/arch"""

    def __init__(
        self,
        message: str,
        release: Optional[str] = None,
        offending: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.release = release
        self.offending = offending


class UnsupportedArchitectureError(CompatibilityError):
    """该版本不提供所请求的架构"""

    kind = ErrorKind.UNSUPPORTED_ARCHITECTURE

    def __init__(self, release: str, architecture: str):
        super().__init__(
            f"{release} is not available for the {architecture} architecture",
            release=release,
            offending=architecture,
        )


class UnsupportedLanguageError(CompatibilityError):
    """该版本不提供所请求的语言"""

    kind = ErrorKind.UNSUPPORTED_LANGUAGE

    def __init__(self, release: str, language: str):
        super().__init__(
            f"{release} is not available in {language}",
            release=release,
            offending=language,
        )


class LanguageFamilyMismatchError(CompatibilityError):
    """语言与版本不属于同一产品族"""

    kind = ErrorKind.LANGUAGE_FAMILY_MISMATCH

    def __init__(self, release: str, language: str):
        super().__init__(
            f"Language {language} does not belong to the same product family as {release}",
            release=release,
            offending=language,
        )


class ResponseError(WinIsoDlException):
    """响应内容异常"""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        stage: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.url = url
        self.stage = stage

    def __str__(self) -> str:
        parts = [self.message]
        if self.stage:
            parts.append(f"Stage: {self.stage}")
        if self.url:
            parts.append(f"URL: {self.url}")
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"Context: {context_str}")
        return " | ".join(parts)


class EmptyResponseError(ResponseError):
    kind = ErrorKind.EMPTY_RESPONSE


class BlockedRequestError(ResponseError):
    """被厂商的反自动化机制拦截"""

    kind = ErrorKind.BLOCKED_REQUEST


class MalformedResponseError(ResponseError):
    """JSON 响应无法解码或结构不符"""

    kind = ErrorKind.MALFORMED_RESPONSE


class ParseError(ResponseError):
    """页面中未找到期望的片段"""


class ProductIdNotFoundError(ParseError):
    kind = ErrorKind.PRODUCT_ID_NOT_FOUND


class SkuIdNotFoundError(ParseError):
    kind = ErrorKind.SKU_ID_NOT_FOUND


class DownloadUrlNotFoundError(ParseError):
    kind = ErrorKind.DOWNLOAD_URL_NOT_FOUND


class NetworkError(WinIsoDlException):
    """网络请求异常"""

    kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.url = url
        self.status_code = status_code

    def __str__(self) -> str:
        parts = [self.message]
        if self.url:
            parts.append(f"URL: {self.url}")
        if self.status_code:
            parts.append(f"Status: {self.status_code}")
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"Context: {context_str}")
        return " | ".join(parts)


class ForbiddenError(NetworkError):
    """服务端拒绝访问 (401/403)"""


class NotFoundError(NetworkError):
    """资源未找到异常"""


class RateLimitError(NetworkError):
    """请求频率限制异常"""

    def __init__(
        self,
        message: str,
        retry_after: Optional[int] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after

    def __str__(self) -> str:
        text = super().__str__()
        if self.retry_after:
            text += f" | Retry after: {self.retry_after} seconds"
        return text


class ConfigurationError(WinIsoDlException):
    """配置异常"""

    kind = ErrorKind.CONFIGURATION

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.config_key = config_key
        self.config_value = config_value

    def __str__(self) -> str:
        parts = [self.message]
        if self.config_key:
            parts.append(f"Key: {self.config_key}")
        if self.config_value is not None:
            parts.append(f"Value: {self.config_value}")
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"Context: {context_str}")
        return " | ".join(parts)


# 异常映射表 - HTTP状态码到内部异常
EXCEPTION_MAPPING = {
    401: ForbiddenError,
    403: ForbiddenError,
    404: NotFoundError,
    429: RateLimitError,
}


def map_http_exception(
    status_code: int, message: str, retry_after: Optional[int] = None, **kwargs
) -> NetworkError:
    """根据HTTP状态码映射异常，retry_after 只交给 RateLimitError"""
    exception_class = EXCEPTION_MAPPING.get(status_code, NetworkError)
    if exception_class is RateLimitError:
        return RateLimitError(
            message, retry_after=retry_after, status_code=status_code, **kwargs
        )
    return exception_class(message, status_code=status_code, **kwargs)
