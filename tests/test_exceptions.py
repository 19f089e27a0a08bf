"""测试异常定义"""

import pytest

from winiso_dl.exceptions import (
    BlockedRequestError,
    CompatibilityError,
    ConfigurationError,
    DownloadUrlNotFoundError,
    EmptyResponseError,
    ErrorKind,
    ForbiddenError,
    InvalidArchitectureError,
    InvalidLanguageError,
    InvalidReleaseError,
    LanguageFamilyMismatchError,
    MalformedResponseError,
    NetworkError,
    NotFoundError,
    ParseError,
    ProductIdNotFoundError,
    RateLimitError,
    ResponseError,
    SkuIdNotFoundError,
    UnsupportedArchitectureError,
    UnsupportedLanguageError,
    ValidationError,
    WinIsoDlException,
    map_http_exception,
)


class TestErrorKinds:
    """每个异常都带有可区分的类别"""

    @pytest.mark.parametrize(
        "error, kind",
        [
            (InvalidReleaseError("x"), ErrorKind.INVALID_RELEASE),
            (InvalidLanguageError("x"), ErrorKind.INVALID_LANGUAGE),
            (InvalidArchitectureError("x"), ErrorKind.INVALID_ARCHITECTURE),
            (UnsupportedArchitectureError("Windows 11", "i686"), ErrorKind.UNSUPPORTED_ARCHITECTURE),
            (UnsupportedLanguageError("Windows 10 LTSC", "Russian"), ErrorKind.UNSUPPORTED_LANGUAGE),
            (LanguageFamilyMismatchError("Windows 10", "Korean"), ErrorKind.LANGUAGE_FAMILY_MISMATCH),
            (EmptyResponseError("x"), ErrorKind.EMPTY_RESPONSE),
            (BlockedRequestError("x"), ErrorKind.BLOCKED_REQUEST),
            (MalformedResponseError("x"), ErrorKind.MALFORMED_RESPONSE),
            (ProductIdNotFoundError("x"), ErrorKind.PRODUCT_ID_NOT_FOUND),
            (SkuIdNotFoundError("x"), ErrorKind.SKU_ID_NOT_FOUND),
            (DownloadUrlNotFoundError("x"), ErrorKind.DOWNLOAD_URL_NOT_FOUND),
            (NetworkError("x"), ErrorKind.TRANSPORT),
            (RateLimitError("x"), ErrorKind.TRANSPORT),
            (ConfigurationError("x"), ErrorKind.CONFIGURATION),
        ],
    )
    def test_kind(self, error, kind):
        assert error.kind is kind
        assert isinstance(error, WinIsoDlException)

    def test_hierarchy(self):
        assert issubclass(InvalidReleaseError, ValidationError)
        assert issubclass(UnsupportedLanguageError, CompatibilityError)
        assert issubclass(SkuIdNotFoundError, ParseError)
        assert issubclass(ParseError, ResponseError)
        assert issubclass(BlockedRequestError, ResponseError)
        assert not issubclass(BlockedRequestError, ParseError)


class TestExceptionMessages:
    """测试异常信息格式"""

    def test_base_with_context(self):
        error = WinIsoDlException("Failed", {"stage": "sku"})
        assert str(error) == "Failed (Context: stage=sku)"

    def test_response_error(self):
        error = SkuIdNotFoundError("No SKU", url="https://example.com/api", stage="sku_json")
        assert str(error) == "No SKU | Stage: sku_json | URL: https://example.com/api"

    def test_compatibility_messages(self):
        assert str(UnsupportedLanguageError("Windows 10 LTSC", "Russian")) == (
            "Windows 10 LTSC is not available in Russian"
        )
        assert "same product family" in str(LanguageFamilyMismatchError("Windows 10", "Korean"))

    def test_network_error(self):
        error = NetworkError("HTTP 503", url="https://example.com", status_code=503)
        assert str(error) == "HTTP 503 | URL: https://example.com | Status: 503"

    def test_rate_limit_retry_after(self):
        error = RateLimitError("Too many", retry_after=30)
        assert "Retry after: 30 seconds" in str(error)

    def test_configuration_error(self):
        error = ConfigurationError("Invalid", config_key="max_attempts", config_value=0)
        assert str(error) == "Invalid | Key: max_attempts | Value: 0"


class TestHttpMapping:
    """测试HTTP状态码映射"""

    @pytest.mark.parametrize(
        "status, error_class",
        [(401, ForbiddenError), (403, ForbiddenError), (404, NotFoundError), (429, RateLimitError), (502, NetworkError)],
    )
    def test_mapping(self, status, error_class):
        error = map_http_exception(status, f"HTTP {status}", url="https://example.com")

        assert type(error) is error_class
        assert error.status_code == status
        assert error.url == "https://example.com"

    def test_retry_after_only_for_rate_limit(self):
        rate_limited = map_http_exception(429, "HTTP 429", retry_after=30)
        forbidden = map_http_exception(403, "HTTP 403", retry_after=30)

        assert rate_limited.retry_after == 30
        assert "Retry after: 30 seconds" in str(rate_limited)
        assert not hasattr(forbidden, "retry_after")
