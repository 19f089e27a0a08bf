"""数据模型定义

版本、语言、架构使用枚举（按产品族划分），请求/结果与配置使用 Pydantic 模型
"""

from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import (
    InvalidArchitectureError,
    InvalidLanguageError,
    InvalidReleaseError,
)


class ReleaseFamily(str, Enum):
    """产品族: consumer 走下载门户，enterprise 走评估中心"""

    CONSUMER = "consumer"
    ENTERPRISE = "enterprise"


class ResponseFormat(str, Enum):
    """厂商接口的两代响应格式"""

    LEGACY_HTML = "html"
    CONNECTOR_JSON = "json"


class ConsumerRelease(Enum):
    """消费者版本，值为命令行短标记"""

    EIGHT = "8"
    TEN = "10"
    ELEVEN = "11"

    @property
    def family(self) -> ReleaseFamily:
        return ReleaseFamily.CONSUMER

    @property
    def display_name(self) -> str:
        return _CONSUMER_RELEASE_NAMES[self]

    def __str__(self) -> str:
        return self.display_name


_CONSUMER_RELEASE_NAMES = {
    ConsumerRelease.EIGHT: "Windows 8.1",
    ConsumerRelease.TEN: "Windows 10",
    ConsumerRelease.ELEVEN: "Windows 11",
}


class CustomProduct(BaseModel):
    """调用方直接给出的产品版本ID，跳过产品ID发现阶段"""

    product_id: str = Field(..., description="厂商内部的数字产品版本ID")

    model_config = ConfigDict(frozen=True)

    @field_validator("product_id")
    @classmethod
    def validate_product_id(cls, v: str) -> str:
        """产品ID必须为纯 ASCII 数字"""
        v = v.strip()
        if not (v.isascii() and v.isdigit()):
            raise ValueError("Product edition id must be numeric")
        return v

    @property
    def family(self) -> ReleaseFamily:
        return ReleaseFamily.CONSUMER

    @property
    def display_name(self) -> str:
        return self.product_id

    def __str__(self) -> str:
        return self.product_id


class EnterpriseRelease(Enum):
    """企业版与服务器版，值为命令行短标记"""

    ELEVEN_ENTERPRISE = "11-enterprise"
    TEN_ENTERPRISE = "10-enterprise"
    TEN_LTSC = "10-ltsc"
    SERVER_2022 = "server-2022"
    SERVER_2019 = "server-2019"
    SERVER_2016 = "server-2016"
    SERVER_2012_R2 = "server-2012-r2"

    @property
    def family(self) -> ReleaseFamily:
        return ReleaseFamily.ENTERPRISE

    @property
    def display_name(self) -> str:
        return _ENTERPRISE_RELEASE_NAMES[self]

    def __str__(self) -> str:
        return self.display_name


_ENTERPRISE_RELEASE_NAMES = {
    EnterpriseRelease.ELEVEN_ENTERPRISE: "Windows 11 Enterprise",
    EnterpriseRelease.TEN_ENTERPRISE: "Windows 10 Enterprise",
    EnterpriseRelease.TEN_LTSC: "Windows 10 LTSC",
    EnterpriseRelease.SERVER_2022: "Windows Server 2022",
    EnterpriseRelease.SERVER_2019: "Windows Server 2019",
    EnterpriseRelease.SERVER_2016: "Windows Server 2016",
    EnterpriseRelease.SERVER_2012_R2: "Windows Server 2012 R2",
}


Release = Union[ConsumerRelease, CustomProduct, EnterpriseRelease]


class ConsumerLanguage(Enum):
    """下载门户的语言，值为厂商页面上的显示名称"""

    ARABIC = "Arabic"
    BRAZILIAN_PORTUGUESE = "Brazilian Portuguese"
    BULGARIAN = "Bulgarian"
    CROATIAN = "Croatian"
    CZECH = "Czech"
    DANISH = "Danish"
    DUTCH = "Dutch"
    ENGLISH_INTERNATIONAL = "English International"
    ENGLISH_US = "English (United States)"
    ESTONIAN = "Estonian"
    FINNISH = "Finnish"
    FRENCH = "French"
    FRENCH_CANADIAN = "French Canadian"
    GERMAN = "German"
    GREEK = "Greek"
    HEBREW = "Hebrew"
    HUNGARIAN = "Hungarian"
    ITALIAN = "Italian"
    JAPANESE = "Japanese"
    KOREAN = "Korean"
    LATVIAN = "Latvian"
    LITHUANIAN = "Lithuanian"
    MEXICAN_SPANISH = "Spanish (Mexico)"
    NORWEGIAN = "Norwegian"
    POLISH = "Polish"
    PORTUGUESE = "Portuguese"
    ROMANIAN = "Romanian"
    RUSSIAN = "Russian"
    SERBIAN_LATIN = "Serbian Latin"
    SIMPLIFIED_CHINESE = "Chinese (Simplified)"
    SLOVAK = "Slovak"
    SLOVENIAN = "Slovenian"
    SPANISH = "Spanish"
    SWEDISH = "Swedish"
    THAI = "Thai"
    TRADITIONAL_CHINESE = "Chinese (Traditional)"
    TURKISH = "Turkish"
    UKRAINIAN = "Ukrainian"

    @property
    def family(self) -> ReleaseFamily:
        return ReleaseFamily.CONSUMER

    @property
    def hash_label(self) -> str:
        """下载页校验和表格中使用的语言标签"""
        return _CONSUMER_HASH_LABELS.get(self, self.value)

    def __str__(self) -> str:
        return self.value


_CONSUMER_HASH_LABELS = {
    ConsumerLanguage.ENGLISH_US: "English",
    ConsumerLanguage.SIMPLIFIED_CHINESE: "Chinese Simplified",
    ConsumerLanguage.TRADITIONAL_CHINESE: "Chinese Traditional",
}


class EnterpriseLanguage(Enum):
    """评估中心的语言"""

    BRAZILIAN_PORTUGUESE = "Portuguese (Brazil)"
    ENGLISH_US = "English (United States)"
    ENGLISH_GB = "English (Great Britain)"
    FRENCH = "French"
    GERMAN = "German"
    ITALIAN = "Italian"
    JAPANESE = "Japanese"
    KOREAN = "Korean"
    RUSSIAN = "Russian"
    SIMPLIFIED_CHINESE = "Chinese (Simplified)"
    SPANISH = "Spanish"
    TRADITIONAL_CHINESE = "Chinese (Traditional)"

    @property
    def family(self) -> ReleaseFamily:
        return ReleaseFamily.ENTERPRISE

    @property
    def culture(self) -> str:
        return _ENTERPRISE_LOCALES[self][0]

    @property
    def country(self) -> str:
        return _ENTERPRISE_LOCALES[self][1]

    def __str__(self) -> str:
        return self.value


_ENTERPRISE_LOCALES = {
    EnterpriseLanguage.BRAZILIAN_PORTUGUESE: ("pt-br", "BR"),
    EnterpriseLanguage.ENGLISH_GB: ("en-gb", "GB"),
    EnterpriseLanguage.ENGLISH_US: ("en-us", "US"),
    EnterpriseLanguage.FRENCH: ("fr-fr", "FR"),
    EnterpriseLanguage.GERMAN: ("de-de", "DE"),
    EnterpriseLanguage.ITALIAN: ("it-it", "IT"),
    EnterpriseLanguage.JAPANESE: ("ja-jp", "JP"),
    EnterpriseLanguage.KOREAN: ("ko-kr", "KR"),
    EnterpriseLanguage.RUSSIAN: ("ru-ru", "RU"),
    EnterpriseLanguage.SIMPLIFIED_CHINESE: ("zh-cn", "CN"),
    EnterpriseLanguage.SPANISH: ("es-es", "ES"),
    EnterpriseLanguage.TRADITIONAL_CHINESE: ("zh-tw", "TW"),
}


Language = Union[ConsumerLanguage, EnterpriseLanguage]


class Architecture(Enum):
    """CPU 架构"""

    X86_64 = "x86_64"
    I686 = "i686"

    @property
    def tag(self) -> str:
        """下载链接文件名中的架构标记"""
        return "x64" if self is Architecture.X86_64 else "x32"

    @property
    def bits(self) -> str:
        return "64" if self is Architecture.X86_64 else "32"

    def __str__(self) -> str:
        return self.value


_ARCHITECTURE_ALIASES = {
    "x86_64": Architecture.X86_64,
    "x86-64": Architecture.X86_64,
    "x64": Architecture.X86_64,
    "amd64": Architecture.X86_64,
    "64": Architecture.X86_64,
    "64-bit": Architecture.X86_64,
    "64bit": Architecture.X86_64,
    "i686": Architecture.I686,
    "i386": Architecture.I686,
    "x86": Architecture.I686,
    "x32": Architecture.I686,
    "32": Architecture.I686,
    "32-bit": Architecture.I686,
    "32bit": Architecture.I686,
}


def parse_release(token: str) -> Release:
    """解析版本标记，支持短标记（"11"、"10-ltsc"）、显示名称和纯数字产品ID"""
    text = token.strip()
    lowered = text.lower()

    for release in (*ConsumerRelease, *EnterpriseRelease):
        if lowered == release.value or lowered == release.display_name.lower():
            return release

    if text.isascii() and text.isdigit():
        return CustomProduct(product_id=text)

    raise InvalidReleaseError(f"Unrecognized release: {token}", value=token)


def parse_language(
    token: str, family: Optional[ReleaseFamily] = None
) -> Language:
    """按显示名称解析语言（不区分大小写）

    同一个名称可能在两个产品族中都存在，此时优先返回 family 指定的产品族。
    只在另一产品族中存在的名称仍会被返回，由校验阶段报告产品族不匹配。
    """
    lowered = token.strip().lower()
    families: List[type] = [ConsumerLanguage, EnterpriseLanguage]
    if family is ReleaseFamily.ENTERPRISE:
        families.reverse()

    for language_cls in families:
        for language in language_cls:
            if language.value.lower() == lowered:
                return language

    raise InvalidLanguageError(f"Unrecognized language: {token}", value=token)


def parse_architecture(token: str) -> Architecture:
    """解析架构别名"""
    try:
        return _ARCHITECTURE_ALIASES[token.strip().lower()]
    except KeyError:
        raise InvalidArchitectureError(
            f"Unrecognized architecture: {token}", value=token
        ) from None


class ResolutionState(str, Enum):
    """解析流水线的状态，只能向前推进"""

    NOT_STARTED = "not_started"
    PRODUCT_RESOLVED = "product_resolved"
    PROBED = "probed"
    SKU_RESOLVED = "sku_resolved"
    LINK_RESOLVED = "link_resolved"
    FAILED = "failed"


class ResolutionRequest(BaseModel):
    """解析请求模型"""

    release: Release = Field(..., description="目标版本")
    language: Language = Field(..., description="显示语言")
    architecture: Architecture = Field(
        default=Architecture.X86_64, description="CPU架构"
    )
    response_format: ResponseFormat = Field(
        default=ResponseFormat.CONNECTOR_JSON, description="厂商接口响应格式"
    )

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_strings(
        cls,
        release: str,
        language: str = "English (United States)",
        architecture: str = "x86_64",
        response_format: ResponseFormat = ResponseFormat.CONNECTOR_JSON,
    ) -> "ResolutionRequest":
        """从命令行风格的字符串构造请求"""
        parsed_release = parse_release(release)
        return cls(
            release=parsed_release,
            language=parse_language(language, parsed_release.family),
            architecture=parse_architecture(architecture),
            response_format=response_format,
        )


class ResolutionResult(BaseModel):
    """解析结果模型"""

    url: str = Field(..., description="带签名的限时下载地址")
    hash: Optional[str] = Field(None, description="SHA-256 校验和（仅旧版HTML格式提供）")

    model_config = ConfigDict(frozen=True)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v:
            raise ValueError("Download URL must not be empty")
        return v

    def render(self) -> str:
        """命令行输出格式: url [hash]"""
        if self.hash:
            return f"{self.url} {self.hash}"
        return self.url


class SkuRecord(BaseModel):
    """software-download-connector 返回的单个 SKU"""

    display_name: str = Field(default="", alias="ProductDisplayName")
    id: str = Field(..., alias="Id")
    localized_language: str = Field(default="", alias="LocalizedLanguage")

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class SkuListing(BaseModel):
    skus: List[SkuRecord] = Field(default_factory=list, alias="Skus")

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class DownloadOption(BaseModel):
    uri: str = Field(..., alias="Uri")

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class DownloadOptionListing(BaseModel):
    options: List[DownloadOption] = Field(
        default_factory=list, alias="ProductDownloadOptions"
    )

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Config(BaseModel):
    """应用配置模型"""

    # 网络配置，未设置时使用 aiohttp 默认超时
    timeout: Optional[float] = Field(default=None, description="请求总超时时间(秒)")
    ssl_verify: bool = Field(default=True, description="是否校验证书")
    user_agent: Optional[str] = Field(
        default=None, description="覆盖自动推算的浏览器用户代理"
    )

    # 解析配置
    response_format: ResponseFormat = Field(
        default=ResponseFormat.CONNECTOR_JSON, description="厂商接口响应格式"
    )
    allow_positional_fallback: bool = Field(
        default=False, description="按位置选取链接失败时是否退回第一个候选"
    )

    # 重试配置，1 表示只尝试一次
    max_attempts: int = Field(default=1, description="整条流水线的最大尝试次数")
    retry_base_delay: float = Field(default=1.0, description="重试基础延迟(秒)")

    # 日志
    log_level: str = Field(default="WARNING", description="日志级别")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("Value must be positive")
        return v

    @field_validator("max_attempts")
    @classmethod
    def validate_max_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_attempts must be at least 1")
        return v

    @field_validator("retry_base_delay")
    @classmethod
    def validate_base_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("retry_base_delay cannot be negative")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level
