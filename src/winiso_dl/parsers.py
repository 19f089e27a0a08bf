"""页面解析器模块

采用策略模式：每个阶段按响应格式（旧版HTML / connector JSON）选择对应的解析器，
新的页面格式只需要新增一个解析器实现。
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from .exceptions import (
    BlockedRequestError,
    DownloadUrlNotFoundError,
    EmptyResponseError,
    MalformedResponseError,
    ProductIdNotFoundError,
    SkuIdNotFoundError,
)
from .models import (
    Architecture,
    ConsumerLanguage,
    DownloadOptionListing,
    EnterpriseLanguage,
    EnterpriseRelease,
    Language,
    ResolutionResult,
    ResponseFormat,
    SkuListing,
)
from .utils.text_scan import (
    DOWNLOAD_LINK_SCAN_LIMIT,
    PRODUCT_PAGE_SCAN_LIMIT,
    SKU_TABLE_SCAN_LIMIT,
    bounded_prefix,
    clean_url,
    contains_blocked_message,
    find_line_containing,
    first_match,
    iter_fragments,
    nth_field,
    value_before_marker,
)

logger = logging.getLogger(__name__)


def ensure_usable_body(body: str, url: Optional[str] = None, stage: str = "") -> str:
    """解析前检查空响应和拦截页

    Raises:
        EmptyResponseError: 响应体为空
        BlockedRequestError: 响应体是厂商的拦截提示
    """
    if not body:
        raise EmptyResponseError("Received an empty response", url=url, stage=stage)
    if contains_blocked_message(body):
        raise BlockedRequestError(
            "The request was blocked by the vendor's anti-automation checks",
            url=url,
            stage=stage,
        )
    return body


def _load_json(body: str, model: Type[BaseModel], url: Optional[str], stage: str) -> Any:
    try:
        return model.model_validate(json.loads(body))
    except json.JSONDecodeError as e:
        raise MalformedResponseError(
            f"Failed to decode JSON response: {e}", url=url, stage=stage
        ) from e
    except PydanticValidationError as e:
        raise MalformedResponseError(
            f"Unexpected JSON structure: {e.error_count()} validation error(s)",
            url=url,
            stage=stage,
        ) from e


class ProductIdParser:
    """从产品目录页的下拉选项中提取产品版本ID"""

    OPTION_SEPARATOR = "option"
    VALUE_OPENER = 'value="'
    WINDOWS_MARKER = '">Windows'

    name = "product_id"

    def extract_product_id(self, html_content: str, url: Optional[str] = None) -> str:
        """返回第一个 Windows 产品选项的 value

        Raises:
            ProductIdNotFoundError: 扫描范围内没有匹配的选项
        """
        scanned = bounded_prefix(html_content, PRODUCT_PAGE_SCAN_LIMIT)
        product_id = first_match(
            self._option_value(fragment)
            for fragment in iter_fragments(scanned, self.OPTION_SEPARATOR)
        )
        if product_id is None:
            raise ProductIdNotFoundError(
                "Product edition id not found", url=url, stage=self.name
            )
        return product_id

    def _option_value(self, fragment: str) -> Optional[str]:
        value = value_before_marker(fragment, self.VALUE_OPENER, self.WINDOWS_MARKER)
        if value is None:
            return None
        # 只取引号内的值，丢弃同一标签上的其他属性
        return value.split('"', 1)[0]


class SkuMatch(BaseModel):
    """SKU 查询结果"""

    sku_id: str
    display_name: str = ""

    model_config = ConfigDict(frozen=True)


class SkuParser(ABC):
    """SKU 解析器协议接口"""

    @property
    @abstractmethod
    def name(self) -> str:
        """解析器名称"""

    @abstractmethod
    def extract_sku(
        self, body: str, language: Language, url: Optional[str] = None
    ) -> SkuMatch:
        """按语言显示名称查找 SKU"""


class HtmlSkuParser(SkuParser):
    """旧版 content-inclusion 接口返回的 HTML 片段"""

    QUOTE_ENTITY = "&quot;"
    SKU_FIELD_INDEX = 3

    @property
    def name(self) -> str:
        return "sku_html"

    def extract_sku(
        self, body: str, language: Language, url: Optional[str] = None
    ) -> SkuMatch:
        scanned = bounded_prefix(body, SKU_TABLE_SCAN_LIMIT)
        line = find_line_containing(scanned, language.value)
        sku_id = None
        if line is not None:
            sku_id = nth_field(line, self.QUOTE_ENTITY, self.SKU_FIELD_INDEX)
        if not sku_id:
            raise SkuIdNotFoundError(
                f"No SKU found for language {language.value}",
                url=url,
                stage=self.name,
            )
        return SkuMatch(sku_id=sku_id)


class JsonSkuParser(SkuParser):
    """software-download-connector 返回的 JSON 文档"""

    @property
    def name(self) -> str:
        return "sku_json"

    def extract_sku(
        self, body: str, language: Language, url: Optional[str] = None
    ) -> SkuMatch:
        listing: SkuListing = _load_json(body, SkuListing, url, self.name)
        for record in listing.skus:
            # 区分大小写的精确匹配
            if record.localized_language == language.value:
                return SkuMatch(sku_id=record.id, display_name=record.display_name)

        raise SkuIdNotFoundError(
            f"No SKU found for language {language.value}",
            url=url,
            stage=self.name,
            context={"available": len(listing.skus)},
        )


class DownloadLinkParser(ABC):
    """下载链接解析器协议接口"""

    @property
    @abstractmethod
    def name(self) -> str:
        """解析器名称"""

    @abstractmethod
    def extract_link(
        self,
        body: str,
        language: Language,
        architecture: Architecture,
        url: Optional[str] = None,
    ) -> ResolutionResult:
        """提取指定架构的下载链接"""


class HtmlDownloadLinkParser(DownloadLinkParser):
    """旧版 HTML 下载页：带签名的 ISO 链接，以及可选的内联校验和"""

    URL_PATTERN = re.compile(
        r'href="(https://software\.download\.prss\.microsoft\.com/dbazure[^"]*)"'
    )
    HASH_PATTERN = re.compile(
        r">([A-F0-9]{64})</td></tr><tr><td>([^36]*)(64|32)-bit"
    )

    @property
    def name(self) -> str:
        return "download_link_html"

    def extract_link(
        self,
        body: str,
        language: Language,
        architecture: Architecture,
        url: Optional[str] = None,
    ) -> ResolutionResult:
        scanned = bounded_prefix(body, DOWNLOAD_LINK_SCAN_LIMIT)
        download_url = None
        for match in self.URL_PATTERN.finditer(scanned):
            candidate = match.group(1)
            iso_index = candidate.find(".iso")
            if iso_index != -1 and architecture.tag in candidate[:iso_index]:
                download_url = candidate
                break

        if download_url is None:
            raise DownloadUrlNotFoundError(
                f"No {architecture.tag} download link found",
                url=url,
                stage=self.name,
            )

        return ResolutionResult(
            url=clean_url(download_url),
            hash=self.extract_hash(body, language, architecture),
        )

    def extract_hash(
        self, body: str, language: Language, architecture: Architecture
    ) -> Optional[str]:
        """在校验和表格中查找语言和位数都匹配的 SHA-256"""
        label = (
            language.hash_label
            if isinstance(language, ConsumerLanguage)
            else language.value
        )
        for match in self.HASH_PATTERN.finditer(body):
            if match.group(2).strip() == label and match.group(3) == architecture.bits:
                return match.group(1)
        return None


class JsonDownloadLinkParser(DownloadLinkParser):
    """connector JSON 下载选项，不包含校验和"""

    @property
    def name(self) -> str:
        return "download_link_json"

    def extract_link(
        self,
        body: str,
        language: Language,
        architecture: Architecture,
        url: Optional[str] = None,
    ) -> ResolutionResult:
        listing: DownloadOptionListing = _load_json(
            body, DownloadOptionListing, url, self.name
        )
        for option in listing.options:
            if architecture.tag in option.uri:
                return ResolutionResult(url=clean_url(option.uri), hash=None)

        raise DownloadUrlNotFoundError(
            f"No {architecture.tag} download option found",
            url=url,
            stage=self.name,
            context={"available": len(listing.options)},
        )


class EvalCenterLinkParser:
    """评估中心页面：按语言区域和位数筛选 fwlink 链接，再按位置选取"""

    LINK_PATTERN = re.compile(
        r'href="(https://go\.microsoft\.com/fwlink/p/\?LinkID=\d{7}&clcid=0x\w{3}'
        r'&culture=([a-z]{2}-[a-z]{2})&country=(\w{2}))">\s(64|32)-bit'
    )

    # Windows 10 企业版页面同时列出 Enterprise 和 LTSC，LTSC 链接排在第二位
    POSITIONAL_RULES: Dict[EnterpriseRelease, int] = {EnterpriseRelease.TEN_LTSC: 1}

    name = "evalcenter"

    def candidates(
        self, body: str, language: EnterpriseLanguage, architecture: Architecture
    ) -> List[str]:
        return [
            match.group(1)
            for match in self.LINK_PATTERN.finditer(body)
            if match.group(2) == language.culture
            and match.group(3) == language.country
            and match.group(4) == architecture.bits
        ]

    def extract_link(
        self,
        body: str,
        release: EnterpriseRelease,
        language: EnterpriseLanguage,
        architecture: Architecture,
        allow_positional_fallback: bool = False,
        url: Optional[str] = None,
    ) -> ResolutionResult:
        """按版本的位置规则选取链接

        Raises:
            DownloadUrlNotFoundError: 没有候选，或位置规则未命中且未开启回退
        """
        urls = self.candidates(body, language, architecture)
        if not urls:
            raise DownloadUrlNotFoundError(
                f"No {architecture.bits}-bit link for {language.culture}",
                url=url,
                stage=self.name,
            )

        index = self.POSITIONAL_RULES.get(release, 0)
        if index < len(urls):
            return ResolutionResult(url=clean_url(urls[index]), hash=None)

        if not allow_positional_fallback:
            raise DownloadUrlNotFoundError(
                f"Expected link #{index + 1} for {release.display_name}, "
                f"found {len(urls)} candidate(s)",
                url=url,
                stage=self.name,
            )

        logger.warning(
            "Link #%d for %s not found, falling back to the first of %d candidate(s)",
            index + 1,
            release.display_name,
            len(urls),
        )
        return ResolutionResult(url=clean_url(urls[0]), hash=None)


_SKU_PARSERS: Dict[ResponseFormat, Type[SkuParser]] = {
    ResponseFormat.LEGACY_HTML: HtmlSkuParser,
    ResponseFormat.CONNECTOR_JSON: JsonSkuParser,
}

_DOWNLOAD_LINK_PARSERS: Dict[ResponseFormat, Type[DownloadLinkParser]] = {
    ResponseFormat.LEGACY_HTML: HtmlDownloadLinkParser,
    ResponseFormat.CONNECTOR_JSON: JsonDownloadLinkParser,
}


def create_sku_parser(response_format: ResponseFormat) -> SkuParser:
    """按响应格式创建 SKU 解析器"""
    return _SKU_PARSERS[response_format]()


def create_download_link_parser(response_format: ResponseFormat) -> DownloadLinkParser:
    """按响应格式创建下载链接解析器"""
    return _DOWNLOAD_LINK_PARSERS[response_format]()
