"""消费者版本解析阶段

下载门户的四个阶段：产品ID → 反自动化探测 → SKU → 下载链接。
每个阶段都是无状态函数，显式接收传输客户端和会话上下文。
"""

import logging
import re
from typing import Optional

from ..models import (
    Architecture,
    ConsumerRelease,
    CustomProduct,
    Language,
    ResolutionResult,
    ResponseFormat,
)
from ..parsers import (
    ProductIdParser,
    SkuMatch,
    create_download_link_parser,
    create_sku_parser,
    ensure_usable_body,
)
from ..utils.text_scan import sanitize_url_for_logging
from .network_client import HTTPClient
from .session import SessionContext

logger = logging.getLogger(__name__)

SOFTWARE_DOWNLOAD_ROOT = "https://www.microsoft.com/en-us/software-download"

CATALOG_URLS = {
    ConsumerRelease.EIGHT: f"{SOFTWARE_DOWNLOAD_ROOT}/windows8ISO",
    ConsumerRelease.TEN: f"{SOFTWARE_DOWNLOAD_ROOT}/windows10ISO",
    ConsumerRelease.ELEVEN: f"{SOFTWARE_DOWNLOAD_ROOT}/windows11",
}

ANTI_BOT_ORG_ID = "y6jn8c31"
ANTI_BOT_URL = "https://vlscppe.microsoft.com/tags?org_id={org_id}&session_id={session_id}"

# 旧版 content-inclusion 接口
LEGACY_SKU_URL = (
    "https://www.microsoft.com/en-US/api/controls/contentinclude/html"
    "?pageId=a8f8f489-4c7f-463a-9ca6-5cff94d8d041&host=www.microsoft.com"
    "&segments=software-download,{segment}&query=&action=getskuinformationbyproductedition"
    "&sessionId={session_id}&productEditionId={product_id}&sdVersion=2"
)
LEGACY_WINDOWS10_LINK_URL = (
    "https://www.microsoft.com/en-us/api/controls/contentinclude/html"
    "?pageId=a224afab-2097-4dfa-a2ba-463eb191a285&host=www.microsoft.com"
    "&segments=software-download,{segment}&query=&action=GetProductDownloadLinksBySku"
    "&sessionId={session_id}&skuId={sku_id}&language=English&sdVersion=2"
)
LEGACY_WINDOWS11_LINK_URL = (
    "https://www.microsoft.com/en-US/api/controls/contentinclude/html"
    "?pageId=6e2a1789-ef16-4f27-a296-74ef7ef5d96b&host=www.microsoft.com"
    "&segments=software-download,{segment}&query=&action=GetProductDownloadLinksBySku"
    "&sessionId={session_id}&skuId={sku_id}&language=English&sdVersion=2"
)

# software-download-connector 接口
CONNECTOR_PROFILE = "606624d44113"
CONNECTOR_SKU_URL = (
    "https://www.microsoft.com/software-download-connector/api/getskuinformationbyproductedition"
    "?profile={profile}&ProductEditionId={product_id}&SKU=undefined"
    "&friendlyFileName=undefined&Locale=en-US&sessionID={session_id}"
)
CONNECTOR_LINK_URL = (
    "https://www.microsoft.com/software-download-connector/api/GetProductDownloadLinksBySku"
    "?profile={profile}&productEditionId=undefined&SKU={sku_id}"
    "&friendlyFileName=undefined&Locale=en-US&sessionID={session_id}"
)

_DISPLAY_NAME_PATTERN = re.compile(r"Windows (\d+)")
_REFERER_SEGMENTS = {"8": "windows8ISO", "10": "windows10ISO", "11": "windows11"}


def catalog_url(release: ConsumerRelease) -> str:
    return CATALOG_URLS[release]


def page_segment(release) -> str:
    """下载页URL的最后一段；自定义产品没有目录页，沿用 Windows 11 的页面"""
    if isinstance(release, CustomProduct):
        return "windows11"
    return catalog_url(release).rsplit("/", 1)[-1]


def referer_from_display_name(display_name: str) -> str:
    """根据 SKU 的产品显示名推出下载页地址，用作下一阶段的 Referer"""
    match = _DISPLAY_NAME_PATTERN.search(display_name)
    if match and match.group(1) in _REFERER_SEGMENTS:
        return f"{SOFTWARE_DOWNLOAD_ROOT}/{_REFERER_SEGMENTS[match.group(1)]}"
    return SOFTWARE_DOWNLOAD_ROOT


async def resolve_product_id(
    client: HTTPClient, session: SessionContext, release
) -> str:
    """阶段1: 获取产品版本ID

    自定义产品直接返回其ID，不发送请求。

    Raises:
        ProductIdNotFoundError: 目录页中没有匹配的选项
        NetworkError: 传输失败
    """
    if isinstance(release, CustomProduct):
        logger.debug("Using caller supplied product edition id %s", release.product_id)
        return release.product_id

    url = catalog_url(release)
    html_content = await client.get_text(url, headers=session.headers())
    product_id = ProductIdParser().extract_product_id(
        html_content, url=sanitize_url_for_logging(url)
    )
    logger.debug("Resolved product edition id %s for %s", product_id, release)
    return product_id


async def probe_anti_bot(client: HTTPClient, session: SessionContext) -> None:
    """阶段2: 访问反自动化探测地址

    响应内容不做解码，与状态码一起被忽略，只有传输失败会抛出异常。
    """
    url = ANTI_BOT_URL.format(org_id=ANTI_BOT_ORG_ID, session_id=session.session_id)
    await client.get_text(
        url, headers=session.headers(), raise_for_status=False, discard_body=True
    )


def sku_lookup_url(
    response_format: ResponseFormat, release, product_id: str, session: SessionContext
) -> str:
    if response_format is ResponseFormat.LEGACY_HTML:
        return LEGACY_SKU_URL.format(
            segment=page_segment(release),
            session_id=session.session_id,
            product_id=product_id,
        )
    return CONNECTOR_SKU_URL.format(
        profile=CONNECTOR_PROFILE,
        product_id=product_id,
        session_id=session.session_id,
    )


async def resolve_sku(
    client: HTTPClient,
    session: SessionContext,
    release,
    product_id: str,
    language: Language,
    response_format: ResponseFormat,
) -> SkuMatch:
    """阶段3: 获取与语言匹配的 SKU

    Raises:
        SkuIdNotFoundError: 没有该语言的 SKU
        MalformedResponseError: JSON 无法解码
        EmptyResponseError / BlockedRequestError: 响应为空或被拦截
    """
    url = sku_lookup_url(response_format, release, product_id, session)
    referer = None if isinstance(release, CustomProduct) else catalog_url(release)
    headers = session.headers(referer=referer)

    if response_format is ResponseFormat.LEGACY_HTML:
        body = await client.post_text(url, headers=headers)
    else:
        body = await client.get_text(url, headers=headers)

    parser = create_sku_parser(response_format)
    safe_url = sanitize_url_for_logging(url)
    ensure_usable_body(body, url=safe_url, stage=parser.name)
    sku = parser.extract_sku(body, language, url=safe_url)
    logger.debug("Resolved SKU %s for %s", sku.sku_id, language)
    return sku


def download_link_url(
    response_format: ResponseFormat, release, sku_id: str, session: SessionContext
) -> str:
    if response_format is ResponseFormat.CONNECTOR_JSON:
        return CONNECTOR_LINK_URL.format(
            profile=CONNECTOR_PROFILE, sku_id=sku_id, session_id=session.session_id
        )
    if release in (ConsumerRelease.EIGHT, ConsumerRelease.TEN):
        template = LEGACY_WINDOWS10_LINK_URL
    else:
        template = LEGACY_WINDOWS11_LINK_URL
    return template.format(
        segment=page_segment(release), session_id=session.session_id, sku_id=sku_id
    )


def download_referer(release, sku: SkuMatch) -> str:
    """下载链接阶段的 Referer

    自定义产品没有目录页，按 SKU 的产品显示名推算
    """
    if isinstance(release, CustomProduct):
        return referer_from_display_name(sku.display_name)
    return catalog_url(release)


async def resolve_download_link(
    client: HTTPClient,
    session: SessionContext,
    release,
    sku_id: str,
    language: Language,
    architecture: Architecture,
    response_format: ResponseFormat,
    referer: Optional[str] = None,
) -> ResolutionResult:
    """阶段4: 获取带签名的下载链接

    Raises:
        EmptyResponseError: 响应为空
        BlockedRequestError: 请求被拦截
        DownloadUrlNotFoundError: 没有该架构的链接
    """
    url = download_link_url(response_format, release, sku_id, session)
    headers = session.headers(referer=referer)

    if response_format is ResponseFormat.LEGACY_HTML:
        body = await client.post_text(url, headers=headers)
    else:
        body = await client.get_text(url, headers=headers)

    parser = create_download_link_parser(response_format)
    safe_url = sanitize_url_for_logging(url)
    ensure_usable_body(body, url=safe_url, stage=parser.name)
    return parser.extract_link(body, language, architecture, url=safe_url)
