"""企业版与服务器版解析

评估中心每个版本有一个固定页面，页面中按语言区域列出 fwlink 下载链接，
一次请求即可得到结果，没有 SKU 阶段，也不提供校验和。
"""

import logging

from ..models import Architecture, EnterpriseLanguage, EnterpriseRelease, ResolutionResult
from ..parsers import EvalCenterLinkParser, ensure_usable_body
from ..utils.text_scan import sanitize_url_for_logging
from .network_client import HTTPClient
from .session import SessionContext

logger = logging.getLogger(__name__)

EVALCENTER_URL = "https://www.microsoft.com/en-us/evalcenter/download-{slug}"

EVALCENTER_SLUGS = {
    EnterpriseRelease.TEN_ENTERPRISE: "windows-10-enterprise",
    EnterpriseRelease.TEN_LTSC: "windows-10-enterprise",
    EnterpriseRelease.ELEVEN_ENTERPRISE: "windows-11-enterprise",
    EnterpriseRelease.SERVER_2012_R2: "windows-server-2012-r2",
    EnterpriseRelease.SERVER_2016: "windows-server-2016",
    EnterpriseRelease.SERVER_2019: "windows-server-2019",
    EnterpriseRelease.SERVER_2022: "windows-server-2022",
}


def evalcenter_url(release: EnterpriseRelease) -> str:
    return EVALCENTER_URL.format(slug=EVALCENTER_SLUGS[release])


async def resolve_evaluation_link(
    client: HTTPClient,
    session: SessionContext,
    release: EnterpriseRelease,
    language: EnterpriseLanguage,
    architecture: Architecture,
    allow_positional_fallback: bool = False,
) -> ResolutionResult:
    """获取评估中心的下载链接

    Raises:
        EmptyResponseError: 页面为空
        BlockedRequestError: 请求被拦截
        DownloadUrlNotFoundError: 没有匹配的链接
    """
    url = evalcenter_url(release)
    html_content = await client.get_text(url, headers=session.headers())

    parser = EvalCenterLinkParser()
    ensure_usable_body(html_content, url=url, stage=parser.name)
    result = parser.extract_link(
        html_content,
        release,
        language,
        architecture,
        allow_positional_fallback=allow_positional_fallback,
        url=url,
    )
    logger.debug(
        "Resolved %s (%s, %s-bit): %s",
        release,
        language.culture,
        architecture.bits,
        sanitize_url_for_logging(result.url),
    )
    return result
