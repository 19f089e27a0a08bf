"""校验矩阵模块

版本、语言、架构之间的静态兼容规则。纯函数，不做任何 I/O，
必须在第一个网络请求之前执行。
"""

from ..exceptions import (
    LanguageFamilyMismatchError,
    UnsupportedArchitectureError,
    UnsupportedLanguageError,
)
from ..models import (
    Architecture,
    ConsumerRelease,
    EnterpriseLanguage,
    EnterpriseRelease,
    Language,
    Release,
    ResolutionRequest,
)

# 仅这两个企业版提供32位镜像
ENTERPRISE_32BIT_RELEASES = frozenset(
    {EnterpriseRelease.TEN_ENTERPRISE, EnterpriseRelease.TEN_LTSC}
)

# Windows 10 企业版页面不提供俄语
WINDOWS_10_ENTERPRISE_EXCLUDED_LANGUAGES = frozenset({EnterpriseLanguage.RUSSIAN})

# 其他企业版/服务器版页面不提供的语言
OTHER_ENTERPRISE_EXCLUDED_LANGUAGES = frozenset(
    {
        EnterpriseLanguage.BRAZILIAN_PORTUGUESE,
        EnterpriseLanguage.ENGLISH_GB,
        EnterpriseLanguage.KOREAN,
        EnterpriseLanguage.TRADITIONAL_CHINESE,
    }
)


def release_supports_architecture(release: Release, architecture: Architecture) -> bool:
    """该版本是否提供所请求的架构"""
    if architecture is Architecture.X86_64:
        return True
    if isinstance(release, EnterpriseRelease):
        return release in ENTERPRISE_32BIT_RELEASES
    return release is not ConsumerRelease.ELEVEN


def language_matches_family(release: Release, language: Language) -> bool:
    """语言与版本是否属于同一产品族"""
    return release.family is language.family


def release_supports_language(release: Release, language: Language) -> bool:
    """该版本是否提供所请求的语言

    消费者语言对所有消费者版本有效；企业语言按页面的例外集合判断。
    产品族不一致时返回 False。
    """
    if not language_matches_family(release, language):
        return False
    if not isinstance(release, EnterpriseRelease):
        return True
    if release in ENTERPRISE_32BIT_RELEASES:
        return language not in WINDOWS_10_ENTERPRISE_EXCLUDED_LANGUAGES
    return language not in OTHER_ENTERPRISE_EXCLUDED_LANGUAGES


def validate(release: Release, language: Language, architecture: Architecture) -> bool:
    """组合是否合法（三个谓词同时成立）"""
    return (
        language_matches_family(release, language)
        and release_supports_architecture(release, architecture)
        and release_supports_language(release, language)
    )


def validate_combination(
    release: Release, language: Language, architecture: Architecture
) -> None:
    """校验组合，不合法时抛出对应轴的异常

    Raises:
        LanguageFamilyMismatchError: 语言与版本产品族不一致
        UnsupportedArchitectureError: 版本不提供该架构
        UnsupportedLanguageError: 版本不提供该语言
    """
    if not language_matches_family(release, language):
        raise LanguageFamilyMismatchError(str(release), str(language))
    if not release_supports_architecture(release, architecture):
        raise UnsupportedArchitectureError(str(release), str(architecture))
    if not release_supports_language(release, language):
        raise UnsupportedLanguageError(str(release), str(language))


def validate_request(request: ResolutionRequest) -> None:
    validate_combination(request.release, request.language, request.architecture)
