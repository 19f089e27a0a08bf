"""测试校验矩阵"""

import pytest

from winiso_dl.core.validator import (
    OTHER_ENTERPRISE_EXCLUDED_LANGUAGES,
    WINDOWS_10_ENTERPRISE_EXCLUDED_LANGUAGES,
    language_matches_family,
    release_supports_architecture,
    release_supports_language,
    validate,
    validate_combination,
)
from winiso_dl.exceptions import (
    CompatibilityError,
    ErrorKind,
    LanguageFamilyMismatchError,
    UnsupportedArchitectureError,
    UnsupportedLanguageError,
)
from winiso_dl.models import (
    Architecture,
    ConsumerLanguage,
    ConsumerRelease,
    CustomProduct,
    EnterpriseLanguage,
    EnterpriseRelease,
)

WINDOWS_10_ENTERPRISE = [EnterpriseRelease.TEN_ENTERPRISE, EnterpriseRelease.TEN_LTSC]
OTHER_ENTERPRISE = [r for r in EnterpriseRelease if r not in WINDOWS_10_ENTERPRISE]


class TestArchitectureRules:
    """测试版本与架构的兼容规则"""

    def test_windows_11_has_no_32bit(self):
        assert not release_supports_architecture(ConsumerRelease.ELEVEN, Architecture.I686)
        assert not validate(ConsumerRelease.ELEVEN, ConsumerLanguage.ENGLISH_US, Architecture.I686)

    @pytest.mark.parametrize("release", [ConsumerRelease.EIGHT, ConsumerRelease.TEN])
    def test_other_consumer_releases_have_32bit(self, release):
        assert validate(release, ConsumerLanguage.ENGLISH_US, Architecture.I686)

    @pytest.mark.parametrize("release", list(ConsumerRelease))
    def test_every_consumer_release_has_64bit(self, release):
        assert validate(release, ConsumerLanguage.ENGLISH_US, Architecture.X86_64)

    def test_custom_product_unrestricted(self):
        release = CustomProduct(product_id="3113")
        assert release_supports_architecture(release, Architecture.I686)

    @pytest.mark.parametrize("release", list(EnterpriseRelease))
    def test_enterprise_32bit_only_for_windows_10(self, release):
        expected = release in WINDOWS_10_ENTERPRISE
        assert release_supports_architecture(release, Architecture.I686) is expected
        assert release_supports_architecture(release, Architecture.X86_64)


class TestLanguageRules:
    """测试版本与语言的兼容规则"""

    @pytest.mark.parametrize("release", list(ConsumerRelease))
    @pytest.mark.parametrize("language", list(ConsumerLanguage))
    def test_consumer_languages_valid_for_consumer_releases(self, release, language):
        assert release_supports_language(release, language)

    def test_exception_sets(self):
        assert WINDOWS_10_ENTERPRISE_EXCLUDED_LANGUAGES == {EnterpriseLanguage.RUSSIAN}
        assert OTHER_ENTERPRISE_EXCLUDED_LANGUAGES == {
            EnterpriseLanguage.BRAZILIAN_PORTUGUESE,
            EnterpriseLanguage.ENGLISH_GB,
            EnterpriseLanguage.KOREAN,
            EnterpriseLanguage.TRADITIONAL_CHINESE,
        }

    @pytest.mark.parametrize("release", WINDOWS_10_ENTERPRISE)
    @pytest.mark.parametrize("language", list(EnterpriseLanguage))
    def test_windows_10_enterprise_languages(self, release, language):
        expected = language is not EnterpriseLanguage.RUSSIAN
        assert release_supports_language(release, language) is expected

    @pytest.mark.parametrize("release", OTHER_ENTERPRISE)
    @pytest.mark.parametrize("language", list(EnterpriseLanguage))
    def test_other_enterprise_languages(self, release, language):
        expected = language not in OTHER_ENTERPRISE_EXCLUDED_LANGUAGES
        assert release_supports_language(release, language) is expected


class TestFamilyRules:
    """测试产品族一致性"""

    def test_matching_families(self):
        assert language_matches_family(ConsumerRelease.TEN, ConsumerLanguage.FRENCH)
        assert language_matches_family(EnterpriseRelease.SERVER_2019, EnterpriseLanguage.FRENCH)

    def test_mismatched_families(self):
        assert not language_matches_family(ConsumerRelease.TEN, EnterpriseLanguage.FRENCH)
        assert not language_matches_family(EnterpriseRelease.SERVER_2019, ConsumerLanguage.FRENCH)
        assert not release_supports_language(ConsumerRelease.TEN, EnterpriseLanguage.FRENCH)


class TestValidateCombination:
    """测试组合校验异常"""

    def test_valid_combination(self):
        validate_combination(
            ConsumerRelease.TEN, ConsumerLanguage.ENGLISH_US, Architecture.X86_64
        )

    def test_unsupported_architecture(self):
        with pytest.raises(UnsupportedArchitectureError) as exc_info:
            validate_combination(
                ConsumerRelease.ELEVEN, ConsumerLanguage.ENGLISH_US, Architecture.I686
            )

        error = exc_info.value
        assert error.kind is ErrorKind.UNSUPPORTED_ARCHITECTURE
        assert error.release == "Windows 11"
        assert error.offending == "i686"
        assert str(error) == "Windows 11 is not available for the i686 architecture"

    def test_unsupported_language(self):
        with pytest.raises(UnsupportedLanguageError) as exc_info:
            validate_combination(
                EnterpriseRelease.TEN_LTSC, EnterpriseLanguage.RUSSIAN, Architecture.X86_64
            )

        assert exc_info.value.release == "Windows 10 LTSC"
        assert exc_info.value.offending == "Russian"

    def test_family_mismatch(self):
        with pytest.raises(LanguageFamilyMismatchError) as exc_info:
            validate_combination(
                ConsumerRelease.TEN, EnterpriseLanguage.ENGLISH_GB, Architecture.X86_64
            )
        assert isinstance(exc_info.value, CompatibilityError)

    def test_family_mismatch_reported_first(self):
        """多个轴同时不合法时先报告产品族不匹配"""
        with pytest.raises(LanguageFamilyMismatchError):
            validate_combination(
                ConsumerRelease.ELEVEN, EnterpriseLanguage.ENGLISH_GB, Architecture.I686
            )

    def test_architecture_reported_before_language(self):
        with pytest.raises(UnsupportedArchitectureError):
            validate_combination(
                EnterpriseRelease.SERVER_2022, EnterpriseLanguage.KOREAN, Architecture.I686
            )
