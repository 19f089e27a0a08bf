"""测试有界文本扫描工具"""

from winiso_dl.utils.text_scan import (
    DOWNLOAD_LINK_SCAN_LIMIT,
    bounded_prefix,
    clean_url,
    contains_blocked_message,
    find_line_containing,
    first_match,
    iter_fragments,
    nth_field,
    sanitize_url_for_logging,
    value_before_marker,
)


class TestBoundedPrefix:
    """测试按字节截断"""

    def test_short_text_unchanged(self):
        assert bounded_prefix("hello", 10) == "hello"

    def test_truncates_to_byte_limit(self):
        text = "a" * (DOWNLOAD_LINK_SCAN_LIMIT + 100)
        assert len(bounded_prefix(text, DOWNLOAD_LINK_SCAN_LIMIT)) == DOWNLOAD_LINK_SCAN_LIMIT

    def test_split_multibyte_character_dropped(self):
        """截断点落在多字节字符中间时丢弃该字符"""
        # "é" 占两个字节
        assert bounded_prefix("abé", 3) == "ab"

    def test_link_beyond_limit_not_visible(self):
        text = "x" * 5000 + 'href="https://example.com"'
        assert "href" not in bounded_prefix(text, DOWNLOAD_LINK_SCAN_LIMIT)


class TestFragmentHelpers:
    """测试片段查找"""

    def test_iter_fragments(self):
        assert list(iter_fragments("a,b,c", ",")) == ["a", "b", "c"]

    def test_find_line_containing(self):
        text = "first\nsecond French\nthird French"
        assert find_line_containing(text, "French") == "second French"
        assert find_line_containing(text, "German") is None

    def test_nth_field(self):
        assert nth_field("a&quot;b&quot;c&quot;d", "&quot;", 3) == "d"
        assert nth_field("a&quot;b", "&quot;", 3) is None

    def test_value_before_marker(self):
        fragment = ' value="12345">Windows 11</'
        assert value_before_marker(fragment, 'value="', '">Windows') == "12345"

    def test_value_before_marker_missing(self):
        assert value_before_marker(' value="">Select', 'value="', '">Windows') is None
        assert value_before_marker("group label", 'value="', '">Windows') is None

    def test_first_match(self):
        assert first_match([None, "", "x", "y"]) == "x"
        assert first_match([None, None]) is None


class TestCleanUrl:
    """测试下载链接清理"""

    def test_decodes_amp_entity(self):
        assert clean_url("https://a.b/c.iso?t=1&amp;e=2") == "https://a.b/c.iso?t=1&e=2"

    def test_drops_whitespace_and_control_characters(self):
        assert clean_url("https://a.b/c.iso\n?t=1\u200b") == "https://a.b/c.iso?t=1"

    def test_keeps_ascii_punctuation(self):
        url = "https://a.b/x_y-z.iso?t=a%2Fb&e=1~"
        assert clean_url(url) == url


class TestBlockedMessage:
    """测试拦截页识别"""

    def test_legacy_block_page(self, pages):
        assert contains_blocked_message(pages.BLOCKED_HTML)

    def test_connector_rejection(self, pages):
        assert contains_blocked_message(pages.BLOCKED_JSON)

    def test_normal_page(self, pages):
        assert not contains_blocked_message(pages.SKU_JSON)


class TestSanitizeUrl:
    """测试日志用URL清理"""

    def test_strips_query(self):
        url = "https://vlscppe.microsoft.com/tags?org_id=y6jn8c31&session_id=abc"
        assert sanitize_url_for_logging(url) == "https://vlscppe.microsoft.com/tags"
