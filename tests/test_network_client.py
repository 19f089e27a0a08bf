"""测试HTTP客户端"""

import asyncio

import aiohttp
import pytest
from aioresponses import aioresponses

from winiso_dl.core.network_client import HTTPClient, parse_retry_after
from winiso_dl.exceptions import (
    ErrorKind,
    ForbiddenError,
    NetworkError,
    NotFoundError,
    RateLimitError,
)
from winiso_dl.models import Config

URL = "https://www.microsoft.com/en-us/software-download/windows11"


class TestHTTPClient:
    """测试请求发送与异常转换"""

    @pytest.mark.asyncio
    async def test_get_text(self, config):
        with aioresponses() as m:
            m.get(URL, body="<html>ok</html>")

            async with HTTPClient(config) as client:
                text = await client.get_text(URL, headers={"User-Agent": "test"})

        assert text == "<html>ok</html>"

    @pytest.mark.asyncio
    async def test_post_sends_empty_body(self, config):
        with aioresponses() as m:
            m.post(URL, body="done")

            async with HTTPClient(config) as client:
                await client.post_text(URL)

            call = next(iter(m.requests.values()))[0]
            assert call.kwargs["data"] == ""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, error_class",
        [(401, ForbiddenError), (403, ForbiddenError), (404, NotFoundError), (429, RateLimitError), (500, NetworkError)],
    )
    async def test_http_error_mapping(self, config, status, error_class):
        with aioresponses() as m:
            m.get(URL, status=status)

            async with HTTPClient(config) as client:
                with pytest.raises(error_class) as exc_info:
                    await client.get_text(URL)

        assert exc_info.value.status_code == status
        assert exc_info.value.kind is ErrorKind.TRANSPORT

    @pytest.mark.asyncio
    async def test_rate_limit_reads_retry_after(self, config):
        with aioresponses() as m:
            m.get(URL, status=429, headers={"Retry-After": "120"})

            async with HTTPClient(config) as client:
                with pytest.raises(RateLimitError) as exc_info:
                    await client.get_text(URL)

        assert exc_info.value.retry_after == 120

    @pytest.mark.parametrize(
        "value, expected",
        [("120", 120), (" 5 ", 5), ("Wed, 21 Oct 2026 07:28:00 GMT", None), ("\u00b2", None), (None, None)],
    )
    def test_parse_retry_after(self, value, expected):
        assert parse_retry_after(value) == expected

    @pytest.mark.asyncio
    async def test_undecodable_body_replaced(self, config):
        with aioresponses() as m:
            m.get(URL, body=b"ok\xff\xfe", content_type="text/html; charset=utf-8")

            async with HTTPClient(config) as client:
                text = await client.get_text(URL)

        assert text.startswith("ok")
        assert "\ufffd" in text

    @pytest.mark.asyncio
    async def test_discard_body(self, config):
        with aioresponses() as m:
            m.get(URL, body=b"\x89PNG\xff", content_type="image/png")

            async with HTTPClient(config) as client:
                text = await client.get_text(URL, discard_body=True)

        assert text == ""

    @pytest.mark.asyncio
    async def test_status_ignored_when_requested(self, config):
        with aioresponses() as m:
            m.get(URL, status=500, body="error page")

            async with HTTPClient(config) as client:
                text = await client.get_text(URL, raise_for_status=False)

        assert text == "error page"

    @pytest.mark.asyncio
    async def test_connection_error_wrapped(self, config):
        with aioresponses() as m:
            m.get(URL, exception=aiohttp.ClientConnectionError("connection refused"))

            async with HTTPClient(config) as client:
                with pytest.raises(NetworkError) as exc_info:
                    await client.get_text(URL)

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, aiohttp.ClientConnectionError)

    @pytest.mark.asyncio
    async def test_timeout_wrapped(self, config):
        with aioresponses() as m:
            m.get(URL, exception=asyncio.TimeoutError())

            async with HTTPClient(config) as client:
                with pytest.raises(NetworkError, match="Request timeout"):
                    await client.get_text(URL)

    def test_default_timeout_not_overridden(self, config):
        assert HTTPClient(config)._create_timeout_config() is None

    def test_configured_timeout(self):
        timeout = HTTPClient(Config(timeout=30))._create_timeout_config()
        assert timeout.total == 30

    def test_ssl_verification_disabled(self):
        client = HTTPClient(Config(ssl_verify=False))
        with pytest.warns(UserWarning):
            assert client._create_ssl_context() is False

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, config):
        client = HTTPClient(config)
        await client.close()
        async with client:
            assert client._session is not None
        assert client._session is None
