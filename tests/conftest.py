"""pytest配置文件"""

import os

import pytest

from winiso_dl.config import config_manager
from winiso_dl.core.session import SessionContext
from winiso_dl.models import Config

from .utils import vendor_pages


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """隔离 WINISO_DL_ 环境变量、.env 文件和全局配置缓存"""
    monkeypatch.chdir(tmp_path)

    for key in list(os.environ):
        if key.startswith("WINISO_DL_"):
            monkeypatch.delenv(key, raising=False)
    config_manager.reset()
    yield
    config_manager.reset()


@pytest.fixture
def config():
    """不重试、无延迟的测试配置"""
    return Config(retry_base_delay=0)


@pytest.fixture
def session():
    """固定时间点生成的会话上下文"""
    return SessionContext.create(now=1710806400)


@pytest.fixture
def pages():
    """厂商页面样本"""
    return vendor_pages
