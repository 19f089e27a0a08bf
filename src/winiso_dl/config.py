"""配置管理模块

支持从环境变量（WINISO_DL_ 前缀）和 .env 文件加载配置
"""

import os
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError
from .models import Config

ENV_PREFIX = "WINISO_DL_"


class Settings(BaseSettings):
    """应用设置类，继承自 Pydantic BaseSettings"""

    # 网络配置
    timeout: Optional[float] = None
    ssl_verify: bool = True
    user_agent: Optional[str] = None

    # 解析配置
    response_format: str = "json"
    allow_positional_fallback: bool = False

    # 重试配置
    max_attempts: int = 1
    retry_base_delay: float = 1.0

    log_level: str = "WARNING"

    def to_config(self) -> Config:
        """转换为 Config 模型"""
        return Config(**self.model_dump())

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class ConfigManager:
    """配置管理器"""

    def __init__(self):
        self._config: Optional[Config] = None

    def get_config(self) -> Config:
        """获取配置，优先环境变量，然后使用默认值"""
        if self._config is not None:
            return self._config

        try:
            self._config = Settings().to_config()
        except PydanticValidationError as e:
            raise ConfigurationError(f"Failed to validate configuration: {e}") from e
        return self._config

    def reset(self) -> None:
        """清除缓存的配置，下次访问时重新加载"""
        self._config = None


# 全局配置管理器实例
config_manager = ConfigManager()


def get_config() -> Config:
    """获取全局配置"""
    return config_manager.get_config()


def override_config(config: Config, **overrides: Any) -> Config:
    """用非 None 的覆盖值生成新的配置对象"""
    config_dict = config.model_dump()
    config_dict.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return Config(**config_dict)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid configuration override: {e}") from e


def check_environment() -> Dict[str, Any]:
    """列出当前生效的 WINISO_DL_ 环境变量"""
    return {
        key: value for key, value in os.environ.items() if key.startswith(ENV_PREFIX)
    }
