"""winiso-dl - Windows 官方镜像下载链接解析器

异步解析 Windows 安装镜像的直接下载地址：消费者版走软件下载门户的多阶段流程，
企业版和服务器版走评估中心页面
"""

from .resolver import WinIsoResolver, resolve_image, resolve_image_sync
from .models import (
    Architecture,
    Config,
    ConsumerLanguage,
    ConsumerRelease,
    CustomProduct,
    EnterpriseLanguage,
    EnterpriseRelease,
    ResolutionRequest,
    ResolutionResult,
    ResolutionState,
    ResponseFormat,
    parse_architecture,
    parse_language,
    parse_release,
)
from .config import get_config, override_config
from .exceptions import (
    WinIsoDlException,
    ErrorKind,
    ValidationError,
    CompatibilityError,
    ResponseError,
    ParseError,
    NetworkError,
    ConfigurationError,
)
from .cli import main

# 版本信息
__version__ = "1.0.0"
__title__ = "winiso-dl"
__description__ = "Windows 官方镜像下载链接解析器"
__license__ = "GPL-3.0-or-later"

# 公共API
__all__ = [
    # 核心类
    "WinIsoResolver",
    # 数据模型
    "Architecture",
    "Config",
    "ConsumerLanguage",
    "ConsumerRelease",
    "CustomProduct",
    "EnterpriseLanguage",
    "EnterpriseRelease",
    "ResolutionRequest",
    "ResolutionResult",
    "ResolutionState",
    "ResponseFormat",
    "parse_architecture",
    "parse_language",
    "parse_release",
    # 便捷函数
    "resolve_image",
    "resolve_image_sync",
    # 配置管理
    "get_config",
    "override_config",
    # 异常类
    "WinIsoDlException",
    "ErrorKind",
    "ValidationError",
    "CompatibilityError",
    "ResponseError",
    "ParseError",
    "NetworkError",
    "ConfigurationError",
    # 命令行入口
    "main",
    # 元数据
    "__version__",
]
