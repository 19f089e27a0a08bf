"""会话上下文模块

每次解析生成一次浏览器身份：按 Firefox 发布节奏推算的用户代理，加上随机会话ID。
厂商接口会根据客户端是否可信、会话是否连续决定是否放行。
"""

import time
import uuid
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

# Firefox 124 发布时间 (2024-03-19 UTC)，之后每四周发布一个新版本
FIREFOX_ANCHOR_VERSION = 124
FIREFOX_ANCHOR_RELEASE_TIME = 1710806400
FIREFOX_RELEASE_INTERVAL = 4 * 7 * 24 * 60 * 60


def current_firefox_version(now: Optional[float] = None) -> int:
    """按发布节奏推算当前的 Firefox 主版本号"""
    if now is None:
        now = time.time()
    elapsed = max(0, int(now) - FIREFOX_ANCHOR_RELEASE_TIME)
    return FIREFOX_ANCHOR_VERSION + elapsed // FIREFOX_RELEASE_INTERVAL


def build_user_agent(version: int) -> str:
    return (
        f"Mozilla/5.0 (X11; Linux x86_64; rv:{version}.0) "
        f"Gecko/20100101 Firefox/{version}.0"
    )


class SessionContext(BaseModel):
    """一次解析过程中只读的会话身份"""

    user_agent: str = Field(..., description="浏览器用户代理")
    session_id: str = Field(..., description="随机会话ID")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def create(
        cls, now: Optional[float] = None, user_agent: Optional[str] = None
    ) -> "SessionContext":
        """生成新的会话上下文

        Args:
            now: Unix 时间戳，默认读取系统时钟
            user_agent: 显式指定时不再按时间推算
        """
        if user_agent is None:
            user_agent = build_user_agent(current_firefox_version(now))
        return cls(user_agent=user_agent, session_id=str(uuid.uuid4()))

    def headers(self, referer: Optional[str] = None) -> Dict[str, str]:
        """每个阶段请求使用的HTTP头"""
        headers = {"User-Agent": self.user_agent, "Accept": ""}
        if referer:
            headers["Referer"] = referer
        return headers
