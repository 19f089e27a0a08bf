"""命令行界面模块

用法: winiso-dl [release] [language] [arch]

成功时在标准输出打印 "url [hash]"，失败时在标准错误打印错误信息并以非零状态退出。
标准输出只包含结果，便于其他程序调用。
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

from .config import check_environment, get_config, override_config
from .exceptions import WinIsoDlException
from .models import ResolutionState, ResponseFormat
from .resolver import WinIsoResolver

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "English (United States)"
DEFAULT_ARCHITECTURE = "x86_64"

LICENSE_TEXT = """winiso-dl is free software: you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation, either version 3 of the License, or (at your option) any later
version.

winiso-dl is distributed in the hope that it will be useful, but WITHOUT ANY
WARRANTY; without even the implied warranty of MERCHANTABILITY or FITNESS FOR A
PARTICULAR PURPOSE. See the GNU General Public License for more details.

You should have received a copy of the GNU General Public License along with
winiso-dl. If not, see <https://www.gnu.org/licenses/>.

SPDX-License-Identifier: GPL-3.0-or-later"""

STATE_LABELS = {
    ResolutionState.PRODUCT_RESOLVED: "产品ID已获取",
    ResolutionState.PROBED: "会话已登记",
    ResolutionState.SKU_RESOLVED: "SKU已获取",
    ResolutionState.LINK_RESOLVED: "下载链接已获取",
    ResolutionState.FAILED: "解析失败",
}


def configure_logging(level: str, console: Console) -> None:
    """把日志输出到标准错误的 Rich 控制台"""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


class CLIApplication:
    """命令行应用程序"""

    def __init__(
        self, console: Optional[Console] = None, err_console: Optional[Console] = None
    ):
        self.console = console or Console(soft_wrap=True, highlight=False)
        self.err_console = err_console or Console(stderr=True, highlight=False)
        self.verbose = False

    def create_parser(self) -> argparse.ArgumentParser:
        """创建命令行参数解析器"""
        parser = argparse.ArgumentParser(
            prog="winiso-dl",
            description="获取 Windows 官方安装镜像的直接下载地址",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
使用示例:
  winiso-dl 11
  winiso-dl 10 "Chinese (Simplified)" i686
  winiso-dl server-2022 "Japanese"
  winiso-dl --format html 10 French x64
  winiso-dl 3113 "English International"  # 直接使用产品版本ID
  winiso-dl --license
            """,
        )

        parser.add_argument(
            "release",
            nargs="?",
            help="版本: 8, 10, 11, 10-enterprise, 10-ltsc, 11-enterprise, "
            "server-2012-r2, server-2016, server-2019, server-2022 或数字产品ID",
        )
        parser.add_argument(
            "language",
            nargs="?",
            default=DEFAULT_LANGUAGE,
            help=f"语言显示名称 (默认: {DEFAULT_LANGUAGE})",
        )
        parser.add_argument(
            "arch",
            nargs="?",
            default=DEFAULT_ARCHITECTURE,
            help=f"架构: x86_64/x64 或 i686/x86 (默认: {DEFAULT_ARCHITECTURE})",
        )

        parser.add_argument("--license", action="store_true", help="显示许可证并退出")
        parser.add_argument(
            "--format",
            choices=[f.value for f in ResponseFormat],
            help="厂商接口响应格式 (默认取配置, json)",
        )
        parser.add_argument("--attempts", type=int, help="整条流水线的最大尝试次数")
        parser.add_argument(
            "--positional-fallback",
            action="store_true",
            help="评估中心按位置选取链接失败时退回第一个候选",
        )
        parser.add_argument("--timeout", type=float, help="请求超时时间(秒)")
        parser.add_argument("-v", "--verbose", action="store_true", help="显示详细输出")
        parser.add_argument(
            "--version", action="version", version="%(prog)s 1.0.0"
        )

        return parser

    def state_callback(self, state: ResolutionState) -> None:
        """状态回调函数"""
        if self.verbose and state in STATE_LABELS:
            self.err_console.print(Text(f"• {STATE_LABELS[state]}", style="dim"))

    def print_error(self, error: str) -> None:
        """打印错误信息"""
        self.err_console.print(Text(f"Error: {error}", style="bold red"))

    async def run_resolve(self, args: argparse.Namespace) -> int:
        """执行解析任务"""
        try:
            config = override_config(
                get_config(),
                response_format=args.format,
                max_attempts=args.attempts,
                allow_positional_fallback=True if args.positional_fallback else None,
                timeout=args.timeout,
                log_level="DEBUG" if args.verbose else None,
            )
            configure_logging(config.log_level, self.err_console)
            logger.debug("Environment overrides: %s", sorted(check_environment()))

            async with WinIsoResolver(
                config=config, state_callback=self.state_callback
            ) as resolver:
                request = resolver.build_request(args.release, args.language, args.arch)
                result = await resolver.resolve(request)

        except WinIsoDlException as e:
            self.print_error(str(e))
            return 1

        self.console.print(result.render(), markup=False, emoji=False)
        return 0

    async def main(self, argv: Optional[List[str]] = None) -> int:
        """主入口函数"""
        parser = self.create_parser()
        args = parser.parse_args(argv)
        self.verbose = args.verbose

        if args.license:
            self.console.print(LICENSE_TEXT, markup=False, emoji=False)
            return 0

        if not args.release:
            parser.print_usage(sys.stderr)
            return 1

        return await self.run_resolve(args)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI入口点 - 同步包装器"""
    app = CLIApplication()

    try:
        return asyncio.run(app.main(argv))
    except KeyboardInterrupt:
        app.err_console.print("\n程序被用户中断")
        return 1


if __name__ == "__main__":
    sys.exit(main())
