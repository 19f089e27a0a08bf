"""同步入口

在没有事件循环时直接 asyncio.run；在已有事件循环（Jupyter、IDE）中
把协程交给一个工作线程，在该线程自己的事件循环里运行
"""

import asyncio
import concurrent.futures
import functools
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")


def in_running_loop() -> bool:
    """当前线程是否处于运行中的事件循环内"""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def _run_in_worker_thread(coro: Awaitable[T]) -> T:
    with concurrent.futures.ThreadPoolExecutor(
        max_workers=1, thread_name_prefix="winiso-dl"
    ) as executor:
        return executor.submit(asyncio.run, coro).result()


def smart_run(coro: Awaitable[T]) -> T:
    """同步运行协程并返回结果，协程中的异常原样抛出"""
    if in_running_loop():
        return _run_in_worker_thread(coro)
    return asyncio.run(coro)


def async_to_sync(func: Callable[..., Awaitable[T]]) -> Callable[..., T]:
    """把异步函数包装为同步函数

    使用示例:
    ```python
    @async_to_sync
    async def resolve(release: str) -> ResolutionResult:
        ...

    result = resolve("11")
    ```
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> T:
        return smart_run(func(*args, **kwargs))

    return wrapper
