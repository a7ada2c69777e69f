"""请求截止时间与取消令牌。

补全请求在 run_guarded 中执行：超过截止时间抛出 DeadlineExceededError，
令牌被取消则抛出 RequestCancelledError，两者都会取消底层的 HTTP 任务。
"""

import asyncio
from typing import Awaitable, Optional, TypeVar

from storeai_core.domain.exceptions import DeadlineExceededError, RequestCancelledError


T = TypeVar("T")


class CancelToken:
    """可由 UI/会话层触发的取消信号。"""

    def __init__(self):
        self._event = asyncio.Event()
        self.reason = "request cancelled"

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: Optional[str] = None) -> None:
        if reason:
            self.reason = reason
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


async def run_guarded(
    awaitable: Awaitable[T],
    *,
    timeout: float,
    token: Optional[CancelToken] = None,
) -> T:
    """在截止时间与取消令牌的约束下等待 awaitable 完成。"""

    work = asyncio.ensure_future(awaitable)
    if token is not None and token.cancelled:
        work.cancel()
        await asyncio.wait({work})
        raise RequestCancelledError(token.reason)

    watcher = asyncio.ensure_future(token.wait()) if token is not None else None
    waiters = {work} if watcher is None else {work, watcher}
    try:
        done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        work.cancel()
        if watcher is not None:
            watcher.cancel()
        raise

    if watcher is not None:
        watcher.cancel()
    if work in done:
        return work.result()

    work.cancel()
    await asyncio.wait({work})
    if watcher is not None and watcher in done:
        raise RequestCancelledError(token.reason)
    raise DeadlineExceededError(timeout)
