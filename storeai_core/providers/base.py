"""Provider 抽象接口。

调度层不直接依赖具体厂商的 HTTP 细节，而是依赖此协议：

- chat(req): 发送一次补全请求，返回统一的 ChatResult。
- complete(history, digest): 拼装系统提示词 + 历史，返回回复文本。

测试中可以用任何实现了 complete 的对象替身。
"""

from typing import Dict, List, Optional, Protocol

from storeai_core.domain.cancellation import CancelToken
from storeai_core.domain.models import ChatRequest, ChatResult


class CompletionProvider(Protocol):
    """补全 Provider 客户端协议。"""

    name: str

    @property
    def configured(self) -> bool:
        ...

    async def chat(self, req: ChatRequest, token: Optional[CancelToken] = None) -> ChatResult:
        ...

    async def complete(
        self,
        history: List[Dict[str, str]],
        digest: str,
        token: Optional[CancelToken] = None,
    ) -> str:
        ...
