"""StoreAI Core 顶层包。

该包提供门店运营助手的核心实现，包括配置加载、领域模型、
门店后端数据访问、上下文汇总、Azure OpenAI 适配、
对话调度与降级策略，以及内存中的会话状态。
"""

from storeai_core.agents.dispatcher import ChatDispatcher, FallbackPolicy, TurnOutcome
from storeai_core.api.service import close_chat_session, open_chat_session, send_chat_message

__all__ = [
    "ChatDispatcher",
    "FallbackPolicy",
    "TurnOutcome",
    "close_chat_session",
    "open_chat_session",
    "send_chat_message",
]
