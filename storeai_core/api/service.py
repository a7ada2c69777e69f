"""对外会话服务模块。

提供简化的函数接口供上层应用（聊天窗口、命令行）调用：
打开会话 -> 发送消息 -> 读取记录 -> 关闭会话。会话只存在于内存中，
在 close_chat_session 之前一直保存在模块级注册表里，调用方必须在聊天窗口
关闭时调用它。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from uuid import uuid4

from storeai_core.agents.dispatcher import ChatDispatcher, FallbackPolicy, Notifier, TurnResult
from storeai_core.config.settings import CompletionConfig, settings
from storeai_core.context.assembler import ContextAssembler
from storeai_core.domain.cancellation import CancelToken
from storeai_core.domain.conversation import ConversationState, Message
from storeai_core.infrastructure.backend.client import BackendClient
from storeai_core.infrastructure.backend.retail_api import RetailDataService
from storeai_core.infrastructure.logging.logger import logger
from storeai_core.providers import create_provider


@dataclass
class ChatSession:
    id: str
    state: ConversationState
    dispatcher: ChatDispatcher
    closed: bool = field(default=False)


_sessions: Dict[str, ChatSession] = {}


def build_dispatcher(
    state: ConversationState,
    cfg=None,
    completion_config: Optional[CompletionConfig] = None,
    data: Optional[RetailDataService] = None,
    notifier: Optional[Notifier] = None,
) -> ChatDispatcher:
    """根据配置组装 ChatDispatcher，各依赖均可显式注入。"""

    cfg = cfg or settings
    data = data or RetailDataService(BackendClient.from_settings(cfg))
    return ChatDispatcher(
        state=state,
        provider=create_provider(completion_config, cfg),
        assembler=ContextAssembler(data),
        agent_endpoint=data,
        policy=FallbackPolicy(getattr(cfg, "fallback_policy", FallbackPolicy.MISSING_CONFIG_ONLY.value)),
        notifier=notifier,
        locale=getattr(cfg, "locale", "en"),
    )


def open_chat_session(**kwargs) -> ChatSession:
    """打开聊天窗口：创建只含问候语的新会话。"""

    state = ConversationState()
    session = ChatSession(id=f"s-{uuid4().hex}", state=state, dispatcher=build_dispatcher(state, **kwargs))
    _sessions[session.id] = session
    logger.info("Opened chat session", extra={"extra": {"session_id": session.id}})
    return session


def get_chat_session(session_id: str) -> ChatSession:
    return _sessions[session_id]


def close_chat_session(session: ChatSession) -> None:
    """关闭聊天窗口：丢弃会话记录并从注册表移除，重新打开会回到问候语。

    未关闭的会话不会被自动回收。
    """

    session.closed = True
    _sessions.pop(session.id, None)
    logger.info("Closed chat session", extra={"extra": {"session_id": session.id}})


async def send_chat_message(
    session: ChatSession,
    text: str,
    token: Optional[CancelToken] = None,
) -> Dict[str, Any]:
    """发送一条消息并返回本轮结果。

    Returns:
        包含 outcome、trace_id、用户消息与助手消息的字典；
        outcome 为 "failed" 时 notification 为需要展示给用户的失败提示，否则为 None
    """

    if session.closed:
        raise RuntimeError(f"chat session {session.id} is closed")
    result: TurnResult = await session.dispatcher.send(text, token=token)
    return {
        "session_id": session.id,
        "outcome": result.outcome.value,
        "trace_id": result.trace_id,
        "user_message": _message_dict(result.user_message),
        "assistant_message": _message_dict(result.assistant_message),
        "notification": result.notification,
        "is_loading": session.state.is_loading,
    }


def get_transcript(session: ChatSession) -> List[Dict[str, Any]]:
    return [_message_dict(m) for m in session.state.messages]


def _message_dict(message: Optional[Message]) -> Optional[Dict[str, Any]]:
    if message is None:
        return None
    return {
        "id": message.id,
        "role": message.role,
        "content": message.content,
        "timestamp": message.timestamp.isoformat(),
    }
