"""会话状态：聊天窗口打开期间的唯一消息来源。

消息按追加顺序即为展示顺序与发给模型的上下文顺序，不做持久化，
会话关闭后整体丢弃。
"""

import itertools
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional, Tuple


MessageRole = Literal["user", "assistant"]

GREETING = "Hello! I'm your StoreAI assistant. How can I help you manage your grocery store today?"

_sequence = itertools.count(1)


def new_message_id() -> str:
    """生成按时间大致有序的消息 ID。"""

    return f"m-{time.time_ns()}-{next(_sequence)}"


@dataclass(frozen=True)
class Message:
    id: str
    role: MessageRole
    content: str
    timestamp: datetime

    def to_history(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class ConversationState:
    """有序、只追加的消息序列，外加 is_loading 与待发送输入。

    只有 ChatDispatcher 会修改它；其余调用方只读。
    """

    def __init__(self, greeting: Optional[str] = GREETING):
        self._messages: List[Message] = []
        self.is_loading = False
        self.pending_input = ""
        if greeting:
            self.append_message(self.compose("assistant", greeting))

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def compose(self, role: MessageRole, content: str) -> Message:
        """构造一条时间戳不早于最后一条消息的新消息（不追加）。"""

        now = datetime.now(timezone.utc)
        if self._messages and now < self._messages[-1].timestamp:
            now = self._messages[-1].timestamp
        return Message(id=new_message_id(), role=role, content=content, timestamp=now)

    def append_message(self, message: Message) -> None:
        if self._messages and message.timestamp < self._messages[-1].timestamp:
            raise ValueError("message timestamp precedes the last message in the transcript")
        self._messages.append(message)

    def history(self) -> List[Dict[str, str]]:
        """以 {role, content} 形式返回完整历史，用于构造补全请求。"""

        return [m.to_history() for m in self._messages]
