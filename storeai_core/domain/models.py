"""统一的对话请求与结果数据模型。

- ChatMessage: 发给补全接口的一条消息（system/user/assistant）。
- ChatRequest: 一次完整的补全请求，生成参数为固定策略常量。
- ChatResult: 从补全接口解析后的统一响应结果。

Provider 适配器（如 AzureOpenAIClient）只依赖这些模型，
并负责在 API JSON 和这些模型之间做转换。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional


# 发给补全接口的消息角色
Role = Literal["system", "user", "assistant"]


@dataclass
class ChatMessage:
    """一条补全请求/响应消息。

    - meta: 附加元数据，不直接发给 Provider，主要用于日志。
    """

    role: Role
    content: str
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ChatRequest:
    """一次完整的补全请求。

    max_tokens 等生成参数来自 registry 中的部署配置，调用时不可修改。
    """

    messages: List[ChatMessage]
    max_tokens: int = 800
    temperature: float = 0.7
    top_p: float = 0.95
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0


@dataclass
class ChatUsage:
    """token 统计信息。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class ChatChoice:
    """单个候选回答（通常只用 index=0 的一条）。"""

    index: int
    message: ChatMessage
    finish_reason: Optional[str] = None


@dataclass
class ChatResult:
    """一次补全调用的结果。

    - provider: Provider 名称（如 "azure-openai"）。
    - deployment: 实际使用的部署名称。
    - choices: 候选回答，可能为空。
    - raw: 原始响应 JSON，用于调试。
    """

    provider: str
    deployment: str
    choices: List[ChatChoice]
    usage: Optional[ChatUsage] = None
    raw: Optional[dict] = None

    def first_content(self) -> Optional[str]:
        if not self.choices:
            return None
        return self.choices[0].message.content or None
