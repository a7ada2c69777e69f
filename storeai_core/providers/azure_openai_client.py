"""Azure OpenAI Provider 适配器。

本模块负责：

1. 将历史消息 + 数据摘要拼装成统一的 ChatRequest。
2. 转换为 Azure OpenAI chat/completions 请求：
   - URL: {endpoint}/openai/deployments/{deployment}/chat/completions?api-version={version}
   - 认证: api-key: <key>
3. 在截止时间/取消令牌约束下发送请求，非 2xx 包装为 CompletionError。
4. 将响应 JSON 解析为 ChatResult，取第一条候选作为回复文本。

网络层异常（httpx.RequestError）原样向上抛出，超时除外：
超时统一视为 DeadlineExceededError。
"""

from typing import Any, Dict, List, Optional

import httpx

from storeai_core.config.settings import CompletionConfig
from storeai_core.domain.cancellation import CancelToken, run_guarded
from storeai_core.domain.exceptions import CompletionError, ConfigurationAbsentError, DeadlineExceededError
from storeai_core.domain.models import ChatChoice, ChatMessage, ChatRequest, ChatResult, ChatUsage
from storeai_core.prompts import render_system_prompt
from storeai_core.providers.registry import AZURE_OPENAI_CONFIG, ProviderConfig


NO_RESPONSE = "No response from AI"


class AzureOpenAIClient:
    """Azure OpenAI 补全客户端。

    - config: 完整的 CompletionConfig；为 None 表示未配置，
      此时 chat/complete 抛出 ConfigurationAbsentError 而不发请求。
    - timeout: 单次请求的截止时间（秒）。
    """

    name = "azure-openai"

    def __init__(
        self,
        config: Optional[CompletionConfig],
        timeout: float = 30.0,
        provider_config: ProviderConfig = AZURE_OPENAI_CONFIG,
        locale: str = "en",
    ):
        self._config = config
        self._timeout = timeout
        self._provider_config = provider_config
        self._locale = locale

    @property
    def configured(self) -> bool:
        return self._config is not None

    async def complete(
        self,
        history: List[Dict[str, str]],
        digest: str,
        token: Optional[CancelToken] = None,
    ) -> str:
        """执行一轮对话：系统提示词（含摘要）+ 完整历史，返回回复文本。"""

        req = self.build_request(history, digest)
        result = await self.chat(req, token=token)
        return result.first_content() or NO_RESPONSE

    def build_request(self, history: List[Dict[str, str]], digest: str) -> ChatRequest:
        policy = self._provider_config.policy
        messages = [ChatMessage(role="system", content=render_system_prompt(digest, self._locale))]
        for item in history:
            messages.append(ChatMessage(role=item["role"], content=item["content"]))
        return ChatRequest(
            messages=messages,
            max_tokens=policy.max_tokens,
            temperature=policy.temperature,
            top_p=policy.top_p,
            frequency_penalty=policy.frequency_penalty,
            presence_penalty=policy.presence_penalty,
        )

    async def chat(self, req: ChatRequest, token: Optional[CancelToken] = None) -> ChatResult:
        if self._config is None:
            # 配置缺失走 ConfigurationAbsentError，与网络/HTTP 错误区分开
            raise ConfigurationAbsentError()
        payload = self._build_payload(req)
        return await run_guarded(self._post(payload), timeout=self._timeout, token=token)

    async def _post(self, payload: Dict[str, Any]) -> ChatResult:
        cfg = self._config
        try:
            async with httpx.AsyncClient(timeout=self._timeout, trust_env=False) as client:
                resp = await client.post(
                    cfg.chat_url,
                    json=payload,
                    headers={
                        "api-key": cfg.api_key,
                        "Content-Type": "application/json",
                    },
                )
        except httpx.TimeoutException:
            raise DeadlineExceededError(self._timeout)
        if not 200 <= resp.status_code < 300:
            raise CompletionError(status=resp.status_code, message=self._error_message(resp))
        return self._parse_response(resp.json())

    def _build_payload(self, req: ChatRequest) -> dict:
        return {
            "messages": [{"role": m.role, "content": m.content} for m in req.messages],
            "max_tokens": req.max_tokens,
            "temperature": req.temperature,
            "top_p": req.top_p,
            "frequency_penalty": req.frequency_penalty,
            "presence_penalty": req.presence_penalty,
        }

    def _parse_response(self, data: dict) -> ChatResult:
        choices: list[ChatChoice] = []
        for i, ch in enumerate(data.get("choices") or []):
            ch = ch or {}
            msg = ch.get("message") or {}
            cm = ChatMessage(role=msg.get("role") or "assistant", content=msg.get("content") or "")
            choices.append(ChatChoice(index=ch.get("index", i), message=cm, finish_reason=ch.get("finish_reason")))
        usage_raw = data.get("usage") or {}
        usage = None
        if usage_raw:
            usage = ChatUsage(
                prompt_tokens=usage_raw.get("prompt_tokens", 0),
                completion_tokens=usage_raw.get("completion_tokens", 0),
                total_tokens=usage_raw.get("total_tokens", 0),
            )
        return ChatResult(
            provider=self.name,
            deployment=self._config.deployment,
            choices=choices,
            usage=usage,
            raw=data,
        )

    @staticmethod
    def _error_message(resp) -> Optional[str]:
        """尽量取服务端返回的 error.message，解析失败返回 None。"""

        try:
            data = resp.json()
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        return None
