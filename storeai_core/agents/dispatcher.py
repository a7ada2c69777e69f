"""对话调度与降级控制（Chat Dispatcher / Fallback Controller）。

单轮对话的状态流转：Idle -> Sending -> {Succeeded, Degraded, Failed} -> Idle。

1. 先把用户消息追加到会话（乐观更新），清空输入并置 is_loading。
2. 已配置 Azure OpenAI 时调用补全接口；失败后是否继续降级由 FallbackPolicy 决定。
3. 降级通道：先调内部 Agent 接口，再失败则把本轮数据摘要套进说明模板返回。
   降级通道本身从不抛出异常。
4. 只有 Failed 分支会向用户发出失败通知，并追加固定的致歉回复。
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol
from uuid import uuid4

from storeai_core.context.assembler import ContextAssembler, ContextDigest
from storeai_core.domain.cancellation import CancelToken
from storeai_core.domain.conversation import ConversationState, Message
from storeai_core.domain.exceptions import ConfigurationAbsentError, RequestCancelledError
from storeai_core.domain.retail import AgentChatReply
from storeai_core.infrastructure.logging.logger import logger
from storeai_core.prompts import failure_reply, render_degraded_reply
from storeai_core.providers.base import CompletionProvider


FAILURE_NOTICE = "Failed to get AI response. Please check your Azure AI configuration."


class FallbackPolicy(str, Enum):
    MISSING_CONFIG_ONLY = "fallback_on_missing_config_only"
    ANY_FAILURE = "fallback_on_any_failure"


class TurnOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    DEGRADED = "degraded"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


@dataclass
class TurnResult:
    """一轮对话的结果。

    REJECTED 表示输入为空或上一轮仍在进行，会话未发生任何变化；
    CANCELLED 表示请求被 CancelToken 取消，只有用户消息被追加。
    notification 仅在 FAILED 时有值，是需要展示给用户的失败提示。
    """

    outcome: TurnOutcome
    trace_id: Optional[str] = None
    user_message: Optional[Message] = None
    assistant_message: Optional[Message] = None
    error: Optional[Exception] = None
    notification: Optional[str] = None


class AgentEndpoint(Protocol):
    """内部 Agent 接口（/ai/chat），RetailDataService 即为其实现。"""

    async def agent_chat(self, messages: List[Dict[str, str]]) -> AgentChatReply:
        ...


class Notifier(Protocol):
    """面向用户的短暂通知（例如 toast）。"""

    def error(self, message: str) -> None:
        ...


class LogNotifier:
    """默认通知实现：只写日志。"""

    def error(self, message: str) -> None:
        logger.error(message, extra={"extra": {"kind": "user_notification"}})


class _TurnDigest:
    """每轮最多计算一次摘要，主通道与降级通道共用同一份结果。"""

    def __init__(self, assembler: ContextAssembler, message: str):
        self._assembler = assembler
        self._message = message
        self._digest: Optional[ContextDigest] = None

    async def get(self) -> ContextDigest:
        if self._digest is None:
            self._digest = await self._assembler.build_digest(self._message)
        return self._digest


class ChatDispatcher:
    def __init__(
        self,
        state: ConversationState,
        provider: CompletionProvider,
        assembler: ContextAssembler,
        agent_endpoint: Optional[AgentEndpoint] = None,
        policy: FallbackPolicy = FallbackPolicy.MISSING_CONFIG_ONLY,
        notifier: Optional[Notifier] = None,
        locale: str = "en",
    ):
        self._state = state
        self._provider = provider
        self._assembler = assembler
        self._agent_endpoint = agent_endpoint
        self._policy = FallbackPolicy(policy)
        self._notifier = notifier or LogNotifier()
        self._locale = locale

    @property
    def state(self) -> ConversationState:
        return self._state

    @property
    def policy(self) -> FallbackPolicy:
        return self._policy

    async def send(self, text: Optional[str] = None, token: Optional[CancelToken] = None) -> TurnResult:
        """发送一条消息；text 为 None 时使用会话中的 pending_input。"""

        state = self._state
        raw = state.pending_input if text is None else text
        content = (raw or "").strip()
        if not content or state.is_loading:
            return TurnResult(outcome=TurnOutcome.REJECTED)

        start_time = time.time()
        log_ctx: Dict[str, Any] = {"trace_id": f"tr-{uuid4().hex}", "policy": self._policy.value}

        user_msg = state.compose("user", content)
        state.append_message(user_msg)
        state.pending_input = ""
        state.is_loading = True
        self._log(logging.INFO, "Stored user message", log_ctx, message_id=user_msg.id)

        result = TurnResult(outcome=TurnOutcome.FAILED, trace_id=log_ctx["trace_id"], user_message=user_msg)
        try:
            outcome, reply, error = await self._resolve(content, state.history(), log_ctx, token)
            result.outcome, result.error = outcome, error
            if outcome is TurnOutcome.CANCELLED:
                return result
            if outcome is TurnOutcome.FAILED:
                self._notifier.error(FAILURE_NOTICE)
                result.notification = FAILURE_NOTICE
                reply = failure_reply(self._locale)
            assistant_msg = state.compose("assistant", reply)
            state.append_message(assistant_msg)
            result.assistant_message = assistant_msg
            return result
        finally:
            state.is_loading = False
            self._log(
                logging.INFO,
                "Completed chat turn",
                log_ctx,
                outcome=result.outcome.value,
                elapsed_seconds=round(time.time() - start_time, 2),
            )

    async def _resolve(
        self,
        content: str,
        history: List[Dict[str, str]],
        log_ctx: Dict[str, Any],
        token: Optional[CancelToken],
    ):
        digest = _TurnDigest(self._assembler, content)
        error: Optional[Exception] = None

        if self._provider.configured:
            try:
                turn_digest = await digest.get()
                self._log(
                    logging.INFO,
                    "Calling provider",
                    log_ctx,
                    provider=self._provider.name,
                    message_count=len(history),
                    topics=list(turn_digest.topics),
                )
                reply = await self._provider.complete(history, turn_digest.text, token=token)
                return TurnOutcome.SUCCEEDED, reply, None
            except RequestCancelledError as e:
                self._log(logging.INFO, "Chat turn cancelled", log_ctx, reason=e.message)
                return TurnOutcome.CANCELLED, None, e
            except ConfigurationAbsentError:
                self._log(logging.INFO, "Completion configuration absent; using fallback", log_ctx)
            except Exception as e:
                error = e
                self._log(
                    logging.ERROR,
                    "Completion request failed",
                    log_ctx,
                    error=str(e),
                    http_status=getattr(e, "http_status", None),
                )
                if self._policy is FallbackPolicy.MISSING_CONFIG_ONLY:
                    return TurnOutcome.FAILED, None, e
        else:
            self._log(logging.INFO, "Completion configuration absent; using fallback", log_ctx)

        reply = await self._fallback(content, history, digest, log_ctx)
        return TurnOutcome.DEGRADED, reply, error

    async def _fallback(
        self,
        content: str,
        history: List[Dict[str, str]],
        digest: _TurnDigest,
        log_ctx: Dict[str, Any],
    ) -> str:
        """降级通道：Agent 接口 -> 数据摘要模板，不向上抛出业务异常。"""

        if self._agent_endpoint is not None:
            try:
                reply = await self._agent_endpoint.agent_chat(history)
                if reply.response:
                    return reply.response
                self._log(logging.WARNING, "Agent endpoint returned an empty response", log_ctx)
            except Exception as e:
                self._log(logging.WARNING, "Agent endpoint failed", log_ctx, error=str(e))

        turn_digest = await digest.get()
        return render_degraded_reply(content, turn_digest.text, self._locale)

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
