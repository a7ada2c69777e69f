import asyncio

import pytest

from storeai_core.agents.dispatcher import FAILURE_NOTICE, ChatDispatcher, FallbackPolicy, TurnOutcome
from storeai_core.config.settings import CompletionConfig
from storeai_core.context.assembler import ContextAssembler
from storeai_core.domain.cancellation import CancelToken
from storeai_core.domain.conversation import ConversationState
from storeai_core.domain.exceptions import CompletionError, RequestCancelledError
from storeai_core.domain.retail import AgentChatReply
from storeai_core.infrastructure.backend import mock_data
from storeai_core.prompts import failure_reply, render_degraded_reply
from storeai_core.providers.azure_openai_client import AzureOpenAIClient


class FakeData:
    def __init__(self):
        self.inventory_calls = 0

    async def get_inventory(self):
        self.inventory_calls += 1
        return mock_data.mock_inventory()

    async def get_pricing_recommendations(self):
        return mock_data.mock_pricing_recommendations()

    async def get_shifts(self, date=None):
        return mock_data.mock_shifts()

    async def get_hourly_forecast(self, date=None):
        return mock_data.mock_hourly_forecasts()

    async def get_operational_metrics(self):
        return mock_data.mock_operational_metrics()


class FakeProvider:
    name = "fake"

    def __init__(self, configured=True, reply="Reorder bread today.", error=None):
        self.configured = configured
        self.reply = reply
        self.error = error
        self.calls = []

    async def complete(self, history, digest, token=None):
        self.calls.append((list(history), digest))
        if self.error is not None:
            raise self.error
        return self.reply


class FakeAgent:
    def __init__(self, response="Agent says hi", error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def agent_chat(self, messages):
        self.calls.append(list(messages))
        if self.error is not None:
            raise self.error
        return AgentChatReply(response=self.response)


class RecordingNotifier:
    def __init__(self):
        self.errors = []

    def error(self, message):
        self.errors.append(message)


def make(provider=None, agent=None, policy=FallbackPolicy.MISSING_CONFIG_ONLY, data=None):
    state = ConversationState()
    notifier = RecordingNotifier()
    data = data or FakeData()
    dispatcher = ChatDispatcher(
        state=state,
        provider=provider or FakeProvider(),
        assembler=ContextAssembler(data),
        agent_endpoint=agent,
        policy=policy,
        notifier=notifier,
    )
    return dispatcher, state, notifier


async def test_success_appends_user_and_assistant():
    provider = FakeProvider()
    dispatcher, state, notifier = make(provider=provider)
    result = await dispatcher.send("What's my inventory status?")

    assert result.outcome is TurnOutcome.SUCCEEDED
    assert [m.role for m in state.messages] == ["assistant", "user", "assistant"]
    assert result.notification is None
    assert state.messages[1].content == "What's my inventory status?"
    assert state.messages[2].content == "Reorder bread today."
    assert state.is_loading is False
    assert notifier.errors == []

    history, digest = provider.calls[0]
    assert history[-1] == {"role": "user", "content": "What's my inventory status?"}
    assert len(history) == 2
    assert "Total items: 5" in digest
    assert "Low/Critical stock items: 2" in digest


async def test_send_uses_pending_input_and_clears_it():
    dispatcher, state, _ = make()
    state.pending_input = "  price check  "
    result = await dispatcher.send()
    assert result.user_message.content == "price check"
    assert state.pending_input == ""


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
async def test_blank_input_is_noop(text):
    provider = FakeProvider()
    dispatcher, state, _ = make(provider=provider)
    result = await dispatcher.send(text)
    assert result.outcome is TurnOutcome.REJECTED
    assert len(state) == 1
    assert provider.calls == []


async def test_send_while_loading_is_noop():
    provider = FakeProvider()
    dispatcher, state, _ = make(provider=provider)
    state.is_loading = True
    result = await dispatcher.send("stock?")
    assert result.outcome is TurnOutcome.REJECTED
    assert len(state) == 1
    assert provider.calls == []


async def test_concurrent_send_is_rejected_while_first_in_flight():
    release = asyncio.Event()

    class SlowProvider(FakeProvider):
        async def complete(self, history, digest, token=None):
            self.calls.append((list(history), digest))
            await release.wait()
            return "done"

    provider = SlowProvider()
    dispatcher, state, _ = make(provider=provider)

    task = asyncio.create_task(dispatcher.send("first"))
    await asyncio.sleep(0.01)
    assert state.is_loading is True
    second = await dispatcher.send("second")
    release.set()
    first = await task

    assert first.outcome is TurnOutcome.SUCCEEDED
    assert second.outcome is TurnOutcome.REJECTED
    assert len(provider.calls) == 1
    assert [m.content for m in state.messages[1:]] == ["first", "done"]


async def test_http_500_with_config_present_fails(monkeypatch):
    class Resp:
        status_code = 500

        def json(self):
            return {"error": {"message": "Internal server error"}}

    class Client:
        def __init__(self, *a, **kw):
            pass

        async def __aenter__(self):
            return self

        async def __aexit__(self, *a):
            return False

        async def post(self, *a, **kw):
            return Resp()

    monkeypatch.setattr("httpx.AsyncClient", Client)
    config = CompletionConfig("https://x.openai.azure.com", "azure-key-0123456789", "gpt", "2024-02-15-preview")
    agent = FakeAgent()
    dispatcher, state, notifier = make(provider=AzureOpenAIClient(config), agent=agent)

    result = await dispatcher.send("stock?")

    assert result.outcome is TurnOutcome.FAILED
    assert isinstance(result.error, CompletionError)
    assert result.error.status == 500
    assert result.notification == FAILURE_NOTICE
    assert notifier.errors == [FAILURE_NOTICE]
    assert len(state) == 3
    assert state.messages[-1].role == "assistant"
    assert state.messages[-1].content == failure_reply()
    assert state.is_loading is False
    assert agent.calls == []


async def test_missing_config_uses_agent_endpoint_without_completion_call():
    provider = FakeProvider(configured=False)
    agent = FakeAgent(response="Two items are low on stock.")
    dispatcher, state, notifier = make(provider=provider, agent=agent)

    result = await dispatcher.send("stock?")

    assert result.outcome is TurnOutcome.DEGRADED
    assert provider.calls == []
    assert state.messages[-1].content == "Two items are low on stock."
    assert agent.calls[0][-1] == {"role": "user", "content": "stock?"}
    assert notifier.errors == []


async def test_missing_config_and_agent_failure_returns_digest_template():
    data = FakeData()
    provider = FakeProvider(configured=False)
    agent = FakeAgent(error=RuntimeError("agent down"))
    dispatcher, state, notifier = make(provider=provider, agent=agent, data=data)

    message = "What's my inventory status?"
    result = await dispatcher.send(message)

    expected_digest = await ContextAssembler(FakeData()).build_digest(message)
    assert result.outcome is TurnOutcome.DEGRADED
    assert state.messages[-1].content == render_degraded_reply(message, expected_digest.text)
    assert "Total items: 5" in state.messages[-1].content
    assert provider.calls == []
    assert notifier.errors == []
    assert state.is_loading is False


async def test_empty_agent_response_falls_through_to_digest():
    dispatcher, state, _ = make(provider=FakeProvider(configured=False), agent=FakeAgent(response=""))
    await dispatcher.send("hello")
    assert "No specific database context available" in state.messages[-1].content


async def test_any_failure_policy_falls_back_after_http_error():
    data = FakeData()
    provider = FakeProvider(error=CompletionError(status=503))
    agent = FakeAgent(error=RuntimeError("agent down"))
    dispatcher, state, notifier = make(
        provider=provider, agent=agent, policy=FallbackPolicy.ANY_FAILURE, data=data
    )

    result = await dispatcher.send("inventory")

    assert result.outcome is TurnOutcome.DEGRADED
    assert isinstance(result.error, CompletionError)
    assert notifier.errors == []
    assert "I understand you're asking about: \"inventory\"" in state.messages[-1].content
    # 同一轮的摘要只计算一次
    assert data.inventory_calls == 1


async def test_missing_config_only_policy_does_not_fall_back_on_error():
    agent = FakeAgent()
    dispatcher, _, notifier = make(provider=FakeProvider(error=ConnectionError("reset")), agent=agent)
    result = await dispatcher.send("hi")
    assert result.outcome is TurnOutcome.FAILED
    assert agent.calls == []
    assert notifier.errors == [FAILURE_NOTICE]


async def test_resend_after_failure_is_independent_turn():
    provider = FakeProvider(error=CompletionError(status=500))
    dispatcher, state, notifier = make(provider=provider)
    await dispatcher.send("stock?")
    provider.error = None
    result = await dispatcher.send("stock?")
    assert result.outcome is TurnOutcome.SUCCEEDED
    assert [m.content for m in state.messages if m.role == "user"] == ["stock?", "stock?"]
    assert len(provider.calls) == 2
    assert len(notifier.errors) == 1


async def test_cancelled_turn_keeps_user_message_only():
    provider = FakeProvider(error=RequestCancelledError("chat closed"))
    dispatcher, state, notifier = make(provider=provider, policy=FallbackPolicy.ANY_FAILURE)
    result = await dispatcher.send("stock?", token=CancelToken())
    assert result.outcome is TurnOutcome.CANCELLED
    assert [m.role for m in state.messages] == ["assistant", "user"]
    assert notifier.errors == []
    assert state.is_loading is False


async def test_loading_flag_reset_when_task_cancelled():
    class HangingProvider(FakeProvider):
        async def complete(self, history, digest, token=None):
            await asyncio.sleep(10)

    dispatcher, state, _ = make(provider=HangingProvider())

    task = asyncio.create_task(dispatcher.send("stock?"))
    await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert state.is_loading is False
