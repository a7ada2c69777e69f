from datetime import timedelta

import pytest

from storeai_core.domain.conversation import GREETING, ConversationState, Message


def test_initial_state_has_greeting():
    state = ConversationState()
    assert len(state) == 1
    assert state.messages[0].role == "assistant"
    assert state.messages[0].content == GREETING
    assert state.is_loading is False
    assert state.pending_input == ""


def test_append_preserves_order_and_timestamps():
    state = ConversationState()
    contents = [f"msg {i}" for i in range(10)]
    for i, text in enumerate(contents):
        state.append_message(state.compose("user" if i % 2 == 0 else "assistant", text))
    assert len(state) == 11
    assert [m.content for m in state.messages[1:]] == contents
    stamps = [m.timestamp for m in state.messages]
    assert stamps == sorted(stamps)
    assert len({m.id for m in state.messages}) == 11


def test_append_rejects_out_of_order_message():
    state = ConversationState()
    first = state.messages[0]
    stale = Message(id="m-old", role="user", content="late", timestamp=first.timestamp - timedelta(seconds=5))
    with pytest.raises(ValueError):
        state.append_message(stale)
    assert len(state) == 1


def test_history_maps_role_and_content():
    state = ConversationState()
    state.append_message(state.compose("user", "hi"))
    assert state.history() == [
        {"role": "assistant", "content": GREETING},
        {"role": "user", "content": "hi"},
    ]


def test_messages_are_immutable():
    state = ConversationState()
    with pytest.raises(AttributeError):
        state.messages[0].content = "changed"
