from whatsapp_agent.sessions import SessionStore
from whatsapp_agent.storage.memory import InMemoryStorage


def test_unknown_key_has_empty_history():
    store = SessionStore(InMemoryStorage())

    assert store.get_history("whatsapp:+15550000000") == []


def test_append_turn_adds_user_then_assistant():
    store = SessionStore(InMemoryStorage())

    store.append_turn("k", "hi", "hello!")

    assert store.get_history("k") == [
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello!"},
    ]


def test_history_keeps_the_twenty_most_recent_entries():
    store = SessionStore(InMemoryStorage())

    for turn in range(11):
        store.append_turn("k", f"user {turn}", f"assistant {turn}")

    history = store.get_history("k")
    assert len(history) == 20
    assert history[0] == {"role": "user", "content": "user 1"}
    assert history[-1] == {"role": "assistant", "content": "assistant 10"}
    expected = []
    for turn in range(1, 11):
        expected += [
            {"role": "user", "content": f"user {turn}"},
            {"role": "assistant", "content": f"assistant {turn}"},
        ]
    assert history == expected


def test_sessions_are_isolated_per_key():
    store = SessionStore(InMemoryStorage())
    store.append_turn("a", "from a", "to a")

    assert store.get_history("b") == []


def test_returned_history_is_a_copy():
    store = SessionStore(InMemoryStorage())
    store.append_turn("k", "hi", "hello")

    store.get_history("k").append({"role": "user", "content": "sneaky"})

    assert len(store.get_history("k")) == 2
