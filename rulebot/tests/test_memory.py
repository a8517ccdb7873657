"""
Tests for Memory

Current values, timestamped history and conversation history.
"""

import threading
from unittest.mock import patch


class TestStateParams:
    """Tests for set/get of state parameters"""

    def test_unknown_param_is_none(self):
        from rulebot.common.memory import Memory
        memory = Memory()
        assert memory.get_state_param("missing") is None
        assert memory.get_state_param_history("missing") == []
        assert not memory.has_history("missing")

    def test_set_overwrites_current_and_appends_history(self):
        from rulebot.common.memory import Memory
        memory = Memory()
        memory.set_state_param("s", "a")
        memory.set_state_param("s", "b")

        assert memory.get_state_param("s") == "b"
        assert [entry.value for entry in memory.get_state_param_history("s")] == ["a", "b"]

    def test_names_are_case_sensitive(self):
        from rulebot.common.memory import Memory
        memory = Memory()
        memory.set_state_param("State", 1)
        assert memory.get_state_param("state") is None

    def test_previous_param(self):
        from rulebot.common.memory import Memory
        memory = Memory()
        memory.set_state_param("x", "first")
        assert memory.get_previous_state_param("x") is None

        memory.set_state_param("x", "second")
        assert memory.get_previous_state_param("x") == "first"


class TestHistory:
    """Tests for history windows, snapshots and clearing"""

    def test_timestamps_never_go_backwards(self):
        from rulebot.common.memory import Memory
        memory = Memory()

        with patch("rulebot.common.memory._now_ms", side_effect=[1000, 900, 1100]):
            memory.set_state_param("x", 1)
            memory.set_state_param("x", 2)
            memory.set_state_param("x", 3)

        timestamps = [entry.timestamp for entry in memory.get_state_param_history("x")]
        assert timestamps == [1000, 1000, 1100]

    def test_history_window_bounds_are_inclusive(self):
        from rulebot.common.memory import Memory
        memory = Memory()

        with patch("rulebot.common.memory._now_ms", side_effect=[100, 200, 300]):
            memory.set_state_param("x", "a")
            memory.set_state_param("x", "b")
            memory.set_state_param("x", "c")

        window = memory.get_state_param_history("x", start=200, end=300)
        assert [entry.value for entry in window] == ["b", "c"]
        assert [e.value for e in memory.get_state_param_history("x", end=100)] == ["a"]

    def test_state_snapshot_is_a_copy(self):
        from rulebot.common.memory import Memory
        memory = Memory()
        memory.set_state_param("x", 1)

        snapshot = memory.get_state()
        snapshot["x"] = 2
        assert memory.get_state_param("x") == 1

    def test_state_history_snapshot(self):
        from rulebot.common.memory import Memory
        memory = Memory()
        memory.set_state_param("a", 1)
        memory.set_state_param("b", 2)

        history = memory.get_state_history()
        assert set(history) == {"a", "b"}
        assert history["a"][0].value == 1

    def test_clear_history_keeps_current_values(self):
        from rulebot.common.memory import Memory
        memory = Memory()
        memory.set_state_param("x", 1)
        memory.clear_history()

        assert memory.get_state_param("x") == 1
        assert not memory.has_history("x")

    def test_reset_drops_everything(self):
        from rulebot.common.memory import Memory
        memory = Memory()
        memory.set_state_param("x", 1)
        memory.reset()

        assert memory.get_state() == {}
        assert memory.get_state_history() == {}

    def test_concurrent_writes_keep_every_entry(self):
        from rulebot.common.memory import Memory
        memory = Memory()

        def writer(tag):
            for i in range(200):
                memory.set_state_param("counter", f"{tag}-{i}")

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(memory.get_state_param_history("counter")) == 800


class TestConversationHistory:
    def test_turns_are_recorded_in_order(self):
        from rulebot.common.memory import Memory, CONVERSATION_HISTORY_PARAM
        memory = Memory()
        memory.add_to_conversation_history("user", "hi")
        memory.add_to_conversation_history("assistant", "hello")

        assert memory.get_conversation_history() == [("user", "hi"), ("assistant", "hello")]
        assert memory.has_history(CONVERSATION_HISTORY_PARAM)

    def test_empty_history(self):
        from rulebot.common.memory import Memory
        assert Memory().get_conversation_history() == []
