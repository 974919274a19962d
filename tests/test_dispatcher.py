"""Tests for routing pushed repositories to actions."""

import pytest

from conftest import DictLookup, RecordingAction
from pushrelay.actions.base import ApiError, NetworkError, StackNotFoundError
from pushrelay.core.dispatcher import Dispatcher


class TestDispatcher:
    async def test_hit_invokes_action_once(self, action):
        dispatcher = Dispatcher(DictLookup({"myrepo": "stackA"}), action)
        report = await dispatcher.dispatch(["myrepo"])
        assert action.calls == ["stackA"]
        assert report.as_dict() == {"triggered": 1, "ignored": 0, "failed": 0}

    async def test_miss_invokes_nothing(self, action):
        dispatcher = Dispatcher(DictLookup({"myrepo": "stackA"}), action)
        report = await dispatcher.dispatch(["unknown"])
        assert action.calls == []
        assert report.ignored == 1

    async def test_processes_in_order(self, action):
        lookup = DictLookup({"a": "A", "b": "B", "c": "C"})
        await Dispatcher(lookup, action).dispatch(["c", "a", "b"])
        assert lookup.queries == ["c", "a", "b"]
        assert action.calls == ["C", "A", "B"]

    async def test_duplicates_are_not_deduplicated(self, action):
        await Dispatcher(DictLookup({"a": "A"}), action).dispatch(["a", "a"])
        assert action.calls == ["A", "A"]

    @pytest.mark.parametrize("error", [
        StackNotFoundError("A"),
        ApiError("PUT returned 500", status_code=500),
        NetworkError("connection refused"),
        RuntimeError("unexpected"),
    ])
    async def test_failure_does_not_stop_later_items(self, error):
        action = RecordingAction(failures={"A": error})
        lookup = DictLookup({"a": "A", "b": "B"})
        report = await Dispatcher(lookup, action).dispatch(["a", "missing", "b"])
        assert action.calls == ["A", "B"]
        assert report.as_dict() == {"triggered": 1, "ignored": 1, "failed": 1}

    async def test_lookup_exception_is_contained(self, action):
        class BrokenLookup(DictLookup):
            async def lookup(self, repository):
                if repository == "bad":
                    raise RuntimeError("lookup exploded")
                return await super().lookup(repository)

        report = await Dispatcher(BrokenLookup({"ok": "OK"}), action).dispatch(["bad", "ok"])
        assert action.calls == ["OK"]
        assert report.failed == 1
        assert report.triggered == 1

    async def test_empty_list(self, action):
        report = await Dispatcher(DictLookup({}), action).dispatch([])
        assert report.as_dict() == {"triggered": 0, "ignored": 0, "failed": 0}
