from unittest import mock

import pytest

from kn.crds.const import SERVICE_GVR
from kn.errors import NotFoundError
from kn.testing.recorder import ANY, Recorder, matches


class TestRecorder:
    def test_returns_recorded_result(self) -> None:
        recorder = Recorder("client")
        recorder.add("Get", ["a"], result={"name": "a"})
        assert recorder.verify_call("Get", "a") == {"name": "a"}
        recorder.check_all_called()

    def test_argument_mismatch_fails(self) -> None:
        recorder = Recorder("client")
        recorder.add("Get", ["a"])
        with pytest.raises(AssertionError, match="argument 0 of Get differs"):
            recorder.verify_call("Get", "b")

    def test_method_mismatch_fails(self) -> None:
        recorder = Recorder("client")
        recorder.add("Get", ["a"])
        with pytest.raises(AssertionError, match="expected call Get"):
            recorder.verify_call("List", "a")

    def test_unexpected_call_fails(self) -> None:
        with pytest.raises(AssertionError, match="no more calls recorded"):
            Recorder("client").verify_call("Get", "a")

    def test_unconsumed_calls_fail(self) -> None:
        recorder = Recorder("client")
        recorder.add("Get", ["a"])
        recorder.add("Delete", ["a"])
        recorder.verify_call("Get", "a")
        assert len(recorder) == 1
        with pytest.raises(AssertionError, match=r"not consumed: Delete\('a'\)"):
            recorder.check_all_called()

    def test_recorded_error_is_raised(self) -> None:
        recorder = Recorder("client")
        recorder.add("Get", ["a"], error=NotFoundError("absent"))
        with pytest.raises(NotFoundError, match="absent"):
            recorder.verify_call("Get", "a")

    def test_calls_are_consumed_in_order(self) -> None:
        recorder = Recorder("client")
        recorder.add("Get", ["a"], result=1)
        recorder.add("Get", ["a"], result=2)
        assert [recorder.verify_call("Get", "a"), recorder.verify_call("Get", "a")] == [1, 2]


class TestMatches:
    def test_any_matches_at_any_depth(self) -> None:
        assert matches(ANY, object())
        assert matches({"metadata": {"name": ANY}}, {"metadata": {"name": "foo"}})
        assert matches([1, ANY], (1, "x"))

    def test_any_is_the_standard_sentinel(self) -> None:
        assert ANY is mock.ANY
        assert matches({"spec": mock.ANY}, {"spec": {"template": {}}})

    def test_deep_comparison(self) -> None:
        assert not matches({"a": 1}, {"a": 1, "b": 2})
        assert not matches([1, 2], [1])
        assert matches(SERVICE_GVR, SERVICE_GVR)

    def test_callables_cannot_be_compared(self) -> None:
        with pytest.raises(TypeError):
            matches(lambda: None, 1)
