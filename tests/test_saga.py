"""Tests for saga execution and compensation."""

from structlog.testing import capture_logs

from orderflow import saga as S
from orderflow._types import Error, LazyCoroResult, Ok


def succeed(value, calls=None):
    async def action():
        if calls is not None:
            calls.append(f"do:{value}")
        return Ok(value)

    return LazyCoroResult(action)


def fail(reason, calls=None):
    async def action():
        if calls is not None:
            calls.append(f"fail:{reason}")
        return Error(reason)

    return LazyCoroResult(action)


def undo(calls, label):
    async def compensate(value):
        calls.append(f"undo:{label}:{value}")

    return compensate


def broken(calls, label):
    async def compensate(value):
        calls.append(f"undo:{label}:{value}")
        raise RuntimeError("compensator down")

    return compensate


class TestSuccess:
    async def test_single_step(self):
        match await S.run(S.step(succeed(1))):
            case Ok(done):
                assert done.value == 1
                assert done.steps_executed == 1
                assert done.compensators_recorded == 0
            case Error(e):
                raise AssertionError(e)

    async def test_chain_threads_values(self):
        calls: list[str] = []
        flow = (
            S.step(succeed(2, calls), compensate=undo(calls, "a"))
            .then(lambda v: S.step(succeed(v * 10, calls), compensate=undo(calls, "b")))
            .then(lambda v: S.step(succeed(v + 1, calls)))
        )

        match await S.run(flow):
            case Ok(done):
                assert done.value == 21
                assert done.steps_executed == 3
                assert done.compensators_recorded == 2
            case Error(e):
                raise AssertionError(e)

        assert calls == ["do:2", "do:20", "do:21"]


class TestCompensation:
    async def test_reverse_order(self):
        calls: list[str] = []
        flow = (
            S.step(succeed("order", calls), compensate=undo(calls, "place"))
            .then(lambda _: S.step(succeed("lines", calls), compensate=undo(calls, "copy")))
            .then(lambda _: S.step(fail("stale", calls)))
        )

        match await S.run(flow):
            case Error(failed):
                assert failed.error == "stale"
                assert failed.step_failed == 3
                assert failed.compensators_run == 2
                assert failed.rollback_complete
            case Ok(done):
                raise AssertionError(done)

        assert calls == [
            "do:order",
            "do:lines",
            "fail:stale",
            "undo:copy:lines",
            "undo:place:order",
        ]

    async def test_first_step_failure_runs_nothing(self):
        calls: list[str] = []
        flow = S.step(fail("nope", calls), compensate=undo(calls, "a")).then(
            lambda v: S.step(succeed(v, calls))
        )

        match await S.run(flow):
            case Error(failed):
                assert failed.step_failed == 1
                assert failed.compensators_run == 0
            case Ok(done):
                raise AssertionError(done)

        assert calls == ["fail:nope"]

    async def test_failing_compensator_does_not_stop_the_rest(self):
        calls: list[str] = []
        flow = (
            S.step(succeed(1, calls), compensate=undo(calls, "first"))
            .then(lambda _: S.step(succeed(2, calls), compensate=broken(calls, "second")))
            .then(lambda _: S.step(fail("boom")))
        )

        with capture_logs() as logs:
            result = await S.run(flow)

        match result:
            case Error(failed):
                assert failed.compensators_run == 1
                assert failed.compensators_failed == 1
                assert not failed.rollback_complete
            case Ok(done):
                raise AssertionError(done)

        assert calls[-2:] == ["undo:second:2", "undo:first:1"]
        assert [entry["step"] for entry in logs if entry["event"] == "saga.compensator_failed"] == [
            "step-2"
        ]
