import asyncio
import time

import pytest

from judge_relay import (
    ExecutionFailed,
    ExecutionRequest,
    PollBudget,
    PollError,
    SubmissionError,
    run_code,
    run_code_sync,
)
from judge_relay.execution.types import StatusSnapshot, SubmissionToken

REQUEST = ExecutionRequest(source_code="print(input())", language_id=71, stdin="hi")
BUDGET = PollBudget(max_attempts=10, interval_ms=1000)


class _FakeEngine:
    def __init__(
        self,
        statuses: list[int],
        *,
        fail_submit: bool = False,
        fail_fetch_at: int | None = None,
    ) -> None:
        self.statuses = statuses
        self.fail_submit = fail_submit
        self.fail_fetch_at = fail_fetch_at
        self.submitted: list[ExecutionRequest] = []
        self.fetched: list[SubmissionToken] = []

    async def submit(self, request: ExecutionRequest) -> SubmissionToken:
        self.submitted.append(request)
        if self.fail_submit:
            raise SubmissionError("Failed to reach engine")
        return SubmissionToken(f"tok-{len(self.submitted)}")

    async def fetch_status(self, token: SubmissionToken) -> StatusSnapshot:
        self.fetched.append(token)
        count = sum(1 for seen in self.fetched if seen == token)
        if self.fail_fetch_at == count:
            raise PollError("connection reset")
        code = self.statuses[min(count, len(self.statuses)) - 1]
        return StatusSnapshot.from_response({"token": token, "status": {"id": code}, "stdout": f"{token}:{count}"})


class _Clock:
    def __init__(self) -> None:
        self.elapsed = 0.0

    async def sleep(self, seconds: float) -> None:
        self.elapsed += seconds


def _run(engine: _FakeEngine, clock: _Clock, budget: PollBudget = BUDGET):
    return asyncio.run(run_code(REQUEST, engine, budget, sleep=clock.sleep))


def test_first_fetch_terminal_success() -> None:
    engine, clock = _FakeEngine([3]), _Clock()
    result = _run(engine, clock)
    assert len(engine.fetched) == 1
    assert result.snapshot.status_code == 3
    assert result.timed_out is False
    assert clock.elapsed == pytest.approx(1.0)


def test_terminal_failure_on_third_fetch() -> None:
    engine, clock = _FakeEngine([1, 2, 11]), _Clock()
    result = _run(engine, clock)
    assert len(engine.fetched) == 3
    assert result.snapshot.status_code == 11
    assert result.attempts == 3
    assert clock.elapsed == pytest.approx(3.0)


def test_all_fetches_pending_returns_last_snapshot() -> None:
    engine, clock = _FakeEngine([1, 2]), _Clock()
    result = _run(engine, clock)
    assert len(engine.fetched) == 10
    assert result.timed_out is True
    assert result.snapshot.status_code == 2
    assert result.snapshot.stdout == "tok-1:10"
    assert clock.elapsed == pytest.approx(10.0)


def test_submission_failure_performs_no_fetches() -> None:
    engine, clock = _FakeEngine([3], fail_submit=True), _Clock()
    with pytest.raises(ExecutionFailed) as exc:
        _run(engine, clock)
    assert isinstance(exc.value.__cause__, SubmissionError)
    assert engine.fetched == []
    assert clock.elapsed == 0.0


def test_poll_failure_is_generic_failure_with_tagged_cause() -> None:
    engine, clock = _FakeEngine([1], fail_fetch_at=2), _Clock()
    with pytest.raises(ExecutionFailed, match="Code execution failed") as exc:
        _run(engine, clock)
    assert isinstance(exc.value.__cause__, PollError)
    assert len(engine.fetched) == 2


def test_identical_requests_get_independent_tokens_and_loops() -> None:
    engine = _FakeEngine([1, 3])

    async def _both():
        clock_a, clock_b = _Clock(), _Clock()
        return await asyncio.gather(
            run_code(REQUEST, engine, BUDGET, sleep=clock_a.sleep),
            run_code(REQUEST, engine, BUDGET, sleep=clock_b.sleep),
        )

    first, second = asyncio.run(_both())
    assert engine.submitted == [REQUEST, REQUEST]
    assert first.snapshot.raw["token"] != second.snapshot.raw["token"]
    assert sorted(engine.fetched) == ["tok-1", "tok-1", "tok-2", "tok-2"]
    assert first.attempts == second.attempts == 2


def test_default_budget_is_ten_attempts() -> None:
    engine, clock = _FakeEngine([1]), _Clock()
    result = asyncio.run(run_code(REQUEST, engine, sleep=clock.sleep))
    assert result.attempts == 10
    assert clock.elapsed == pytest.approx(10.0)


def test_elapsed_wall_time_tracks_interval() -> None:
    engine = _FakeEngine([1, 1, 3])
    started = time.monotonic()
    result = run_code_sync(REQUEST, engine, PollBudget(max_attempts=5, interval_ms=20))
    elapsed = time.monotonic() - started
    assert result.attempts == 3
    assert elapsed >= 0.05
    assert elapsed < 2.0
