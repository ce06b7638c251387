import asyncio

import pytest

from judge_relay import PollError
from judge_relay.execution.poller import poll_until_terminal
from judge_relay.execution.status import StatusClass, classify_status
from judge_relay.execution.types import PollBudget, StatusSnapshot, SubmissionToken


class _ScriptedEngine:
    def __init__(self, statuses: list[int | None], events: list[str] | None = None, fail_at: int | None = None) -> None:
        self.statuses = statuses
        self.events = events if events is not None else []
        self.fail_at = fail_at
        self.fetches = 0

    async def submit(self, request):
        raise AssertionError("poller must not submit")

    async def fetch_status(self, token: SubmissionToken) -> StatusSnapshot:
        self.fetches += 1
        self.events.append("fetch")
        if self.fail_at == self.fetches:
            raise PollError("connection reset")
        code = self.statuses[min(self.fetches, len(self.statuses)) - 1]
        return StatusSnapshot.from_response({"token": token, "status": {"id": code}, "stdout": f"poll {self.fetches}"})


def _recording_sleep(events: list[str], delays: list[float]):
    async def _sleep(seconds: float) -> None:
        events.append("sleep")
        delays.append(seconds)

    return _sleep


def _poll(engine: _ScriptedEngine, budget: PollBudget, delays: list[float]):
    return asyncio.run(
        poll_until_terminal(
            engine,
            SubmissionToken("tok"),
            budget,
            sleep=_recording_sleep(engine.events, delays),
        )
    )


def test_waits_one_interval_before_every_fetch() -> None:
    delays: list[float] = []
    engine = _ScriptedEngine([1, 2, 3])
    _poll(engine, PollBudget(max_attempts=10, interval_ms=250), delays)
    assert engine.events == ["sleep", "fetch"] * 3
    assert delays == [0.25, 0.25, 0.25]


def test_stops_at_first_terminal_status() -> None:
    delays: list[float] = []
    engine = _ScriptedEngine([2, 4, 3])
    result = _poll(engine, PollBudget(max_attempts=10, interval_ms=1000), delays)
    assert engine.fetches == 2
    assert result.attempts == 2
    assert result.timed_out is False
    assert result.snapshot.status_code == 4
    assert result.snapshot.stdout == "poll 2"


def test_exhaustion_returns_final_pending_snapshot() -> None:
    delays: list[float] = []
    engine = _ScriptedEngine([1, 2])
    result = _poll(engine, PollBudget(max_attempts=4, interval_ms=10), delays)
    assert engine.fetches == 4
    assert result.timed_out is True
    assert result.attempts == 4
    assert result.snapshot.status_code == 2
    assert result.snapshot.stdout == "poll 4"


def test_missing_status_keeps_polling_within_budget() -> None:
    delays: list[float] = []
    engine = _ScriptedEngine([None])
    result = _poll(engine, PollBudget(max_attempts=3, interval_ms=0), delays)
    assert engine.fetches == 3
    assert result.timed_out is True


def test_unknown_status_stops_polling() -> None:
    delays: list[float] = []
    engine = _ScriptedEngine([1, 77])
    result = _poll(engine, PollBudget(max_attempts=10, interval_ms=0), delays)
    assert engine.fetches == 2
    assert result.timed_out is False
    assert result.snapshot.status_code == 77


def test_fetch_failure_aborts_loop() -> None:
    delays: list[float] = []
    engine = _ScriptedEngine([1], fail_at=3)
    with pytest.raises(PollError):
        _poll(engine, PollBudget(max_attempts=10, interval_ms=0), delays)
    assert engine.fetches == 3


@pytest.mark.parametrize("max_attempts", [1, 2, 5, 10])
def test_fetch_count_never_exceeds_budget(max_attempts: int) -> None:
    delays: list[float] = []
    engine = _ScriptedEngine([1])
    _poll(engine, PollBudget(max_attempts=max_attempts, interval_ms=0), delays)
    assert engine.fetches == max_attempts
    assert len(delays) == max_attempts


class _RawBodyEngine(_ScriptedEngine):
    def __init__(self, bodies: list[dict]) -> None:
        super().__init__([])
        self.bodies = bodies

    async def fetch_status(self, token: SubmissionToken) -> StatusSnapshot:
        self.fetches += 1
        self.events.append("fetch")
        return StatusSnapshot.from_response(self.bodies[min(self.fetches, len(self.bodies)) - 1])


@pytest.mark.parametrize("status", [{"id": "weird"}, {"id": True}, {"id": 2.5}, "In Queue"])
def test_malformed_status_stops_polling(status: object) -> None:
    delays: list[float] = []
    engine = _RawBodyEngine([{"token": "tok", "status": status}])
    result = _poll(engine, PollBudget(max_attempts=10, interval_ms=0), delays)
    assert engine.fetches == 1
    assert result.timed_out is False
    assert classify_status(result.snapshot.status_code) is StatusClass.TERMINAL_FAILURE


def test_single_attempt_budget_returns_pending_snapshot() -> None:
    delays: list[float] = []
    engine = _ScriptedEngine([1])
    result = _poll(engine, PollBudget(max_attempts=1, interval_ms=5), delays)
    assert engine.events == ["sleep", "fetch"]
    assert result.attempts == 1
    assert result.timed_out is True
    assert result.snapshot.stdout == "poll 1"
