from __future__ import annotations


class ExecutionError(Exception):
    """Base class for failures while running code on a remote engine."""


class SubmissionError(ExecutionError):
    """The engine could not be reached, rejected the job, or returned no token."""


class PollError(ExecutionError):
    """A status fetch failed; the poll loop was aborted."""


class ExecutionFailed(ExecutionError):
    """Generic execution failure surfaced to callers of `run_code`.

    The tagged cause (`SubmissionError` or `PollError`) is kept as `__cause__`.
    """
