from .engine import ExecutionEngine
from .judge0_engine import Judge0Engine
from .poller import poll_until_terminal
from .status import StatusClass, classify_status, is_terminal
from .types import ExecutionRequest, ExecutionResult, PollBudget, StatusSnapshot, SubmissionToken

__all__ = [
    "ExecutionEngine",
    "ExecutionRequest",
    "ExecutionResult",
    "Judge0Engine",
    "PollBudget",
    "StatusClass",
    "StatusSnapshot",
    "SubmissionToken",
    "classify_status",
    "is_terminal",
    "poll_until_terminal",
]
