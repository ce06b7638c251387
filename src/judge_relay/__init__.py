from .errors import ExecutionError, ExecutionFailed, PollError, SubmissionError
from .execution.judge0_engine import Judge0Engine
from .execution.types import ExecutionRequest, ExecutionResult, PollBudget, StatusSnapshot
from .runner import run_code, run_code_sync
from .service import handle_execute
from .settings import RelaySettings

__all__ = [
    "ExecutionError",
    "ExecutionFailed",
    "ExecutionRequest",
    "ExecutionResult",
    "Judge0Engine",
    "PollBudget",
    "PollError",
    "RelaySettings",
    "StatusSnapshot",
    "SubmissionError",
    "handle_execute",
    "run_code",
    "run_code_sync",
]
