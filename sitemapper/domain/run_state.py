from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional


class RunState(str, Enum):
    INITIALIZING = "Initializing"
    RUNNING = "Running"
    STOPPING = "Stopping"
    STOPPED = "Stopped"
    COMPLETED = "Completed"
    ERROR = "Error"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.STOPPED, RunState.COMPLETED, RunState.ERROR)


@dataclass
class ValidationRunState:
    """Live progress of one validation run."""

    state: RunState = RunState.INITIALIZING
    progress: float = 0.0
    validated_count: int = 0
    total_count: int = 0
    urls_per_second: float = 0.0
    current_batch: int = 0
    total_batches: int = 0
    canceled_count: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["state"] = self.state.value
        return data
