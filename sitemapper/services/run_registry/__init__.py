from .models import RunHandle, RunRecord
from .registry import InMemoryRunRegistry

__all__ = ["RunHandle", "RunRecord", "InMemoryRunRegistry"]
