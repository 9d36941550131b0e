"""
Pipeline stage contracts.

Every enrichment stage reports back through a StageResult so the orchestrator
can decide between "degrade and continue" and "fail the attempt" without
inspecting log output.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class EnrichmentState(str, Enum):
    """Orchestrator states, in the order a successful run visits them."""
    PENDING = 'pending'
    FETCHING = 'fetching'
    EXTRACTING = 'extracting'
    RESEARCHING = 'researching'
    INFERRING = 'inferring'
    PERSISTING = 'persisting'
    DONE = 'done'
    FAILED = 'failed'


@dataclass
class StageResult:
    """
    Uniform output from every pipeline stage.

    Three shapes:
      success  — value set, error None
      degraded — value holds the fallback (e.g. ''), error explains why
      failure  — value None, error set, degraded False
    """
    value: Any = None
    error: Optional[str] = None
    degraded: bool = False

    @property
    def failed(self) -> bool:
        return self.error is not None and not self.degraded

    @classmethod
    def success(cls, value):
        return cls(value=value)

    @classmethod
    def degrade(cls, fallback, error: str):
        return cls(value=fallback, error=error, degraded=True)

    @classmethod
    def failure(cls, error: str):
        return cls(error=error)
