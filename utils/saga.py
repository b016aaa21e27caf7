# utils/saga.py
"""
Multi-step writes with compensation.

Each step runs an action; if it succeeds, its compensation is pushed on a
stack. When a later step raises, the stack unwinds in reverse order and the
original exception propagates. Compensation failures are logged only.
Compensations must be idempotent (deleting a missing row is a no-op).
"""
from __future__ import annotations

from typing import Any, Callable, Optional, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class Saga:
    def __init__(self, name: str, **context: Any):
        self.name = name
        self.log = logger.bind(saga=name, **context)
        self._compensations: list[tuple[str, Callable[[], Any]]] = []

    def step(self, name: str, action: Callable[[], T], compensate: Optional[Callable[[T], Any]] = None) -> T:
        try:
            result = action()
        except Exception as e:
            self.log.warning("saga_step_failed", step=name, error=str(e))
            self.rollback()
            raise
        if compensate is not None:
            self._compensations.append((name, lambda: compensate(result)))
        return result

    def on_rollback(self, name: str, fn: Callable[[], Any]) -> None:
        """Register a compensation outside of a step."""
        self._compensations.append((name, fn))

    def rollback(self) -> None:
        while self._compensations:
            name, fn = self._compensations.pop()
            try:
                fn()
                self.log.info("saga_compensated", step=name)
            except Exception as e:
                self.log.error("saga_compensation_failed", step=name, error=str(e))
