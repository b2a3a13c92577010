"""Bounded, most-recent-first log of flow execution records."""

import json
from collections import deque
from pathlib import Path
from typing import Optional

from tasklytics.models.execution import ExecutionRecord
from tasklytics.observability.logging import get_logger

logger = get_logger(__name__)


class JsonlExecutionLogger:
    """Appends execution records to a JSONL audit file."""

    def __init__(self, path: str = "./flow_executions.jsonl") -> None:
        self.path = Path(path)

    def write(self, record: ExecutionRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record.model_dump(mode="json"), ensure_ascii=False) + "\n")


class ExecutionLog:
    """Ring buffer of execution records.

    Appending past ``capacity`` evicts the oldest record. Records are
    returned newest first.
    """

    def __init__(
        self,
        capacity: int = 100,
        audit: Optional[JsonlExecutionLogger] = None,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._records: deque[ExecutionRecord] = deque(maxlen=capacity)
        self._audit = audit

    def append(self, record: ExecutionRecord) -> None:
        self._records.appendleft(record)
        if self._audit is not None:
            try:
                self._audit.write(record)
            except OSError:
                logger.exception("Failed to write execution audit record")

    def recent(self, limit: int = 50) -> list[ExecutionRecord]:
        return [r.model_copy(deep=True) for r in list(self._records)[:limit]]

    def get(self, execution_id: str) -> Optional[ExecutionRecord]:
        for record in self._records:
            if record.id == execution_id:
                return record.model_copy(deep=True)
        return None

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)
