"""Snapshot-based undo/redo/commit history for the workspace.

Every workspace mutation goes through ``HistoryEngine.apply_change``. The
engine keeps a linear list of snapshots, a cursor (``current_index``) and a
commit baseline (``commit_index``) that undo and jump never cross.
"""

from typing import Any, Callable, Optional

from tasklytics.models.execution import StateDiffEntry
from tasklytics.models.snapshot import WorkspaceSnapshot, utc_now
from tasklytics.observability.logging import get_logger
from tasklytics.utils import compute_state_diff

logger = get_logger(__name__)

Mutator = Callable[[WorkspaceSnapshot], Any]

COMMITTED_SUFFIX = " (committed)"


class HistoryEngine:
    """Linear undo/redo history over workspace snapshots.

    Invariants: ``0 <= commit_index <= current_index < len(snapshots)`` and
    no two stored snapshots share mutable substructure. Invalid undo, redo
    and jump requests are ignored rather than raised.

    Not thread-safe; the owner must serialize calls.
    """

    def __init__(self, initial: WorkspaceSnapshot):
        self._snapshots: list[WorkspaceSnapshot] = [initial.model_copy(deep=True)]
        self._current_index = 0
        self._commit_index = 0

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def commit_index(self) -> int:
        return self._commit_index

    @property
    def current_snapshot(self) -> WorkspaceSnapshot:
        """A detached copy of the current snapshot."""
        return self._snapshots[self._current_index].model_copy(deep=True)

    @property
    def can_undo(self) -> bool:
        return self._current_index > self._commit_index

    @property
    def can_redo(self) -> bool:
        return self._current_index < len(self._snapshots) - 1

    @property
    def uncommitted_steps(self) -> int:
        return self._current_index - self._commit_index

    def __len__(self) -> int:
        return len(self._snapshots)

    def snapshot_at(self, index: int) -> Optional[WorkspaceSnapshot]:
        if 0 <= index < len(self._snapshots):
            return self._snapshots[index].model_copy(deep=True)
        return None

    def apply_change(
        self, label: str, mutator: Optional[Mutator] = None
    ) -> Optional[WorkspaceSnapshot]:
        """Records a new snapshot produced by ``mutator``.

        The mutator receives a private deep copy of the current snapshot and
        may change it freely. If it raises, nothing is recorded.

        Args:
            label: Description of the change shown in the history panel.
            mutator: Callable that mutates the snapshot copy in place.

        Returns:
            A copy of the new snapshot, or None if the mutator failed.
        """
        clone = self._snapshots[self._current_index].model_copy(deep=True)

        if mutator is not None:
            try:
                mutator(clone)
            except Exception:
                logger.exception(
                    "History change abandoned: mutator raised",
                    extra={"extra_fields": {"label": label}},
                )
                return None

        # Stamped before the redo branch is discarded, so ids may skip
        clone.id = len(self._snapshots)
        clone.label = label
        clone.timestamp = utc_now()
        clone.committed = False
        # The mutator may have kept a reference to its copy
        stored = clone.model_copy(deep=True)

        del self._snapshots[self._current_index + 1 :]
        self._snapshots.append(stored)
        self._current_index = len(self._snapshots) - 1

        logger.debug(
            "History change applied",
            extra={
                "extra_fields": {
                    "label": label,
                    "snapshot_id": stored.id,
                    "index": self._current_index,
                }
            },
        )
        return stored.model_copy(deep=True)

    def undo(self) -> bool:
        if not self.can_undo:
            return False
        self._current_index -= 1
        return True

    def redo(self) -> bool:
        if not self.can_redo:
            return False
        self._current_index += 1
        return True

    def commit(self) -> WorkspaceSnapshot:
        """Marks the current snapshot as the new non-undoable baseline."""
        snap = self._snapshots[self._current_index]
        label = snap.label or "Snapshot"
        if not snap.committed:
            label = f"{label}{COMMITTED_SUFFIX}"
        self._snapshots[self._current_index] = snap.model_copy(
            update={"committed": True, "label": label}, deep=True
        )
        self._commit_index = self._current_index
        logger.info(
            "History committed",
            extra={"extra_fields": {"commit_index": self._commit_index}},
        )
        return self.current_snapshot

    def jump(self, index: int) -> bool:
        """Moves the cursor to ``index`` within [commit_index, len - 1]."""
        if index < self._commit_index or index < 0 or index >= len(self._snapshots):
            return False
        self._current_index = index
        return True

    def entries(self) -> list[dict[str, Any]]:
        """Rows for the history panel, oldest first."""
        return [
            {
                "index": i,
                "id": snap.id,
                "label": snap.label,
                "timestamp": snap.timestamp,
                "committed": snap.committed,
                "current": i == self._current_index,
                "reachable": i >= self._commit_index,
            }
            for i, snap in enumerate(self._snapshots)
        ]

    def diff(self, from_index: int, to_index: int) -> list[StateDiffEntry]:
        """Changes between two stored snapshots, ignoring history metadata."""
        for index in (from_index, to_index):
            if not 0 <= index < len(self._snapshots):
                raise IndexError(f"No snapshot at index {index}")
        return compute_state_diff(
            self._snapshots[from_index].state_dict(),
            self._snapshots[to_index].state_dict(),
        )
