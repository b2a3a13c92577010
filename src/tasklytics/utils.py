"""Utility functions for Tasklytics.

This module provides shared helpers used across the package: identifier
generation and diff computation between workspace snapshots.
"""

import time
import uuid
from typing import Any

from tasklytics.models.enums import StateDiffOp
from tasklytics.models.execution import StateDiffEntry


def new_id(prefix: str) -> str:
    """Returns an identifier like 'exec-1718000000000-9f3a1c2b'."""
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


def compute_state_diff(
    old_state: Any, new_state: Any, path_prefix: str = ""
) -> list[StateDiffEntry]:
    """Computes a simplified diff between two workspace state trees.

    Dictionaries are compared key by key and lists are compared by index, so
    a task status change is reported as ``tasks.0.status`` rather than as a
    replacement of the whole task list.

    Args:
        old_state: The original state (as produced by model_dump).
        new_state: The new state.
        path_prefix: Internal recursion helper to build dotted paths.
            Defaults to an empty string.

    Returns:
        A list of StateDiffEntry objects describing the changes between the
        two states.
    """
    if isinstance(old_state, list) and isinstance(new_state, list):
        old_state = {str(i): v for i, v in enumerate(old_state)}
        new_state = {str(i): v for i, v in enumerate(new_state)}

    if not (isinstance(old_state, dict) and isinstance(new_state, dict)):
        if old_state == new_state:
            return []
        return [
            StateDiffEntry(
                path=path_prefix, op=StateDiffOp.REPLACE, value=new_state
            )
        ]

    diffs = []
    keys = list(old_state.keys()) + [k for k in new_state if k not in old_state]
    for key in keys:
        path = f"{path_prefix}.{key}" if path_prefix else str(key)

        if key not in old_state:
            diffs.append(
                StateDiffEntry(
                    path=path, op=StateDiffOp.ADD, value=new_state[key]
                )
            )
        elif key not in new_state:
            diffs.append(
                StateDiffEntry(path=path, op=StateDiffOp.REMOVE, value=None)
            )
        elif old_state[key] != new_state[key]:
            diffs.extend(
                compute_state_diff(old_state[key], new_state[key], path)
            )

    return diffs
