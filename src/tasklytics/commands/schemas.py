"""JSON Schemas for command inputs, keyed by command type."""

from typing import Any

from tasklytics.models import command as c

_EMPTY: dict[str, Any] = {
    "type": "object",
    "description": "This command takes no inputs.",
    "properties": {},
}

_INTEGERISH = {
    "anyOf": [
        {"type": "integer"},
        {"type": "string", "pattern": r"^-?\d+$"},
    ]
}

COMMAND_SCHEMAS: dict[str, dict[str, Any]] = {
    c.SET_VIEW: {
        "type": "object",
        "description": "Switch the active workspace view.",
        "required": ["view"],
        "properties": {"view": {"type": "string", "minLength": 1}},
    },
    c.CREATE_TASK: {
        "type": "object",
        "description": "Create a task on the board.",
        "properties": {
            "title": {"type": "string"},
            "status": {"type": "string"},
            "assignee": {"type": "string"},
            "points": _INTEGERISH,
            "difficulty": {"type": "string"},
            "taskType": {"type": "string"},
            "tags": {"type": "array", "items": {"type": "string"}},
        },
    },
    c.MOVE_TASK: {
        "type": "object",
        "description": "Move a task to another board column.",
        "required": ["taskId", "toStatus"],
        "properties": {
            "taskId": {"type": "string", "minLength": 1},
            "fromStatus": {"type": ["string", "null"]},
            "toStatus": {"type": "string", "minLength": 1},
        },
    },
    c.UPDATE_TASK_FIELD: {
        "type": "object",
        "description": "Set a single field on a task.",
        "required": ["taskId", "field"],
        "properties": {
            "taskId": {"type": "string", "minLength": 1},
            "field": {"type": "string", "minLength": 1, "not": {"const": "id"}},
            "value": {},
        },
    },
    c.UPDATE_BRIEF: {
        "type": "object",
        "description": "Replace the project brief text.",
        "required": ["text"],
        "properties": {"text": {"type": "string"}},
    },
    c.LOCK_BRIEF: _EMPTY,
    c.UNLOCK_BRIEF: _EMPTY,
    c.GENERATE_TASKS_FROM_BRIEF: _EMPTY,
    c.UPDATE_TIMELINE: {
        "type": "object",
        "description": "Move or resize a timeline bar.",
        "required": ["itemId"],
        "properties": {
            "itemId": {"type": "string", "minLength": 1},
            "startOffset": _INTEGERISH,
            "duration": _INTEGERISH,
        },
    },
    c.CREATE_DOC: {
        "type": "object",
        "description": "Create a markdown document.",
        "properties": {
            "title": {"type": "string"},
            "content": {"type": "string"},
        },
    },
    c.COMMIT: _EMPTY,
}
