"""``{{path}}`` template substitution for flow action configs."""

import re
from typing import Any

from tasklytics.flows.paths import is_absent, lookup, stringify

TOKEN_PATTERN = re.compile(r"\{\{([^}]+)\}\}")


def interpolate(template: Any, payload: Any, snapshot: Any = None) -> Any:
    """Replaces ``{{dotted.path}}`` tokens with resolved values.

    Tokens that resolve to nothing are left in place so that a broken
    template stays visible. Non-string templates are returned unchanged.
    """
    if not isinstance(template, str):
        return template

    def _replace(match: re.Match) -> str:
        value = lookup(match.group(1).strip(), payload, snapshot)
        if is_absent(value):
            return match.group(0)
        return stringify(value)

    return TOKEN_PATTERN.sub(_replace, template)
