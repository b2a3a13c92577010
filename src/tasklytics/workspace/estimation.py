"""Story-point estimation helpers used when tasks are created."""

POINTS_BY_DIFFICULTY = {"XS": 1, "S": 2, "M": 5, "L": 8, "XL": 13}
DEFAULT_POINTS = 3


def points_for_difficulty(difficulty: str) -> int:
    return POINTS_BY_DIFFICULTY.get(difficulty, DEFAULT_POINTS)


def infer_difficulty_from_text(line: str) -> str:
    """Guesses a T-shirt size from the length of a task description."""
    length = len(line or "")
    if length < 40:
        return "S"
    if length < 120:
        return "M"
    return "L"
