"""
Helper Utilities Module.

Small generic helpers shared by the input handler, the corrector and the
extractor.

Functions:
    - validate_file_exists: Check a path points to a regular file
    - clamp_confidence: Bound a heuristic score to 0-100
"""

from pathlib import Path
from typing import Union


def validate_file_exists(filepath: Union[str, Path]) -> bool:
    """
    Check if a file exists and is a regular file.

    Args:
        filepath: Path to check.

    Returns:
        True if file exists and is a regular file.
    """
    path = Path(filepath)
    return path.exists() and path.is_file()


def clamp_confidence(value: float) -> int:
    """
    Round a heuristic score and bound it to the 0-100 range.

    Example:
        >>> clamp_confidence(104.2)
        100
        >>> clamp_confidence(69.6)
        70
    """
    return max(0, min(100, int(round(value))))
