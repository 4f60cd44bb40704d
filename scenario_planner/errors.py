"""Exception types raised by the scenario planner core."""

from __future__ import annotations


class ScenarioPlannerError(Exception):
    """Base class for scenario planner failures."""


class InvalidInputError(ScenarioPlannerError, ValueError):
    """Metric or multiplier input is missing, non-numeric, or non-finite."""


class FormatError(ScenarioPlannerError, ValueError):
    """Transfer file is not a valid export envelope."""


class TypeMismatchError(ScenarioPlannerError):
    """Transfer envelope was produced by a different calculator type."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Invalid file type. Expected {expected}, got {actual}")


class StoreError(ScenarioPlannerError):
    """Underlying state storage failed."""


class StoreReadError(StoreError):
    pass


class StoreWriteError(StoreError):
    pass
