"""
Errors shared across feature packages.
"""

from __future__ import annotations


# Data-store failures are explicit and separable from other runtime errors.
class DataAccessError(RuntimeError):
    def __init__(self, message: str, *, sqlstate: str | None = None) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate
