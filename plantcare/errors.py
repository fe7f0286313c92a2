from __future__ import annotations

from typing import List, Optional


class PlantCareError(Exception):
    """Base class for errors raised inside the plantcare package."""


class NetworkFailure(PlantCareError):
    """A poll or chat request did not complete (connection error, timeout)."""


class UpstreamFailure(PlantCareError):
    """The model server answered, but not with something usable."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidInput(PlantCareError):
    """A sensor payload that cannot be applied to the snapshot."""

    def __init__(self, message: str, errors: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])
