"""Exceptions raised at the edges of the placement package.

The solver itself never raises for impossible geometry; these cover
malformed input files.
"""


class PlacementError(Exception):
    """Base exception for the placement package."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidLayoutError(PlacementError):
    """A layout snapshot could not be parsed or validated."""

    def __init__(self, message: str, source: str | None = None):
        details = {"source": source} if source else {}
        super().__init__(message, details)
        self.source = source
