from __future__ import annotations


class StopNotFound(Exception):
    """Raised when a query cannot be resolved to a single stop.

    `suggestions` holds up to three similar stop names, best first.
    """

    def __init__(self, query: str, suggestions: tuple[str, ...] = ()) -> None:
        super().__init__(f"Stop not found: {query}")
        self.query = query
        self.suggestions = tuple(suggestions)
