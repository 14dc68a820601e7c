class ScheduleError(Exception):
    """Base exception for static schedule failures."""


class StoreInitError(ScheduleError):
    """Raised when the schedule store cannot be built from the dataset."""


class NotFound(ScheduleError):
    """Raised when a trip, stop or route lookup has no match."""

    def __init__(self, kind: str, identifier: str) -> None:
        super().__init__(f"{kind} not found: {identifier}")
        self.kind = kind
        self.identifier = identifier
