"""Domain errors raised by the services and translated by the routers."""


class TimesheetError(ValueError):
    """Base class for timesheet business errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(TimesheetError):
    """Referenced time entry does not exist."""


class InvalidStateError(TimesheetError):
    """Operation is not allowed in the entry's current state."""


class ValidationError(TimesheetError):
    """Malformed input (blank employee name, bad month, inverted interval)."""
