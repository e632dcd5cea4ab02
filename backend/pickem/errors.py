"""Domain errors raised by the services layer.

Services never raise HTTP exceptions; ``pickem.main`` registers a handler that
turns these into JSON responses carrying ``status_code``.
"""


class PickemError(Exception):
    """Base application error class."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(PickemError):
    """A match, round or tournament id does not resolve to a live record."""

    status_code = 404


class InvalidStateError(PickemError):
    """The record exists but is not in the state the operation requires."""

    status_code = 409


class ValidationError(PickemError):
    """Malformed input: bad winner, bad score shape, bad year."""

    status_code = 422


class BracketIntegrityError(PickemError):
    """The bracket is inconsistent, e.g. a next-round slot is missing.

    Signals corrupted data rather than a user mistake.
    """

    status_code = 500
