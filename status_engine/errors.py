"""Exceptions raised by the status engine and its store."""


class StatusPageError(Exception):
    """Base class for status page errors."""


class ValidationError(StatusPageError, ValueError):
    """A service, intervention or comment violates one of its invariants."""

    def __init__(self, field: str, message: str):
        """
        Args:
            field: Name of the offending field (e.g. 'end_date')
            message: Human readable description of the violated rule
        """
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message

    def to_dict(self):
        return {'field': self.field, 'message': self.message}


class NotFound(StatusPageError, LookupError):
    """A query referenced an unknown service or intervention."""

    def __init__(self, kind: str, identifier):
        super().__init__(f"{kind} {identifier!r} not found")
        self.kind = kind
        self.identifier = identifier


class IntegrityError(StatusPageError):
    """The store handed out a snapshot that breaks referential integrity."""
