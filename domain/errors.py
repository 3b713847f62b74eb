"""Error taxonomy. Every error raised by the services derives from CRMError."""


class CRMError(Exception):
    """Base class for application errors."""


class ValidationError(CRMError):
    """Rejected input: unknown status, negative hours or rates, bad percentages."""


class RecordNotFoundError(CRMError):
    """A client, project, offer or invoice id does not exist."""


class NumberConflictError(CRMError):
    """The document number is already taken. Retry with a freshly computed one."""

    def __init__(self, number: str):
        super().__init__(f"Document number already in use: {number}")
        self.number = number


class PartialFailureError(CRMError):
    """A coupled write did not complete; the primary change was rolled back."""
