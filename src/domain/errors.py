"""
Classified errors for mail job processing.

Every failure raised while handling a job carries an ErrorKind so the
request handler can map it to a status code without inspecting types:

- CLIENT: the job payload is malformed or incomplete (HTTP 400)
- SERVER: transport, filesystem or configuration failure (HTTP 500)
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Who caused a failure."""
    CLIENT = 'client'
    SERVER = 'server'

    @property
    def status_code(self) -> int:
        """HTTP status code for this kind."""
        return 400 if self is ErrorKind.CLIENT else 500


class JobError(Exception):
    """
    Error raised while validating, rendering or sending a mail job.

    Attributes:
        message: Human-readable message, safe to return to the caller
        kind: ErrorKind classification (defaults to SERVER)
        cause: Underlying exception kept for diagnostics only
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.SERVER,
        cause: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.cause = cause

    @classmethod
    def client(cls, message: str) -> 'JobError':
        """Create an error caused by the caller's input."""
        return cls(message, ErrorKind.CLIENT)

    @classmethod
    def server(cls, message: str, cause: Optional[BaseException] = None) -> 'JobError':
        """Create an operational error, keeping the original exception."""
        return cls(message, ErrorKind.SERVER, cause)

    @property
    def is_client_error(self) -> bool:
        return self.kind is ErrorKind.CLIENT

    def __repr__(self) -> str:
        return f"JobError(kind={self.kind.value}, message={self.message!r}, cause={self.cause!r})"


class TemplateNotFoundError(JobError):
    """Raised when a job references a template that does not exist."""

    def __init__(self, template_id: str):
        super().__init__(f"Template '{template_id}' does not exist.", ErrorKind.CLIENT)
        self.template_id = template_id


class ConfigurationError(JobError):
    """Raised when the mail transport configuration is invalid or missing."""

    def __init__(self, message: str):
        super().__init__(message, ErrorKind.SERVER)
