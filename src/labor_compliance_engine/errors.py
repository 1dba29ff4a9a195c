"""Exception hierarchy for the compliance engine.

Only ValidationError ever reaches an API caller (as a 400). Collaborator,
model, and audit failures are recovered locally by the component that
observes them and turned into degraded evaluations.
"""


class ComplianceEngineError(Exception):
    """Base error for the compliance engine.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        """Initialize ComplianceEngineError.

        Args:
            message: Error description.
        """
        super().__init__(message)
        self.message = message


class ValidationError(ComplianceEngineError):
    """Raised when a submission or query is missing fields or malformed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class CollaboratorError(ComplianceEngineError):
    """Raised when a read from an external collaborator (balances, ledger, knowledge) fails."""

    def __init__(self, collaborator: str, message: str) -> None:
        super().__init__(f"{collaborator}: {message}")
        self.collaborator = collaborator


class ModelClientError(ComplianceEngineError):
    """Raised when the language model call fails or no model is configured."""


class AuditWriteError(ComplianceEngineError):
    """Raised when compliance check records cannot be persisted."""
