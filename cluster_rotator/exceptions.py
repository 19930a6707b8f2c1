"""Custom exceptions for cluster rotation."""


class RotationError(Exception):
    """Base exception for all cluster rotation errors."""

    def __init__(self, message: str, details: str = None):
        """Initialize the exception.

        Args:
            message: Main error message
            details: Additional details or suggestions
        """
        self.message = message
        self.details = details
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the complete error message.

        Returns:
            Formatted error message with details
        """
        if self.details:
            return f"{self.message}\n\nDetails: {self.details}"
        return self.message


class CollaboratorError(RotationError):
    """A single call to an external collaborator failed.

    These failures are transient: the retrying executor absorbs them until
    its attempt budget runs out.
    """

    pass


class KubernetesError(CollaboratorError):
    """Exception raised for Kubernetes API errors."""

    pass


class ExecutorTimeoutError(RotationError):
    """Exception raised when an action exhausts its attempt budget."""

    def __init__(self, description: str, attempts: int, last_error: Exception | None = None):
        self.description = description
        self.attempts = attempts
        self.last_error = last_error
        details = f"Last error: {last_error}" if last_error is not None else None
        super().__init__(f"Timed out after {attempts} attempts: {description}", details)


class HealthCheckError(RotationError):
    """Exception raised when a health check does not pass."""

    def __init__(self, check, cause: Exception):
        self.check = check
        self.cause = cause
        name = getattr(check, "value", check)
        super().__init__(f"Health check '{name}' failed", str(cause))


class SnapshotError(RotationError):
    """Exception raised when the cluster inventory cannot be captured."""

    pass


class ReplacementError(RotationError):
    """Exception raised when a replacement step fails."""

    def __init__(self, step: str, node: str | None, cause: Exception):
        self.step = step
        self.node = node
        self.cause = cause
        target = f" for node '{node}'" if node else ""
        super().__init__(f"Replacement step '{step}' failed{target}", str(cause))


class ConfigurationError(RotationError):
    """Exception raised for configuration errors."""

    pass
