"""Error taxonomy shared by the clients, the upload workflow and the API server.

Hierarchy:
  EfactureError
    ConfigurationError: missing or placeholder configuration, detected at startup.
    ValidationError: malformed file descriptor or selection, rejects the whole batch.
    WorkflowStateError: a workflow step was requested in a phase that does not allow it.
    WorkflowNotFoundError: unknown workflow id.
    TokenStoreError: the token store failed or returned unusable data.
      TokenNotFoundError: no token stored for the subscription.
    PlatformError: non-success response from the invoicing platform.
      AuthenticationError
      UploadSessionError
      ContentUploadError
      CompletionError
"""


class EfactureError(Exception):
    """Base class for all errors raised by this application."""


class ConfigurationError(EfactureError):
    pass


class ValidationError(EfactureError):
    """A file descriptor or file selection failed validation.

    Attributes:
        field (str): Name of the offending field (e.g. "fileName").
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"Invalid {field}: {message}")
        self.field = field


class WorkflowStateError(EfactureError):
    pass


class WorkflowNotFoundError(EfactureError):
    pass


class TokenStoreError(EfactureError):
    pass


class TokenNotFoundError(TokenStoreError):
    def __init__(self, subscription_id: str) -> None:
        super().__init__(f"No token stored for subscription '{subscription_id}'. Authenticate first.")
        self.subscription_id = subscription_id


class PlatformError(EfactureError):
    """Non-success response from the invoicing platform.

    Attributes:
        status_code (int): HTTP status returned by the platform.
        detail (str): Status text or response body, verbatim.
    """

    action = "Request"

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(f"{self.action} failed: {detail}" if detail else f"{self.action} failed with status {status_code}")
        self.status_code = status_code
        self.detail = detail


class AuthenticationError(PlatformError):
    action = "Authentication"


class UploadSessionError(PlatformError):
    action = "Upload session creation"


class ContentUploadError(PlatformError):
    action = "File content upload"


class CompletionError(PlatformError):
    action = "Upload completion"
