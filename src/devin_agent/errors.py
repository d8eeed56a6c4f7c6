"""
Devin agent error types.

Every error carries a stable ``code`` so callers (and the CLI) can branch on
the failure kind without parsing messages.
"""

from typing import Any, Optional

AUTH_FAILED_MESSAGE = "Authentication failed. Please check your Devin API key."
INSUFFICIENT_CREDITS_MESSAGE = (
    "Insufficient credits. Your Devin AI account has run out of credits. "
    "Please add more credits to your account and try again."
)


class DevinError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details


class InvalidCredential(DevinError):
    def __init__(self, message: str = "Invalid Devin API key provided. Please check your credentials."):
        super().__init__("invalid_credential", message)


class AuthenticationError(DevinError):
    def __init__(self, message: str = AUTH_FAILED_MESSAGE, status_code: Optional[int] = None):
        super().__init__("auth_error", message, {"status_code": status_code} if status_code else None)
        self.status_code = status_code


class InsufficientCredits(DevinError):
    def __init__(self, message: str = INSUFFICIENT_CREDITS_MESSAGE, status_code: Optional[int] = None):
        super().__init__("insufficient_credits", message, {"status_code": status_code} if status_code else None)
        self.status_code = status_code


class NetworkError(DevinError):
    def __init__(self, cause_code: str):
        super().__init__(
            "network_error",
            "Network error: Could not connect to Devin AI API. "
            f"Please check your internet connection and try again. ({cause_code})",
            {"cause_code": cause_code},
        )
        self.cause_code = cause_code


class TransientServiceError(DevinError):
    """429 or 5xx from the service; raised once retries are exhausted."""

    def __init__(self, message: str, status_code: int):
        super().__init__("transient_error", message, {"status_code": status_code})
        self.status_code = status_code


class NormalizationError(DevinError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("normalization_error", message, details)


class AgentTerminated(DevinError):
    def __init__(self, message: str = "DevinAgent has been terminated"):
        super().__init__("agent_terminated", message)


class RequestAborted(DevinError):
    def __init__(self, message: str = "Request aborted"):
        super().__init__("request_aborted", message)
