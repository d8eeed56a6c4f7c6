"""
devin-agent — Devin AI client for Python.

Dispatches coding requests to the Devin API and normalizes session output
into a uniform response-item stream for terminal UIs.
"""

from devin_agent.agent import DevinAgent, format_input, user_message
from devin_agent.config import AppConfig, load_config
from devin_agent.credentials import mask_for_logging, sanitize_error_message, validate_api_key
from devin_agent.errors import (
    AgentTerminated,
    AuthenticationError,
    DevinError,
    InsufficientCredits,
    InvalidCredential,
    NetworkError,
    NormalizationError,
    RequestAborted,
    TransientServiceError,
)
from devin_agent.models.items import ResponseItem
from devin_agent.policy import ApprovalPolicy, is_devin_model
from devin_agent.sessions import SessionsAPI

__version__ = "0.1.0"
__all__ = [
    "DevinAgent",
    "SessionsAPI",
    "AppConfig",
    "load_config",
    "ResponseItem",
    "ApprovalPolicy",
    "is_devin_model",
    "format_input",
    "user_message",
    "validate_api_key",
    "mask_for_logging",
    "sanitize_error_message",
    "DevinError",
    "InvalidCredential",
    "AuthenticationError",
    "InsufficientCredits",
    "NetworkError",
    "TransientServiceError",
    "NormalizationError",
    "AgentTerminated",
    "RequestAborted",
]
