"""
Core module for cross-cutting concerns.

This module provides:
- Structured logging configuration
- Request tracing middleware
- Access token issuing and verification
- Password hashing
- The error taxonomy shared by the analysis pipeline and the HTTP layer
"""

from core.logging import configure_logging, get_logger
from core.auth import AuthenticatedUser, get_current_user, issue_access_token, require_auth
from core.exceptions import AdvisorError, AnalysisFailed, MalformedInput, UpstreamUnavailable

__all__ = [
    "configure_logging",
    "get_logger",
    "AuthenticatedUser",
    "get_current_user",
    "issue_access_token",
    "require_auth",
    "AdvisorError",
    "AnalysisFailed",
    "MalformedInput",
    "UpstreamUnavailable",
]
