"""
Error taxonomy for the deformation pipeline.

Every failure raised while handling a request is a DeformationError carrying
its category and the HTTP status it is answered with.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Error categories for classification"""
    CLIENT_INPUT = "client_input"  # Bad method, missing or invalid fields
    CONFIGURATION = "configuration"  # Missing credential or settings
    UPSTREAM = "upstream"  # Network or provider failure
    DECODE = "decode"  # Malformed or schema-mismatched model output


class DeformationError(Exception):
    """Base exception for request handling failures"""

    category: ErrorCategory = ErrorCategory.UPSTREAM
    status_code: int = 500

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.metadata = metadata or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary"""
        return {
            "message": self.message,
            "category": self.category.value,
            "status_code": self.status_code,
            "metadata": self.metadata,
        }


class ClientInputError(DeformationError):
    """Request rejected before any external call"""
    category = ErrorCategory.CLIENT_INPUT
    status_code = 400


class ConfigurationError(DeformationError):
    """Service is not configured to reach the provider"""
    category = ErrorCategory.CONFIGURATION


class UpstreamError(DeformationError):
    """Completion provider could not be reached or answered with an error"""
    category = ErrorCategory.UPSTREAM


class DecodeError(DeformationError):
    """Model reply could not be turned into deformations"""
    category = ErrorCategory.DECODE
