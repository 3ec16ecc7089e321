"""
Error taxonomy shared by the grouping and best-pick pipelines.

Validation errors are the caller's fault and are echoed back verbatim.
Per-item failures are captured as data by the services and never raised
past them. Everything else is systemic for the current request only.
"""
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class InputValidationError(ValueError):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class EmbeddingModelError(RuntimeError):
    """The shared embedding extractor could not be constructed."""


class ScorerError(RuntimeError):
    """The quality scorer failed or answered with something unusable."""


class ScorerConfigurationError(ScorerError):
    pass


def sanitize_error_message(error: BaseException) -> str:
    if isinstance(error, InputValidationError):
        return error.message

    if isinstance(error, EmbeddingModelError):
        return "Embedding model is unavailable, please retry"
    if isinstance(error, ScorerConfigurationError):
        return "Quality scorer is not configured"
    if isinstance(error, ScorerError):
        return "Quality scoring failed"

    if isinstance(error, FileNotFoundError):
        return "File or directory not found"
    if isinstance(error, PermissionError):
        return "Permission denied"
    if isinstance(error, IsADirectoryError):
        return "Path is a directory, not a file"

    logger.error(f"Internal error: {error!r}")
    return "An internal error occurred"


def error_payload(error: BaseException, status: int = 500) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"error": sanitize_error_message(error), "status": status}
    field = getattr(error, "field", None)
    if field:
        payload["field"] = field
    return payload
