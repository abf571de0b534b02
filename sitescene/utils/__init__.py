"""Utility modules."""

from .logging_config import (
    setup_logging,
    default_log_file,
    ContextFormatter,
    JSONLineFormatter,
)
from .validation import (
    validate_coordinates,
    validate_parameters,
    validate_upload_filename,
)

__all__ = [
    # Logging
    "setup_logging",
    "default_log_file",
    "ContextFormatter",
    "JSONLineFormatter",
    # Validation
    "validate_coordinates",
    "validate_parameters",
    "validate_upload_filename",
]
