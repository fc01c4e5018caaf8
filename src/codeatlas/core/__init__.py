"""Core module exports."""

from codeatlas.core.errors import (
    CacheError,
    CodeAtlasError,
    ConfigError,
    ErrorCode,
    ExtractionError,
    GrammarError,
    GrammarNotFound,
    InternalError,
)
from codeatlas.core.hashing import compute_composite_hash, compute_content_hash
from codeatlas.core.languages import detect_language, get_display_name
from codeatlas.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    run_scope,
    set_run_id,
)

__all__ = [
    # Errors
    "CacheError",
    "CodeAtlasError",
    "ConfigError",
    "ErrorCode",
    "ExtractionError",
    "GrammarError",
    "GrammarNotFound",
    "InternalError",
    # Hashing
    "compute_composite_hash",
    "compute_content_hash",
    # Languages
    "detect_language",
    "get_display_name",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "run_scope",
    "set_run_id",
]
