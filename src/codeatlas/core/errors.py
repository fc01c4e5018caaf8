"""CodeAtlas error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Grammar runtime
- 4xxx: Extraction
- 5xxx: Cache
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_REQUIRED = 2003
    CONFIG_FILE_NOT_FOUND = 2004

    # Grammar runtime (3xxx)
    GRAMMAR_NOT_FOUND = 3001
    GRAMMAR_LOAD_FAILED = 3002

    # Extraction (4xxx)
    EXTRACTION_FAILED = 4001

    # Cache (5xxx)
    CACHE_CORRUPT = 5001
    CACHE_VERSION_MISMATCH = 5002

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class CodeAtlasError(Exception):
    """Base error with structured context for callers and logs."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'GRAMMAR_NOT_FOUND')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON reports."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CodeAtlasError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def missing_required(cls, field: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_MISSING_REQUIRED,
            message=f"Missing required config field: {field}",
            details={"field": field},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class GrammarError(CodeAtlasError):
    """Grammar runtime errors. These halt an analysis run."""

    @classmethod
    def not_found(cls, language: str, supported: list[str]) -> "GrammarError":
        return cls(
            code=ErrorCode.GRAMMAR_NOT_FOUND,
            message=(
                f"No grammar for language '{language}'. "
                f"Supported languages: {', '.join(supported)}"
            ),
            details={"language": language, "supported": supported},
        )

    @classmethod
    def load_failed(cls, language: str, reason: str) -> "GrammarError":
        return cls(
            code=ErrorCode.GRAMMAR_LOAD_FAILED,
            message=f"Failed to load grammar for '{language}': {reason}",
            details={"language": language, "reason": reason},
        )


# Alias matching the name used throughout the analysis docs.
GrammarNotFound = GrammarError


class ExtractionError(CodeAtlasError):
    """Per-file extraction failure. Recovered by skipping the file."""

    @classmethod
    def failed(cls, file_path: str, language: str, reason: str) -> "ExtractionError":
        return cls(
            code=ErrorCode.EXTRACTION_FAILED,
            message=f"Failed to extract {file_path} ({language}): {reason}",
            details={"path": file_path, "language": language, "reason": reason},
        )


class CacheError(CodeAtlasError):
    """Durable cache errors. Never surfaced past the cache loader."""

    @classmethod
    def corrupt(cls, source: str, reason: str) -> "CacheError":
        return cls(
            code=ErrorCode.CACHE_CORRUPT,
            message=f"Cache at {source} is unreadable: {reason}",
            details={"source": source, "reason": reason},
        )

    @classmethod
    def version_mismatch(cls, found: Any, expected: int) -> "CacheError":
        return cls(
            code=ErrorCode.CACHE_VERSION_MISMATCH,
            message=f"Cache version {found!r} does not match expected {expected}",
            details={"found": str(found), "expected": expected},
        )


class InternalError(CodeAtlasError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
