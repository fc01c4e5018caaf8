"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CODEATLAS__SECTION__KEY)
3. Repo YAML (.codeatlas/config.yaml)
4. Global YAML (~/.config/codeatlas/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    CODEATLAS__<SECTION>__<KEY>=<VALUE>

Examples:
    CODEATLAS__LOGGING__LEVEL=DEBUG
    CODEATLAS__ANALYSIS__CONCURRENCY=8
    CODEATLAS__INSIGHTS__MAX_MODULE_LINES=800
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DETECTOR_IDS: tuple[str, ...] = (
    "undocumented-exports",
    "circular-dependencies",
    "oversized-modules",
    "god-modules",
    "orphan-modules",
    "missing-types",
    "inconsistent-naming",
    "deep-nesting",
)


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CODEATLAS__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every skipped file and grammar load.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class AnalysisConfig(BaseModel):
    """Per-file analysis configuration.

    Env vars:
        CODEATLAS__ANALYSIS__MAX_FILE_SIZE: Skip files larger than this (bytes)
        CODEATLAS__ANALYSIS__CONCURRENCY: Parallel extraction workers
    """

    max_file_size: int = Field(
        default=500_000,
        description="Skip files larger than this many bytes. Skipped files are counted.",
    )
    concurrency: int = Field(
        default=4,
        description="Parallel extraction workers. Bounds peak memory on large repositories.",
    )

    @field_validator("max_file_size")
    @classmethod
    def validate_max_file_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"max_file_size must be positive, got {v}")
        return v

    @field_validator("concurrency")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        if not (1 <= v <= 64):
            raise ValueError(f"concurrency must be 1-64, got {v}")
        return v


class InsightsConfig(BaseModel):
    """Static insight detector thresholds.

    All thresholds are exclusive: a value equal to the threshold is not flagged.

    Env vars:
        CODEATLAS__INSIGHTS__MAX_MODULE_LINES: Oversized module line threshold
        CODEATLAS__INSIGHTS__MAX_MODULE_SYMBOLS: Oversized module symbol threshold
        CODEATLAS__INSIGHTS__MAX_CONNECTIONS: God module edge threshold
        CODEATLAS__INSIGHTS__MAX_PATH_DEPTH: Deep nesting threshold
    """

    max_module_lines: int = Field(default=500, description="Oversized if line count exceeds this.")
    max_module_symbols: int = Field(
        default=30, description="Oversized if symbol count exceeds this."
    )
    max_connections: int = Field(
        default=15, description="God module if in+out edges exceed this."
    )
    max_path_depth: int = Field(
        default=5, description="Deeply nested if path segment count exceeds this."
    )
    max_cycles: int = Field(
        default=10,
        description="Stop cycle search once this many cycles are found. "
        "TRADEOFF: Higher values cost more on large graphs.",
    )
    enabled: list[str] = Field(
        default_factory=lambda: list(DETECTOR_IDS),
        description="Detector ids to run.",
    )

    @field_validator("enabled")
    @classmethod
    def validate_enabled(cls, v: list[str]) -> list[str]:
        unknown = [d for d in v if d not in DETECTOR_IDS]
        if unknown:
            raise ValueError(f"Unknown detectors: {', '.join(unknown)}")
        return v


class CacheConfig(BaseModel):
    """Incremental cache configuration.

    Env vars:
        CODEATLAS__CACHE__PATH: Durable cache file (JSON)
    """

    path: str | None = Field(
        default=None,
        description="Durable cache file. Default: .codeatlas/cache.json in the repo.",
    )


class CodeAtlasConfig(BaseModel):
    """Root configuration for CodeAtlas.

    All settings can be configured via:
    1. Environment variables: CODEATLAS__SECTION__KEY
    2. YAML config files (repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    insights: InsightsConfig = Field(default_factory=InsightsConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
