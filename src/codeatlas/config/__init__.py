"""Config module exports."""

from codeatlas.config.loader import CodeAtlasSettings, get_cache_path, load_config
from codeatlas.config.models import (
    AnalysisConfig,
    CacheConfig,
    CodeAtlasConfig,
    InsightsConfig,
    LoggingConfig,
)

__all__ = [
    "load_config",
    "get_cache_path",
    "CodeAtlasConfig",
    "CodeAtlasSettings",
    "AnalysisConfig",
    "CacheConfig",
    "InsightsConfig",
    "LoggingConfig",
]
