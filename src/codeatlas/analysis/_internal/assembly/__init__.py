"""Module and manifest assembly."""

from codeatlas.analysis._internal.assembly.assembler import ModuleAssembler, count_lines
from codeatlas.analysis._internal.assembly.manifest import (
    ManifestBuilder,
    compute_project_meta,
    compute_stats,
    is_entry_point,
    merge_modules,
)

__all__ = [
    "ManifestBuilder",
    "ModuleAssembler",
    "compute_project_meta",
    "compute_stats",
    "count_lines",
    "is_entry_point",
    "merge_modules",
]
