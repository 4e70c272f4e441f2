"""Stage pipeline for biome generation."""

from .config import GridInfo, PipelineConfig, load_config
from .dataset import DatasetWriter, load_artifact
from .execution import ExecutionEngine, PipelineContext, RngPool
from .logging import RunLogger
from .memory import GridHandle, SnapshotArena
from .models import ArtifactRecord, StageResult, StageStats
from .registry import StageDescriptor, StageRegistry, registry, stage
from .visualization import VisualManager

# Ensure built-in stages are registered on import.
from . import stages  # noqa: F401,E402

__all__ = [
    "GridInfo",
    "PipelineConfig",
    "load_config",
    "DatasetWriter",
    "load_artifact",
    "ExecutionEngine",
    "PipelineContext",
    "RngPool",
    "RunLogger",
    "GridHandle",
    "SnapshotArena",
    "ArtifactRecord",
    "StageResult",
    "StageStats",
    "StageDescriptor",
    "StageRegistry",
    "registry",
    "stage",
    "VisualManager",
]
