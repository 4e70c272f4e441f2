"""Stage results, artifact records and timing stats."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

import numpy as np


@dataclass
class StageStats:
    """Timing and memory figures for one stage execution."""

    duration_ns: int
    cpu_time_ns: int
    memory_bytes: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duration_ns": self.duration_ns,
            "cpu_time_ns": self.cpu_time_ns,
            "memory_bytes": self.memory_bytes,
        }


@dataclass
class ArtifactRecord:
    """A persisted stage artifact and its in-memory value."""

    name: str
    kind: str
    checksum: str
    path: Path
    metadata: Dict[str, Any] = field(default_factory=dict)
    value: Any | None = None


@dataclass
class StageResult:
    """Captured outcome of a pipeline stage."""

    stage_name: str
    dependencies: tuple[str, ...]
    raw_artifacts: Dict[str, Any]
    stats: StageStats | None = None
    artifact_records: Dict[str, ArtifactRecord] = field(default_factory=dict)

    @classmethod
    def from_output(cls, stage_name: str, dependencies: Iterable[str], output: "StageOutput") -> "StageResult":
        if not isinstance(output, Mapping):
            raise TypeError(f"Stage '{stage_name}' must return a mapping of artifacts, got {type(output)!r}")
        return cls(stage_name=stage_name, dependencies=tuple(dependencies), raw_artifacts=dict(output))

    def register_artifact(self, record: ArtifactRecord) -> None:
        self.artifact_records[record.name] = record

    def record_stats(self, stats: StageStats) -> None:
        self.stats = stats

    def value(self, name: str) -> Any:
        record = self.artifact_records.get(name)
        if record is None or record.value is None:
            raise KeyError(f"Stage '{self.stage_name}' has no artifact '{name}'")
        return record.value

    def array(self, name: str, dtype: Optional[np.dtype] = None) -> np.ndarray:
        """Read-only numpy view of a grid artifact."""
        value = self.value(name)
        if hasattr(value, "array"):
            value = value.array()
        return np.asarray(value, dtype=dtype)

    @property
    def artifact_checksums(self) -> Dict[str, str]:
        return {name: record.checksum for name, record in self.artifact_records.items()}


StageOutput = Mapping[str, Any]
