"""PNG previews of stage artifacts."""

from __future__ import annotations

from dataclasses import dataclass
import math
from pathlib import Path
from typing import Any, List

import numpy as np
from PIL import Image

from ..core.biomes import BiomeRegistry
from ..generate import colorize
from .models import ArtifactRecord, StageResult


@dataclass(frozen=True)
class VisualizationRequest:
    stage_name: str
    output_dir: Path
    artifacts: List[ArtifactRecord]


@dataclass(frozen=True)
class VisualizationResult:
    path: Path
    artifact_name: str
    metadata: dict[str, Any]


class VisualManager:
    """Renders one PNG per grid artifact, or defers to a stage visualizer."""

    def __init__(self, output_root: Path) -> None:
        self._output_root = output_root
        output_root.mkdir(parents=True, exist_ok=True)

    def make_request(self, stage_result: StageResult) -> VisualizationRequest:
        stage_dir = self._output_root / stage_result.stage_name
        stage_dir.mkdir(parents=True, exist_ok=True)
        return VisualizationRequest(
            stage_name=stage_result.stage_name,
            output_dir=stage_dir,
            artifacts=list(stage_result.artifact_records.values()),
        )

    def emit(self, stage_result: StageResult) -> list[VisualizationResult]:
        request = self.make_request(stage_result)
        results: list[VisualizationResult] = []
        for artifact in request.artifacts:
            if artifact.kind != "grid" or artifact.value is None:
                continue
            image = Image.fromarray(_normalize_array(_to_array(artifact.value)))
            path = request.output_dir / f"{artifact.name}.png"
            image.save(path)
            results.append(VisualizationResult(path=path, artifact_name=artifact.name, metadata={"checksum": artifact.checksum}))
        return results

    def emit_custom(self, stage_result: StageResult, visualizer, biomes: BiomeRegistry) -> list[VisualizationResult]:
        request = self.make_request(stage_result)
        result = visualizer(stage_result, request, biomes)
        if result is None:
            return []
        if isinstance(result, VisualizationResult):
            return [result]
        return list(result)


def render_biome_artifacts(
    stage_result: StageResult, request: VisualizationRequest, biomes: BiomeRegistry
) -> list[VisualizationResult]:
    """Colour every integer grid artifact with the registry's biome colours."""
    results = []
    for artifact in request.artifacts:
        if artifact.kind != "grid" or artifact.value is None:
            continue
        array = _to_array(artifact.value)
        if not np.issubdtype(array.dtype, np.integer):
            image = Image.fromarray(_normalize_array(array))
        else:
            image = Image.fromarray(colorize(array, biomes))
        path = request.output_dir / f"{artifact.name}.png"
        image.save(path)
        results.append(VisualizationResult(path=path, artifact_name=artifact.name, metadata={"checksum": artifact.checksum}))
    return results


def _to_array(value: Any) -> np.ndarray:
    if hasattr(value, "array"):
        return np.asarray(value.array())
    return np.asarray(value)


def _normalize_array(array: np.ndarray) -> np.ndarray:
    array = np.asarray(array, dtype=np.float64)
    finite = array[np.isfinite(array)]
    if finite.size == 0:
        return np.zeros(array.shape, dtype=np.uint8)
    low = float(finite.min())
    high = float(finite.max())
    if math.isclose(low, high):
        high = low + 1.0
    scaled = np.clip((array - low) / (high - low), 0.0, 1.0)
    scaled[~np.isfinite(array)] = 1.0
    return (scaled * 255).astype(np.uint8)


__all__ = [
    "VisualManager",
    "VisualizationRequest",
    "VisualizationResult",
    "render_biome_artifacts",
]
