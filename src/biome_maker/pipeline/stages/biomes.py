"""Stages 2-6: classification, coastline, spreading, distance and variants."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Mapping

import numpy as np
import pyarrow as pa

from ...core.census import census
from ...core.classify import classify_grid
from ...core.coast import resolve_coastline
from ...core.distance import LAND_THRESHOLD, land_mask, water_distance
from ...core.spread import SpreadSettings, spread
from ...core.variants import apply_variants
from ..registry import stage
from ..visualization import render_biome_artifacts
from .noise import ARTIFACT_NAMES


@dataclass(frozen=True)
class DistanceStageConfig:
    land_threshold: float = LAND_THRESHOLD

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, object]) -> "DistanceStageConfig":
        if not mapping:
            return cls()
        return cls(land_threshold=float(mapping.get("land_threshold", cls.land_threshold)))  # type: ignore[arg-type]


def _fields(noise_result) -> Dict[str, np.ndarray]:
    return {name: noise_result.array(artifact) for name, artifact in ARTIFACT_NAMES.items()}


def _changed(before: np.ndarray, after: np.ndarray) -> int:
    return int((before != after).sum())


def census_table(grid: np.ndarray, biomes) -> pa.Table:
    rows = census(grid, biomes)
    return pa.table(
        {
            "id": pa.array([row["id"] for row in rows], type=pa.int32()),
            "name": pa.array([row["name"] for row in rows], type=pa.string()),
            "count": pa.array([row["count"] for row in rows], type=pa.int64()),
            "fraction": pa.array([row["fraction"] for row in rows], type=pa.float64()),
        }
    )


@stage("classify", inputs=("noise",), outputs=("BaseBiomes",), visualizer=render_biome_artifacts)
def classify_stage(context, deps, config_mapping):
    """Base biome per cell from the blended noise fields."""
    fields = _fields(deps["noise"])
    with context.timed("classify_grid"):
        grid = classify_grid(
            fields["land"], fields["temp"], fields["humidity"], fields["height"], context.biomes, context.rng("classify")
        )
    context.logger.log_event(
        {
            "type": "classify_summary",
            "stage": "classify",
            "distinct_biomes": int(np.unique(grid).size),
            "default_cells": int((grid == context.biomes.default_id).sum()),
        }
    )
    return {"BaseBiomes": context.arena.snapshot("base_biomes", grid, dtype=np.int32)}


@stage("coastline", inputs=("classify",), outputs=("CoastBiomes",), visualizer=render_biome_artifacts)
def coastline_stage(context, deps, config_mapping):
    """Coast overlay on land cells touching open water."""
    base = deps["classify"].array("BaseBiomes")
    grid = resolve_coastline(base, context.biomes)
    context.logger.log_event({"type": "coastline_summary", "stage": "coastline", "coast_cells": _changed(base, grid)})
    return {"CoastBiomes": context.arena.snapshot("coast_biomes", grid, dtype=np.int32)}


@stage("spread", inputs=("coastline", "noise"), outputs=("SpreadBiomes",), visualizer=render_biome_artifacts)
def spread_stage(context, deps, config_mapping):
    """Jungle/mangrove bleed followed by corrupted-land dilation."""
    settings = SpreadSettings.from_mapping(config_mapping)
    fields = _fields(deps["noise"])
    coasted = deps["coastline"].array("CoastBiomes")
    with context.timed("spread"):
        grid = spread(coasted, fields["temp"], fields["humidity"], fields["height"], context.biomes, settings)
    context.logger.log_event(
        {
            "type": "spread_summary",
            "stage": "spread",
            "iterations": settings.iterations,
            "changed_cells": _changed(coasted, grid),
        }
    )
    return {"SpreadBiomes": context.arena.snapshot("spread_biomes", grid, dtype=np.int32)}


@stage("distance", inputs=("noise",), outputs=("LandMask", "WaterDistance"))
def distance_stage(context, deps, config_mapping):
    """Grid-step distance to the nearest water cell of the land/water mask."""
    config = DistanceStageConfig.from_mapping(config_mapping)
    land = deps["noise"].array(ARTIFACT_NAMES["land"])
    is_land = land_mask(land, config.land_threshold)
    with context.timed("water_distance"):
        distance = water_distance(is_land)
    finite = distance[np.isfinite(distance)]
    context.logger.log_event(
        {
            "type": "distance_summary",
            "stage": "distance",
            "land_threshold": config.land_threshold,
            "land_fraction": float(is_land.mean()),
            "max_distance": float(finite.max()) if finite.size else None,
        }
    )
    return {
        "LandMask": context.arena.snapshot("land_mask", is_land, dtype=np.uint8),
        "WaterDistance": context.arena.snapshot("water_distance", distance, dtype=np.float32),
    }


@stage(
    "variants",
    inputs=("spread", "distance", "noise"),
    outputs=("BiomeGrid", "BiomeCensus", "BiomeMetadata"),
    visualizer=render_biome_artifacts,
)
def variants_stage(context, deps, config_mapping):
    """Variant overlays producing the final biome grid."""
    fields = _fields(deps["noise"])
    spread_grid = deps["spread"].array("SpreadBiomes")
    distance = deps["distance"].array("WaterDistance")
    with context.timed("apply_variants"):
        grid = apply_variants(
            spread_grid,
            fields["land"],
            fields["temp"],
            fields["humidity"],
            fields["height"],
            distance,
            context.biomes,
            context.rng("variants"),
        )
    table = census_table(grid, context.biomes)
    metadata = {
        "seed": context.seed,
        "grid": context.grid.to_dict(),
        "variant_cells": _changed(spread_grid, grid),
        "distinct_biomes": table.num_rows,
        "inert_variants": [d.name for d in context.biomes.inert_variants()],
        "spread": asdict(SpreadSettings.from_mapping(context.config.stage_config("spread"))),
    }
    context.logger.log_event({"type": "variants_summary", "stage": "variants", **metadata})
    return {
        "BiomeGrid": context.arena.snapshot("biome_grid", grid, dtype=np.int32),
        "BiomeCensus": table,
        "BiomeMetadata": metadata,
    }


__all__ = [
    "DistanceStageConfig",
    "census_table",
    "classify_stage",
    "coastline_stage",
    "distance_stage",
    "spread_stage",
    "variants_stage",
]
