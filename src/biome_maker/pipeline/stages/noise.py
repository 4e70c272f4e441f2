"""Stage 1: the four climate/terrain noise fields."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

import numpy as np

from ...core.noise import generate_field
from ...generate import FIELD_DEFAULTS, FIELD_NAMES
from ..registry import stage

ARTIFACT_NAMES = {
    "land": "Land",
    "temp": "Temperature",
    "humidity": "Humidity",
    "height": "Height",
}


@dataclass(frozen=True)
class FieldSpec:
    seed_offset: int
    scale: float
    octaves: int = 4
    persistence: float = 0.5


@dataclass(frozen=True)
class NoiseStageConfig:
    land: FieldSpec
    temp: FieldSpec
    humidity: FieldSpec
    height: FieldSpec

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, object]) -> "NoiseStageConfig":
        specs = {}
        for name in FIELD_NAMES:
            offset, scale = FIELD_DEFAULTS[name]
            entry = mapping.get(name, {}) if mapping else {}
            if not isinstance(entry, Mapping):
                raise TypeError(f"Noise settings for '{name}' must be a mapping, got {type(entry)!r}")
            specs[name] = FieldSpec(
                seed_offset=int(entry.get("seed_offset", offset)),
                scale=float(entry.get("scale", scale)),
                octaves=int(entry.get("octaves", 4)),
                persistence=float(entry.get("persistence", 0.5)),
            )
        return cls(**specs)


@stage("noise", outputs=tuple(ARTIFACT_NAMES.values()))
def noise_stage(context, deps, config_mapping):
    """Sample land, temperature, humidity and height noise for the run grid."""
    config = NoiseStageConfig.from_mapping(config_mapping)
    grid = context.grid
    outputs = {}
    summary = {}
    for name in FIELD_NAMES:
        spec: FieldSpec = getattr(config, name)
        with context.timed(f"noise_{name}"):
            field = generate_field(
                context.seed + spec.seed_offset,
                grid.width,
                grid.height,
                spec.scale,
                octaves=spec.octaves,
                persistence=spec.persistence,
            )
        outputs[ARTIFACT_NAMES[name]] = context.arena.snapshot(f"noise_{name}", field, dtype=np.float32)
        summary[name] = {"mean": float(field.mean()), "scale": spec.scale, "octaves": spec.octaves}

    context.logger.log_event({"type": "noise_summary", "stage": "noise", "seed": context.seed, "fields": summary})
    return outputs


__all__ = ["ARTIFACT_NAMES", "FieldSpec", "NoiseStageConfig", "noise_stage"]
