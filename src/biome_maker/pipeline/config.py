"""Configuration models for staged biome-map runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional
import uuid

import yaml


@dataclass(frozen=True)
class GridInfo:
    """Dimensions shared by every grid of a run."""

    height: int
    width: int

    @property
    def shape(self) -> tuple[int, int]:
        return (self.height, self.width)

    def to_dict(self) -> Dict[str, Any]:
        return {"height": self.height, "width": self.width}


def _expand_dir(path: Path) -> Path:
    return Path(path).expanduser().resolve()


def _default_run_id() -> str:
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return f"run-{timestamp}-{uuid.uuid4().hex[:8]}"


@dataclass
class PipelineConfig:
    """Top-level configuration for a pipeline run."""

    grid: GridInfo
    run_id: str = field(default_factory=_default_run_id)
    seed: int = 0
    output_dir: Path = field(default_factory=lambda: Path("out"))
    log_dir: Path = field(default_factory=lambda: Path("logs"))
    biome_file: Optional[Path] = None
    stage_overrides: Dict[str, Mapping[str, Any]] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "PipelineConfig":
        width = mapping.get("width")
        height = mapping.get("height")
        if width is None or height is None:
            raise ValueError("Pipeline config requires 'width' and 'height'")
        grid = GridInfo(height=int(height), width=int(width))
        if grid.width <= 0 or grid.height <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {grid.width}x{grid.height}")

        run_id = mapping.get("run_id") or _default_run_id()
        seed = int(mapping.get("seed", 0))
        output_dir = _expand_dir(Path(mapping.get("output_dir", "out")))
        log_dir = _expand_dir(Path(mapping.get("log_dir", output_dir / "logs")))
        biome_file = mapping.get("biome_file")

        overrides = mapping.get("stage_overrides", {})
        if not isinstance(overrides, MutableMapping):
            raise TypeError("stage_overrides must be a mapping of stage names to configuration dicts")
        stage_overrides: Dict[str, Mapping[str, Any]] = {}
        for key, value in overrides.items():
            if not isinstance(value, Mapping):
                raise TypeError(f"Stage override '{key}' must be a mapping, got {type(value)!r}")
            stage_overrides[str(key)] = dict(value)

        extra = dict(mapping)
        for consumed in ("width", "height", "run_id", "seed", "output_dir", "log_dir", "biome_file", "stage_overrides"):
            extra.pop(consumed, None)

        return cls(
            grid=grid,
            run_id=str(run_id),
            seed=seed,
            output_dir=output_dir,
            log_dir=log_dir,
            biome_file=_expand_dir(Path(biome_file)) if biome_file else None,
            stage_overrides=stage_overrides,
            extra=extra,
        )

    @classmethod
    def from_file(cls, path: Path | str) -> "PipelineConfig":
        path = Path(path).expanduser()
        if not path.exists():
            raise FileNotFoundError(path)
        with path.open("r", encoding="utf8") as fh:
            if path.suffix.lower() in {".yml", ".yaml"}:
                data = yaml.safe_load(fh)
            else:
                data = json.load(fh)
        if not isinstance(data, Mapping):
            raise TypeError(f"Configuration file must contain a mapping, got {type(data)!r}")
        return cls.from_mapping(data)

    def ensure_directories(self) -> None:
        for directory in (self.output_dir, self.log_dir, self.run_dataset_dir()):
            directory.mkdir(parents=True, exist_ok=True)

    def stage_config(self, stage_name: str) -> Mapping[str, Any]:
        return self.stage_overrides.get(stage_name, {})

    def run_output_dir(self) -> Path:
        return _expand_dir(self.output_dir / self.run_id)

    def run_visual_dir(self) -> Path:
        return _expand_dir(self.run_output_dir() / "visuals")

    def run_dataset_dir(self) -> Path:
        return _expand_dir(self.run_output_dir() / "datasets")

    def run_log_path(self) -> Path:
        return _expand_dir(self.log_dir / f"{self.run_id}.jsonl")


def load_config(source: Path | str) -> PipelineConfig:
    """Convenience helper for CLI consumers."""
    return PipelineConfig.from_file(source)
