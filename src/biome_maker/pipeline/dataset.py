"""Writes stage artifacts into the run's dataset directory."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import numpy as np
import pyarrow as pa
import pyarrow.feather as feather

from .memory import GridHandle
from .models import ArtifactRecord, StageResult


def _hash_bytes(data: bytes) -> str:
    hasher = hashlib.blake2b()
    hasher.update(data)
    return hasher.hexdigest()


class DatasetWriter:
    """Persists artifacts (``.npy`` grids, Arrow tables, JSON) per stage."""

    def __init__(self, dataset_root: Path) -> None:
        self._dataset_root = dataset_root
        dataset_root.mkdir(parents=True, exist_ok=True)

    def stage_dir(self, stage_name: str) -> Path:
        path = self._dataset_root / stage_name
        path.mkdir(parents=True, exist_ok=True)
        return path

    def persist(self, stage_result: StageResult) -> None:
        stage_dir = self.stage_dir(stage_result.stage_name)
        for name, value in stage_result.raw_artifacts.items():
            stage_result.register_artifact(self._write_artifact(stage_dir, name, value))
        stage_result.raw_artifacts.clear()

    def _write_artifact(self, stage_dir: Path, name: str, value: Any) -> ArtifactRecord:
        if isinstance(value, GridHandle):
            value.seal()
            return self._write_grid(stage_dir, name, value.array(), value, value.checksum())
        if isinstance(value, np.ndarray):
            array = np.ascontiguousarray(value)
            return self._write_grid(stage_dir, name, array, array, _hash_bytes(array.tobytes()))
        if isinstance(value, pa.Table):
            return self._write_arrow_table(stage_dir, name, value)
        if isinstance(value, (dict, list, int, float, str, bool)) or value is None:
            return self._write_json(stage_dir, name, value)
        raise TypeError(f"Unsupported artifact type for '{name}': {type(value)!r}")

    def _write_grid(self, stage_dir: Path, name: str, array: np.ndarray, value: Any, checksum: str) -> ArtifactRecord:
        path = stage_dir / f"{name}.npy"
        np.save(path, array, allow_pickle=False)
        return ArtifactRecord(
            name=name,
            kind="grid",
            checksum=checksum,
            path=path,
            metadata={"shape": list(array.shape), "dtype": str(array.dtype)},
            value=value,
        )

    def _write_arrow_table(self, stage_dir: Path, name: str, table: pa.Table) -> ArtifactRecord:
        path = stage_dir / f"{name}.arrow"
        feather.write_feather(table, path)
        return ArtifactRecord(
            name=name,
            kind="arrow",
            checksum=_hash_bytes(path.read_bytes()),
            path=path,
            metadata={"rows": table.num_rows, "schema": table.schema.to_string()},
            value=table,
        )

    def _write_json(self, stage_dir: Path, name: str, value: Any) -> ArtifactRecord:
        path = stage_dir / f"{name}.json"
        encoded = json.dumps(value, sort_keys=True).encode("utf8")
        path.write_bytes(encoded)
        return ArtifactRecord(
            name=name,
            kind="json",
            checksum=_hash_bytes(encoded),
            path=path,
            value=value,
        )


def load_artifact(record: ArtifactRecord) -> Any:
    """Read a persisted artifact back from disk."""
    if record.kind == "grid":
        return np.load(record.path, allow_pickle=False)
    if record.kind == "arrow":
        return feather.read_table(record.path)
    if record.kind == "json":
        return json.loads(record.path.read_text(encoding="utf8"))
    raise ValueError(f"Unknown artifact kind '{record.kind}'")


__all__ = ["DatasetWriter", "load_artifact"]
