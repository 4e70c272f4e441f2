"""Pipeline execution engine."""

from __future__ import annotations

import hashlib
import time
from contextlib import contextmanager
from graphlib import CycleError, TopologicalSorter
from typing import Dict, Iterable, Iterator

import numpy as np

from ..biome_file import load_registry
from ..core.biomes import BiomeRegistry
from .config import GridInfo, PipelineConfig
from .dataset import DatasetWriter
from .logging import RunLogger
from .memory import SnapshotArena
from .models import StageResult, StageStats
from .registry import registry
from .visualization import VisualManager


class RngPool:
    """Deterministic RNG factory keyed by stage name."""

    def __init__(self, seed: int) -> None:
        self._seed = int(seed)

    def for_stage(self, stage_name: str) -> np.random.Generator:
        payload = f"{stage_name}:{self._seed}".encode("utf8")
        digest = hashlib.blake2b(payload, digest_size=16)
        seed = int.from_bytes(digest.digest()[:8], "little", signed=False)
        return np.random.default_rng(seed)


class PipelineContext:
    """Shared, read-only state passed to stages during execution."""

    def __init__(
        self,
        config: PipelineConfig,
        biomes: BiomeRegistry,
        arena: SnapshotArena,
        rng_pool: RngPool,
        logger: RunLogger,
    ) -> None:
        self.config = config
        self.biomes = biomes
        self.arena = arena
        self._rng_pool = rng_pool
        self.logger = logger
        self._current_stage: str | None = None

    @property
    def grid(self) -> GridInfo:
        return self.config.grid

    @property
    def seed(self) -> int:
        return self.config.seed

    def rng(self, stage_name: str) -> np.random.Generator:
        return self._rng_pool.for_stage(stage_name)

    def set_current_stage(self, stage_name: str | None) -> None:
        self._current_stage = stage_name

    @contextmanager
    def timed(self, label: str) -> Iterator[None]:
        start = time.perf_counter_ns()
        try:
            yield
        finally:
            end = time.perf_counter_ns()
            self.logger.log_event(
                {
                    "type": "timed_scope",
                    "stage": self._current_stage,
                    "label": label,
                    "duration_ns": end - start,
                }
            )


class ExecutionEngine:
    """Runs registered stages in dependency order with logging and previews."""

    def __init__(
        self,
        config: PipelineConfig,
        *,
        biomes: BiomeRegistry | None = None,
        generate_visuals: bool = False,
    ) -> None:
        config.ensure_directories()
        if biomes is None:
            biomes = load_registry(config.biome_file)
        self._logger = RunLogger(config.run_log_path())
        self._arena = SnapshotArena()
        self._dataset_writer = DatasetWriter(config.run_dataset_dir())
        self._visuals = VisualManager(config.run_visual_dir()) if generate_visuals else None
        self._context = PipelineContext(
            config=config,
            biomes=biomes,
            arena=self._arena,
            rng_pool=RngPool(config.seed),
            logger=self._logger,
        )

    @property
    def context(self) -> PipelineContext:
        return self._context

    def _dependency_graph(self, stages: Iterable[str]) -> Dict[str, set[str]]:
        descriptors = registry().descriptors()
        graph: Dict[str, set[str]] = {}
        pending = list(stages)
        while pending:
            stage_name = pending.pop()
            if stage_name in graph:
                continue
            if stage_name not in descriptors:
                raise KeyError(f"Stage '{stage_name}' not registered")
            inputs = set(descriptors[stage_name].inputs)
            graph[stage_name] = inputs
            pending.extend(inputs)
        return graph

    def _topological_order(self, stages: Iterable[str]) -> list[str]:
        sorter = TopologicalSorter(self._dependency_graph(stages))
        try:
            return list(sorter.static_order())
        except CycleError as exc:
            raise ValueError(f"Invalid stage graph: {exc}") from exc

    def run(self, stages: Iterable[str] | None = None) -> Dict[str, StageResult]:
        """Run ``stages`` (and everything they depend on); default is all stages."""
        descriptors = registry().descriptors()
        selected = list(stages) if stages else list(descriptors.keys())
        results: Dict[str, StageResult] = {}
        try:
            order = self._topological_order(selected)
            self._logger.log_event(
                {
                    "type": "pipeline_plan",
                    "seed": self._context.seed,
                    "grid": self._context.grid.to_dict(),
                    "stages": [descriptors[name].to_dict() for name in order],
                }
            )
            for stage_name in order:
                results[stage_name] = self._run_stage(stage_name, results)
        finally:
            self._logger.close()
        return results

    def _run_stage(self, stage_name: str, results: Dict[str, StageResult]) -> StageResult:
        descriptor = registry().get(stage_name)
        dependencies = {name: results[name] for name in descriptor.inputs}
        stage_config = self._context.config.stage_config(stage_name)
        self._context.set_current_stage(stage_name)
        self._logger.log_stage_start(stage_name)

        start_ns = time.perf_counter_ns()
        start_cpu = time.process_time_ns()
        output = descriptor.callable(self._context, dependencies, stage_config)
        result = StageResult.from_output(stage_name, descriptor.inputs, output)
        missing = descriptor.missing_outputs(result.raw_artifacts)
        if missing:
            raise KeyError(f"Stage '{stage_name}' did not return declared artifacts {list(missing)}")
        self._dataset_writer.persist(result)
        end_ns = time.perf_counter_ns()
        end_cpu = time.process_time_ns()
        result.record_stats(
            StageStats(
                duration_ns=end_ns - start_ns,
                cpu_time_ns=end_cpu - start_cpu,
                memory_bytes=self._arena.stats()["bytes_allocated"],
            )
        )
        if self._visuals:
            if descriptor.visualizer:
                self._visuals.emit_custom(result, descriptor.visualizer, self._context.biomes)
            else:
                self._visuals.emit(result)
        self._logger.log_stage_end(result)
        self._context.set_current_stage(None)
        return result


__all__ = ["ExecutionEngine", "PipelineContext", "RngPool"]
