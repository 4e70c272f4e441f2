"""Stage table for the biome pipeline.

Stages register themselves at import time through :func:`stage`. The
execution engine turns each descriptor's ``inputs`` into a dependency graph
and checks every returned mapping against the declared ``outputs``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from .models import StageOutput, StageResult

StageCallable = Callable[["PipelineContext", Mapping[str, StageResult], Mapping[str, Any]], StageOutput]
StageVisualizer = Callable[..., Optional[Iterable["VisualizationResult"]]]


@dataclass(frozen=True)
class StageDescriptor:
    name: str
    inputs: tuple[str, ...]
    outputs: tuple[str, ...]
    callable: StageCallable
    version: str = "v1"
    visualizer: Optional[StageVisualizer] = None
    description: Optional[str] = None

    def missing_outputs(self, output: Mapping[str, Any]) -> tuple[str, ...]:
        """Declared artifact names absent from ``output``."""
        return tuple(name for name in self.outputs if name not in output)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "inputs": list(self.inputs),
            "outputs": list(self.outputs),
            "version": self.version,
        }


class StageRegistry:
    """Name -> descriptor table shared by the whole process."""

    def __init__(self) -> None:
        self._stages: Dict[str, StageDescriptor] = {}

    def register(self, descriptor: StageDescriptor) -> None:
        if descriptor.name in self._stages:
            raise ValueError(f"Stage '{descriptor.name}' already registered")
        if descriptor.name in descriptor.inputs:
            raise ValueError(f"Stage '{descriptor.name}' cannot depend on itself")
        self._stages[descriptor.name] = descriptor

    def get(self, name: str) -> StageDescriptor:
        try:
            return self._stages[name]
        except KeyError as exc:
            raise KeyError(f"Unknown stage '{name}'") from exc

    def clear(self) -> None:
        self._stages.clear()

    def descriptors(self) -> Dict[str, StageDescriptor]:
        return dict(self._stages)

    def __contains__(self, name: str) -> bool:
        return name in self._stages


_REGISTRY = StageRegistry()


def stage(
    name: str,
    inputs: Iterable[str] | None = None,
    outputs: Iterable[str] | None = None,
    *,
    version: str = "v1",
    visualizer: StageVisualizer | None = None,
    description: str | None = None,
) -> Callable[[StageCallable], StageCallable]:
    """Register the decorated function as pipeline stage ``name``.

    ``inputs`` names the stages whose results arrive in the function's
    ``deps`` mapping. ``outputs`` lists the artifact names the returned
    mapping must contain; extra artifacts are allowed.
    """

    def decorator(func: StageCallable) -> StageCallable:
        _REGISTRY.register(
            StageDescriptor(
                name=name,
                inputs=tuple(inputs or ()),
                outputs=tuple(outputs or ()),
                callable=func,
                version=version,
                visualizer=visualizer,
                description=description or func.__doc__,
            )
        )
        return func

    return decorator


def registry() -> StageRegistry:
    return _REGISTRY


__all__ = ["StageDescriptor", "StageRegistry", "registry", "stage"]
