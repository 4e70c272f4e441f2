"""Loading biome registries from YAML or JSON files."""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any, Mapping

import structlog
import yaml

from .core.biomes import BiomeRegistry

logger = structlog.get_logger()

DEFAULT_BIOME_FILE = "biomes.yaml"


def _read(path: Path) -> Any:
    with path.open("r", encoding="utf8") as fh:
        if path.suffix.lower() in {".yml", ".yaml"}:
            return yaml.safe_load(fh)
        return json.load(fh)


def report_problems(registry: BiomeRegistry, source: str) -> None:
    """Warn about rules that can never match and variants that never apply."""
    for definition, rule in registry.malformed_rules():
        logger.warning(
            "Malformed biome condition; rule never matches",
            source=source,
            biome=definition.name,
            field=rule.field,
            expr=rule.condition.expr,
        )
    for variant in registry.inert_variants():
        logger.warning(
            "Variant base is not a base biome; variant is inert",
            source=source,
            biome=variant.name,
            base=variant.base,
        )


def registry_from_mapping(mapping: Mapping[str, Any], source: str = "<mapping>") -> BiomeRegistry:
    registry = BiomeRegistry.from_mapping(mapping)
    report_problems(registry, source)
    return registry


def load_registry(path: Path | str | None = None) -> BiomeRegistry:
    """Build a registry from ``path``, or from the bundled biome file."""
    if path is None:
        text = resources.files("biome_maker").joinpath("data").joinpath(DEFAULT_BIOME_FILE).read_text(encoding="utf8")
        data = yaml.safe_load(text)
        source = f"biome_maker/data/{DEFAULT_BIOME_FILE}"
    else:
        path = Path(path).expanduser()
        if not path.exists():
            raise FileNotFoundError(path)
        data = _read(path)
        source = str(path)
    if not isinstance(data, Mapping):
        raise TypeError(f"Biome file must contain a mapping, got {type(data)!r}")
    registry = registry_from_mapping(data, source)
    logger.debug("Biome registry loaded", source=source, biomes=len(registry))
    return registry


__all__ = ["load_registry", "registry_from_mapping", "report_problems"]
