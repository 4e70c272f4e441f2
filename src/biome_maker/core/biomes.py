"""Biome definitions, the immutable registry and base classification."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple

import numpy as np

from .conditions import RULE_FIELDS, Rule, parse_condition

DEFAULT_BIOME = "plains"
COAST_BIOME = "coast"
NO_COAST_BIOMES = ("deep_ocean", "frozen_ocean", "swamp_ocean")
UNKNOWN_COLOR = (255, 0, 255)
RECORD_KEYS = frozenset(
    {
        "id",
        "name",
        "color",
        "water",
        "base",
        "rules",
        "random_chance",
        "max_distance_from_water",
        "min_distance_from_land",
    }
)


class BiomeConfigError(ValueError):
    """Raised when a biome configuration cannot form a usable registry."""


@dataclass(frozen=True)
class BiomeDefinition:
    id: int
    name: str
    color: Tuple[int, int, int]
    is_water: bool = False
    base: Optional[str] = None
    rules: Tuple[Rule, ...] = ()
    random_chance: float = 0.0
    max_distance_from_water: Optional[int] = None
    min_distance_from_land: Optional[int] = None

    @property
    def is_variant(self) -> bool:
        return self.base is not None

    def rules_match(self, env: Mapping[str, Any]):
        """AND of every rule; a biome without rules matches everything."""
        result: Any = True
        for rule in self.rules:
            result = result & rule.matches(env)
        return result

    @classmethod
    def from_mapping(cls, record: Mapping[str, Any]) -> "BiomeDefinition":
        if not isinstance(record, Mapping):
            raise BiomeConfigError(f"Biome records must be mappings, got {type(record)!r}")
        for key in ("id", "name", "color"):
            if key not in record:
                raise BiomeConfigError(f"Biome record is missing '{key}': {dict(record)!r}")
        name = str(record["name"])
        unknown = sorted(str(key) for key in record if key not in RECORD_KEYS)
        if unknown:
            raise BiomeConfigError(f"Biome '{name}' has unknown keys {unknown}")
        biome_id = int(record["id"])
        if biome_id < 0:
            raise BiomeConfigError(f"Biome '{name}' has negative id {biome_id}")

        color = tuple(int(c) for c in record["color"])
        if len(color) != 3 or any(c < 0 or c > 255 for c in color):
            raise BiomeConfigError(f"Biome '{name}' colour must be three values in 0..255, got {color}")

        rules = []
        for entry in record.get("rules") or ():
            if not isinstance(entry, Mapping):
                raise BiomeConfigError(f"Biome '{name}' rules must be single-key mappings, got {entry!r}")
            for key, expr in entry.items():
                if key not in RULE_FIELDS:
                    raise BiomeConfigError(f"Biome '{name}' has a rule on unknown field '{key}'")
                rules.append(Rule(field=str(key), condition=parse_condition(str(expr))))

        chance = float(record.get("random_chance") or 0.0)
        if not 0.0 <= chance <= 1.0:
            raise BiomeConfigError(f"Biome '{name}' random_chance must lie in [0, 1], got {chance}")

        def _distance(key: str) -> Optional[int]:
            value = record.get(key)
            if value is None:
                return None
            value = int(value)
            if value < 0:
                raise BiomeConfigError(f"Biome '{name}' {key} must be non-negative, got {value}")
            return value

        base = record.get("base")
        return cls(
            id=biome_id,
            name=name,
            color=color,  # type: ignore[arg-type]
            is_water=bool(record.get("water", False)),
            base=str(base) if base else None,
            rules=tuple(rules),
            random_chance=chance,
            max_distance_from_water=_distance("max_distance_from_water"),
            min_distance_from_land=_distance("min_distance_from_land"),
        )


@dataclass(frozen=True)
class BiomeRegistry:
    """Read-only collection of biome definitions.

    Base biomes are evaluated in definition order (first match wins) by the
    grid classifier; variants are evaluated in definition order by the
    variant pass. Construct once and share between generations.
    """

    definitions: Tuple[BiomeDefinition, ...]
    default_name: str = DEFAULT_BIOME
    coast_name: str = COAST_BIOME
    no_coast_names: Tuple[str, ...] = NO_COAST_BIOMES
    _by_name: Mapping[str, BiomeDefinition] = field(init=False, repr=False, compare=False)
    _by_id: Mapping[int, BiomeDefinition] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_name: Dict[str, BiomeDefinition] = {}
        by_id: Dict[int, BiomeDefinition] = {}
        for definition in self.definitions:
            if definition.name in by_name:
                raise BiomeConfigError(f"Duplicate biome name '{definition.name}'")
            if definition.id in by_id:
                raise BiomeConfigError(
                    f"Duplicate biome id {definition.id} ('{by_id[definition.id].name}' and '{definition.name}')"
                )
            by_name[definition.name] = definition
            by_id[definition.id] = definition
        default = by_name.get(self.default_name)
        if default is None:
            raise BiomeConfigError(f"Default biome '{self.default_name}' is not defined")
        if default.is_variant:
            raise BiomeConfigError(f"Default biome '{self.default_name}' must be a base biome")
        object.__setattr__(self, "_by_name", MappingProxyType(by_name))
        object.__setattr__(self, "_by_id", MappingProxyType(by_id))

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]], **kwargs: Any) -> "BiomeRegistry":
        return cls(tuple(BiomeDefinition.from_mapping(record) for record in records), **kwargs)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any], **kwargs: Any) -> "BiomeRegistry":
        if not isinstance(mapping, Mapping):
            raise TypeError(f"Biome configuration must be a mapping, got {type(mapping)!r}")
        records = mapping.get("biomes")
        if not records:
            raise BiomeConfigError("Biome configuration requires a non-empty 'biomes' list")
        options = {key: mapping[key] for key in ("default_name", "coast_name") if key in mapping}
        if "no_coast_names" in mapping:
            options["no_coast_names"] = tuple(mapping["no_coast_names"])
        options.update(kwargs)
        return cls.from_records(records, **options)

    # Partitions and derived id sets.

    @property
    def base_biomes(self) -> Tuple[BiomeDefinition, ...]:
        return tuple(d for d in self.definitions if not d.is_variant)

    @property
    def variant_biomes(self) -> Tuple[BiomeDefinition, ...]:
        return tuple(d for d in self.definitions if d.is_variant)

    @property
    def water_ids(self) -> frozenset[int]:
        return frozenset(d.id for d in self.definitions if d.is_water)

    @property
    def no_coast_ids(self) -> frozenset[int]:
        return frozenset(self._by_name[n].id for n in self.no_coast_names if n in self._by_name)

    @property
    def coast_source_ids(self) -> frozenset[int]:
        return self.water_ids - self.no_coast_ids

    @property
    def default_id(self) -> int:
        return self._by_name[self.default_name].id

    @property
    def coast_id(self) -> Optional[int]:
        coast = self._by_name.get(self.coast_name)
        return coast.id if coast else None

    # Lookups.

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[BiomeDefinition]:
        return iter(self.definitions)

    def __len__(self) -> int:
        return len(self.definitions)

    def by_name(self, name: str) -> BiomeDefinition:
        try:
            return self._by_name[name]
        except KeyError as exc:
            raise KeyError(f"Unknown biome '{name}'") from exc

    def by_id(self, biome_id: int) -> BiomeDefinition:
        try:
            return self._by_id[int(biome_id)]
        except KeyError as exc:
            raise KeyError(f"Unknown biome id {biome_id}") from exc

    def id_of(self, name: str) -> Optional[int]:
        definition = self._by_name.get(name)
        return definition.id if definition else None

    def name_of(self, biome_id: int) -> Optional[str]:
        definition = self._by_id.get(int(biome_id))
        return definition.name if definition else None

    def color_of(self, biome_id: int) -> Tuple[int, int, int]:
        definition = self._by_id.get(int(biome_id))
        return definition.color if definition else UNKNOWN_COLOR

    def search(self, fragment: str) -> Tuple[BiomeDefinition, ...]:
        """Biomes whose name contains ``fragment`` (case-insensitive).

        An exact name match is returned alone.
        """
        needle = fragment.strip().lower()
        exact = [d for d in self.definitions if d.name.lower() == needle]
        if exact:
            return tuple(exact)
        return tuple(d for d in self.definitions if needle in d.name.lower())

    def color_table(self) -> np.ndarray:
        """``(max_id + 1, 3)`` uint8 lookup; ids without a biome are magenta."""
        max_id = max(self._by_id)
        table = np.empty((max_id + 1, 3), dtype=np.uint8)
        table[:] = UNKNOWN_COLOR
        for definition in self.definitions:
            table[definition.id] = definition.color
        return table

    def inert_variants(self) -> Tuple[BiomeDefinition, ...]:
        """Variants whose ``base`` does not name a base biome."""
        base_names = {d.name for d in self.base_biomes}
        return tuple(d for d in self.variant_biomes if d.base not in base_names)

    def malformed_rules(self) -> Iterator[Tuple[BiomeDefinition, Rule]]:
        for definition in self.definitions:
            for rule in definition.rules:
                if rule.condition.malformed:
                    yield definition, rule


def accept_draws(chance: float, count: int, rng: np.random.Generator) -> np.ndarray:
    if chance == 0.0:
        return np.ones(count, dtype=bool)
    return rng.random(count) < chance


def classify_env(
    env: Mapping[str, np.ndarray],
    registry: BiomeRegistry,
    rng: np.random.Generator,
) -> np.ndarray:
    """Classify every cell of equally-shaped ``env`` arrays to a base biome id.

    Each cell walks the base biomes in order. A rule mismatch moves on to the
    next biome; a rule match with ``random_chance > 0`` draws once and, on
    rejection, also moves on. Cells nothing accepts get the default biome.
    """
    arrays = {key: np.asarray(env[key], dtype=np.float64) for key in RULE_FIELDS}
    shape = arrays["land"].shape
    result = np.full(shape, registry.default_id, dtype=np.int32)
    pending = np.ones(shape, dtype=bool)
    for biome in registry.base_biomes:
        if not pending.any():
            break
        match = np.broadcast_to(biome.rules_match(arrays), shape) & pending
        if not match.any():
            continue
        accepted = np.zeros(shape, dtype=bool)
        accepted[match] = accept_draws(biome.random_chance, int(match.sum()), rng)
        result[accepted] = biome.id
        pending &= ~accepted
    return result


def classify_base(
    env: Mapping[str, float],
    registry: BiomeRegistry,
    rng: np.random.Generator,
) -> int:
    """Single-cell form of :func:`classify_env`."""
    cell = {key: np.array([float(env[key])]) for key in RULE_FIELDS}
    return int(classify_env(cell, registry, rng)[0])


__all__ = [
    "BiomeConfigError",
    "BiomeDefinition",
    "BiomeRegistry",
    "COAST_BIOME",
    "DEFAULT_BIOME",
    "NO_COAST_BIOMES",
    "accept_draws",
    "classify_base",
    "classify_env",
]
