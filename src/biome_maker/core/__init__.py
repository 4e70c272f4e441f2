"""Deterministic noise-to-biome classification core."""

from .biome_map import generate, generate_layers
from .biomes import BiomeConfigError, BiomeDefinition, BiomeRegistry, classify_base, classify_env
from .census import census, find_biome, find_tiles
from .classify import blend_fields, classify_grid
from .coast import resolve_coastline
from .conditions import Condition, Rule, parse_condition
from .distance import land_mask, water_distance
from .noise import build_permutation, fractal_sample, generate_field, sample
from .spread import SpreadSettings, bleed, dilate, spread
from .variants import apply_variants

__all__ = [
    "BiomeConfigError",
    "BiomeDefinition",
    "BiomeRegistry",
    "Condition",
    "Rule",
    "SpreadSettings",
    "apply_variants",
    "bleed",
    "blend_fields",
    "build_permutation",
    "census",
    "classify_base",
    "classify_env",
    "classify_grid",
    "dilate",
    "find_biome",
    "find_tiles",
    "fractal_sample",
    "generate",
    "generate_field",
    "generate_layers",
    "land_mask",
    "parse_condition",
    "resolve_coastline",
    "sample",
    "spread",
    "water_distance",
]
