"""Built-in biome stages: noise, classify, coastline, spread, distance, variants."""

from . import noise, biomes  # noqa: F401

__all__ = ["noise", "biomes"]
