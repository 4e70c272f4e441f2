"""Seeded biome map generation from layered noise fields."""

from .biome_file import load_registry
from .core import BiomeRegistry, generate, generate_field
from .generate import generate_world, render_png

__all__ = ["BiomeRegistry", "generate", "generate_field", "generate_world", "load_registry", "render_png"]
__version__ = "0.1.0"
