"""Seeded lattice noise and fractal (octave) sampling."""

from __future__ import annotations

import numpy as np

Array = np.ndarray

TABLE_SIZE = 256


def build_permutation(seed: int) -> Array:
    """Return a read-only 512-entry permutation table for ``seed``.

    The identity sequence 0..255 is shuffled with Fisher-Yates driven by
    ``numpy.random.default_rng(seed)`` and then duplicated, so lookups of the
    form ``perm[i + 1]`` never need a modulo.
    """
    rng = np.random.default_rng(seed)
    p = np.arange(TABLE_SIZE, dtype=np.int32)
    for i in range(TABLE_SIZE - 1, 0, -1):
        j = int(rng.integers(0, i + 1))
        p[i], p[j] = p[j], p[i]
    table = np.concatenate((p, p))
    table.setflags(write=False)
    return table


def fade(t):
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def lerp(a, b, t):
    return a + t * (b - a)


def grad(hash_val, x, y):
    h = hash_val & 3
    u = np.where(h & 1, -x, x)
    v = np.where(h & 2, -y, y)
    return u + v


def _sample(x: Array, y: Array, table: Array) -> Array:
    fx = np.floor(x)
    fy = np.floor(y)
    xi = fx.astype(np.int64) & 255
    yi = fy.astype(np.int64) & 255
    xf = x - fx
    yf = y - fy
    u = fade(xf)
    v = fade(yf)

    aa = table[table[xi] + yi]
    ab = table[table[xi] + yi + 1]
    ba = table[table[xi + 1] + yi]
    bb = table[table[xi + 1] + yi + 1]

    x1 = lerp(grad(aa, xf, yf), grad(ba, xf - 1.0, yf), u)
    x2 = lerp(grad(ab, xf, yf - 1.0), grad(bb, xf - 1.0, yf - 1.0), u)
    return (lerp(x1, x2, v) + 1.0) / 2.0


def sample(x, y, table: Array):
    """Single-octave lattice noise remapped into [0, 1].

    Accepts scalars or numpy arrays of matching shape; scalars give a float.
    """
    xa = np.asarray(x, dtype=np.float64)
    ya = np.asarray(y, dtype=np.float64)
    out = _sample(xa, ya, table)
    if out.ndim == 0:
        return float(out)
    return out


def fractal_sample(x, y, table: Array, octaves: int = 4, persistence: float = 0.5):
    """Sum ``octaves`` samples at doubling frequency, normalised by amplitude."""
    if octaves < 1:
        raise ValueError(f"octaves must be >= 1, got {octaves}")
    xa = np.asarray(x, dtype=np.float64)
    ya = np.asarray(y, dtype=np.float64)
    total = np.zeros(np.broadcast(xa, ya).shape, dtype=np.float64)
    frequency = 1.0
    amplitude = 1.0
    max_amplitude = 0.0
    for _ in range(octaves):
        total += _sample(xa * frequency, ya * frequency, table) * amplitude
        max_amplitude += amplitude
        amplitude *= persistence
        frequency *= 2.0
    out = total / max_amplitude
    if out.ndim == 0:
        return float(out)
    return out


def normalize_field(values: Array) -> Array:
    """Linearly rescale into [0, 1]; constant input becomes all 0.5."""
    vmin, vmax = float(values.min()), float(values.max())
    if vmax == vmin:
        return np.full(values.shape, 0.5, dtype=np.float32)
    return ((values - vmin) / (vmax - vmin)).astype(np.float32)


def generate_field(
    seed: int,
    width: int,
    height: int,
    scale: float,
    octaves: int = 4,
    persistence: float = 0.5,
) -> Array:
    """Return a ``(height, width)`` float32 noise field normalised to [0, 1]."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Field dimensions must be positive, got {width}x{height}")
    if scale <= 0:
        raise ValueError(f"scale must be positive, got {scale}")
    table = build_permutation(seed)
    yy, xx = np.mgrid[0:height, 0:width].astype(np.float64)
    raw = fractal_sample(xx / scale, yy / scale, table, octaves, persistence)
    return normalize_field(np.asarray(raw, dtype=np.float64))


__all__ = [
    "build_permutation",
    "fade",
    "fractal_sample",
    "generate_field",
    "grad",
    "lerp",
    "normalize_field",
    "sample",
]
