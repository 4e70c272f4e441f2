"""Snapshot arena: grids handed between stages are sealed read-only."""

from __future__ import annotations

from dataclasses import dataclass
import hashlib
import threading
import uuid
from typing import Any, Tuple

import numpy as np


@dataclass
class GridAllocation:
    key: str
    name: str
    array: np.ndarray
    sealed: bool = False

    def bytes(self) -> int:
        return int(self.array.nbytes)


class SnapshotArena:
    """Owns every grid produced during a run.

    Stages hand their result arrays to :meth:`snapshot`, which copies them
    into a sealed allocation. :meth:`allocate_grid` and
    :meth:`GridHandle.mutable_view` cover grids filled in place. Later stages
    only ever see read-only views.
    """

    def __init__(self) -> None:
        self._allocations: dict[str, GridAllocation] = {}
        self._lock = threading.Lock()
        self._bytes_allocated = 0

    def allocate_grid(self, name: str, shape: Tuple[int, int], dtype: np.dtype = np.float32) -> "GridHandle":
        if len(shape) != 2:
            raise ValueError("Grid allocations must be 2D")
        array = np.zeros(tuple(int(dim) for dim in shape), dtype=dtype)
        return self._register(name, array)

    def snapshot(self, name: str, array: np.ndarray, dtype: np.dtype | None = None) -> "GridHandle":
        """Copy ``array`` into a new sealed grid."""
        data = np.array(array, dtype=dtype, copy=True)
        if data.ndim != 2:
            raise ValueError(f"Snapshots must be 2D, got shape {data.shape}")
        handle = self._register(name, data)
        handle.seal()
        return handle

    def _register(self, name: str, array: np.ndarray) -> "GridHandle":
        key = uuid.uuid4().hex
        allocation = GridAllocation(key=key, name=name, array=array)
        with self._lock:
            self._allocations[key] = allocation
            self._bytes_allocated += allocation.bytes()
        return GridHandle(self, key)

    def _get_allocation(self, key: str) -> GridAllocation:
        try:
            return self._allocations[key]
        except KeyError as exc:
            raise KeyError(f"Unknown allocation key {key}") from exc

    def seal(self, key: str) -> None:
        with self._lock:
            allocation = self._get_allocation(key)
            if allocation.sealed:
                return
            allocation.array.setflags(write=False)
            allocation.sealed = True

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {"allocations": len(self._allocations), "bytes_allocated": self._bytes_allocated}


class GridHandle:
    """Reference to a grid owned by a :class:`SnapshotArena`."""

    __slots__ = ("_arena", "_key")

    def __init__(self, arena: SnapshotArena, key: str) -> None:
        self._arena = arena
        self._key = key

    def mutable_view(self) -> np.ndarray:
        allocation = self._arena._get_allocation(self._key)
        if allocation.sealed:
            raise RuntimeError(f"Grid '{allocation.name}' already sealed; cannot request mutable view")
        return allocation.array

    def array(self) -> np.ndarray:
        view = self._arena._get_allocation(self._key).array.view()
        view.setflags(write=False)
        return view

    def seal(self) -> None:
        self._arena.seal(self._key)

    @property
    def name(self) -> str:
        return self._arena._get_allocation(self._key).name

    @property
    def sealed(self) -> bool:
        return self._arena._get_allocation(self._key).sealed

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._arena._get_allocation(self._key).array.shape

    @property
    def dtype(self) -> np.dtype:
        return self._arena._get_allocation(self._key).array.dtype

    def checksum(self) -> str:
        hasher = hashlib.blake2b()
        hasher.update(np.ascontiguousarray(self.array()).tobytes())
        return hasher.hexdigest()

    def __array__(self, dtype=None, copy=None) -> np.ndarray:  # pragma: no cover - implicit numpy bridge
        return np.asarray(self.array(), dtype=dtype)

    def __repr__(self) -> str:
        allocation = self._arena._get_allocation(self._key)
        state = "sealed" if allocation.sealed else "mutable"
        return f"GridHandle({allocation.name!r}, shape={allocation.array.shape}, dtype={allocation.array.dtype}, {state})"


__all__ = ["GridHandle", "SnapshotArena"]
