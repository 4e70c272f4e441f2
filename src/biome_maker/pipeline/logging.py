"""Background JSONL event log and Markdown summary for pipeline runs."""

from __future__ import annotations

import json
import queue
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional

from .models import StageResult


class RunLogger:
    """Appends structured events to ``log_path`` from a writer thread."""

    def __init__(self, log_path: Path, summary_path: Optional[Path] = None) -> None:
        self._log_path = log_path
        self._summary_path = summary_path or log_path.with_suffix(".md")
        self._queue: "queue.Queue[Optional[Dict[str, Any]]]" = queue.Queue()
        self._thread = threading.Thread(target=self._worker, daemon=True)
        self._stage_records: list[dict[str, Any]] = []
        self._closed = False
        log_path.parent.mkdir(parents=True, exist_ok=True)
        self._thread.start()

    def _worker(self) -> None:
        with self._log_path.open("a", encoding="utf8") as fh:
            while True:
                item = self._queue.get()
                if item is None:
                    break
                json.dump(item, fh, sort_keys=True, default=str)
                fh.write("\n")
                fh.flush()

    def log_event(self, event: Dict[str, Any]) -> None:
        if self._closed:
            raise RuntimeError("RunLogger is closed")
        self._queue.put({"timestamp": time.time(), **event})

    def log_stage_start(self, stage_name: str) -> None:
        self.log_event({"type": "stage_start", "stage": stage_name})

    def log_stage_end(self, stage_result: StageResult) -> None:
        payload: Dict[str, Any] = {
            "type": "stage_end",
            "stage": stage_result.stage_name,
            "artifacts": stage_result.artifact_checksums,
        }
        stats = stage_result.stats
        if stats:
            payload["stats"] = stats.to_dict()
            self._stage_records.append(
                {
                    "stage": stage_result.stage_name,
                    "duration_ns": stats.duration_ns,
                    "memory_bytes": stats.memory_bytes,
                    "artifacts": len(stage_result.artifact_records),
                }
            )
        self.log_event(payload)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put(None)
        self._thread.join(timeout=5)
        self._write_summary()

    def _write_summary(self) -> None:
        if not self._stage_records:
            return
        total_duration = sum(record["duration_ns"] for record in self._stage_records)
        lines = ["# Biome Pipeline Run Summary", "", f"- Total stages: {len(self._stage_records)}"]
        lines.append(f"- Total duration (ms): {total_duration / 1e6:.2f}")
        lines.append("")
        lines.append("| Stage | Duration (ms) | Memory (MB) | Artifacts |")
        lines.append("| --- | ---: | ---: | ---: |")
        for record in self._stage_records:
            duration_ms = record["duration_ns"] / 1e6
            memory_mb = record["memory_bytes"] / (1024 * 1024)
            lines.append(f"| {record['stage']} | {duration_ms:.2f} | {memory_mb:.2f} | {record['artifacts']} |")
        self._summary_path.parent.mkdir(parents=True, exist_ok=True)
        self._summary_path.write_text("\n".join(lines), encoding="utf8")


__all__ = ["RunLogger"]
