"""Loss sinks attached to the training loops as ``on_epoch`` callbacks."""

from __future__ import annotations

import csv
import json
import subprocess
import sys
from pathlib import Path
from typing import Mapping, TextIO


def _git_sha() -> str:
    try:
        out = subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL)
        return out.decode().strip()
    except (OSError, subprocess.CalledProcessError):  # pragma: no cover - git may be unavailable in tests
        return "unknown"


def _numeric(metrics: Mapping[str, float]) -> dict[str, float]:
    return {k: float(v) for k, v in metrics.items() if isinstance(v, (int, float))}


class JsonlSink:
    """Append-only JSONL writer, one record per reported epoch."""

    def __init__(
        self,
        path: str | Path,
        *,
        split: str = "train",
        seed: int | None = None,
        sha: str | None = None,
    ) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.split = split
        self.seed = seed
        self.sha = sha or _git_sha()

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        record = {
            "epoch": int(epoch),
            "split": self.split,
            "seed": self.seed,
            "sha": self.sha,
        }
        record.update(_numeric(metrics))
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")


class CsvSink:
    """Write metrics to CSV with a stable schema."""

    def __init__(self, path: str | Path, *, split: str = "train") -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.split = split

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        row = {"epoch": int(epoch), "split": self.split}
        row.update(_numeric(metrics))
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=sorted(row.keys()))
            if handle.tell() == 0:
                writer.writeheader()
            writer.writerow(row)


class ConsoleSink:
    """Print ``epoch N loss X`` progress lines."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        parts = " ".join(f"{k} {v:.6f}" for k, v in sorted(_numeric(metrics).items()))
        print(f"epoch {epoch} {parts}", file=self.stream or sys.stdout)

