"""Per-epoch progress log consumed by external plotting.

Each line holds ``epoch train_loss val_loss train_acc val_acc``.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import IO, Iterable, List, Optional

from .exceptions import ShapeMismatch
from .losses import EpochMetrics


@dataclass(frozen=True)
class ProgressEntry:
    epoch: int
    train_loss: float
    val_loss: float
    train_accuracy: float
    val_accuracy: float


def format_progress_line(epoch: int, train: EpochMetrics, val: EpochMetrics) -> str:
    return f"{epoch} {train.loss:.6f} {val.loss:.6f} {train.accuracy:.6f} {val.accuracy:.6f}"


def parse_progress_line(line: str) -> ProgressEntry:
    parts = line.split()
    if len(parts) != 5:
        raise ShapeMismatch(f"Progress line needs 5 fields, got {len(parts)}: {line!r}")
    return ProgressEntry(int(parts[0]), *(float(p) for p in parts[1:]))


def read_progress(lines: Iterable[str]) -> List[ProgressEntry]:
    return [parse_progress_line(line) for line in lines if line.strip()]


class ProgressLog:
    """Writes one progress line per epoch to a text stream."""

    def __init__(self, stream: Optional[IO[str]] = None):
        self.stream = stream
        self.lines: List[str] = []

    def record(self, epoch: int, train: EpochMetrics, val: EpochMetrics) -> str:
        line = format_progress_line(epoch, train, val)
        self.lines.append(line)
        if self.stream is not None:
            self.stream.write(line + '\n')
            self.stream.flush()
        return line
