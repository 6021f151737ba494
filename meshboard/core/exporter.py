from __future__ import annotations
from typing import List
import numpy as np
import pathlib

from .commands import Batch
from .utils import get_logger

_log = get_logger()


class CommandWriter:
    """Writes one summon command per line (``.mcfunction`` or plain text)."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._commands: List[str] = []

    def write_batch(self, batch: Batch) -> None:
        self._commands.append(batch.command)

    def close(self) -> None:
        if not self._commands:
            return
        path = pathlib.Path(self.path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            for command in self._commands:
                f.write(command)
                f.write("\n")
        _log.info("Wrote %d commands to %s", len(self._commands), path.name)
        self._commands.clear()


class NpzWriter:
    """Stores the billboards themselves, tagged with the batch they landed in."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._batches: List[Batch] = []

    def write_batch(self, batch: Batch) -> None:
        self._batches.append(batch)

    def close(self) -> None:
        if not self._batches:
            return
        path = pathlib.Path(self.path)
        path.parent.mkdir(parents=True, exist_ok=True)
        entities = [e for b in self._batches for e in b.entities]
        out = {
            "transforms": np.stack([e.transform for e in entities]).astype(np.float64),
            "colors": np.asarray([e.color for e in entities], dtype=np.float64),
            "brightness": np.asarray([(e.brightness.sky, e.brightness.block) for e in entities], dtype=np.uint8),
            "batch_index": np.concatenate(
                [np.full(len(b), i, dtype=np.int64) for i, b in enumerate(self._batches)]
            ),
        }
        np.savez_compressed(path, **out)
        _log.info("Wrote %d billboards in %d batches to %s", len(entities), len(self._batches), path.name)
        self._batches.clear()
