"""Line-oriented staging file sitting between scan and reconcile."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from ..errors import StagingError


class StagingFile:
    """Persist the last scanned endpoint list, one entry per line."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def write_all(self, lines: Iterable[str]) -> int:
        """Replace the file contents with ``lines`` and return how many were written."""

        tmp_path = self.path.with_name(f".{self.path.name}.tmp")
        count = 0
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8", newline="\n") as stream:
                for line in lines:
                    stream.write(f"{line}\n")
                    count += 1
            os.replace(tmp_path, self.path)
        except OSError as exc:
            if tmp_path.exists():
                tmp_path.unlink()
            raise StagingError(f"failed to write {self.path}: {exc}") from exc
        return count

    def read_all(self) -> list[str]:
        try:
            with self.path.open("r", encoding="utf-8") as stream:
                return stream.read().splitlines()
        except (OSError, UnicodeDecodeError) as exc:
            raise StagingError(f"failed to read {self.path}: {exc}") from exc

    def exists(self) -> bool:
        return self.path.exists()


__all__ = ["StagingFile"]
