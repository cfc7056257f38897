from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional, TextIO


class StreamTextSink:
    """Text sink over a caller-owned stream; closing only flushes it."""

    def __init__(self, stream: TextIO):
        self.fh = stream

    @property
    def file_path(self) -> Optional[Path]:
        return None

    def write_text(self, text: str) -> None:
        self.fh.write(text)

    def close(self) -> None:
        self.fh.flush()

    def abort(self) -> None:
        self.close()


class AtomicTextFileSink:
    """Write to a temp file next to ``dest`` and move it into place on close."""

    def __init__(self, dest: Path, *, encoding: str = "utf-8"):
        self.dest = Path(dest)
        self.dest.parent.mkdir(parents=True, exist_ok=True)
        tmp = tempfile.NamedTemporaryFile(
            dir=str(self.dest.parent),
            prefix=f".{self.dest.name}.",
            delete=False,
            mode="w",
            newline="",
            encoding=encoding,
        )
        self.tmp_path = Path(tmp.name)
        self.fh = tmp

    @property
    def file_path(self) -> Optional[Path]:
        return self.dest

    def write_text(self, text: str) -> None:
        self.fh.write(text)

    def close(self) -> None:
        if self.fh.closed:
            return
        self.fh.close()
        os.replace(self.tmp_path, self.dest)

    def abort(self) -> None:
        """Drop the partial output without touching ``dest``."""
        if not self.fh.closed:
            self.fh.close()
        self.tmp_path.unlink(missing_ok=True)
