"""A JSON array on disk, read and rewritten whole.

Writers hold ``lock`` across their whole read-modify-write cycle.  It is a
``FileLock`` on a hidden sidecar next to the data file, so cycles are
serialised across processes sharing the data directory, not only across
threads.  Writes go to a temporary file that replaces the original, so a
reader never sees a half-written file and ``load`` needs no lock.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from tms.infrastructure.persistence.file_lock import FileLock


class JsonFile:

    def __init__(self, path: Path, create: bool = True) -> None:
        self.path = path
        self.lock = FileLock(path.with_name(f".{path.name}.lock"))
        if create:
            self._ensure_file()

    def load(self) -> list[dict]:
        return json.loads(self.path.read_text(encoding="utf-8"))

    def persist(self, records: list[dict]) -> None:
        with self.lock:
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(json.dumps(records, indent=2, ensure_ascii=False) + "\n")
                os.replace(tmp, self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise

    def _ensure_file(self) -> None:
        with self.lock:
            if not self.path.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self.path.write_text("[]", encoding="utf-8")
