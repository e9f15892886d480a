# chatvision/database.py
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Union

from fastapi import Request

logger = logging.getLogger(__name__)

KINDS = ("users", "sessions", "messages")


class RecordStore:
    """One JSON array file per record kind, read and rewritten whole on every call.

    ``append`` holds a per-kind lock for the full read-modify-write, so
    concurrent writers inside one process never drop each other's records.
    Other processes writing the same directory are still last-write-wins.
    """

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._locks: Dict[str, threading.Lock] = {kind: threading.Lock() for kind in KINDS}
        for kind in KINDS:
            path = self.path_for(kind)
            if not path.exists():
                path.write_text("[]", encoding="utf-8")

    def path_for(self, kind: str) -> Path:
        if kind not in KINDS:
            raise ValueError(f"Unknown record kind: {kind!r}")
        return self.data_dir / f"{kind}.json"

    def read_all(self, kind: str) -> List[dict]:
        path = self.path_for(kind)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            # a missing or corrupt file reads as "no data"
            logger.warning("Could not read %s, treating as empty: %s", path, e)
            return []
        if not isinstance(data, list):
            logger.warning("%s does not hold a JSON array, treating as empty", path)
            return []
        return data

    def write_all(self, kind: str, records: List[dict]) -> None:
        path = self.path_for(kind)
        fd, tmp = tempfile.mkstemp(dir=self.data_dir, prefix=f".{kind}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def append(self, kind: str, record: dict) -> dict:
        self.path_for(kind)  # rejects unknown kinds
        with self._locks[kind]:
            records = self.read_all(kind)
            records.append(record)
            self.write_all(kind, records)
        return record


def get_storage(request: Request):
    return request.app.state.storage
