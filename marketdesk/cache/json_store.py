"""On-disk JSON persistence with atomic writes."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from marketdesk.core.data_helpers import run_in_executor
from marketdesk.core.logging import get_logger

logger = get_logger("cache.json_store")


def _write_atomic(path: Path, payload: bytes) -> None:
    """Write to a temp file in the same directory, then rename over the target."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


async def write_bytes_atomic(path: Path, payload: bytes) -> Path:
    """Persist a binary artifact without leaving a partial file behind."""
    await run_in_executor(_write_atomic, path, payload)
    return path


class JsonFileStore:
    """One JSON document on disk.

    ``load`` never raises: a missing, unreadable or corrupt file reads as None.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    async def load(self) -> Optional[Any]:
        if not self.path.exists():
            return None
        try:
            return await run_in_executor(_read_json, self.path)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable JSON file {self.path}: {e}")
            return None

    async def save(self, data: Any) -> None:
        payload = json.dumps(data, default=str).encode("utf-8")
        await run_in_executor(_write_atomic, self.path, payload)
        logger.debug(f"Saved {self.path}")
