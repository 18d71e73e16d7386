"""Key-value byte storage used as the durable substrate for reminders.

The reminder core only needs ``get`` and ``set`` on a single well-known key,
so backends stay small: an in-memory dict for tests and ephemeral runs, and a
directory of files for real use.
"""

from __future__ import annotations

import os
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from notif.utils.logger import log_debug


_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStore(ABC):
    """Abstract byte store addressed by string keys."""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """
        Read the bytes stored under ``key``.

        Returns:
            Stored bytes, or None if the key was never set
        """

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """
        Store ``value`` under ``key``, replacing any previous value.

        A reader after a completed ``set`` sees either the old or the new
        value, never a mix.
        """


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store. Contents vanish with the process."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    def keys(self):
        return list(self._data)


class FileKeyValueStore(KeyValueStore):
    """One ``<key>.json`` file per key inside ``directory``."""

    def __init__(self, directory: Path | str):
        self.directory = Path(directory).expanduser()

    def _path_for(self, key: str) -> Path:
        if not _SAFE_KEY.fullmatch(key):
            raise ValueError(f"Unsupported storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[bytes]:
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def set(self, key: str, value: bytes) -> None:
        path = self._path_for(key)
        self.directory.mkdir(parents=True, exist_ok=True)

        # Write next to the target, then swap it in
        fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.directory)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(value)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

        log_debug(f"Wrote {len(value)} bytes to {path}")
