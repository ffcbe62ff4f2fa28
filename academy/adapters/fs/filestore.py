"""
Local document store for generated files (certificate PDFs).

Keys are relative POSIX paths such as ``certificates/<user id>/<number>.pdf``.
Keys that resolve outside the store root are rejected with ValueError.
"""

import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


class FileSystemStore:
    def __init__(self, base_path: str):
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _resolve(self, key: str) -> Path:
        if not key or key.startswith(("/", "\\")):
            raise ValueError(f"Invalid storage key: {key!r}")
        target = (self.base_path / key).resolve()
        if self.base_path not in target.parents:
            raise ValueError(f"Storage key escapes the store root: {key}")
        return target

    def save(self, key: str, data: bytes) -> str:
        """Write atomically (temp file + rename) and return the normalised key."""
        target = self._resolve(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=".partial-")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp, target)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug("Stored %s (%d bytes)", key, len(data))
        return target.relative_to(self.base_path).as_posix()

    def get(self, key: str) -> bytes:
        target = self._resolve(key)
        try:
            return target.read_bytes()
        except FileNotFoundError:
            raise FileNotFoundError(f"No stored file for key: {key}") from None

    def exists(self, key: str) -> bool:
        return self._resolve(key).is_file()

    def delete(self, key: str) -> bool:
        """Remove the file; False when nothing was stored under ``key``."""
        try:
            self._resolve(key).unlink()
        except FileNotFoundError:
            return False
        return True
