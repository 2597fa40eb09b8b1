"""
Config stores: a minimal read interface over a directory of JSON files.
FileStore reads the local disk; MemoryStore is the in-memory fake used in tests.
"""

import asyncio
import json
import logging
import os
from pathlib import Path, PurePosixPath
from typing import Any, Callable, Dict, Hashable, List, Optional, Set, TypeVar

from dashcfg.errors import ConfigIOError, ConfigNotFound

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConfigStore:
    """Read interface shared by all stores."""

    def join(self, directory: str | Path, name: str) -> str:
        return str(Path(directory) / name)

    def list(self, directory: str | Path) -> List[str]:
        """File names (not paths) in ``directory``, sorted. Raises ConfigNotFound if absent."""
        raise NotImplementedError

    def read(self, path: str | Path) -> bytes:
        """File content. Raises ConfigNotFound if absent, ConfigIOError on failure."""
        raise NotImplementedError

    def version(self, path: str | Path) -> Optional[Hashable]:
        """Token that changes whenever the file changes; None if absent."""
        raise NotImplementedError


class FileStore(ConfigStore):
    """Local filesystem store."""

    def list(self, directory: str | Path) -> List[str]:
        directory = Path(directory)
        if not directory.exists():
            raise ConfigNotFound(str(directory))
        if not directory.is_dir():
            raise ConfigIOError(str(directory), "not a directory")
        try:
            return sorted(p.name for p in directory.iterdir() if p.is_file())
        except OSError as e:
            raise ConfigIOError(str(directory), str(e)) from e

    def read(self, path: str | Path) -> bytes:
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError:
            raise ConfigNotFound(str(path)) from None
        except OSError as e:
            raise ConfigIOError(str(path), str(e)) from e

    def version(self, path: str | Path) -> Optional[Hashable]:
        try:
            st = os.stat(path)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ConfigIOError(str(path), str(e)) from e
        return (st.st_mtime_ns, st.st_size)


class MemoryStore(ConfigStore):
    """In-memory store keyed by POSIX path strings."""

    def __init__(self, files: Optional[Dict[str, bytes | str]] = None):
        self._files: Dict[str, bytes] = {}
        self._versions: Dict[str, int] = {}
        self._failing: Set[str] = set()
        for path, content in (files or {}).items():
            self.write(path, content)

    @staticmethod
    def _key(path: str | Path) -> str:
        return str(PurePosixPath(str(path)))

    def join(self, directory: str | Path, name: str) -> str:
        return str(PurePosixPath(str(directory)) / name)

    def write(self, path: str | Path, content: bytes | str):
        key = self._key(path)
        self._files[key] = content.encode("utf-8") if isinstance(content, str) else content
        self._versions[key] = self._versions.get(key, 0) + 1

    def delete(self, path: str | Path):
        key = self._key(path)
        self._files.pop(key, None)
        self._versions.pop(key, None)

    def fail(self, path: str | Path):
        """Make reads of ``path`` (or listings of it) raise ConfigIOError."""
        self._failing.add(self._key(path))

    def list(self, directory: str | Path) -> List[str]:
        key = self._key(directory)
        if key in self._failing:
            raise ConfigIOError(key, "simulated failure")
        names = [
            PurePosixPath(p).name
            for p in self._files
            if str(PurePosixPath(p).parent) == key
        ]
        if not names:
            raise ConfigNotFound(key)
        return sorted(names)

    def read(self, path: str | Path) -> bytes:
        key = self._key(path)
        if key in self._failing:
            raise ConfigIOError(key, "simulated failure")
        if key not in self._files:
            raise ConfigNotFound(key)
        return self._files[key]

    def version(self, path: str | Path) -> Optional[Hashable]:
        return self._versions.get(self._key(path))


# ── Decoding ──────────────────────────────────────────

def _reject_constant(name: str):
    raise ValueError(f"non-finite number {name} is not valid JSON")


def decode_json(content: bytes) -> Any:
    """
    Parse config file content as standard JSON. NaN and Infinity are refused,
    and nesting too deep to parse is reported as a ValueError like any other
    malformed input.
    """
    try:
        return json.loads(content.decode("utf-8"), parse_constant=_reject_constant)
    except RecursionError:
        raise ValueError("JSON nesting is too deep") from None


# ── Async helpers ─────────────────────────────────────

async def run_with_timeout(fn: Callable[..., T], path: str | Path, timeout: float) -> T:
    """Run a blocking store call in a worker thread, bounded by ``timeout`` seconds."""
    try:
        return await asyncio.wait_for(asyncio.to_thread(fn, path), timeout)
    except asyncio.TimeoutError:
        logger.error(f"Store call timed out after {timeout}s: {path}")
        raise ConfigIOError(str(path), f"timed out after {timeout}s") from None
