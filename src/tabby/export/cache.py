"""Change-detection cache — decides which content files need rebuilding.

Maps each content path to a fingerprint of the file as it was when its
output was last written.  The map is persisted to a JSON side-car between
runs so incremental builds survive restarts.  Keys are relative to the
content directory, so moving or re-cloning a site keeps its cache.

Fingerprint strategies:

- ``"digest"``: ``sha256:<hex>`` of the file bytes.  Changes exactly when
  the bytes change.
- ``"stat"``: ``<size>:<mtime seconds>``.  Cheap, but an edit that keeps
  the same length within the same second is invisible to it.

The builder records the fingerprint of the bytes it actually rendered
(see :meth:`BuildCache.read`), never a second look at the file, so a save
that lands mid-build is still seen as a change by the next scan.

Thread Safety:
    The map is guarded by one ``threading.Lock``.  Fingerprints are
    computed outside the lock; only the lookup/store is lock-scoped.

"""

from __future__ import annotations

import hashlib
import json
import os
import sys
import tempfile
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tabby._types import FingerprintStrategy

_CHUNK = 64 * 1024


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Fingerprint of a file at its last successful build.

    Attributes:
        fingerprint: Strategy-specific fingerprint string.
        last_build: ``time.time()`` of the update, or None when the entry
            was loaded from disk.

    """

    fingerprint: str
    last_build: float | None = None


def digest_bytes(data: bytes) -> str:
    return f"sha256:{hashlib.sha256(data).hexdigest()}"


def digest_fingerprint(path: Path) -> str:
    """sha256 of the file contents."""
    h = hashlib.sha256()
    with path.open("rb") as fp:
        for chunk in iter(lambda: fp.read(_CHUNK), b""):
            h.update(chunk)
    return f"sha256:{h.hexdigest()}"


def stat_fingerprint(path: Path) -> str:
    """Byte length and whole-second modification time."""
    st = path.stat()
    return f"{st.st_size}:{int(st.st_mtime)}"


_STRATEGIES = {
    "digest": digest_fingerprint,
    "stat": stat_fingerprint,
}


class BuildCache:
    """Persistent map from content path to fingerprint.

    Args:
        cache_file: JSON side-car location.  ``None`` keeps the cache in
            memory only.
        strategy: ``"digest"`` or ``"stat"``.
        base: Directory keys are made relative to (the content directory).
            Paths outside it are keyed by their full POSIX form.

    """

    def __init__(
        self,
        cache_file: Path | None = None,
        *,
        strategy: FingerprintStrategy = "digest",
        base: Path | None = None,
    ) -> None:
        if strategy not in _STRATEGIES:
            msg = f"Unknown fingerprint strategy {strategy!r}"
            raise ValueError(msg)
        self._file = cache_file
        self._strategy = strategy
        self._fingerprint = _STRATEGIES[strategy]
        self._base = base
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def strategy(self) -> str:
        return self._strategy

    @property
    def cache_file(self) -> Path | None:
        return self._file

    def key(self, path: Path | str) -> str:
        """The map key for *path*: ``hello.md`` for ``<base>/hello.md``."""
        path = Path(path)
        if self._base is not None:
            try:
                return path.relative_to(self._base).as_posix()
            except ValueError:
                pass
        return path.as_posix()

    def fingerprint(self, path: Path) -> str:
        """Compute the current fingerprint of *path*.

        Raises:
            OSError: If the file cannot be stat'ed or read.

        """
        return self._fingerprint(path)

    def read(self, path: Path) -> tuple[bytes, str]:
        """Read *path* once and return ``(data, fingerprint of data)``.

        For ``"stat"`` the stat is taken before the read, so an edit racing
        the read leaves an older fingerprint behind and is rebuilt next time.

        Raises:
            OSError: If the file cannot be stat'ed or read.

        """
        if self._strategy == "stat":
            fingerprint = stat_fingerprint(path)
            return path.read_bytes(), fingerprint
        data = path.read_bytes()
        return data, digest_bytes(data)

    def needs_rebuild(self, path: Path) -> bool:
        """True if *path* is unreadable, unknown, or its fingerprint changed."""
        try:
            current = self._fingerprint(path)
        except OSError:
            return True
        with self._lock:
            entry = self._entries.get(self.key(path))
        return entry is None or entry.fingerprint != current

    def update_file(self, path: Path, fingerprint: str | None = None) -> None:
        """Record *path* as built now.

        Call only after the file's output has been written.  Pass the
        *fingerprint* returned by :meth:`read` for the bytes that were
        rendered; without it the file is fingerprinted again.

        Raises:
            OSError: If no fingerprint is given and the file cannot be read.

        """
        if fingerprint is None:
            fingerprint = self._fingerprint(path)
        entry = CacheEntry(fingerprint=fingerprint, last_build=time.time())
        with self._lock:
            self._entries[self.key(path)] = entry

    def entry(self, path: Path | str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(self.key(path))

    def snapshot(self) -> dict[str, str]:
        """Copy of the persisted form: ``{path: fingerprint}``."""
        with self._lock:
            return {k: e.fingerprint for k, e in self._entries.items()}

    def clear(self) -> None:
        """Forget every entry (force-rebuild mode)."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        key = self.key(path)
        with self._lock:
            return key in self._entries

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> int:
        """Replace the in-memory map with the side-car contents.

        A missing, unreadable or malformed file loads as an empty cache.

        Returns:
            Number of entries loaded.

        """
        entries: dict[str, CacheEntry] = {}
        if self._file is not None and self._file.is_file():
            try:
                data = json.loads(self._file.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                print(f"  Cache {self._file} unreadable ({exc}); starting empty", file=sys.stderr)
                data = {}
            if not isinstance(data, dict):
                print(f"  Cache {self._file} malformed; starting empty", file=sys.stderr)
                data = {}
            for path, fingerprint in data.items():
                if isinstance(path, str) and isinstance(fingerprint, str):
                    entries[path] = CacheEntry(fingerprint=fingerprint)

        with self._lock:
            self._entries = entries
        return len(entries)

    def save(self) -> None:
        """Write the map to the side-car atomically.

        Raises:
            OSError: If the cache directory or file cannot be written.

        """
        if self._file is None:
            return
        payload = json.dumps(self.snapshot(), indent=2, sort_keys=True)
        self._file.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._file.parent, prefix=".cache-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                fp.write(payload)
            os.replace(tmp, self._file)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
