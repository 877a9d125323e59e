"""Content signatures and the persisted build cache.

Signatures are BLAKE2b digests. The build cache records the signatures seen
by the last successful build and lives at a fixed path under the output root.
It is an optimization only: a missing or broken cache makes every unit stale,
and a failed save just means the next build redoes more work.
"""

from __future__ import annotations

import hashlib
import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from sitegen.log import get_logger
from sitegen.paths import CACHE_FILENAME
from sitegen.static import write_atomic

logger = get_logger("cache")

_CHUNK_SIZE = 1 << 16


def _hasher():
    return hashlib.blake2b(digest_size=32)


def file_signature(path: Path) -> str:
    """Hash a file's bytes. Raises OSError if it cannot be read."""
    hasher = _hasher()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def tree_signature(directory: Path) -> str:
    """Hash every file under ``directory`` in sorted path order.

    Each file contributes its relative path followed by its contents. A file
    that cannot be read during the scan contributes its path only.
    """
    files: list[tuple[str, Path]] = []
    for dirpath, _dirnames, filenames in os.walk(directory):
        for name in filenames:
            path = Path(dirpath) / name
            if path.is_file():
                files.append((path.relative_to(directory).as_posix(), path))
    files.sort()

    hasher = _hasher()
    for rel, path in files:
        hasher.update(rel.encode("utf-8"))
        try:
            hasher.update(path.read_bytes())
        except OSError:
            continue
    return hasher.hexdigest()


def cache_path(output_root: Path) -> Path:
    return output_root / CACHE_FILENAME


@dataclass
class BuildCache:
    templates_signature: str = ""
    per_unit_signatures: dict[str, str] = field(default_factory=dict)
    config_signature: str = ""

    def to_dict(self) -> dict:
        return {
            "templates_signature": self.templates_signature,
            "per_unit_signatures": dict(sorted(self.per_unit_signatures.items())),
            "config_signature": self.config_signature,
        }

    @classmethod
    def from_dict(cls, data: object) -> BuildCache:
        """Build a cache from decoded JSON, dropping anything malformed."""
        cache = cls()
        if not isinstance(data, dict):
            return cache

        templates = data.get("templates_signature")
        if isinstance(templates, str):
            cache.templates_signature = templates
        config = data.get("config_signature")
        if isinstance(config, str):
            cache.config_signature = config
        units = data.get("per_unit_signatures")
        if isinstance(units, dict):
            cache.per_unit_signatures = {
                key: value
                for key, value in units.items()
                if isinstance(key, str) and isinstance(value, str)
            }
        return cache


def load_cache(output_root: Path) -> BuildCache:
    """Load the build cache, returning an empty one if missing or corrupt."""
    path = cache_path(output_root)
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return BuildCache()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("cache: cannot read %s: %s", path, exc)
        return BuildCache()

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("cache: ignoring corrupt %s: %s", path, exc)
        return BuildCache()
    return BuildCache.from_dict(data)


def save_cache(output_root: Path, cache: BuildCache) -> bool:
    """Persist the cache. Failures are logged, never raised."""
    path = cache_path(output_root)
    payload = json.dumps(cache.to_dict(), indent=2)
    try:
        write_atomic(path, payload.encode("utf-8"))
    except OSError as exc:
        logger.warning("cache: cannot write %s: %s", path, exc)
        return False
    return True


def is_stale(
    rel: str,
    signature: str,
    previous: dict[str, str],
    *,
    templates_changed: bool,
) -> bool:
    """Decide whether a unit must be re-rendered."""
    if templates_changed:
        return True
    cached = previous.get(rel)
    if cached is None:
        return True
    return cached != signature
