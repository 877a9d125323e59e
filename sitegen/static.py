from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path

from sitegen.log import get_logger
from sitegen.paths import CONFIG_FILENAME, TEMPLATES_DIRNAME

logger = get_logger("static")


def _replace_via_temp(dest: Path, fill) -> None:
    """Populate a temp file beside ``dest`` and rename it into place.

    Readers of ``dest`` see either the old file or the new one, never a
    partial write.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=dest.parent, prefix=f".{dest.name}.", suffix=".tmp"
    )
    tmp = Path(tmp_name)
    try:
        fill(fd, tmp)
        os.replace(tmp, dest)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def write_atomic(dest: Path, data: bytes) -> None:
    """Replace ``dest`` with ``data`` as a whole-file swap."""

    def fill(fd: int, _tmp: Path) -> None:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)

    _replace_via_temp(dest, fill)


def copy_if_newer(src: Path, dst: Path) -> bool:
    """Copy src to dst if src is newer. Return True if copied."""
    if dst.exists() and dst.stat().st_mtime >= src.stat().st_mtime:
        return False

    def fill(fd: int, tmp: Path) -> None:
        os.close(fd)
        shutil.copy2(src, tmp)

    _replace_via_temp(dst, fill)
    return True


def is_passthrough(rel: Path) -> bool:
    """Whether a source file (relative path) is copied verbatim to the output."""
    if not rel.parts:
        return False
    if rel.parts[0] == TEMPLATES_DIRNAME:
        return False
    if any(part.startswith(".") for part in rel.parts):
        return False
    if rel.as_posix() == CONFIG_FILENAME:
        return False
    return rel.suffix.lower() != ".md"


def copy_static_assets(source_root: Path, output_root: Path) -> list[Path]:
    """Copy passthrough files from the source tree. Return changed files."""
    output_resolved = output_root.resolve()
    changed: list[Path] = []

    def on_error(err: OSError) -> None:
        logger.warning("assets: walk: %s", err)

    for dirpath, dirnames, filenames in os.walk(source_root, onerror=on_error):
        current = Path(dirpath)
        dirnames[:] = sorted(
            name for name in dirnames if (current / name).resolve() != output_resolved
        )
        for name in sorted(filenames):
            src = current / name
            rel = src.relative_to(source_root)
            if not is_passthrough(rel):
                continue
            try:
                copied = copy_if_newer(src, output_root / rel)
            except OSError as exc:
                logger.warning("assets: %s: %s", rel.as_posix(), exc)
                continue
            if copied:
                changed.append(output_root / rel)
    return changed


def clean_output(output_root: Path) -> bool:
    """Remove the output directory. Return True if anything was removed."""
    if not output_root.exists():
        return False
    shutil.rmtree(output_root)
    return True
