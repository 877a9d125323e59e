"""Source tree watcher feeding the dev loop.

watchfiles runs in a background thread and yields debounced batches of raw
filesystem changes. Each batch is filtered; a batch with at least one
surviving event becomes exactly one notification on a ``RebuildSignal``.
Errors from the watch subsystem are turned into a forced notification so a
real change is never silently missed.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from watchfiles import Change, watch

from sitegen.log import get_logger
from sitegen.paths import DEBOUNCE_MS, WATCHED_EXTENSIONS

logger = get_logger("watcher")

_CHANGE_KIND_MAP: dict[Change, Literal["created", "modified", "deleted"]] = {
    Change.added: "created",
    Change.modified: "modified",
    Change.deleted: "deleted",
}

_BACKUP_SUFFIXES = (".swp", ".swo", ".swx", ".tmp", ".bak")


@dataclass(frozen=True)
class WatchEvent:
    path: Path
    kind: Literal["created", "modified", "deleted"]


class RebuildSignal:
    """Single-slot, coalescing rebuild notification.

    Any number of ``notify()`` calls before the consumer wakes collapse into
    one pending notification. ``close()`` ends the stream; ``wait()`` then
    returns False once nothing is pending.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._pending = False
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def notify(self) -> None:
        with self._cond:
            if self._closed:
                return
            self._pending = True
            self._cond.notify_all()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until a notification is pending and consume it.

        Returns False if the signal was closed (or the timeout expired) with
        nothing pending.
        """
        with self._cond:
            self._cond.wait_for(lambda: self._pending or self._closed, timeout)
            if self._pending:
                self._pending = False
                return True
            return False

    def drain(self) -> bool:
        """Discard any pending notification. Return True if one was pending."""
        with self._cond:
            pending = self._pending
            self._pending = False
            return pending

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()


def is_noise_name(name: str) -> bool:
    """Dotfiles, editor backups, swap and autosave files."""
    if name.startswith(".") or name.endswith("~"):
        return True
    if name.startswith("#") and name.endswith("#"):
        return True
    return name.lower().endswith(_BACKUP_SUFFIXES)


class WatchFilter:
    """Decides whether a raw change path may trigger a rebuild."""

    def __init__(self, source_root: Path, output_root: Path) -> None:
        self.source_root = source_root.resolve()
        self.output_root = output_root.resolve()

    def accepts(self, path: Path) -> bool:
        try:
            resolved = path.resolve(strict=True)
        except (OSError, RuntimeError):
            return False

        if resolved == self.output_root or self.output_root in resolved.parents:
            return False
        if self.source_root not in resolved.parents:
            return False
        if is_noise_name(resolved.name):
            return False
        return resolved.suffix[1:].lower() in WATCHED_EXTENSIONS


class SourceWatcher:
    """Watches the source tree and notifies ``signal`` on relevant changes.

    The signal is closed when the watcher thread ends, which is how the dev
    loop learns that its notification source is gone.
    """

    def __init__(
        self,
        source_root: Path,
        output_root: Path,
        signal: RebuildSignal,
        *,
        debounce_ms: int = DEBOUNCE_MS,
        retry_delay: float = 1.0,
        watch_fn: Callable[..., Iterable[set[tuple[Change, str]]]] = watch,
    ) -> None:
        self.filter = WatchFilter(source_root, output_root)
        self._signal = signal
        self._debounce_ms = debounce_ms
        self._retry_delay = retry_delay
        self._watch_fn = watch_fn
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._watch_loop,
            name="sitegen-watcher",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the watcher to stop and wait for the thread to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None

    def dispatch(self, changes: Iterable[tuple[Change, str]]) -> bool:
        """Filter one debounced batch; notify once if anything survives."""
        accepted = [
            WatchEvent(path=Path(path), kind=_CHANGE_KIND_MAP.get(change, "modified"))
            for change, path in changes
            if self.filter.accepts(Path(path))
        ]
        if not accepted:
            return False
        for event in accepted:
            logger.debug("%s %s", event.kind, event.path)
        self._signal.notify()
        return True

    def _watch_loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                try:
                    for changes in self._watch_fn(
                        self.filter.source_root,
                        watch_filter=None,
                        debounce=self._debounce_ms,
                        stop_event=self._stop_event,
                        raise_interrupt=False,
                    ):
                        self.dispatch(changes)
                except (OSError, RuntimeError) as exc:
                    logger.warning("watch error: %s; forcing a rebuild", exc)
                    self._signal.notify()
                    self._stop_event.wait(self._retry_delay)
                    continue
                break
        finally:
            self._signal.close()
