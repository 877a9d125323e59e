"""Live development loop: build, serve, and rebuild on change."""

from __future__ import annotations

import enum
import os
import time
from collections.abc import Callable
from pathlib import Path

from sitegen.build import BuildReport, build
from sitegen.log import get_logger
from sitegen.paths import BIND_HOST, BIND_PORT, SETTLE_SECONDS, WATCHED_EXTENSIONS
from sitegen.server import StaticServer
from sitegen.watcher import RebuildSignal, SourceWatcher, is_noise_name

logger = get_logger("dev")


class DevState(enum.Enum):
    IDLE = "idle"
    VERIFYING = "verifying"
    REBUILDING = "rebuilding"


def has_changes_since(
    source_root: Path, since: float, *, exclude: Path | None = None
) -> bool:
    """Whether any watched source file was modified after ``since``."""
    excluded = exclude.resolve() if exclude is not None else None
    for dirpath, dirnames, filenames in os.walk(source_root):
        current = Path(dirpath)
        dirnames[:] = [
            name
            for name in dirnames
            if not name.startswith(".")
            and (excluded is None or (current / name).resolve() != excluded)
        ]
        for name in filenames:
            if is_noise_name(name):
                continue
            if Path(name).suffix[1:].lower() not in WATCHED_EXTENSIONS:
                continue
            try:
                mtime = (current / name).stat().st_mtime
            except OSError:
                continue
            if mtime > since:
                return True
    return False


def print_report(report: BuildReport) -> None:
    if report.fatal is not None:
        print(f"Build failed: {report.fatal}")
        return
    print(f"Build done: {report.built} built, {report.skipped} skipped")
    for error in report.errors:
        print(f"  {error.stage} {error.rel}: {error.message}")


class DevLoop:
    """Sequences the initial build, the watcher, the server and rebuilds.

    Rebuilds happen on the calling thread; the watcher and the static server
    each run on their own thread.
    """

    def __init__(
        self,
        source_root: Path,
        output_root: Path,
        *,
        host: str = BIND_HOST,
        port: int = BIND_PORT,
        settle: float = SETTLE_SECONDS,
        build_fn: Callable[[Path, Path], BuildReport] = build,
        signal: RebuildSignal | None = None,
        watcher: SourceWatcher | None = None,
        server: StaticServer | None = None,
    ) -> None:
        self.source_root = Path(source_root)
        self.output_root = Path(output_root)
        self.host = host
        self.port = port
        self.settle = settle
        self.build_fn = build_fn
        self.signal = signal or RebuildSignal()
        self.watcher = watcher or SourceWatcher(
            self.source_root, self.output_root, self.signal
        )
        self.server = server
        self.state = DevState.IDLE
        self.last_build_time = 0.0
        self.rebuilds = 0

    def _build(self) -> BuildReport:
        report = self.build_fn(self.source_root, self.output_root)
        self.last_build_time = time.time()
        print_report(report)
        return report

    def start(self) -> None:
        """Run the initial build, then start the watcher and the server."""
        self.output_root.mkdir(parents=True, exist_ok=True)
        self._build()
        self.watcher.start()
        if self.server is None:
            self.server = StaticServer(self.output_root, self.host, self.port)
        self.server.start()
        self.state = DevState.IDLE
        print(f"Dev server: {self.server.url}  (Ctrl+C to quit)")

    def step(self) -> bool:
        """Handle one notification. Returns False once notifications end."""
        if not self.signal.wait():
            return False
        self.signal.drain()

        self.state = DevState.VERIFYING
        if not has_changes_since(
            self.source_root, self.last_build_time, exclude=self.output_root
        ):
            logger.debug("nothing changed since the last build; ignoring wake-up")
            self.state = DevState.IDLE
            return True

        self.state = DevState.REBUILDING
        print("Rebuilding...")
        self._build()
        self.rebuilds += 1
        time.sleep(self.settle)
        self.signal.drain()
        self.state = DevState.IDLE
        return True

    def shutdown(self) -> None:
        self.watcher.stop()
        if self.server is not None:
            self.server.stop()

    def run(self) -> None:
        self.start()
        try:
            while self.step():
                pass
        finally:
            self.shutdown()


def serve(source_root: Path, output_root: Path, *, port: int = BIND_PORT) -> None:
    DevLoop(source_root, output_root, port=port).run()
