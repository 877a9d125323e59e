from __future__ import annotations

import mimetypes
import os
import shutil
import threading
from functools import partial
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import unquote, urlsplit

from sitegen.log import get_logger
from sitegen.paths import BIND_HOST, BIND_PORT, INDEX_FILENAME

logger = get_logger("server")

NOT_FOUND_BODY = b"404 Not Found"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def resolve_request_path(output_root: Path, request_path: str) -> Path | None:
    """Map a request path to a file under ``output_root``.

    A trailing slash or an existing directory maps to its index file. Returns
    None for paths that escape the root or do not name an existing file.
    """
    url_path = unquote(urlsplit(request_path).path)
    rel = url_path.lstrip("/")
    root = output_root.resolve()
    candidate = root / rel
    if url_path.endswith("/") or candidate.is_dir():
        candidate = candidate / INDEX_FILENAME

    try:
        resolved = candidate.resolve(strict=True)
    except (OSError, RuntimeError, ValueError):
        return None
    if root not in resolved.parents:
        return None
    if not resolved.is_file():
        return None
    return resolved


def content_type_for(path: Path) -> str:
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or DEFAULT_CONTENT_TYPE


class OutputRequestHandler(BaseHTTPRequestHandler):
    """Serves files from the output tree; GET and HEAD only."""

    server_version = "sitegen"

    def __init__(self, *args, output_root: Path, **kwargs):
        self.output_root = output_root
        super().__init__(*args, **kwargs)

    def do_GET(self):
        self._respond(send_body=True)

    def do_HEAD(self):
        self._respond(send_body=False)

    def _respond(self, *, send_body: bool) -> None:
        path = resolve_request_path(self.output_root, self.path)
        if path is not None:
            try:
                fh = path.open("rb")
            except OSError:
                path = None
        if path is None:
            self.send_response(404)
            self.send_header("Content-Type", "text/plain; charset=utf-8")
            self.send_header("Content-Length", str(len(NOT_FOUND_BODY)))
            self.end_headers()
            if send_body:
                self.wfile.write(NOT_FOUND_BODY)
            return

        with fh:
            size = os.fstat(fh.fileno()).st_size
            self.send_response(200)
            self.send_header("Content-Type", content_type_for(path))
            self.send_header("Content-Length", str(size))
            self.end_headers()
            if send_body:
                shutil.copyfileobj(fh, self.wfile)

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


class StaticServer:
    """Threaded HTTP server for previewing the output tree."""

    def __init__(
        self,
        output_root: Path,
        host: str = BIND_HOST,
        port: int = BIND_PORT,
    ) -> None:
        self.output_root = Path(output_root)
        handler = partial(OutputRequestHandler, output_root=self.output_root)
        self._httpd = ThreadingHTTPServer((host, port), handler)
        self._httpd.daemon_threads = True
        self._thread: threading.Thread | None = None

    @property
    def address(self) -> tuple[str, int]:
        host, port = self._httpd.server_address[:2]
        return host, port

    @property
    def url(self) -> str:
        host, port = self.address
        return f"http://{host}:{port}/"

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._httpd.serve_forever,
            name="sitegen-server",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop serving and wait for the server thread."""
        if self._thread is not None:
            self._httpd.shutdown()
            self._thread.join()
            self._thread = None
        self._httpd.server_close()
