"""Tests for sitegen.server: request mapping and the preview HTTP server."""

from __future__ import annotations

import http.client
from collections.abc import Iterator
from pathlib import Path

import pytest

from sitegen.server import (
    NOT_FOUND_BODY,
    StaticServer,
    content_type_for,
    resolve_request_path,
)


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    root = tmp_path / "dist"
    (root / "posts" / "first").mkdir(parents=True)
    (root / "css").mkdir()
    (root / "index.html").write_text("<h1>home</h1>")
    (root / "posts" / "first" / "index.html").write_text("<h1>first</h1>")
    (root / "css" / "style.css").write_text("body {}")
    (root / "blob").write_bytes(b"\x00\x01")
    (tmp_path / "secret.txt").write_text("outside")
    return root


@pytest.fixture
def server(tree: Path) -> Iterator[StaticServer]:
    srv = StaticServer(tree, "127.0.0.1", 0)
    srv.start()
    try:
        yield srv
    finally:
        srv.stop()


def request(server: StaticServer, path: str, method: str = "GET"):
    host, port = server.address
    conn = http.client.HTTPConnection(host, port, timeout=5)
    try:
        conn.request(method, path)
        response = conn.getresponse()
        return response.status, dict(response.getheaders()), response.read()
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# Path mapping
# ---------------------------------------------------------------------------


class TestResolveRequestPath:
    def test_root_maps_to_index(self, tree: Path) -> None:
        assert resolve_request_path(tree, "/") == (tree / "index.html").resolve()

    @pytest.mark.parametrize("path", ["/posts/first", "/posts/first/", "/posts/first/?x=1"])
    def test_directory_maps_to_index(self, tree: Path, path: str) -> None:
        expected = (tree / "posts" / "first" / "index.html").resolve()
        assert resolve_request_path(tree, path) == expected

    def test_plain_file(self, tree: Path) -> None:
        assert resolve_request_path(tree, "/css/style.css") == (tree / "css" / "style.css").resolve()

    def test_percent_encoding(self, tree: Path) -> None:
        (tree / "a b.html").write_text("x")
        assert resolve_request_path(tree, "/a%20b.html") == (tree / "a b.html").resolve()

    @pytest.mark.parametrize(
        "path", ["/../secret.txt", "/posts/../../secret.txt", "/%2e%2e/secret.txt"]
    )
    def test_traversal_is_rejected(self, tree: Path, path: str) -> None:
        assert resolve_request_path(tree, path) is None

    def test_symlink_out_of_root_is_rejected(self, tree: Path) -> None:
        (tree / "leak.txt").symlink_to(tree.parent / "secret.txt")
        assert resolve_request_path(tree, "/leak.txt") is None

    def test_missing(self, tree: Path) -> None:
        assert resolve_request_path(tree, "/nope.html") is None
        assert resolve_request_path(tree, "/css/") is None


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("index.html", "text/html"),
        ("style.css", "text/css"),
        ("blob", "application/octet-stream"),
        ("data.unknownext", "application/octet-stream"),
    ],
)
def test_content_type_for(name: str, expected: str) -> None:
    assert content_type_for(Path(name)) == expected


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


class TestStaticServer:
    def test_serves_directory_index(self, server: StaticServer) -> None:
        status, headers, body = request(server, "/posts/first")

        assert status == 200
        assert body == b"<h1>first</h1>"
        assert headers["Content-Type"].startswith("text/html")
        assert headers["Content-Length"] == str(len(body))

    def test_serves_root(self, server: StaticServer) -> None:
        status, _, body = request(server, "/")
        assert (status, body) == (200, b"<h1>home</h1>")

    def test_unknown_type_is_octet_stream(self, server: StaticServer) -> None:
        status, headers, body = request(server, "/blob")

        assert status == 200
        assert headers["Content-Type"] == "application/octet-stream"
        assert body == b"\x00\x01"

    def test_missing_is_404(self, server: StaticServer) -> None:
        status, headers, body = request(server, "/missing/")

        assert status == 404
        assert body == NOT_FOUND_BODY
        assert headers["Content-Type"].startswith("text/plain")

    def test_traversal_is_404(self, server: StaticServer) -> None:
        status, _, body = request(server, "/../secret.txt")
        assert (status, body) == (404, NOT_FOUND_BODY)

    def test_head_has_no_body(self, server: StaticServer) -> None:
        status, headers, body = request(server, "/css/style.css", method="HEAD")

        assert status == 200
        assert headers["Content-Length"] == str(len("body {}"))
        assert body == b""

    def test_picks_up_new_files(self, server: StaticServer, tree: Path) -> None:
        (tree / "late.html").write_text("late")
        status, _, body = request(server, "/late.html")
        assert (status, body) == (200, b"late")

    def test_url_reports_bound_port(self, server: StaticServer) -> None:
        host, port = server.address
        assert port != 0
        assert server.url == f"http://{host}:{port}/"
