"""Tests for the HTTP viewer."""

from __future__ import annotations

import json
import socket
import threading
import urllib.error
import urllib.parse
import urllib.request
from contextlib import contextmanager

import pytest

from optview.index import FileEntry
from optview.recognizer import fold_case_path
from optview.server import address_family, make_server, render_page
from tests.helpers import build


@contextmanager
def running(index):
    """Serve ``index`` on an ephemeral local port, yielding the base URL."""
    server = make_server(index, "127.0.0.1", 0, quiet=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    try:
        yield f"http://{host}:{port}"
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


@pytest.fixture
def served(project):
    """Serve the example project's index."""
    index = build((project / "opt.log").read_bytes(), base_dir=project)
    with running(index) as base:
        yield base, project


def _get(url: str) -> tuple[int, str, str]:
    try:
        with urllib.request.urlopen(url, timeout=5) as resp:
            return resp.status, resp.headers.get("Content-Type", ""), resp.read().decode()
    except urllib.error.HTTPError as e:
        return e.code, e.headers.get("Content-Type", ""), e.read().decode()


def _file_url(base: str, path: str) -> str:
    return f"{base}/file?{urllib.parse.urlencode({'path': path})}"


class TestServer:
    def test_index_page(self, served):
        base, project = served
        status, ctype, body = _get(base + "/")
        assert status == 200
        assert ctype.startswith("text/html")
        assert f'<option value="./main.go">{project / "main.go"}</option>' in body

    def test_files(self, served):
        base, project = served
        status, ctype, body = _get(base + "/files")
        assert status == 200
        assert ctype == "application/json"
        assert json.loads(body) == [{"path": "./main.go", "absPath": str(project / "main.go")}]

    def test_file_view(self, served):
        base, project = served
        status, ctype, body = _get(_file_url(base, "./main.go"))
        assert status == 200
        assert ctype == "application/json"
        view = json.loads(body)
        assert view["path"] == "./main.go"
        assert view["absPath"] == str(project / "main.go")
        assert len(view["lines"]) == 8
        assert view["lines"][2] == {
            "number": 3,
            "content": "func add(a, b int) int { return a + b }",
            "info": ["can inline add"],
        }
        assert all(isinstance(line["info"], list) for line in view["lines"])

    def test_file_view_repeatable(self, served):
        base, _ = served
        assert _get(_file_url(base, "./main.go")) == _get(_file_url(base, "./main.go"))

    def test_missing_path_param(self, served):
        base, _ = served
        status, _, body = _get(base + "/file")
        assert status == 400
        assert body == "No path specified."

    def test_unknown_path(self, served):
        base, _ = served
        status, _, body = _get(_file_url(base, "/never/seen.go"))
        assert status == 404
        assert "not found" in body

    def test_read_failure(self, served):
        base, project = served
        (project / "main.go").unlink()
        status, _, body = _get(_file_url(base, "./main.go"))
        assert status == 500
        assert body.startswith("Error: ")

    def test_unknown_route(self, served):
        base, _ = served
        status, _, _ = _get(base + "/nope")
        assert status == 404

    def test_concurrent_requests(self, served):
        base, _ = served
        results: list[tuple[int, str, str]] = []
        lock = threading.Lock()

        def fetch() -> None:
            result = _get(_file_url(base, "./main.go"))
            with lock:
                results.append(result)

        threads = [threading.Thread(target=fetch) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)
        assert len(results) == 8
        assert len(set(results)) == 1


class TestPaths:
    def test_non_utf8_path(self, tmp_path):
        src = tmp_path / "caf\u00e9.go"
        src.write_text("package x\n")
        log = b"/src/caf\xe9.go:1: can inline f\n" + str(src).encode() + b":1: x\n"
        index = build(log)
        with running(index) as base:
            status, _, page = _get(base + "/")
            assert status == 200
            assert "/src/caf\ufffd.go" in page

            status, _, body = _get(_file_url(base, "/src/caf\ufffd.go"))
            assert status == 500
            assert "caf\ufffd.go" in body

            status, _, body = _get(_file_url(base, str(src)))
            assert status == 200
            assert json.loads(body)["lines"][0]["info"] == ["x"]

    def test_fold_case_query(self, tmp_path):
        (tmp_path / "main.go").write_text("package main\n")
        index = build(b"./Main.go:1: can inline f\n", base_dir=tmp_path, normalize=fold_case_path)
        with running(index) as base:
            status, _, body = _get(_file_url(base, "./MAIN.GO"))
        assert status == 200
        assert json.loads(body)["path"] == "./main.go"


class TestAddressFamily:
    @pytest.mark.parametrize("host", ["", "127.0.0.1", "localhost", "0.0.0.0"])
    def test_ipv4(self, host):
        assert address_family(host) == socket.AF_INET

    @pytest.mark.parametrize("host", ["::1", "::"])
    def test_ipv6(self, host):
        assert address_family(host) == socket.AF_INET6

    def test_binds_ipv6_loopback(self):
        if not socket.has_ipv6:
            pytest.skip("no IPv6 support")
        try:
            server = make_server(build(b""), "::1", 0, quiet=True)
        except OSError:
            pytest.skip("IPv6 loopback unavailable")
        try:
            assert server.socket.family == socket.AF_INET6
        finally:
            server.server_close()


class TestRenderPage:
    def test_escapes_paths(self):
        page = render_page([FileEntry("<x>.go", "/a/<x>.go")])
        assert '<option value="&lt;x&gt;.go">/a/&lt;x&gt;.go</option>' in page

    def test_empty(self):
        page = render_page([])
        assert "<select" in page
