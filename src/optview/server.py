"""HTTP viewer: a file picker page plus a JSON endpoint for merged views.

Routes:
- /            → HTML page listing every indexed file
- /files       → JSON list of indexed files
- /file?path=  → JSON merged view of one file
"""

from __future__ import annotations

import html
import json
import socket
import urllib.parse
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

import click

from optview.errors import NotFound, SourceReadError
from optview.index import AnnotationIndex, FileEntry


class ViewServer(ThreadingHTTPServer):
    """Serves one immutable index; each request runs on its own thread."""

    daemon_threads = True

    def __init__(self, address: tuple[str, int], index: AnnotationIndex, *, quiet: bool = False) -> None:
        self.address_family = address_family(address[0])
        self.index = index
        self.quiet = quiet
        super().__init__(address, ViewRequestHandler)


class ViewRequestHandler(BaseHTTPRequestHandler):
    server: ViewServer

    def log_message(self, format: str, *args: Any) -> None:
        if not self.server.quiet:
            click.echo(f"{self.address_string()} - {format % args}", err=True)

    def _send(self, status: HTTPStatus, body: bytes, content_type: str) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_json(self, payload: Any, status: HTTPStatus = HTTPStatus.OK) -> None:
        self._send(status, json.dumps(payload).encode("utf-8"), "application/json")

    def _send_text(self, text: str, status: HTTPStatus) -> None:
        self._send(status, text.encode("utf-8"), "text/plain; charset=utf-8")

    def do_GET(self) -> None:
        parsed = urllib.parse.urlparse(self.path)
        route = parsed.path

        if route in ("", "/"):
            page = render_page(self.server.index.list_files())
            self._send(HTTPStatus.OK, page.encode("utf-8"), "text/html; charset=utf-8")
            return

        if route == "/files":
            self._send_json([_entry_dict(e) for e in self.server.index.list_files()])
            return

        if route == "/file":
            params = urllib.parse.parse_qs(parsed.query)
            path = (params.get("path") or [""])[0]
            if not path:
                self._send_text("No path specified.", HTTPStatus.BAD_REQUEST)
                return
            try:
                view = self.server.index.merged_view(self.server.index.normalize(path))
            except NotFound as e:
                self._send_text(f"Error: {e}", HTTPStatus.NOT_FOUND)
                return
            except SourceReadError as e:
                click.echo(f"error: {e}", err=True)
                self._send_text(f"Error: {e}", HTTPStatus.INTERNAL_SERVER_ERROR)
                return
            self._send_json(view.to_dict())
            return

        self._send_text("Not Found", HTTPStatus.NOT_FOUND)


def address_family(host: str) -> socket.AddressFamily:
    """IPv6 literals (``::1``) need an AF_INET6 socket; everything else binds IPv4."""
    return socket.AF_INET6 if ":" in host else socket.AF_INET


def make_server(index: AnnotationIndex, host: str = "", port: int = 8080, *, quiet: bool = False) -> ViewServer:
    return ViewServer((host, port), index, quiet=quiet)


def serve(index: AnnotationIndex, host: str = "", port: int = 8080) -> None:
    """Run the viewer until interrupted."""
    server = make_server(index, host, port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        click.echo("shutting down", err=True)
    finally:
        server.server_close()


def _entry_dict(entry: FileEntry) -> dict[str, str]:
    return {"path": entry.path, "absPath": entry.abs_path}


def render_page(files: list[FileEntry]) -> str:
    options = "\n".join(
        f'\t\t<option value="{html.escape(f.path)}">{html.escape(f.abs_path)}</option>'
        for f in files
    )
    return _PAGE.replace("{{options}}", options)


_PAGE = """<!DOCTYPE html>
<html>
<head>
	<meta charset="utf-8">
	<title>optview</title>
	<style>
	.line {
		position: relative;
		height: 1.2em;
		overflow: hidden;
		font-family: monospace;

		--number-width: 4em;
		--info-width: 24em;
	}
	.line.inlining { background: #cef9ce; }
	.line.cannot-inline { background: #ffbdbd; }
	.line.escapes-to-heap { background: #bdbdff; }
	.line.cannot-inline.escapes-to-heap { outline: 2px dashed #f00; }
	.line .number {
		position: absolute;
		left: 0; top: 0; bottom: 0;
		width: var(--number-width);
	}
	.line .content {
		position: absolute;
		white-space: pre;
		left: var(--number-width); right: var(--info-width); top: 0; bottom: 0;
		text-overflow: ellipsis;
		overflow: hidden;
	}
	.line .info {
		position: absolute;
		right: 0; top: 0; bottom: 0;
		width: var(--info-width);
		text-overflow: ellipsis;
		overflow: hidden;
	}
	</style>
</head>
<body>
	<select id="file" onchange="fileSelected()">
{{options}}
	</select>
	<div id="source"></div>

	<script>
		var TAGS = [
			["cannot-inline", "cannot inline"],
			["inlining", "inlining call to"],
			["escapes-to-heap", "escapes to heap"],
		];
		var pending = null;

		function fileSelected() {
			if (pending) {
				pending.abort();
			}
			var el = document.getElementById("file");
			if (el.value === "") {
				return;
			}
			pending = new AbortController();
			fetch("/file?path=" + encodeURIComponent(el.value), {signal: pending.signal})
				.then(function(response) {
					pending = null;
					if (response.ok) {
						response.json().then(updateSource);
					} else {
						response.text().then(showError);
					}
				})
				.catch(function() {});
		}

		function showError(text) {
			var source = document.getElementById("source");
			source.innerText = text;
		}

		function updateSource(file) {
			var fragment = document.createDocumentFragment();
			file.lines.forEach(function(line) {
				var lineel = h("div", "line");
				lineel.appendChild(h("span", "number", String(line.number)));
				lineel.appendChild(h("span", "content", line.content));

				if (line.info.length > 0) {
					var full = line.info.join("\\n");
					TAGS.forEach(function(tag) {
						if (full.indexOf(tag[1]) >= 0) {
							lineel.classList.add(tag[0]);
						}
					});
					var infoel = h("span", "info", line.info[0]);
					infoel.title = full;
					lineel.appendChild(infoel);
				}
				fragment.appendChild(lineel);
			});

			var source = document.getElementById("source");
			source.innerText = "";
			source.appendChild(fragment);
		}

		function h(tag, className, text) {
			var el = document.createElement(tag);
			el.className = className;
			if (text) {
				el.innerText = text;
			}
			return el;
		}

		fileSelected();
	</script>
</body>
</html>
"""
