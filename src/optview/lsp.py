"""Language server that shows indexed optimizer notes inside an editor.

Opened files that appear in the index get one Information diagnostic per
note, and hovering a line shows every note recorded for it.
"""

from __future__ import annotations

import re

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer
from pygls.uris import to_fs_path

from optview import __version__
from optview.index import AnnotationIndex, FileAnnotations
from optview.merge import MergedLine, merge_lines

SOURCE = "optview"

_BACKTICKS_RE = re.compile(r"`+")


def line_range(number: int, content: str) -> lsp.Range:
    """The whole of a 1-indexed line as a 0-indexed LSP Range."""
    return lsp.Range(
        start=lsp.Position(line=number - 1, character=0),
        end=lsp.Position(line=number - 1, character=len(content)),
    )


def lookup(index: AnnotationIndex, uri: str) -> FileAnnotations | None:
    path = to_fs_path(uri)
    if path is None:
        return None
    return index.find_by_abs_path(path)


def merge_document(index: AnnotationIndex, entry: FileAnnotations, text: str) -> list[MergedLine]:
    """Merge the editor's buffer (not the file on disk) with the notes."""
    return merge_lines(text.split("\n"), entry.annotations, index.message)


def annotation_diagnostics(index: AnnotationIndex, uri: str, text: str) -> list[lsp.Diagnostic]:
    entry = lookup(index, uri)
    if entry is None:
        return []
    diags: list[lsp.Diagnostic] = []
    for line in merge_document(index, entry, text):
        for message in line.info:
            diags.append(lsp.Diagnostic(
                range=line_range(line.number, line.content),
                severity=lsp.DiagnosticSeverity.Information,
                source=SOURCE,
                message=message,
            ))
    return diags


def hover_markdown(index: AnnotationIndex, uri: str, text: str, line: int) -> str | None:
    """Notes for the 0-indexed ``line`` as a fenced markdown block."""
    entry = lookup(index, uri)
    if entry is None:
        return None
    lines = merge_document(index, entry, text)
    if not 0 <= line < len(lines) or not lines[line].info:
        return None
    return code_block(lines[line].info)


def code_block(messages: list[str]) -> str:
    """Fence ``messages`` with more backticks than any run inside them."""
    text = "\n".join(messages)
    longest = max((len(m) for m in _BACKTICKS_RE.findall(text)), default=0)
    fence = "`" * max(3, longest + 1)
    return f"{fence}text\n{text}\n{fence}"


def create_server(index: AnnotationIndex) -> LanguageServer:
    """Build a language server bound to one immutable index."""
    server = LanguageServer(
        "optview-lsp", __version__,
        text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
    )

    def publish(uri: str) -> None:
        doc = server.workspace.get_text_document(uri)
        server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
            uri=uri,
            diagnostics=annotation_diagnostics(index, uri, doc.source),
        ))

    @server.feature(lsp.INITIALIZED)
    def initialized(params: lsp.InitializedParams) -> None:
        stats = index.stats()
        server.window_log_message(lsp.LogMessageParams(
            type=lsp.MessageType.Info,
            message=f"optview: {stats.annotations} notes in {stats.files} files",
        ))

    @server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
    def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
        publish(params.text_document.uri)

    @server.feature(lsp.TEXT_DOCUMENT_DID_SAVE)
    def did_save(params: lsp.DidSaveTextDocumentParams) -> None:
        publish(params.text_document.uri)

    @server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
    def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
        server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
            uri=params.text_document.uri,
            diagnostics=[],
        ))

    @server.feature(lsp.TEXT_DOCUMENT_HOVER)
    def hover(params: lsp.HoverParams) -> lsp.Hover | None:
        uri = params.text_document.uri
        doc = server.workspace.get_text_document(uri)
        content = hover_markdown(index, uri, doc.source, params.position.line)
        if content is None:
            return None
        return lsp.Hover(contents=lsp.MarkupContent(
            kind=lsp.MarkupKind.Markdown,
            value=content,
        ))

    return server


def main(index: AnnotationIndex) -> None:
    """Start the optview language server on stdio."""
    create_server(index).start_io()
