"""Minimal LSP server for cssnest stylesheets, publishing parse diagnostics."""

from __future__ import annotations

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from cssnest import __version__
from cssnest.errors import CompileError
from cssnest.parser import parse

server = LanguageServer(
    "cssnest-lsp", __version__, text_document_sync_kind=TextDocumentSyncKind.Full
)


def _diagnostic(exc: CompileError) -> Diagnostic:
    if exc.span is None:
        start = end = Position(line=0, character=0)
    else:
        start = Position(line=exc.span.start.line - 1, character=exc.span.start.column - 1)
        end = Position(line=exc.span.end.line - 1, character=exc.span.end.column - 1)
    return Diagnostic(
        range=Range(start=start, end=end),
        message=exc.message,
        severity=DiagnosticSeverity.Error,
        code=exc.kind.value,
        source="cssnest",
    )


def _validate(ls: LanguageServer, uri: str) -> None:
    """Parse the stylesheet and publish any error as a diagnostic."""
    doc = ls.workspace.get_text_document(uri)
    source = doc.source
    filename = uri.rsplit("/", 1)[-1] if "/" in uri else uri
    diagnostics: list[Diagnostic] = []

    try:
        parse(source, filename)
    except CompileError as exc:
        diagnostics.append(_diagnostic(exc))

    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


def main() -> None:
    server.start_io()
