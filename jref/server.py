"""
Language server — pygls glue around the analysis core

Maps protocol events onto JrefLanguageService:
- didOpen / didChange  -> analyse the full text, publish diagnostics
- didClose             -> drop the document and its table, clear diagnostics
- definition           -> zero or one LocationLink for the "$ref" under the cursor

Documents are synced in full; the service never patches text or tables.
"""

import logging
from pathlib import Path
from typing import List, Optional

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from . import __version__
from .config import Config, ConfigManager
from .core.diagnostics import Diagnostic
from .core.documents import Position, Range
from .core.resolver import DefinitionLink
from .core.service import create_service

log = logging.getLogger(__name__)

SERVER_NAME = "jref-language-server"


def to_lsp_range(value: Range) -> types.Range:
    return types.Range(
        start=types.Position(line=value.start.line, character=value.start.character),
        end=types.Position(line=value.end.line, character=value.end.character),
    )


def to_lsp_diagnostic(diagnostic: Diagnostic) -> types.Diagnostic:
    return types.Diagnostic(
        range=to_lsp_range(diagnostic.range),
        message=diagnostic.message,
        severity=types.DiagnosticSeverity(int(diagnostic.severity)),
        source=diagnostic.source,
        code=diagnostic.code,
    )


def to_lsp_location_link(link: DefinitionLink) -> types.LocationLink:
    return types.LocationLink(
        target_uri=link.target_uri,
        target_range=to_lsp_range(link.target_range),
        target_selection_range=to_lsp_range(link.target_selection_range),
        origin_selection_range=to_lsp_range(link.origin_selection_range),
    )


class JrefLanguageServer(LanguageServer):
    """LanguageServer holding one JrefLanguageService."""

    def __init__(self, config: Optional[Config] = None):
        super().__init__(
            SERVER_NAME,
            __version__,
            text_document_sync_kind=types.TextDocumentSyncKind.Full,
        )
        self.config = config or Config()
        self.service = create_service(self.config.analysis.max_file_size)

    def apply_config(self, config: Config) -> None:
        """Use new settings; analysis limits take effect on the next change."""
        self.config = config
        self.service.parser = create_service(config.analysis.max_file_size).parser

    def publish(self, uri: str, diagnostics: List[Diagnostic], version: Optional[int] = None) -> None:
        self.text_document_publish_diagnostics(
            types.PublishDiagnosticsParams(
                uri=uri,
                diagnostics=[to_lsp_diagnostic(d) for d in diagnostics],
                version=version,
            )
        )


# =============================================================================
# Handlers
# =============================================================================

def initialized(ls: JrefLanguageServer, params: types.InitializedParams) -> None:
    root = ls.workspace.root_path
    if root:
        ls.apply_config(ConfigManager(Path(root)).load())
    log.info("%s %s ready (workspace: %s)", SERVER_NAME, __version__, root or "none")


def did_open(ls: JrefLanguageServer, params: types.DidOpenTextDocumentParams) -> None:
    document = params.text_document
    result = ls.service.open(document.uri, document.text, document.version)
    ls.publish(document.uri, result.diagnostics, document.version)


def did_change(ls: JrefLanguageServer, params: types.DidChangeTextDocumentParams) -> None:
    if not params.content_changes:
        return
    document = params.text_document
    # Full sync: the last change carries the whole text
    text = params.content_changes[-1].text
    result = ls.service.change(document.uri, text, document.version)
    ls.publish(document.uri, result.diagnostics, document.version)


def did_close(ls: JrefLanguageServer, params: types.DidCloseTextDocumentParams) -> None:
    uri = params.text_document.uri
    ls.service.close(uri)
    ls.publish(uri, [])


def definition(ls: JrefLanguageServer, params: types.DefinitionParams) -> Optional[List[types.LocationLink]]:
    position = Position(params.position.line, params.position.character)
    link = ls.service.definition(params.text_document.uri, position)
    if link is None:
        return None
    return [to_lsp_location_link(link)]


def create_server(config: Optional[Config] = None) -> JrefLanguageServer:
    """Build a server with all handlers registered."""
    server = JrefLanguageServer(config)
    server.feature(types.INITIALIZED)(initialized)
    server.feature(types.TEXT_DOCUMENT_DID_OPEN)(did_open)
    server.feature(types.TEXT_DOCUMENT_DID_CHANGE)(did_change)
    server.feature(types.TEXT_DOCUMENT_DID_CLOSE)(did_close)
    server.feature(types.TEXT_DOCUMENT_DEFINITION)(definition)
    return server
