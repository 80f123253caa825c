"""
Tests for the language server glue — protocol types and handlers

Handlers are called directly with a server whose diagnostics publisher is
mocked; no client connection is involved.
"""

from unittest.mock import Mock

import pytest

pytest.importorskip("pygls")

from lsprotocol import types

from jref.config import AnalysisConfig, Config
from jref.core.diagnostics import Diagnostic, DiagnosticSeverity
from jref.core.documents import Position, Range
from jref.core.resolver import DefinitionLink
from jref.server import (
    create_server, definition, did_change, did_close, did_open,
    to_lsp_diagnostic, to_lsp_location_link, to_lsp_range,
)

from tests.factories import requires_tree_sitter


@pytest.fixture
def server():
    server = create_server(Config())
    server.text_document_publish_diagnostics = Mock()
    return server


def _published(server):
    """PublishDiagnosticsParams of the last publish call."""
    return server.text_document_publish_diagnostics.call_args[0][0]


def _open(server, uri, text, version=1):
    did_open(server, types.DidOpenTextDocumentParams(
        text_document=types.TextDocumentItem(uri=uri, language_id="jref", version=version, text=text),
    ))


def _change(server, uri, text, version):
    did_change(server, types.DidChangeTextDocumentParams(
        text_document=types.VersionedTextDocumentIdentifier(uri=uri, version=version),
        content_changes=[types.TextDocumentContentChangeWholeDocument(text=text)],
    ))


class TestConversions:

    def test_range(self):
        value = to_lsp_range(Range(Position(1, 2), Position(3, 4)))
        assert value == types.Range(
            start=types.Position(line=1, character=2),
            end=types.Position(line=3, character=4),
        )

    def test_diagnostic(self):
        diagnostic = to_lsp_diagnostic(Diagnostic(
            range=Range(Position(0, 1), Position(0, 1)),
            message='Closing brace "}" expected',
            code="CLOSE_BRACE_EXPECTED",
        ))
        assert diagnostic.severity == types.DiagnosticSeverity.Error
        assert diagnostic.source == "jref-language-server"
        assert diagnostic.code == "CLOSE_BRACE_EXPECTED"
        assert diagnostic.range.start.character == 1

    def test_warning_severity(self):
        diagnostic = to_lsp_diagnostic(Diagnostic(
            range=Range.empty(), message="m", severity=DiagnosticSeverity.WARNING))
        assert diagnostic.severity == types.DiagnosticSeverity.Warning

    def test_location_link(self):
        link = to_lsp_location_link(DefinitionLink(
            origin_selection_range=Range(Position(0, 10), Position(0, 21)),
            target_uri="file:///tmp/schema.jref",
            target_range=Range.empty(),
            target_selection_range=Range.empty(),
        ))
        assert link.target_uri == "file:///tmp/schema.jref"
        assert link.origin_selection_range.end.character == 21
        assert link.target_range == types.Range(
            start=types.Position(line=0, character=0),
            end=types.Position(line=0, character=0),
        )


class TestServer:

    def test_max_file_size_from_config(self):
        server = create_server(Config(analysis=AnalysisConfig(max_file_size=64)))
        assert server.service.parser.config.max_file_size == 64

    def test_apply_config_keeps_documents(self, server, tmp_path):
        uri = (tmp_path / "main.jref").as_uri()
        _open(server, uri, "{}")

        server.apply_config(Config(analysis=AnalysisConfig(max_file_size=8)))

        assert server.service.parser.config.max_file_size == 8
        assert server.service.registry.get(uri) is not None


class TestHandlers:

    def test_open_publishes_diagnostics(self, server, tmp_path):
        uri = (tmp_path / "main.jref").as_uri()
        _open(server, uri, "{}", version=3)

        params = _published(server)
        assert params.uri == uri
        assert params.version == 3
        assert params.diagnostics == []

    def test_change_without_content(self, server, tmp_path):
        uri = (tmp_path / "main.jref").as_uri()
        _open(server, uri, "{}")
        server.text_document_publish_diagnostics.reset_mock()

        did_change(server, types.DidChangeTextDocumentParams(
            text_document=types.VersionedTextDocumentIdentifier(uri=uri, version=2),
            content_changes=[],
        ))

        server.text_document_publish_diagnostics.assert_not_called()

    def test_close_clears_diagnostics(self, server, tmp_path):
        uri = (tmp_path / "main.jref").as_uri()
        _open(server, uri, "{}")

        did_close(server, types.DidCloseTextDocumentParams(
            text_document=types.TextDocumentIdentifier(uri=uri)))

        assert _published(server).diagnostics == []
        assert server.service.registry.get(uri) is None

    def test_definition_unknown_document(self, server, tmp_path):
        result = definition(server, types.DefinitionParams(
            text_document=types.TextDocumentIdentifier(uri=(tmp_path / "x.jref").as_uri()),
            position=types.Position(line=0, character=0),
        ))
        assert result is None


@requires_tree_sitter
class TestParsedHandlers:

    def test_change_republishes(self, server, tmp_path):
        uri = (tmp_path / "main.jref").as_uri()
        _open(server, uri, "{}")

        _change(server, uri, "{", 2)

        params = _published(server)
        assert params.version == 2
        assert [d.message for d in params.diagnostics] == ['Closing brace "}" expected']
        assert params.diagnostics[0].severity == types.DiagnosticSeverity.Error

    def test_definition_link(self, server, tmp_path):
        schema_uri = (tmp_path / "schema.jref").as_uri()
        main_uri = (tmp_path / "main.jref").as_uri()
        _open(server, schema_uri, '{"type": "string"}')
        _open(server, main_uri, '{"$ref": "schema.jref#/type"}')

        result = definition(server, types.DefinitionParams(
            text_document=types.TextDocumentIdentifier(uri=main_uri),
            position=types.Position(line=0, character=12),
        ))

        assert len(result) == 1
        link = result[0]
        assert link.target_uri == schema_uri
        assert link.target_range.start == types.Position(line=0, character=1)
        assert link.target_range.end == types.Position(line=0, character=17)
        assert link.origin_selection_range.start == types.Position(line=0, character=10)

    def test_definition_on_key(self, server, tmp_path):
        main_uri = (tmp_path / "main.jref").as_uri()
        _open(server, main_uri, '{"$ref": "schema.jref"}')

        result = definition(server, types.DefinitionParams(
            text_document=types.TextDocumentIdentifier(uri=main_uri),
            position=types.Position(line=0, character=2),
        ))

        assert result is None
