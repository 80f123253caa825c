"""
Tests for JrefLanguageService — content changes and definition requests
"""

import pytest

from jref.core.documents import DocumentRegistry, Position, path_to_uri
from jref.core.nodes import ParseError, ParseErrorCode, ParseResult
from jref.core.service import JrefLanguageService, create_service

from tests.factories import obj, prop, requires_tree_sitter, string


class FakeParser:
    """Returns canned parse results keyed by document text."""

    def __init__(self, results):
        self.results = results
        self.calls = []

    def parse(self, text):
        self.calls.append(text)
        return self.results.get(text, ParseResult())


MAIN_TEXT = '{"$ref": "schema.jref"}'
MAIN_TREE = obj(prop(string("$ref", 1), string("schema.jref", 9)), length=23)
OTHER_TEXT = '{"a": "b"}'
OTHER_TREE = obj(prop(string("a", 1), string("b", 6)), length=10)


@pytest.fixture
def fake_service():
    parser = FakeParser({
        MAIN_TEXT: ParseResult(root=MAIN_TREE),
        OTHER_TEXT: ParseResult(root=OTHER_TREE),
        "{": ParseResult(errors=[ParseError(ParseErrorCode.CLOSE_BRACE_EXPECTED, 1, 0)]),
    })
    return JrefLanguageService(parser=parser)


class TestContentChanges:

    def test_table_stored_on_document(self, fake_service, tmp_path):
        uri = path_to_uri(tmp_path / "main.jref")
        result = fake_service.open(uri, MAIN_TEXT, 1)

        document = fake_service.registry.get(uri)
        assert document.symbol_table is result.symbol_table
        assert "/$ref" in result.symbol_table
        assert result.diagnostics == []

    def test_change_replaces_table(self, fake_service, tmp_path):
        uri = path_to_uri(tmp_path / "main.jref")
        fake_service.open(uri, MAIN_TEXT, 1)

        result = fake_service.change(uri, OTHER_TEXT, 2)

        document = fake_service.registry.get(uri)
        assert document.version == 2
        assert document.text == OTHER_TEXT
        assert document.symbol_table is result.symbol_table
        assert "/$ref" not in document.symbol_table
        assert "/a" in document.symbol_table

    def test_diagnostics_mapped_to_positions(self, fake_service, tmp_path):
        result = fake_service.open(path_to_uri(tmp_path / "broken.jref"), "{")

        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].message == 'Closing brace "}" expected'
        assert result.diagnostics[0].range.start == Position(0, 1)
        assert len(result.symbol_table) == 0

    def test_on_content_changed_is_idempotent(self, fake_service, tmp_path):
        document = fake_service.registry.open(path_to_uri(tmp_path / "main.jref"), MAIN_TEXT)

        first = fake_service.on_content_changed(document)
        second = fake_service.on_content_changed(document)

        assert first.symbol_table.to_dict() == second.symbol_table.to_dict()
        assert first.diagnostics == second.diagnostics

    def test_whole_text_parsed_each_change(self, fake_service, tmp_path):
        uri = path_to_uri(tmp_path / "main.jref")
        fake_service.open(uri, MAIN_TEXT)
        fake_service.change(uri, OTHER_TEXT)
        assert fake_service.parser.calls == [MAIN_TEXT, OTHER_TEXT]

    def test_close_drops_document(self, fake_service, tmp_path):
        uri = path_to_uri(tmp_path / "main.jref")
        fake_service.open(uri, MAIN_TEXT)

        assert fake_service.close(uri) is True
        assert fake_service.registry.get(uri) is None
        assert fake_service.close(uri) is False

    def test_closed_target_falls_back_to_file(self, fake_service, tmp_path):
        schema_uri = path_to_uri(tmp_path / "schema.jref")
        fake_service.open(schema_uri, OTHER_TEXT)
        main_uri = path_to_uri(tmp_path / "main.jref")
        fake_service.open(main_uri, MAIN_TEXT)
        fake_service.close(schema_uri)

        link = fake_service.definition(main_uri, Position(0, 12))

        assert link.target_uri == schema_uri
        assert link.target_range.start == Position(0, 0)


class TestDefinitionRequests:

    def test_position_converted_to_offset(self, fake_service, tmp_path):
        uri = path_to_uri(tmp_path / "main.jref")
        fake_service.open(uri, MAIN_TEXT)

        link = fake_service.definition(uri, Position(0, 12))

        assert link is not None
        assert link.target_uri == path_to_uri(tmp_path / "schema.jref")

    def test_unknown_uri(self, fake_service, tmp_path):
        assert fake_service.definition(path_to_uri(tmp_path / "x.jref"), Position(0, 0)) is None

    def test_position_past_end(self, fake_service, tmp_path):
        uri = path_to_uri(tmp_path / "main.jref")
        fake_service.open(uri, MAIN_TEXT)
        assert fake_service.definition(uri, Position(5, 0)) is None


class TestServiceInstances:

    def test_services_do_not_share_documents(self, tmp_path):
        first = create_service()
        second = create_service()
        uri = path_to_uri(tmp_path / "main.jref")

        first.registry.open(uri, "{}")

        assert second.registry.get(uri) is None

    def test_shared_registry(self):
        registry = DocumentRegistry()
        service = create_service(registry=registry)
        assert service.registry is registry
        assert service.resolver.registry is registry

    def test_max_file_size(self):
        service = create_service(max_file_size=10)
        assert service.parser.config.max_file_size == 10
        assert service.parser.config.extensions == {".jref"}

    def test_oversized_document_yields_empty_table(self, tmp_path):
        service = create_service(max_file_size=4)
        result = service.open(path_to_uri(tmp_path / "big.jref"), '{"a": 1}')
        assert len(result.symbol_table) == 0
        assert result.diagnostics == []


@requires_tree_sitter
class TestRealParser:

    def test_edit_then_resolve(self, jref_factory):
        jref_factory.open("schema.jref", '{"id": 1}')
        main = jref_factory.open("main.jref", '{"$ref": "schema.jref#/type"}')
        link = jref_factory.service.definition(main.uri, Position(0, 12))
        assert link.target_range.end == Position(0, 0)

        jref_factory.service.change(jref_factory.uri("schema.jref"), '{"type": "string"}', 2)
        link = jref_factory.service.definition(main.uri, Position(0, 12))

        assert link.target_range.start == Position(0, 1)
        assert link.target_range.end == Position(0, 17)
