"""
Language Service — Entry points used by the protocol layer

    on_content_changed(document)          -> AnalysisResult(table, diagnostics)
    on_definition_requested(doc, position) -> DefinitionLink | None

Each content change parses the full text, builds a fresh symbol table and
stores it on the document record, replacing whatever table was there.
Definition requests read the tables as they currently stand.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional

from .diagnostics import Diagnostic, to_diagnostics
from .documents import DocumentRegistry, Position, TextDocument
from .parsing import JREF_CONFIG, JsonTreeParser
from .resolver import DefinitionLink, ReferenceResolver
from .symbols import SymbolTable, build_symbol_table

log = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Outcome of analysing one document version."""
    symbol_table: SymbolTable
    diagnostics: List[Diagnostic] = field(default_factory=list)


class JrefLanguageService:
    """
    Analysis core for one set of open documents.

    Args:
        registry: Open documents; created empty if omitted
        parser: Parse adapter; the default JREF parser if omitted
    """

    def __init__(
        self,
        registry: Optional[DocumentRegistry] = None,
        parser: Optional[JsonTreeParser] = None,
    ):
        self.registry = registry if registry is not None else DocumentRegistry()
        self.parser = parser if parser is not None else JsonTreeParser()
        self.resolver = ReferenceResolver(self.registry)

    def on_content_changed(self, document: TextDocument) -> AnalysisResult:
        """Rebuild the symbol table of a document and map its syntax errors."""
        parsed = self.parser.parse(document.text)
        table = build_symbol_table(parsed.root)
        document.symbol_table = table
        diagnostics = to_diagnostics(document, parsed.errors)
        log.debug("Analysed %s v%s: %d symbols, %d references, %d diagnostics",
                  document.uri, document.version, len(table),
                  len(table.references()), len(diagnostics))
        return AnalysisResult(symbol_table=table, diagnostics=diagnostics)

    def on_definition_requested(self, document: TextDocument, position: Position) -> Optional[DefinitionLink]:
        """Resolve the reference under a cursor position, if any."""
        offset = document.offset_at(position)
        return self.resolver.resolve_definition(document, offset)

    # Registry conveniences for hosts that route by URI

    def open(self, uri: str, text: str, version: int = 0) -> AnalysisResult:
        return self.on_content_changed(self.registry.open(uri, text, version))

    def change(self, uri: str, text: str, version: int = 0) -> AnalysisResult:
        return self.on_content_changed(self.registry.update(uri, text, version))

    def close(self, uri: str) -> bool:
        return self.registry.close(uri)

    def definition(self, uri: str, position: Position) -> Optional[DefinitionLink]:
        document = self.registry.get(uri)
        if document is None:
            return None
        return self.on_definition_requested(document, position)


def create_service(
    max_file_size: Optional[int] = None,
    registry: Optional[DocumentRegistry] = None,
) -> JrefLanguageService:
    """Service with the JREF parser, optionally with a different size limit."""
    language = JREF_CONFIG
    if max_file_size is not None:
        language = replace(JREF_CONFIG, max_file_size=max_file_size)
    return JrefLanguageService(registry=registry, parser=JsonTreeParser(language))
