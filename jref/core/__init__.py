"""
Core — Analysis layer for JREF documents

- Nodes: Parsed tree and syntax errors
- Parsing: tree-sitter parse adapter
- Symbols: JSON Pointer symbol tables
- Documents: Open document registry and position conversion
- Diagnostics: Syntax errors as diagnostics
- Resolver: "$ref" go-to-definition
- Service: Entry points for the protocol layer
"""

from .nodes import Node, NodeKind, ParseError, ParseErrorCode, ParseResult
from .symbols import Symbol, SymbolTable, SymbolTableBuilder, build_symbol_table, REF_KEY
from .documents import Position, Range, TextDocument, DocumentRegistry, uri_to_path, path_to_uri
from .diagnostics import (
    Diagnostic, DiagnosticSeverity, SOURCE,
    get_diagnostics_message, create_parse_error_diagnostic, to_diagnostics,
)
from .resolver import DefinitionLink, ReferenceResolver, resolve_definition
from .service import AnalysisResult, JrefLanguageService, create_service

__all__ = [
    # Nodes
    "Node", "NodeKind", "ParseError", "ParseErrorCode", "ParseResult",
    # Symbols
    "Symbol", "SymbolTable", "SymbolTableBuilder", "build_symbol_table", "REF_KEY",
    # Documents
    "Position", "Range", "TextDocument", "DocumentRegistry", "uri_to_path", "path_to_uri",
    # Diagnostics
    "Diagnostic", "DiagnosticSeverity", "SOURCE",
    "get_diagnostics_message", "create_parse_error_diagnostic", "to_diagnostics",
    # Resolver
    "DefinitionLink", "ReferenceResolver", "resolve_definition",
    # Service
    "AnalysisResult", "JrefLanguageService", "create_service",
]
