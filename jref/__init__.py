"""
JREF — Language tooling for JSON with cross-document references

Analyses JREF documents: JSON where a "$ref" property holds a URI
reference, optionally with a JSON Pointer fragment, to a location in the
same or another document.

- Symbol tables keyed by JSON Pointer
- Go-to-definition for "$ref" values
- Syntax errors as diagnostics

Usage:
    jref-ls serve               # language server over stdio
    jref-ls check main.jref     # print syntax errors
    jref-ls symbols main.jref   # dump the symbol table
"""

__version__ = "0.1.0"

from .core import (
    Node, NodeKind, ParseError, ParseErrorCode,
    Symbol, SymbolTable, build_symbol_table,
    Position, Range, TextDocument, DocumentRegistry,
    Diagnostic, DiagnosticSeverity, to_diagnostics,
    DefinitionLink, resolve_definition,
    AnalysisResult, JrefLanguageService,
)
from .core.parsing import JsonTreeParser
from .config import Config, ConfigManager, get_config

__all__ = [
    # Core
    'Node', 'NodeKind', 'ParseError', 'ParseErrorCode',
    'Symbol', 'SymbolTable', 'build_symbol_table',
    'Position', 'Range', 'TextDocument', 'DocumentRegistry',
    'Diagnostic', 'DiagnosticSeverity', 'to_diagnostics',
    'DefinitionLink', 'resolve_definition',
    'AnalysisResult', 'JrefLanguageService',
    'JsonTreeParser',
    # Config
    'Config', 'ConfigManager', 'get_config',
]
