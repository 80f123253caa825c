"""
Parsing module — JREF text to Node tree via tree-sitter.

- LanguageConfig: Grammar name and limits for a dialect
- JsonTreeParser: Parse adapter producing Nodes and ParseErrors

Usage:
    from jref.core.parsing import JsonTreeParser

    result = JsonTreeParser().parse(text)
    result.root, result.errors
"""

from .config import LanguageConfig, JREF_CONFIG
from .extractor import JsonTreeParser

__all__ = [
    'LanguageConfig',
    'JREF_CONFIG',
    'JsonTreeParser',
]
