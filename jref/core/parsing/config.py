"""
Parsing configuration.

LanguageConfig names the tree-sitter grammar used for a dialect and the
limits applied before parsing. JREF documents are parsed with the JSON
grammar; "$ref" handling happens on the resulting tree.
"""

from dataclasses import dataclass, field
from typing import Set


@dataclass
class LanguageConfig:
    """
    Configuration for parsing one JSON dialect.

    Attributes:
        name: Human-readable name (e.g., "JREF")
        tree_sitter_name: Grammar name in tree-sitter-language-pack
        extensions: File extensions of the dialect (e.g., {'.jref'})
        max_file_size: Documents larger than this (bytes) are not parsed
    """
    name: str
    tree_sitter_name: str
    extensions: Set[str] = field(default_factory=set)
    max_file_size: int = 1_000_000

    def matches_extension(self, ext: str) -> bool:
        """Check if this config handles the given extension."""
        return ext.lower() in self.extensions


JREF_CONFIG = LanguageConfig(
    name="JREF",
    tree_sitter_name="json",
    extensions={'.jref'},
)
