"""
Test Data Factory — Documents and node trees for JREF tests

Two helpers:
- JrefTestFactory: a language service over documents living in tmp_path,
  with lookups for offsets/positions of text fragments
- Node builders (obj, arr, prop, string, ...): hand-made trees for tests
  that must not depend on the tree-sitter grammar

Usage:
    def test_something(jref_factory):
        doc = jref_factory.open("main.jref", '{"$ref": "schema.jref"}')
        link = jref_factory.service.on_definition_requested(
            doc, jref_factory.position_of(doc, "schema.jref"))
"""

import json
from pathlib import Path
from typing import Any, List, Optional

import pytest

from jref.core.documents import Position, TextDocument, path_to_uri
from jref.core.nodes import Node, NodeKind
from jref.core.parsing import JsonTreeParser
from jref.core.service import JrefLanguageService, create_service

TREE_SITTER_AVAILABLE = JsonTreeParser().is_available()

# Skip marker for tests that need the real JSON grammar
requires_tree_sitter = pytest.mark.skipif(
    not TREE_SITTER_AVAILABLE,
    reason="tree-sitter JSON grammar not available"
)


class JrefTestFactory:
    """Opens documents under a root directory in one language service."""

    def __init__(self, root: Path, service: Optional[JrefLanguageService] = None):
        self.root = Path(root)
        self.service = service or create_service()

    @property
    def registry(self):
        return self.service.registry

    def path(self, name: str) -> Path:
        return self.root / name

    def uri(self, name: str) -> str:
        return path_to_uri(self.path(name))

    def write(self, name: str, text: str) -> Path:
        """Write a file on disk without opening it."""
        path = self.path(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    def open(self, name: str, text: str, write: bool = False) -> TextDocument:
        """Open and analyse a document (optionally also writing it to disk)."""
        if write:
            self.write(name, text)
        uri = self.uri(name)
        self.service.open(uri, text, version=1)
        return self.registry.get(uri)

    def offset_of(self, document: TextDocument, needle: str, delta: int = 0) -> int:
        """Byte offset of the first occurrence of needle, plus delta bytes."""
        index = document.source.index(needle.encode("utf-8"))
        return index + delta

    def position_of(self, document: TextDocument, needle: str, delta: int = 0) -> Position:
        return document.position_at(self.offset_of(document, needle, delta))


# =============================================================================
# Node builders
# =============================================================================

def _encoded_length(value: Any) -> int:
    return len(json.dumps(value).encode("utf-8"))


def string(value: str, offset: int = 0) -> Node:
    return Node(NodeKind.STRING, offset, _encoded_length(value), value=value)


def number(value: Any, offset: int = 0) -> Node:
    return Node(NodeKind.NUMBER, offset, _encoded_length(value), value=value)


def boolean(value: bool, offset: int = 0) -> Node:
    return Node(NodeKind.BOOLEAN, offset, _encoded_length(value), value=value)


def null(offset: int = 0) -> Node:
    return Node(NodeKind.NULL, offset, 4)


def prop(key: Optional[Node], value: Optional[Node]) -> Node:
    """Property node; pass None for a missing key or value."""
    children: List[Node] = [c for c in (key, value) if c is not None]
    offset = children[0].offset if children else 0
    end = children[-1].end if children else 0
    return Node(NodeKind.PROPERTY, offset, end - offset, children=children)


def obj(*members: Node, offset: int = 0, length: int = 2) -> Node:
    return Node(NodeKind.OBJECT, offset, length, children=list(members))


def arr(*elements: Node, offset: int = 0, length: int = 2) -> Node:
    return Node(NodeKind.ARRAY, offset, length, children=list(elements))
