"""
Symbols — Per-document symbol table of JSON Pointer addressable properties

One table is built per document version by a single depth-first walk of
the parsed tree. Tables are never patched: every content change builds a
new one which replaces the old on the document record.

Key rules:
- Only properties are addressable; primitive values are not symbols
- A property whose key is "$ref" and whose value is a string is a reference
- Malformed properties (missing key or value) are skipped with their subtree
- Duplicate keys at one level: the later property replaces the earlier one

Usage:
    from jref.core.symbols import build_symbol_table

    table = build_symbol_table(parse_result.root)
    table["/definitions/user"].node
    [s.refers_to for s in table.references()]
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from . import pointer as json_pointer
from .nodes import Node, NodeKind

REF_KEY = "$ref"


@dataclass(eq=False)
class Symbol:
    """An addressable property of a document."""
    pointer: str                    # JSON Pointer of the property ("" is the root)
    node: Node                      # The property node (key, value)
    is_reference: bool = False
    refers_to: Optional[str] = None # Raw "$ref" value when is_reference

    @property
    def key(self) -> str:
        return self.node.children[0].value

    @property
    def value_node(self) -> Node:
        return self.node.children[1]

    def to_dict(self) -> dict:
        data = {
            "pointer": self.pointer,
            "offset": self.node.offset,
            "length": self.node.length,
            "is_reference": self.is_reference,
        }
        if self.is_reference:
            data["refers_to"] = self.refers_to
        return data


class SymbolTable:
    """
    Mapping from pointer to Symbol for exactly one document version.

    Read-only once built. Iteration follows traversal (source) order,
    except that a duplicated pointer keeps the position of its first
    occurrence.
    """

    def __init__(self, symbols: Optional[Dict[str, Symbol]] = None):
        self._symbols: Dict[str, Symbol] = dict(symbols or {})

    def __getitem__(self, pointer: str) -> Symbol:
        return self._symbols[pointer]

    def __contains__(self, pointer: object) -> bool:
        return pointer in self._symbols

    def __iter__(self) -> Iterator[str]:
        return iter(self._symbols)

    def __len__(self) -> int:
        return len(self._symbols)

    def get(self, pointer: str) -> Optional[Symbol]:
        return self._symbols.get(pointer)

    def pointers(self) -> List[str]:
        return list(self._symbols)

    def symbols(self) -> List[Symbol]:
        return list(self._symbols.values())

    def references(self) -> List[Symbol]:
        """Reference symbols, in table order."""
        return [s for s in self._symbols.values() if s.is_reference]

    def reference_at(self, offset: int) -> Optional[Symbol]:
        """
        Find the reference whose value node contains a byte offset.

        The key and the punctuation around the value never match.
        """
        for symbol in self.references():
            if symbol.value_node.contains(offset):
                return symbol
        return None

    def to_dict(self) -> Dict[str, dict]:
        return {p: s.to_dict() for p, s in self._symbols.items()}


class SymbolTableBuilder:
    """Walks a parsed tree once and collects its symbols."""

    def __init__(self):
        self._symbols: Dict[str, Symbol] = {}

    def build(self, root: Optional[Node]) -> SymbolTable:
        """
        Build the table for a document.

        Args:
            root: Root node, or None when the text produced no tree

        Returns:
            SymbolTable (empty for None or a leaf root)
        """
        self._symbols = {}
        if root is not None:
            self._visit(root, json_pointer.ROOT)
        return SymbolTable(self._symbols)

    def _visit(self, node: Node, path: str) -> None:
        kind = node.kind
        if kind is NodeKind.OBJECT:
            for child in node.children:
                self._visit(child, path)
        elif kind is NodeKind.ARRAY:
            for index, child in enumerate(node.children):
                self._visit(child, json_pointer.join(path, index))
        elif kind is NodeKind.PROPERTY:
            self._visit_property(node, path)
        elif kind in (NodeKind.STRING, NodeKind.NUMBER, NodeKind.BOOLEAN, NodeKind.NULL):
            return
        else:
            raise AssertionError(f"unhandled node kind: {kind}")

    def _visit_property(self, node: Node, path: str) -> None:
        if len(node.children) != 2:
            # incomplete property
            return
        key, value = node.children
        if key.kind is not NodeKind.STRING or not isinstance(key.value, str):
            return

        is_reference = key.value == REF_KEY and value.kind is NodeKind.STRING
        pointer = json_pointer.join(path, key.value)
        self._symbols[pointer] = Symbol(
            pointer=pointer,
            node=node,
            is_reference=is_reference,
            refers_to=value.value if is_reference else None,
        )

        if value.kind.is_composite:
            self._visit(value, pointer)


def build_symbol_table(root: Optional[Node]) -> SymbolTable:
    """Build the symbol table of a parsed document."""
    return SymbolTableBuilder().build(root)
