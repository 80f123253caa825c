"""
Nodes — Parsed document tree and syntax errors

The tree is produced by the parse adapter (parsing/extractor.py) and is
read-only to the rest of the core. Offsets and lengths are byte positions
in the UTF-8 encoding of the document text.

Usage:
    from jref.core.nodes import Node, NodeKind

    key = Node(NodeKind.STRING, offset=1, length=6, value="$ref")
    value = Node(NodeKind.STRING, offset=9, length=13, value="schema.jref")
    prop = Node(NodeKind.PROPERTY, offset=1, length=21, children=[key, value])
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, List, Optional, Union


class NodeKind(Enum):
    """Kinds of node in a parsed document."""
    OBJECT = "object"
    ARRAY = "array"
    PROPERTY = "property"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"

    @property
    def is_composite(self) -> bool:
        return self in (NodeKind.OBJECT, NodeKind.ARRAY)


@dataclass(eq=False)
class Node:
    """
    A node of the document tree.

    Attributes:
        kind: Node kind
        offset: Byte offset of the first byte of the node
        length: Byte length of the node
        children: Ordered children (object members, array elements,
                  or [key, value] for a well-formed property)
        value: Decoded scalar for leaf kinds, None otherwise
    """
    kind: NodeKind
    offset: int
    length: int
    children: List['Node'] = field(default_factory=list)
    value: Any = None

    @property
    def end(self) -> int:
        """Byte offset just past the node."""
        return self.offset + self.length

    def contains(self, offset: int) -> bool:
        """Check if offset lies in [offset, end)."""
        return self.offset <= offset < self.end


class ParseErrorCode(IntEnum):
    """Syntax error codes reported by the parse adapter."""
    INVALID_SYMBOL = 1
    INVALID_NUMBER_FORMAT = 2
    PROPERTY_NAME_EXPECTED = 3
    VALUE_EXPECTED = 4
    COLON_EXPECTED = 5
    COMMA_EXPECTED = 6
    CLOSE_BRACE_EXPECTED = 7
    CLOSE_BRACKET_EXPECTED = 8
    END_OF_FILE_EXPECTED = 9
    INVALID_COMMENT_TOKEN = 10
    UNEXPECTED_END_OF_COMMENT = 11
    UNEXPECTED_END_OF_STRING = 12
    UNEXPECTED_END_OF_NUMBER = 13
    INVALID_UNICODE = 14
    INVALID_ESCAPE_CHARACTER = 15
    INVALID_CHARACTER = 16


@dataclass(frozen=True)
class ParseError:
    """A syntax error at a byte range of the document."""
    error: Union[ParseErrorCode, int]
    offset: int
    length: int = 0


@dataclass
class ParseResult:
    """Output of one parse: the root node (None if nothing usable) and errors."""
    root: Optional[Node] = None
    errors: List[ParseError] = field(default_factory=list)
