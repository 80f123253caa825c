"""
JsonTreeParser — Parse adapter over tree-sitter's JSON grammar.

Turns document text into the core's Node tree plus an ordered list of
ParseErrors. tree-sitter always produces a tree; malformed input shows up
as ERROR nodes (unparseable spans) and MISSING nodes (tokens the parser
inserted to recover). Both are reported as syntax errors and left out of
the Node tree, so an incomplete property simply ends up with fewer than
two children.

Usage:
    from jref.core.parsing import JsonTreeParser

    parser = JsonTreeParser()
    result = parser.parse('{"$ref": "schema.jref"}')
    result.root.kind        # NodeKind.OBJECT
    result.errors           # []
"""

import json
import logging
import re
from typing import Any, List, Optional, Tuple, TYPE_CHECKING

from ..nodes import Node, NodeKind, ParseError, ParseErrorCode, ParseResult
from .config import JREF_CONFIG, LanguageConfig

if TYPE_CHECKING:
    from tree_sitter import Parser
    from tree_sitter import Node as TSNode

log = logging.getLogger(__name__)

# Lazy import for tree-sitter to allow graceful degradation
_language_pack_available = None


def _check_language_pack() -> bool:
    """Check if tree-sitter-language-pack is available."""
    global _language_pack_available
    if _language_pack_available is None:
        try:
            import tree_sitter_language_pack  # noqa: F401
            _language_pack_available = True
        except ImportError:
            _language_pack_available = False
    return _language_pack_available


# Tokens tree-sitter may insert as MISSING, and what their absence means
_MISSING_TOKEN_CODES = {
    "}": ParseErrorCode.CLOSE_BRACE_EXPECTED,
    "]": ParseErrorCode.CLOSE_BRACKET_EXPECTED,
    ":": ParseErrorCode.COLON_EXPECTED,
    ",": ParseErrorCode.COMMA_EXPECTED,
    '"': ParseErrorCode.UNEXPECTED_END_OF_STRING,
}

_SCALAR_KINDS = {
    "string": NodeKind.STRING,
    "number": NodeKind.NUMBER,
    "true": NodeKind.BOOLEAN,
    "false": NodeKind.BOOLEAN,
    "null": NodeKind.NULL,
}

_CLOSERS = {b"{": b"}", b"[": b"]"}

_OPENERS = {"{": NodeKind.OBJECT, "[": NodeKind.ARRAY}
_CLOSING_KINDS = {"}": NodeKind.OBJECT, "]": NodeKind.ARRAY}


class _Frame:
    """An unclosed container met while replaying ERROR tokens."""

    def __init__(self, container: Node, holder: Optional[Node] = None):
        self.container = container
        self.holder = holder        # property wrapping the container, if any
        self.key: Optional[Node] = None
        self.colon = False

    def attach(self, value: Node) -> Optional[Node]:
        """Add a value as the next element or member; None if there is no key for it."""
        parent = self.container
        if parent.kind is NodeKind.ARRAY:
            parent.children.append(value)
            return value
        key, colon = self.key, self.colon
        self.key, self.colon = None, False
        if key is None or not colon:
            return None
        member = Node(NodeKind.PROPERTY, key.offset, value.end - key.offset, children=[key, value])
        parent.children.append(member)
        return member

    def close(self, end: int) -> None:
        self.container.length = end - self.container.offset
        if self.holder is not None and self.holder is not self.container:
            self.holder.length = end - self.holder.offset


_NUMBER_TOKEN = re.compile(rb"[^\s,:\]}]*")

# One escape sequence: \uXXXX (possibly cut short) or a backslash and one byte
_ESCAPE = re.compile(rb"\\(u[0-9A-Fa-f]{0,4}|.?)", re.DOTALL)
_SIMPLE_ESCAPES = {b"\"", b"\\", b"/", b"b", b"f", b"n", b"r", b"t"}


def _number_ending_at(node: Optional['TSNode'], offset: int) -> Optional['TSNode']:
    """The number token ending right at offset, looking through pair values."""
    while node is not None and node.type == "pair":
        node = node.child_by_field_name("value")
    if node is not None and node.type == "number" and node.end_byte == offset:
        return node
    return None


def _has_broken_value(node: 'TSNode') -> bool:
    if node.type != "pair":
        return False
    value = node.child_by_field_name("value")
    return value is not None and value.type == "ERROR"


def _number_error(text: bytes) -> ParseErrorCode:
    token = _NUMBER_TOKEN.match(text).group(0)
    if token[-1:] in (b"-", b"+", b"e", b"E", b"."):
        return ParseErrorCode.UNEXPECTED_END_OF_NUMBER
    return ParseErrorCode.INVALID_NUMBER_FORMAT


def _scan_error_text(text: bytes) -> Tuple[Optional[int], List[bytes]]:
    """
    Scan the bytes of an ERROR span outside of strings.

    Returns:
        (offset of an unterminated string or None, brackets left open)
    """
    openers: List[bytes] = []
    string_start: Optional[int] = None
    escaped = False
    for i in range(len(text)):
        ch = text[i:i + 1]
        if string_start is not None:
            if escaped:
                escaped = False
            elif ch == b"\\":
                escaped = True
            elif ch == b'"':
                string_start = None
            elif ch in (b"\n", b"\r"):
                return string_start, openers
        elif ch == b'"':
            string_start = i
        elif ch in _CLOSERS:
            openers.append(ch)
        elif ch in (b"}", b"]"):
            if openers and _CLOSERS[openers[-1]] == ch:
                openers.pop()
    return string_start, openers


class _TreeConverter:
    """Converts one tree-sitter tree into Nodes and ParseErrors."""

    def __init__(self, source: bytes):
        self.source = source
        self.errors: List[ParseError] = []

    def convert(self, root: 'TSNode') -> ParseResult:
        self._collect_errors(root)
        document = self._convert_document(root)
        errors = sorted(self.errors, key=lambda e: e.offset)
        return ParseResult(root=document, errors=errors)

    # -------------------------------------------------------------------------
    # Errors
    # -------------------------------------------------------------------------

    def _collect_errors(self, node: 'TSNode') -> None:
        if node.type == "ERROR":
            self.errors.append(self._classify_error(node))
            return
        if node.is_missing:
            self.errors.append(self._classify_missing(node))
            return
        if node.type == "pair":
            key = node.child_by_field_name("key")
            if key is not None and key.type != "string" and not key.is_missing:
                self.errors.append(ParseError(
                    ParseErrorCode.PROPERTY_NAME_EXPECTED,
                    key.start_byte,
                    key.end_byte - key.start_byte,
                ))
        if node.type == "string" and not node.has_error:
            self._check_escapes(node)
        for child in node.children:
            self._collect_errors(child)

    def _check_escapes(self, node: 'TSNode') -> None:
        # The grammar lets malformed \u escapes through as plain content
        raw = self.source[node.start_byte:node.end_byte]
        for match in _ESCAPE.finditer(raw):
            body = match.group(1)
            if body[:1] == b"u":
                if len(body) == 5:
                    continue
                code = ParseErrorCode.INVALID_UNICODE
            elif body in _SIMPLE_ESCAPES:
                continue
            else:
                code = ParseErrorCode.INVALID_ESCAPE_CHARACTER
            self.errors.append(ParseError(
                code,
                node.start_byte + match.start(),
                match.end() - match.start(),
            ))

    def _classify_missing(self, node: 'TSNode') -> ParseError:
        code = _MISSING_TOKEN_CODES.get(node.type)
        if code is None:
            parent = node.parent
            if parent is not None and parent.type == "pair" and parent.child_by_field_name("key") == node:
                code = ParseErrorCode.PROPERTY_NAME_EXPECTED
            else:
                code = ParseErrorCode.VALUE_EXPECTED
        return ParseError(code, node.start_byte, 0)

    def _classify_error(self, node: 'TSNode') -> ParseError:
        start, end = node.start_byte, node.end_byte
        text = self.source[start:end]
        stripped = text.lstrip()
        if not stripped:
            return ParseError(ParseErrorCode.VALUE_EXPECTED, start, end - start)

        string_start, openers = _scan_error_text(text)
        if string_start is not None:
            line_end = len(text)
            for brk in (b"\n", b"\r"):
                found = text.find(brk, string_start)
                if found != -1:
                    line_end = min(line_end, found)
            return ParseError(
                ParseErrorCode.UNEXPECTED_END_OF_STRING,
                start + string_start,
                line_end - string_start,
            )
        if openers:
            code = (ParseErrorCode.CLOSE_BRACE_EXPECTED if openers[-1] == b"{"
                    else ParseErrorCode.CLOSE_BRACKET_EXPECTED)
            return ParseError(code, end, 0)

        offset, stray, before = self._stray_text(node)
        code = self._code_for_stray_text(node, offset, stray, before)
        return ParseError(code, offset, end - offset)

    def _stray_text(self, node: 'TSNode') -> Tuple[int, bytes, Optional['TSNode']]:
        """First text in an ERROR span that no token covers, and the node before it."""
        cursor, before = node.start_byte, node.prev_sibling
        for child in list(node.children) + [None]:
            stop = child.start_byte if child is not None else node.end_byte
            gap = self.source[cursor:stop]
            if gap.strip():
                offset = cursor + len(gap) - len(gap.lstrip())
                return offset, gap.strip(), before
            if child is not None:
                cursor = max(cursor, child.end_byte)
                before = child
        text = self.source[node.start_byte:node.end_byte].lstrip()
        return node.end_byte - len(text), text, node.prev_sibling

    def _code_for_stray_text(
        self,
        node: 'TSNode',
        offset: int,
        text: bytes,
        before: Optional['TSNode'],
    ) -> ParseErrorCode:
        number = _number_ending_at(before, offset)
        if number is not None:
            return _number_error(self.source[number.start_byte:offset] + text)

        first = text[:1]
        parent_type = node.parent.type if node.parent is not None else None
        if text.startswith(b"\\u"):
            return ParseErrorCode.INVALID_UNICODE
        if first == b"\\":
            return ParseErrorCode.INVALID_ESCAPE_CHARACTER
        if text.startswith(b"/*"):
            return ParseErrorCode.UNEXPECTED_END_OF_COMMENT
        if first == b"/":
            return ParseErrorCode.INVALID_COMMENT_TOKEN
        if first in (b"-", b"+", b".") or first.isdigit():
            return _number_error(text)
        if first == b",":
            if parent_type == "object":
                return ParseErrorCode.PROPERTY_NAME_EXPECTED
            return ParseErrorCode.VALUE_EXPECTED
        if first in (b"}", b"]") and parent_type in (None, "document"):
            return ParseErrorCode.END_OF_FILE_EXPECTED
        if first[0] < 0x20:
            return ParseErrorCode.INVALID_CHARACTER
        return ParseErrorCode.INVALID_SYMBOL

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def _convert_document(self, root: 'TSNode') -> Optional[Node]:
        if root.type == "ERROR":
            return self._recover_container([root])

        children = [
            child for child in root.named_children
            if child.type != "comment" and not child.is_missing
        ]
        if not children:
            return None
        if children[0].type == "ERROR":
            # The opening tokens sit in an ERROR span; replay it with what follows
            return self._recover_container(children)

        values = [child for child in children if child.type != "ERROR"]
        for extra in values[1:]:
            self.errors.append(ParseError(
                ParseErrorCode.END_OF_FILE_EXPECTED,
                extra.start_byte,
                extra.end_byte - extra.start_byte,
            ))
        return self._convert(values[0])

    def _convert(self, node: Optional['TSNode']) -> Optional[Node]:
        if node is None or node.is_missing:
            return None

        kind_name = node.type
        offset = node.start_byte
        length = node.end_byte - node.start_byte

        if kind_name == "object":
            members = self._convert_all(node.named_children)
            return Node(NodeKind.OBJECT, offset, length, children=members)
        if kind_name == "array":
            elements = self._convert_all(node.named_children)
            return Node(NodeKind.ARRAY, offset, length, children=elements)
        if kind_name == "pair":
            parts = [
                self._convert(node.child_by_field_name("key")),
                self._convert(node.child_by_field_name("value")),
            ]
            children = [part for part in parts if part is not None]
            return Node(NodeKind.PROPERTY, offset, length, children=children)

        kind = _SCALAR_KINDS.get(kind_name)
        if kind is None:
            # comments, ERROR spans
            return None
        return Node(kind, offset, length, value=self._scalar_value(node, kind))

    def _convert_all(self, nodes: List['TSNode']) -> List[Node]:
        converted = (self._convert(child) for child in nodes)
        return [child for child in converted if child is not None]

    def _recover_container(self, nodes: List['TSNode']) -> Optional[Node]:
        """
        Salvage a document whose top-level value was never closed.

        tree-sitter flattens unclosed containers into ERROR spans, so the
        tokens are replayed against a stack of open containers to put each
        member back under its real parent. A container that cannot be tied
        to a parent property is not linked into the tree, and neither are
        its members.
        """
        tokens = self._flatten(nodes)
        if not tokens:
            return None
        end = max(node.end_byte for node in nodes)

        root: Optional[Node] = None
        stack: List[_Frame] = []
        for token in tokens:
            kind_name = token.type
            if not stack:
                if root is not None:
                    break
                if kind_name in ("object", "array"):
                    return self._convert(token)
                if kind_name in _OPENERS:
                    root = Node(_OPENERS[kind_name], token.start_byte, end - token.start_byte)
                    stack.append(_Frame(root))
                continue

            frame = stack[-1]
            if kind_name in _OPENERS:
                container = Node(_OPENERS[kind_name], token.start_byte, end - token.start_byte)
                stack.append(_Frame(container, holder=frame.attach(container)))
            elif kind_name in _CLOSING_KINDS:
                if frame.container.kind is _CLOSING_KINDS[kind_name]:
                    stack.pop()
                    frame.close(token.end_byte)
            elif kind_name == ",":
                frame.key = None
                frame.colon = False
            elif kind_name == ":":
                frame.colon = frame.key is not None
            elif kind_name == "pair":
                if frame.container.kind is NodeKind.OBJECT:
                    member = self._convert(token)
                    if member is not None:
                        frame.container.children.append(member)
                frame.key = None
                frame.colon = False
            else:
                value = self._convert(token)
                if value is None:
                    continue
                if frame.container.kind is NodeKind.OBJECT and not frame.colon:
                    if value.kind is NodeKind.STRING:
                        frame.key = value
                    continue
                frame.attach(value)
        return root

    def _flatten(self, nodes: List['TSNode']) -> List['TSNode']:
        tokens: List['TSNode'] = []
        for node in nodes:
            if node.type == "comment" or node.is_missing:
                continue
            if node.type == "ERROR" or _has_broken_value(node):
                tokens.extend(self._flatten(node.children))
            else:
                tokens.append(node)
        return tokens

    def _scalar_value(self, node: 'TSNode', kind: NodeKind) -> Any:
        if kind is NodeKind.BOOLEAN:
            return node.type == "true"
        if kind is NodeKind.NULL:
            return None

        text = self.source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")
        if kind is NodeKind.STRING:
            try:
                value = json.loads(text)
            except ValueError:
                value = None
            if isinstance(value, str):
                return value
            # Undecodable escapes: keep the raw content between the quotes
            body = text[1:] if text.startswith('"') else text
            return body[:-1] if body.endswith('"') else body

        try:
            return json.loads(text)
        except ValueError:
            return None


class JsonTreeParser:
    """
    Parses JREF text into a Node tree using tree-sitter.

    The grammar is loaded lazily on first use. When it cannot be loaded the
    parser logs a warning and returns empty results.
    """

    def __init__(self, config: LanguageConfig = JREF_CONFIG):
        self.config = config
        self._parser: Optional['Parser'] = None
        self._loaded = False

    def _get_parser(self) -> Optional['Parser']:
        if self._loaded:
            return self._parser
        self._loaded = True

        if not _check_language_pack():
            log.warning("tree-sitter-language-pack is not installed; %s documents will not be parsed",
                        self.config.name)
            return None
        try:
            from tree_sitter_language_pack import get_parser
            self._parser = get_parser(self.config.tree_sitter_name)
        except Exception as e:
            log.warning("Could not load tree-sitter grammar %r: %s", self.config.tree_sitter_name, e)
        return self._parser

    def is_available(self) -> bool:
        """Check if the grammar can be loaded."""
        return self._get_parser() is not None

    def parse(self, text: str) -> ParseResult:
        """
        Parse document text.

        Args:
            text: Full document text

        Returns:
            ParseResult with the root node (None if the text holds no value)
            and syntax errors in source order
        """
        source = text.encode("utf-8")
        if len(source) > self.config.max_file_size:
            log.warning("Skipping %s document of %d bytes (limit %d)",
                        self.config.name, len(source), self.config.max_file_size)
            return ParseResult()

        parser = self._get_parser()
        if parser is None:
            return ParseResult()

        tree = parser.parse(source)
        result = _TreeConverter(source).convert(tree.root_node)
        log.debug("Parsed %d bytes: %d syntax errors", len(source), len(result.errors))
        return result
