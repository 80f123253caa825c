"""
Documents — Open document registry with position conversion

Each TextDocument is the lifecycle record of one open document: its URI,
version, text and the symbol table built for that text. Closing the
document drops the record, and the table with it.

Offsets are byte offsets into the UTF-8 text (what the parser reports).
Positions are zero-based (line, character) with characters counted in
UTF-16 code units, the Language Server Protocol default.

Usage:
    registry = DocumentRegistry()
    doc = registry.open("file:///work/main.jref", text, version=1)
    doc.position_at(9)                      # Position(line=0, character=9)
    registry.get_by_path(Path("/work/main.jref")) is doc
"""

import bisect
import os
import re
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, TYPE_CHECKING
from urllib.parse import urlparse
from urllib.request import url2pathname

if TYPE_CHECKING:
    from .symbols import SymbolTable

_LINE_BREAK = re.compile(rb"\r\n|\r|\n")


@dataclass(frozen=True)
class Position:
    """Zero-based line and UTF-16 character."""
    line: int
    character: int


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position

    @classmethod
    def empty(cls) -> 'Range':
        """The (0,0)-(0,0) range at the start of a document."""
        origin = Position(0, 0)
        return cls(origin, origin)


def uri_to_path(uri: str) -> Optional[Path]:
    """Filesystem path of a file:// URI, None for other schemes."""
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        return None
    return Path(url2pathname(parsed.path))


def path_to_uri(path: Path) -> str:
    """file:// URI of an absolute filesystem path."""
    return Path(os.path.abspath(path)).as_uri()


def _normalize(path: Path) -> str:
    return os.path.normcase(os.path.normpath(str(path)))


def _utf16_length(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


class TextDocument:
    """
    One version of an open document.

    Attributes:
        uri: Document identity as sent by the client
        version: Client version number
        text: Full text
        symbol_table: Table for this text, set by the language service
    """

    def __init__(self, uri: str, text: str, version: int = 0):
        self.uri = uri
        self.version = version
        self.symbol_table: Optional['SymbolTable'] = None
        self._set_text(text)

    def _set_text(self, text: str) -> None:
        self.text = text
        self.source = text.encode("utf-8")
        self._line_offsets: List[int] = [0] + [
            m.end() for m in _LINE_BREAK.finditer(self.source)
        ]

    @property
    def path(self) -> Optional[Path]:
        return uri_to_path(self.uri)

    @property
    def directory(self) -> Optional[Path]:
        path = self.path
        return path.parent if path else None

    @property
    def line_count(self) -> int:
        return len(self._line_offsets)

    def position_at(self, offset: int) -> Position:
        """
        Convert a byte offset to a position.

        Offsets are clamped to the document; an offset inside a multi-byte
        character counts as the start of that character.
        """
        offset = max(0, min(offset, len(self.source)))
        line = bisect.bisect_right(self._line_offsets, offset) - 1
        line_start = self._line_offsets[line]
        prefix = self.source[line_start:offset].decode("utf-8", errors="ignore")
        return Position(line, _utf16_length(prefix))

    def offset_at(self, position: Position) -> int:
        """
        Convert a position to a byte offset.

        Lines past the end clamp to the end of the document; characters past
        the end of a line clamp to the line end (before its line break).
        """
        if position.line < 0:
            return 0
        if position.line >= self.line_count:
            return len(self.source)

        line_start = self._line_offsets[position.line]
        line_text = self._line_text(position.line)
        units = 0
        consumed = 0
        for char in line_text:
            if units >= position.character:
                break
            units += _utf16_length(char)
            consumed += len(char.encode("utf-8"))
        return line_start + consumed

    def range_at(self, offset: int, length: int) -> Range:
        return Range(self.position_at(offset), self.position_at(offset + length))

    def _line_text(self, line: int) -> str:
        start = self._line_offsets[line]
        if line + 1 < self.line_count:
            end = self._line_offsets[line + 1]
        else:
            end = len(self.source)
        raw = self.source[start:end].rstrip(b"\r\n")
        return raw.decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        return f"TextDocument({self.uri!r}, version={self.version})"


class DocumentRegistry:
    """
    The set of open documents, keyed by URI.

    Lookups by filesystem path compare normalised paths, so a reference
    resolved to a path finds the document whatever URI spelling the client
    used to open it.
    """

    def __init__(self):
        self._documents: Dict[str, TextDocument] = {}
        self._lock = threading.Lock()

    def open(self, uri: str, text: str, version: int = 0) -> TextDocument:
        """Track a document, replacing any previous record for the URI."""
        document = TextDocument(uri, text, version)
        with self._lock:
            self._documents[uri] = document
        return document

    def update(self, uri: str, text: str, version: int = 0) -> TextDocument:
        """
        Replace the text of a document.

        A new record is created for every version, so the symbol table of
        the previous version can never be mistaken for the current one.
        """
        return self.open(uri, text, version)

    def close(self, uri: str) -> bool:
        """
        Stop tracking a document.

        Returns:
            True if the document was open
        """
        with self._lock:
            return self._documents.pop(uri, None) is not None

    def get(self, uri: str) -> Optional[TextDocument]:
        with self._lock:
            return self._documents.get(uri)

    def get_by_path(self, path: Path) -> Optional[TextDocument]:
        """Find an open document by filesystem path."""
        wanted = _normalize(path)
        with self._lock:
            documents = list(self._documents.values())
        for document in documents:
            doc_path = document.path
            if doc_path is not None and _normalize(doc_path) == wanted:
                return document
        return None

    def uris(self) -> List[str]:
        with self._lock:
            return list(self._documents)

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def __contains__(self, uri: object) -> bool:
        with self._lock:
            return uri in self._documents
