"""
JSON Pointer helpers.

Symbol table keys are JSON Pointers built one segment at a time. Segments
are escaped the RFC 6901 way ("~" -> "~0", "/" -> "~1") so a key holding a
slash cannot collide with a nested path.

Reference fragments arrive percent-encoded inside a URI; decoding the
percent escapes yields a pointer that is looked up directly.
"""

from typing import List, Union
from urllib.parse import unquote

ROOT = ""


def escape_segment(segment: str) -> str:
    """Escape a single reference token."""
    return segment.replace("~", "~0").replace("/", "~1")


def unescape_segment(segment: str) -> str:
    """Reverse escape_segment."""
    return segment.replace("~1", "/").replace("~0", "~")


def join(parent: str, segment: Union[str, int]) -> str:
    """
    Append one segment to a pointer.

    Args:
        parent: Pointer of the containing value ("" for the root)
        segment: Property name or 0-based array index

    Returns:
        Extended pointer, e.g. join("/definitions", "user") -> "/definitions/user"
    """
    if isinstance(segment, int):
        return f"{parent}/{segment}"
    return f"{parent}/{escape_segment(segment)}"


def split(pointer: str) -> List[str]:
    """Split a pointer into unescaped segments. The root has none."""
    if pointer == ROOT:
        return []
    return [unescape_segment(s) for s in pointer.split("/")[1:]]


def from_fragment(fragment: str) -> str:
    """Turn a URI fragment ("/a%20b/0") into a table key ("/a b/0")."""
    return unquote(fragment)
