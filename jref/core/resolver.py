"""
Reference Resolver — Go-to-definition for "$ref" values

Given a document and a byte offset, finds the reference whose value holds
the offset and resolves it to a target document and location:

    {"$ref": "schema.jref#/definitions/user"}
              ^^^^^^^^^^^ ^^^^^^^^^^^^^^^^^
              path        fragment (JSON Pointer into schema.jref)

Resolution outcomes:
- No reference under the offset     -> None
- Target document not open          -> link to the file, range (0,0)-(0,0)
- Fragment missing or not in table  -> link to the file, range (0,0)-(0,0)
- Fragment found                    -> link to the span of that property

Nothing here raises for dangling or half-typed references.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import unquote, urlsplit

from . import pointer as json_pointer
from .documents import DocumentRegistry, Range, TextDocument, path_to_uri
from .symbols import Symbol

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DefinitionLink:
    """Where a reference points, shaped like an LSP LocationLink."""
    origin_selection_range: Range
    target_uri: str
    target_range: Range
    target_selection_range: Range


@dataclass(frozen=True)
class ReferenceTarget:
    """Parsed "$ref" value: target identity plus optional fragment."""
    uri: str
    path: Optional[Path]
    fragment: Optional[str]


def split_reference(refers_to: str) -> Tuple[str, Optional[str]]:
    """
    Split a reference into its path part and fragment.

    Returns:
        (path, fragment) where fragment is None when the reference has no '#'
    """
    path, sep, fragment = refers_to.partition("#")
    return path, (fragment if sep else None)


def parse_reference(document: TextDocument, refers_to: str) -> Optional[ReferenceTarget]:
    """
    Work out the absolute target of a reference made from a document.

    Relative paths resolve against the referencing document's directory.
    An empty path targets the document itself.

    Returns:
        ReferenceTarget, or None if the value cannot be read as a URI
        reference or has no base to resolve against
    """
    ref_path, fragment = split_reference(refers_to)
    if not ref_path:
        return ReferenceTarget(uri=document.uri, path=document.path, fragment=fragment)

    try:
        parts = urlsplit(ref_path)
    except ValueError:
        log.debug("Unparseable reference %r in %s", refers_to, document.uri)
        return None

    if parts.scheme and parts.scheme != "file" and len(parts.scheme) > 1:
        # Absolute URI elsewhere, kept as is (single letters are drive names)
        return ReferenceTarget(uri=ref_path, path=None, fragment=fragment)

    if not parts.path:
        return ReferenceTarget(uri=document.uri, path=document.path, fragment=fragment)

    directory = document.directory
    if directory is None:
        log.debug("No directory to resolve %r against for %s", refers_to, document.uri)
        return None

    target_path = Path(os.path.normpath(directory / unquote(parts.path)))
    return ReferenceTarget(uri=path_to_uri(target_path), path=target_path, fragment=fragment)


class ReferenceResolver:
    """
    Resolves references against the documents of one registry.

    Only reads: the symbol tables it consults belong to the documents and
    are whatever was last built for them.
    """

    def __init__(self, registry: DocumentRegistry):
        self.registry = registry

    def resolve_definition(self, document: TextDocument, offset: int) -> Optional[DefinitionLink]:
        """
        Resolve the reference under a byte offset.

        Args:
            document: Document holding the reference
            offset: Byte offset of the cursor

        Returns:
            DefinitionLink, or None if no reference value holds the offset
        """
        table = document.symbol_table
        if not table:
            return None

        symbol = table.reference_at(offset)
        if symbol is None:
            return None

        target = parse_reference(document, symbol.refers_to)
        if target is None:
            return None

        target_document = self._find_document(document, target)
        target_uri = target_document.uri if target_document else target.uri
        target_range = self._target_range(target_document, target.fragment)

        log.debug("Resolved %r in %s to %s", symbol.refers_to, document.uri, target_uri)
        return DefinitionLink(
            origin_selection_range=self._origin_range(document, symbol),
            target_uri=target_uri,
            target_range=target_range,
            target_selection_range=target_range,
        )

    def _find_document(self, document: TextDocument, target: ReferenceTarget) -> Optional[TextDocument]:
        if target.uri == document.uri:
            return document
        if target.path is not None:
            found = self.registry.get_by_path(target.path)
            if found is not None:
                return found
        return self.registry.get(target.uri)

    def _target_range(self, target_document: Optional[TextDocument], fragment: Optional[str]) -> Range:
        if target_document is None or fragment is None:
            return Range.empty()
        table = target_document.symbol_table
        if not table:
            return Range.empty()

        symbol = table.get(json_pointer.from_fragment(fragment))
        if symbol is None:
            return Range.empty()
        node = symbol.node
        return target_document.range_at(node.offset, node.length)

    def _origin_range(self, document: TextDocument, symbol: Symbol) -> Range:
        # Quotes excluded
        value = symbol.value_node
        return Range(
            document.position_at(value.offset + 1),
            document.position_at(value.end - 1),
        )


def resolve_definition(
    registry: DocumentRegistry,
    document: TextDocument,
    offset: int,
) -> Optional[DefinitionLink]:
    """Resolve the reference under an offset. See ReferenceResolver."""
    return ReferenceResolver(registry).resolve_definition(document, offset)
