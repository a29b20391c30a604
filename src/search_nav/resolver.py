"""Resolve index markers to document locations."""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from .documents import Document, DocumentStore
from .errors import DocumentNotFound
from .result_index import Location, Marker, MarkerKind

logger = logging.getLogger(__name__)


@dataclass
class ResolveResult:
    location: Optional[Location] = None
    error: Optional[DocumentNotFound] = None

    @property
    def ok(self) -> bool:
        return self.location is not None

    def to_dict(self) -> Dict[str, object]:
        if self.location is None:
            message = str(self.error) if self.error else "Location could not be resolved"
            return {"success": False, "error": message}
        return {
            "success": True,
            "path": self.location.document_id,
            "line": self.location.line,
            "column": self.location.column,
            "offset": self.location.offset,
        }


def parse_line_number(line_text: Optional[str]) -> int:
    """Convert line number text to an int; anything unusable maps to line 1"""
    if not line_text:
        return 1
    try:
        line = int(line_text.strip())
    except ValueError:
        logger.debug(f"Unparseable line number {line_text!r}, using line 1")
        return 1
    return max(line, 1)


class LocationResolver:
    def __init__(self, documents: DocumentStore):
        self.documents = documents

    def resolve(self, marker: Marker, force: bool = True) -> Optional[Location]:
        """
        Resolve a marker to a location and cache it on the marker.

        Without force only already open documents are consulted and None is
        returned when the document is not open. With force the document is
        opened from disk, raising DocumentNotFound when it does not exist.
        """
        if marker.location is not None:
            return marker.location
        if not marker.file:
            raise DocumentNotFound(marker.text)

        document = self.documents.get(marker.file)
        if document is None:
            if not force:
                return None
            document = self.documents.open(marker.file)

        return marker.cache_location(self._locate(document, marker))

    def resolve_or_fail(self, marker: Marker) -> ResolveResult:
        try:
            return ResolveResult(location=self.resolve(marker, force=True))
        except DocumentNotFound as e:
            logger.info(f"Cannot resolve {marker.kind.value} marker: {e}")
            return ResolveResult(error=e)

    def _locate(self, document: Document, marker: Marker) -> Location:
        if marker.kind is MarkerKind.FILE:
            return Location(document.path, 1, 0, 0)

        line = parse_line_number(marker.line_text)
        if line > document.line_count:
            logger.warning(
                f"{document.path} has {document.line_count} lines, match points at line {line}"
            )
            line = document.line_count

        column = min(marker.column, document.line_length(line))
        line_start = document.line_start(line)
        return Location(document.path, line, column, line_start + column)
