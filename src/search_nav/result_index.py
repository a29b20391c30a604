"""
Result index - ordered file and match markers built from decoded segments.

The search output carries no explicit ids: a match belongs to the most recent
file name and line number seen before it. The index records that association
while segments arrive, so nothing ever has to re-scan rendered text.
"""

import logging
from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .errors import NavigationExhausted
from .sgr import Segment, SegmentKind

logger = logging.getLogger(__name__)

# Number of characters between a line number and the line text (":" or "-")
LINE_SEPARATOR_WIDTH = 1

# Cursor position before any marker; the first forward step lands on offset 0
BEFORE_START = -1


class MarkerKind(Enum):
    FILE = "file"
    MATCH = "match"


@dataclass(frozen=True)
class Location:
    document_id: str
    line: int
    column: int
    offset: int  # absolute character offset in the document


@dataclass
class Marker:
    offset: int
    kind: MarkerKind
    text: str
    file: Optional[str] = None
    line_text: Optional[str] = None
    column: int = 0  # distance from the start of the line text
    location: Optional[Location] = None

    @property
    def end(self) -> int:
        return self.offset + len(self.text)

    def cache_location(self, location: Location) -> Location:
        """Store the resolved location; the first one wins."""
        if self.location is None:
            self.location = location
        return self.location

    def to_dict(self) -> Dict[str, object]:
        result: Dict[str, object] = {
            "offset": self.offset,
            "kind": self.kind.value,
            "text": self.text,
            "file": self.file,
            "line": self.line_text,
            "column": self.column,
        }
        if self.location is not None:
            result["location"] = {
                "path": self.location.document_id,
                "line": self.location.line,
                "column": self.location.column,
            }
        return result


def _check_count(count: int) -> None:
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise ValueError(f"count must be a positive integer, got {count!r}")


class ResultIndex:
    """Append-only registry of file and match markers"""

    def __init__(self):
        self.markers: List[Marker] = []
        self._offsets: List[int] = []
        self._files: List[Marker] = []
        self._matches: List[Marker] = []
        self._file_offsets: List[int] = []
        self._match_offsets: List[int] = []

        # Association state - most recent values seen in the stream
        self._current_file: Optional[str] = None
        self._current_line: Optional[str] = None
        self._line_text_start = 0

        self.end_offset = 0
        self.sealed = False

    def append(self, segments: Iterable[Segment], at_offset: int) -> List[Marker]:
        """Record markers for segments starting at stream offset at_offset."""
        if self.sealed:
            raise RuntimeError("Result index is sealed; no more output can be appended")
        if at_offset < self.end_offset:
            raise ValueError(
                f"Offset {at_offset} precedes the end of indexed output ({self.end_offset})"
            )

        added: List[Marker] = []
        offset = at_offset
        for segment in segments:
            if segment.kind is SegmentKind.FILE_NAME:
                self._current_file = segment.text
                self._current_line = None
                marker = Marker(offset, MarkerKind.FILE, segment.text, file=segment.text)
                self._files.append(marker)
                self._file_offsets.append(offset)
                added.append(marker)
            elif segment.kind is SegmentKind.LINE_NUMBER:
                self._current_line = segment.text.strip()
                self._line_text_start = offset + len(segment.text) + LINE_SEPARATOR_WIDTH
            elif segment.kind is SegmentKind.MATCH:
                marker = Marker(
                    offset,
                    MarkerKind.MATCH,
                    segment.text,
                    file=self._current_file,
                    line_text=self._current_line,
                    column=max(0, offset - self._line_text_start),
                )
                self._matches.append(marker)
                self._match_offsets.append(offset)
                added.append(marker)
            offset += len(segment.text)

        self.markers.extend(added)
        self._offsets.extend(marker.offset for marker in added)
        self.end_offset = offset
        return added

    def seal(self) -> None:
        if not self.sealed:
            logger.debug(f"Sealing result index with {len(self.markers)} markers")
        self.sealed = True

    def match_count(self) -> int:
        return len(self._matches)

    def file_count(self) -> int:
        return len(self._files)

    def marker_at(self, pos: int) -> Optional[Marker]:
        """Closest marker at or before pos"""
        index = bisect_right(self._offsets, pos) - 1
        return self.markers[index] if index >= 0 else None

    def matches(self) -> List[Marker]:
        return list(self._matches)

    def files(self) -> List[Marker]:
        return list(self._files)

    # ----- navigation -----

    def next_match(self, pos: int, count: int = 1) -> int:
        return self._step_forward(self._match_offsets, MarkerKind.MATCH, pos, count)

    def previous_match(self, pos: int, count: int = 1) -> int:
        return self._step_backward(self._match_offsets, MarkerKind.MATCH, pos, count)

    def next_file(self, pos: int, count: int = 1) -> int:
        return self._step_forward(self._file_offsets, MarkerKind.FILE, pos, count)

    def previous_file(self, pos: int, count: int = 1) -> int:
        return self._step_backward(self._file_offsets, MarkerKind.FILE, pos, count)

    def _step_forward(
        self, offsets: List[int], kind: MarkerKind, pos: int, count: int
    ) -> int:
        _check_count(count)
        # A marker at pos counts as passed; from BEFORE_START nothing has been
        first = bisect_right(offsets, pos)
        target = first + count - 1
        if target >= len(offsets):
            raise NavigationExhausted(kind.value, "last")
        return offsets[target]

    def _step_backward(
        self, offsets: List[int], kind: MarkerKind, pos: int, count: int
    ) -> int:
        _check_count(count)
        target = bisect_left(offsets, pos) - count
        if target < 0:
            raise NavigationExhausted(kind.value, "first")
        return offsets[target]
