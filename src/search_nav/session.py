"""
Search session - decoder, index and resolver driven by one search process.

A session is fed output chunks synchronously as they arrive. Aborting it kills
the process and freezes the index; the collected results stay navigable.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from .documents import DocumentStore
from .errors import ProcessFailure
from .resolver import LocationResolver, ResolveResult
from .result_index import BEFORE_START, Marker, MarkerKind, ResultIndex
from .sgr import Chunk, Segment, SgrDecoder, decoded_length

if TYPE_CHECKING:
    from .process import SearchProcess

logger = logging.getLogger(__name__)

RUNNING = "running"
FINISHED = "finished"
FAILED = "failed"
ABORTED = "aborted"

# ag exits with 1 when nothing matched
NORMAL_EXIT_CODES = frozenset({0, 1})


class Session:
    def __init__(
        self,
        directory: Union[str, Path, None] = None,
        process: Optional["SearchProcess"] = None,
        documents: Optional[DocumentStore] = None,
    ):
        self.directory = str(directory) if directory is not None else None
        self.process = process
        self.documents = documents or DocumentStore(directory)
        self.decoder = SgrDecoder()
        self.index = ResultIndex()
        self.resolver = LocationResolver(self.documents)

        self.offset = 0
        self.cursor = BEFORE_START
        self.match_count = 0
        self.status = RUNNING
        self.error: Optional[ProcessFailure] = None

    @property
    def running(self) -> bool:
        return self.status == RUNNING

    def feed(self, chunk: Chunk) -> List[Segment]:
        """Decode a chunk of process output and index it"""
        if not self.running:
            logger.debug(f"Ignoring {len(chunk)} bytes of output for {self.status} session")
            return []
        segments = self.decoder.decode(chunk)
        self._append(segments)
        return segments

    def finish(self) -> List[Segment]:
        """Flush the decoder at end of output; later calls do nothing"""
        if not self.running:
            return []
        segments = self.decoder.finish()
        self._append(segments)
        self.index.seal()
        self.status = FINISHED
        logger.info(f"Search finished with {self.match_count} matches")
        return segments

    def process_exited(self, returncode: Optional[int], diagnostics: str = "") -> Optional[ProcessFailure]:
        """Record the end of the process; abnormal exits are returned, not raised"""
        if not self.running:
            return self.error
        self.finish()
        if returncode not in NORMAL_EXIT_CODES:
            self.error = ProcessFailure(returncode, diagnostics)
            self.status = FAILED
            logger.warning(str(self.error))
        return self.error

    def abort(self) -> None:
        """Kill the search process; the index stays readable"""
        if self.process is not None and self.process.returncode is None:
            self.process.kill()
        if self.running:
            self.index.seal()
            self.status = ABORTED
            logger.info(f"Search aborted after {self.match_count} matches")

    def _append(self, segments: List[Segment]) -> None:
        if not segments:
            return
        added = self.index.append(segments, self.offset)
        self.offset += decoded_length(segments)
        self.match_count += sum(1 for marker in added if marker.kind is MarkerKind.MATCH)

    # ----- navigation -----

    def _move(self, position: int) -> Marker:
        marker = self.index.marker_at(position)
        self.cursor = position
        return marker

    def next_match(self, count: int = 1) -> Marker:
        return self._move(self.index.next_match(self.cursor, count))

    def previous_match(self, count: int = 1) -> Marker:
        return self._move(self.index.previous_match(self.cursor, count))

    def next_file(self, count: int = 1) -> Marker:
        return self._move(self.index.next_file(self.cursor, count))

    def previous_file(self, count: int = 1) -> Marker:
        return self._move(self.index.previous_file(self.cursor, count))

    def jump_to(self, target: Union[Marker, int, None] = None) -> ResolveResult:
        """Resolve a marker, a stream position, or the cursor to a location"""
        if target is None:
            target = self.cursor
        if isinstance(target, Marker):
            marker: Optional[Marker] = target
        else:
            marker = self.index.marker_at(target)
        if marker is None:
            raise ValueError(f"No match or file at position {target}")
        return self.resolver.resolve_or_fail(marker)

    def summary(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "directory": self.directory,
            "match_count": self.match_count,
            "file_count": self.index.file_count(),
            "cursor": self.cursor,
            "error": str(self.error) if self.error else None,
        }


class SessionManager:
    """Holds the current session; a new search replaces the previous one"""

    def __init__(self):
        self.current: Optional[Session] = None

    def replace(self, session: Session) -> Session:
        if self.current is not None:
            self.current.abort()
        self.current = session
        return session

    def discard(self) -> None:
        if self.current is not None:
            self.current.abort()
        self.current = None

    def require(self) -> Session:
        if self.current is None:
            raise ValueError("No search session; run a search first")
        return self.current
