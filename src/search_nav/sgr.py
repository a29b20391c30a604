"""
Incremental SGR stream decoder

Turns colorized search output into classified segments. The search tool marks
file names, line numbers and matched text with SGR color sequences; this
module recovers that structure from arbitrarily split chunks.

Design Principles:
- Parse state is an explicit immutable value passed in and returned
- No exceptions for malformed input - unknown escapes become plain text
- Feeding a stream whole or in pieces yields the same segments once
  adjacent segments of the same kind are merged
"""

import codecs
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

# ESC [ params m
SGR_PATTERN = re.compile(r"\x1b\[([0-9;?]*)m")
# Any other CSI sequence (erase line, cursor movement, ...)
OTHER_CSI_PATTERN = re.compile(r"\x1b\[[0-9;?]*[@-ln-~]")
ANSI_PATTERN = re.compile(r"\x1b\[[0-9;?]*[@-~]")
PARTIAL_ESCAPE_PATTERN = re.compile(r"\x1b(?:\[[0-9;?]*)?\Z")

# Longest tail that can still grow into a recognized sequence
MAX_PENDING_LENGTH = 11

RESET_CODES = frozenset({"0", ""})

Chunk = Union[str, bytes, bytearray]


class SegmentKind(Enum):
    PLAIN = "plain"
    FILE_NAME = "file_name"
    LINE_NUMBER = "line_number"
    MATCH = "match"


CODE_KINDS = {
    "1;33": SegmentKind.LINE_NUMBER,
    "1;32": SegmentKind.FILE_NAME,
    "30;43": SegmentKind.MATCH,
}


@dataclass(frozen=True)
class Segment:
    kind: SegmentKind
    text: str


@dataclass(frozen=True)
class ParseState:
    """Decoder context carried between chunks"""

    open_code: Optional[str] = None
    pending: str = ""  # partial escape held back from the previous chunk
    run: str = ""  # text of the open colorized run so far
    pending_bytes: bytes = b""  # incomplete UTF-8 character

    @property
    def is_idle(self) -> bool:
        return (
            self.open_code is None
            and not self.pending
            and not self.run
            and not self.pending_bytes
        )


def classify(code: str) -> SegmentKind:
    """Map an SGR parameter string to a segment kind"""
    return CODE_KINDS.get(code, SegmentKind.PLAIN)


def strip_ansi(text: str) -> str:
    """Remove every complete ANSI CSI sequence from text"""
    return ANSI_PATTERN.sub("", text)


def coalesce(segments: Iterable[Segment]) -> List[Segment]:
    """Merge adjacent segments of the same kind"""
    merged: List[Segment] = []
    for segment in segments:
        if merged and merged[-1].kind is segment.kind:
            merged[-1] = Segment(segment.kind, merged[-1].text + segment.text)
        else:
            merged.append(segment)
    return merged


def decoded_length(segments: Iterable[Segment]) -> int:
    return sum(len(segment.text) for segment in segments)


def _decode_text(pending_bytes: bytes, chunk: Chunk, final: bool) -> Tuple[str, bytes]:
    if isinstance(chunk, str):
        prefix = ""
        if pending_bytes:
            prefix = codecs.utf_8_decode(pending_bytes, "replace", True)[0]
        return prefix + chunk, b""

    data = pending_bytes + bytes(chunk)
    text, consumed = codecs.utf_8_decode(data, "replace", final)
    return text, data[consumed:]


def _partial_escape_tail(data: str) -> str:
    match = PARTIAL_ESCAPE_PATTERN.search(data)
    if match is None or len(match.group(0)) >= MAX_PENDING_LENGTH:
        return ""
    return match.group(0)


def _emit(segments: List[Segment], kind: SegmentKind, text: str) -> None:
    if not text:
        return
    if kind is SegmentKind.PLAIN and segments and segments[-1].kind is SegmentKind.PLAIN:
        segments[-1] = Segment(kind, segments[-1].text + text)
        return
    segments.append(Segment(kind, text))


def _scan(
    data: str, open_code: Optional[str], run: str
) -> Tuple[Optional[str], str, List[Segment]]:
    segments: List[Segment] = []
    position = 0

    for match in SGR_PATTERN.finditer(data):
        before = data[position:match.start()]
        code = match.group(1)
        position = match.end()

        if open_code is None:
            _emit(segments, SegmentKind.PLAIN, before)
            if code not in RESET_CODES:
                open_code, run = code, ""
            continue

        run += before
        if code in RESET_CODES:
            _emit(segments, classify(open_code), run)
            open_code, run = None, ""
        # A start code inside an open run is dropped; the run continues

    rest = data[position:]
    if open_code is None:
        _emit(segments, SegmentKind.PLAIN, rest)
    else:
        run += rest
    return open_code, run, segments


def decode_chunk(state: ParseState, chunk: Chunk) -> Tuple[ParseState, List[Segment]]:
    """Decode one chunk of output, returning the new state and finished segments."""
    text, pending_bytes = _decode_text(state.pending_bytes, chunk, final=False)
    data = state.pending + text

    pending = _partial_escape_tail(data)
    if pending:
        data = data[: -len(pending)]
        logger.debug(f"Holding back partial escape {pending!r}")

    open_code, run, segments = _scan(
        OTHER_CSI_PATTERN.sub("", data), state.open_code, state.run
    )
    return ParseState(open_code, pending, run, pending_bytes), segments


def finish_stream(state: ParseState) -> Tuple[ParseState, List[Segment]]:
    """Flush everything still buffered at end of stream.

    A run left open is classified with its opening code anyway, and a held
    back partial escape is kept as literal text.
    """
    text, _ = _decode_text(state.pending_bytes, b"", final=True)
    data = state.pending + OTHER_CSI_PATTERN.sub("", text)

    open_code, run, segments = _scan(data, state.open_code, state.run)
    if open_code is not None:
        logger.debug(f"Stream ended inside an open run (code {open_code!r})")
        _emit(segments, classify(open_code), run)
    return ParseState(), segments


class SgrDecoder:
    """Stateful convenience wrapper around decode_chunk/finish_stream"""

    def __init__(self, state: Optional[ParseState] = None):
        self.state = state or ParseState()

    def decode(self, chunk: Chunk) -> List[Segment]:
        self.state, segments = decode_chunk(self.state, chunk)
        return segments

    def finish(self) -> List[Segment]:
        self.state, segments = finish_stream(self.state)
        return segments
