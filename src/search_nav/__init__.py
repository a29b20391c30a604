"""
Search navigator core

Decodes colorized search output into file and match markers and resolves
them to document locations.
"""

from .documents import Document, DocumentStore
from .errors import DocumentNotFound, NavigationExhausted, NavigatorError, ProcessFailure
from .resolver import LocationResolver, ResolveResult
from .result_index import BEFORE_START, Location, Marker, MarkerKind, ResultIndex
from .session import Session, SessionManager
from .sgr import (ParseState, Segment, SegmentKind, SgrDecoder, coalesce,
                  decode_chunk, finish_stream, strip_ansi)

__all__ = [
    "BEFORE_START",
    "Document",
    "DocumentStore",
    "DocumentNotFound",
    "NavigationExhausted",
    "NavigatorError",
    "ProcessFailure",
    "LocationResolver",
    "ResolveResult",
    "Location",
    "Marker",
    "MarkerKind",
    "ResultIndex",
    "Session",
    "SessionManager",
    "ParseState",
    "Segment",
    "SegmentKind",
    "SgrDecoder",
    "coalesce",
    "decode_chunk",
    "finish_stream",
    "strip_ansi",
]
