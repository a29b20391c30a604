"""
Document access for location resolution.

Documents are shared with whoever edits them; the navigator only borrows them
while resolving and never closes them.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from .errors import DocumentNotFound

logger = logging.getLogger(__name__)


@dataclass
class Document:
    path: str
    text: str
    _line_starts: Optional[List[int]] = field(default=None, repr=False)

    def _starts(self) -> List[int]:
        if self._line_starts is None:
            starts = [0]
            position = self.text.find("\n")
            while position != -1:
                starts.append(position + 1)
                position = self.text.find("\n", position + 1)
            self._line_starts = starts
        return self._line_starts

    @property
    def line_count(self) -> int:
        return len(self._starts())

    def line_start(self, line: int) -> int:
        """Offset of the first character of a 1-indexed line"""
        starts = self._starts()
        if line < 1:
            return 0
        if line > len(starts):
            return len(self.text)
        return starts[line - 1]

    def line_length(self, line: int) -> int:
        start = self.line_start(line)
        end = self.text.find("\n", start)
        return (len(self.text) if end == -1 else end) - start


class DocumentStore:
    """Open documents keyed by normalized absolute path"""

    def __init__(self, base_path: Union[str, Path, None] = None, encoding: str = "utf-8"):
        self.base_path = Path(base_path) if base_path else None
        self.encoding = encoding
        self._documents: Dict[str, Document] = {}

    def key(self, path: Union[str, Path]) -> str:
        """Resolve path against the base directory and normalize separators"""
        path_obj = Path(path)
        if not path_obj.is_absolute() and self.base_path is not None:
            path_obj = self.base_path / path_obj
        return str(path_obj.resolve()).replace("\\", "/")

    def get(self, path: Union[str, Path]) -> Optional[Document]:
        """Return an already open document without creating one"""
        return self._documents.get(self.key(path))

    def open(self, path: Union[str, Path]) -> Document:
        """Return the open document, loading it from disk when needed"""
        key = self.key(path)
        document = self._documents.get(key)
        if document is not None:
            return document

        file_path = Path(key)
        if not file_path.is_file():
            raise DocumentNotFound(str(path))
        try:
            text = file_path.read_text(encoding=self.encoding, errors="replace")
        except OSError as e:
            logger.warning(f"Cannot read {key}: {e}")
            raise DocumentNotFound(str(path)) from e

        document = Document(key, text)
        self._documents[key] = document
        logger.debug(f"Opened document {key} ({document.line_count} lines)")
        return document

    def add(self, path: Union[str, Path], text: str) -> Document:
        """Register a document that is already held in memory (e.g. an editor buffer)"""
        key = self.key(path)
        document = Document(key, text)
        self._documents[key] = document
        return document

    def close(self, path: Union[str, Path]) -> None:
        self._documents.pop(self.key(path), None)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        return self.key(path) in self._documents

    def __len__(self) -> int:
        return len(self._documents)
