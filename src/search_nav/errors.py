"""
Error taxonomy for the search navigator.

Decoder problems are never raised: malformed escapes are absorbed as text.
Everything below is recoverable for the host; ProcessFailure ends only the
session it belongs to.
"""

from typing import Optional


class NavigatorError(Exception):
    """Base class for navigator errors"""

    pass


class NavigationExhausted(NavigatorError):
    """Raised when fewer markers remain than the requested step count"""

    def __init__(self, kind: str, boundary: str):
        self.kind = kind
        self.boundary = boundary
        direction = "after" if boundary == "last" else "before"
        super().__init__(f"No more {kind} markers {direction} this position")


class DocumentNotFound(NavigatorError):
    """Raised when a match refers to a file that cannot be opened"""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Document not found: {path}")


class ProcessFailure(NavigatorError):
    """The search process could not be spawned or exited abnormally"""

    def __init__(self, returncode: Optional[int], diagnostics: str = ""):
        self.returncode = returncode
        self.diagnostics = diagnostics
        if returncode is None:
            message = "Search process could not be started"
        else:
            message = f"Search process exited with status {returncode}"
        if diagnostics:
            message = f"{message}: {diagnostics.strip()}"
        super().__init__(message)
