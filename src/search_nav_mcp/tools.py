"""
MCP tool implementations for the search navigator.

Each tool returns a plain dict with a "success" flag. Navigation exhaustion,
missing documents and failed searches are reported in the response, never
raised to the server.
"""

import inspect
import logging
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from search_nav.command import build_list_args, build_search_args, resolve_type_options
from search_nav.errors import (DocumentNotFound, NavigationExhausted,
                               ProcessFailure)
from search_nav.process import list_files, run_search
from search_nav.result_index import Marker
from search_nav.session import Session, SessionManager

from .config import get_navigator_config

logger = logging.getLogger(__name__)

DEFAULT_MATCH_LIMIT = 100

_manager = SessionManager()


def get_session_manager() -> SessionManager:
    return _manager


def _create_error_response(error: Exception, context: str = "") -> Dict[str, Any]:
    """Turn a known error into a response dict"""
    if isinstance(error, NavigationExhausted):
        return {"success": False, "error": str(error), "boundary": error.boundary}
    elif isinstance(error, DocumentNotFound):
        return {"success": False, "error": str(error), "path": error.path}
    elif isinstance(error, ProcessFailure):
        return {
            "success": False,
            "error": str(error),
            "returncode": error.returncode,
        }
    elif isinstance(error, ValueError):
        return {"success": False, "error": f"Invalid value: {str(error)}"}
    else:
        error_msg = f"{context}: {str(error)}" if context else str(error)
        return {"success": False, "error": error_msg}


def handle_mcp_errors(func: Callable) -> Callable:
    """Uniform error handling for sync and async tools"""

    def _finish(result: Any) -> Dict[str, Any]:
        if isinstance(result, dict) and "success" not in result:
            result["success"] = True
        return result

    if inspect.iscoroutinefunction(func):

        @wraps(func)
        async def async_wrapper(*args, **kwargs) -> Dict[str, Any]:
            try:
                return _finish(await func(*args, **kwargs))
            except Exception as e:
                logger.debug(f"{func.__name__} failed: {e}")
                return {**_create_error_response(e), "function": func.__name__}

        return async_wrapper

    @wraps(func)
    def wrapper(*args, **kwargs) -> Dict[str, Any]:
        try:
            return _finish(func(*args, **kwargs))
        except Exception as e:
            logger.debug(f"{func.__name__} failed: {e}")
            return {**_create_error_response(e), "function": func.__name__}

    return wrapper


def _check_directory(directory: str) -> Path:
    path = Path(directory).expanduser()
    if not path.is_dir():
        raise ValueError(f"Directory does not exist: {directory}")
    return path


def _marker_response(session: Session, marker: Optional[Marker]) -> Dict[str, Any]:
    return {
        "success": True,
        "position": session.cursor,
        "marker": marker.to_dict() if marker is not None else None,
    }


# ----- search -----


@handle_mcp_errors
async def tool_search(
    pattern: str,
    directory: str = ".",
    mode: Optional[str] = None,
    literal: bool = False,
    case_sensitive: bool = True,
    limit: int = DEFAULT_MATCH_LIMIT,
) -> Dict[str, Any]:
    """Run a search, replacing the current session"""
    if limit < 0:
        raise ValueError(f"limit must not be negative: {limit}")
    config = get_navigator_config()
    path = _check_directory(directory)
    argv = build_search_args(
        config.executable,
        pattern,
        heading=config.heading,
        literal=literal,
        case_sensitive=case_sensitive,
        type_options=resolve_type_options(mode, config.type_overrides),
    )
    session = await run_search(
        get_session_manager(),
        argv,
        directory=path,
        chunk_size=config.chunk_size,
        timeout=config.timeout_seconds,
    )
    return {
        "success": session.error is None,
        **session.summary(),
        "matches": [marker.to_dict() for marker in session.index.matches()[:limit]],
    }


@handle_mcp_errors
async def tool_list_files(
    pattern: str, directory: str = ".", mode: Optional[str] = None
) -> Dict[str, Any]:
    """List files containing matches without building a session"""
    config = get_navigator_config()
    path = _check_directory(directory)
    argv = build_list_args(
        config.executable, pattern, resolve_type_options(mode, config.type_overrides)
    )
    files = await list_files(argv, cwd=path)
    return {"success": True, "files": files, "count": len(files)}


# ----- navigation -----


@handle_mcp_errors
def tool_next_match(count: int = 1) -> Dict[str, Any]:
    session = get_session_manager().require()
    return _marker_response(session, session.next_match(count))


@handle_mcp_errors
def tool_previous_match(count: int = 1) -> Dict[str, Any]:
    session = get_session_manager().require()
    return _marker_response(session, session.previous_match(count))


@handle_mcp_errors
def tool_next_file(count: int = 1) -> Dict[str, Any]:
    session = get_session_manager().require()
    return _marker_response(session, session.next_file(count))


@handle_mcp_errors
def tool_previous_file(count: int = 1) -> Dict[str, Any]:
    session = get_session_manager().require()
    return _marker_response(session, session.previous_file(count))


@handle_mcp_errors
def tool_jump_to(position: Optional[int] = None) -> Dict[str, Any]:
    """Resolve the match at position (default: the cursor) to a file location"""
    session = get_session_manager().require()
    return session.jump_to(position).to_dict()


@handle_mcp_errors
def tool_abort_search() -> Dict[str, Any]:
    session = get_session_manager().require()
    session.abort()
    return {"success": True, **session.summary()}


@handle_mcp_errors
def tool_search_status() -> Dict[str, Any]:
    session = get_session_manager().current
    if session is None:
        return {"success": True, "status": "idle"}
    return {"success": True, **session.summary()}


TOOL_REGISTRY: Dict[str, Callable] = {
    "search": tool_search,
    "list_files": tool_list_files,
    "next_match": tool_next_match,
    "previous_match": tool_previous_match,
    "next_file": tool_next_file,
    "previous_file": tool_previous_file,
    "jump_to": tool_jump_to,
    "abort_search": tool_abort_search,
    "search_status": tool_search_status,
}


async def execute_tool(tool_name: str, **kwargs) -> Dict[str, Any]:
    """Single entry point for every tool"""
    tool_func = TOOL_REGISTRY.get(tool_name)
    if not tool_func:
        return {"success": False, "error": f"Unknown tool: {tool_name}"}

    try:
        result = tool_func(**kwargs)
    except TypeError as e:
        return {"success": False, "error": f"Invalid arguments for {tool_name}: {e}"}
    if inspect.isawaitable(result):
        result = await result
    return result
