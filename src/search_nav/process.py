"""
Search process pump

Runs the external search tool with asyncio and feeds its stdout to a session
chunk by chunk. Killing goes through psutil so that helper processes spawned
by the search tool die with it.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

import psutil

from .errors import ProcessFailure
from .session import FAILED, NORMAL_EXIT_CODES, Session, SessionManager

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 4096


@dataclass
class SearchOutcome:
    match_count: int
    returncode: Optional[int]
    failure: Optional[ProcessFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


def kill_process_tree(pid: int) -> None:
    """Kill a process and all of its children without waiting"""
    try:
        parent = psutil.Process(pid)
        children = parent.children(recursive=True)
    except psutil.NoSuchProcess:
        return

    for process in children + [parent]:
        try:
            process.kill()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue


class SearchProcess:
    def __init__(
        self,
        argv: Sequence[str],
        cwd: Union[str, Path, None] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        if not argv:
            raise ValueError("argv must not be empty")
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.argv = list(argv)
        self.cwd = str(cwd) if cwd is not None else None
        self.chunk_size = chunk_size
        self._proc: Optional[asyncio.subprocess.Process] = None
        self.killed = False

    @property
    def pid(self) -> Optional[int]:
        return self._proc.pid if self._proc is not None else None

    @property
    def returncode(self) -> Optional[int]:
        return self._proc.returncode if self._proc is not None else None

    async def start(self) -> None:
        logger.info(f"Starting search: {' '.join(self.argv)}")
        try:
            self._proc = await asyncio.create_subprocess_exec(
                *self.argv,
                cwd=self.cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ProcessFailure(None, str(e)) from e

    async def pump(self, session: Session) -> SearchOutcome:
        """Feed stdout to the session until the process exits"""
        if self._proc is None:
            await self.start()
        proc = self._proc
        if proc is None or proc.stdout is None or proc.stderr is None:
            raise ProcessFailure(None, "Search process has no output pipes")

        stderr_task = asyncio.ensure_future(proc.stderr.read())
        try:
            while True:
                chunk = await proc.stdout.read(self.chunk_size)
                if not chunk:
                    break
                session.feed(chunk)
            diagnostics = (await stderr_task).decode("utf-8", errors="replace")
        finally:
            if not stderr_task.done():
                stderr_task.cancel()

        returncode = await proc.wait()
        failure = session.process_exited(returncode, diagnostics)
        return SearchOutcome(session.match_count, returncode, failure)

    async def wait(self) -> Optional[int]:
        if self._proc is None:
            return None
        return await self._proc.wait()

    def kill(self) -> None:
        """Terminate immediately, without waiting for a graceful shutdown"""
        if self._proc is None or self._proc.returncode is not None:
            return
        self.killed = True
        logger.info(f"Killing search process {self._proc.pid}")
        kill_process_tree(self._proc.pid)


async def run_search(
    manager: SessionManager,
    argv: Sequence[str],
    directory: Union[str, Path, None] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    timeout: Optional[float] = None,
) -> Session:
    """Start a search in a new session that replaces the current one"""
    process = SearchProcess(argv, cwd=directory, chunk_size=chunk_size)
    session = manager.replace(Session(directory, process=process))
    try:
        await process.start()
    except ProcessFailure as e:
        session.error = e
        session.abort()
        session.status = FAILED
        logger.warning(str(e))
        return session

    try:
        await asyncio.wait_for(process.pump(session), timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Search timed out after {timeout}s, aborting")
        session.abort()
        await process.wait()
    return session


def split_file_list(data: Union[bytes, str]) -> List[str]:
    """Split NUL separated file listing output"""
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="replace")
    return [path.strip("\n") for path in data.split("\0") if path.strip("\n")]


async def list_files(argv: Sequence[str], cwd: Union[str, Path, None] = None) -> List[str]:
    """Run the search tool in file listing mode"""
    logger.info(f"Listing files: {' '.join(argv)}")
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(cwd) if cwd is not None else None,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise ProcessFailure(None, str(e)) from e

    stdout, stderr = await proc.communicate()
    if proc.returncode not in NORMAL_EXIT_CODES:
        raise ProcessFailure(proc.returncode, stderr.decode("utf-8", errors="replace"))
    return split_file_list(stdout)
