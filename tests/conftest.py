"""Pytest configuration and shared fixtures.

Provides a sample project whose files match the canned search output, and a
fake search tool that replays that output from a real child process.
"""

import itertools
import os
import sys
import tempfile
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))


def colored(code: str, text: str, reset: str = "0") -> str:
    return f"\x1b[{code}m{text}\x1b[{reset}m\x1b[K"


# ag --nogroup output for "hello" over the sample project
SEARCH_OUTPUT = (
    colored("1;32", "foo.txt") + ":" + colored("1;33", "12") + ":  "
    + colored("30;43", "hello") + " world " + colored("30;43", "hello") + "\n"
    + colored("1;32", "sub/bar.py") + ":" + colored("1;33", "3") + ":x = "
    + colored("30;43", "hello", reset="") + "\n"
)

# Same matches in --group (heading) mode
HEADING_OUTPUT = (
    colored("1;32", "foo.txt") + "\n"
    + colored("1;33", "12") + ":  " + colored("30;43", "hello") + " world "
    + colored("30;43", "hello") + "\n"
    + "--\n"
    + colored("1;32", "sub/bar.py") + "\n"
    + colored("1;33", "3") + ":x = " + colored("30;43", "hello") + "\n"
)

FAKE_TOOL_SCRIPT = '''
import sys
import time

data = open(sys.argv[1], "rb").read()
for i in range(0, len(data), 7):
    sys.stdout.buffer.write(data[i:i + 7])
    sys.stdout.buffer.flush()
sys.stderr.write(open(sys.argv[3], encoding="utf-8").read())
sys.stderr.flush()
time.sleep(float(sys.argv[4]))
sys.exit(int(sys.argv[2]))
'''


@pytest.fixture
def sample_project():
    """Create a project matching SEARCH_OUTPUT."""
    with tempfile.TemporaryDirectory() as temp_dir:
        project_path = Path(temp_dir)

        foo_lines = [f"line {n}" for n in range(1, 12)]
        foo_lines.append("  hello world hello")
        foo_lines.extend(["line 13", "line 14"])
        (project_path / "foo.txt").write_text("\n".join(foo_lines) + "\n")

        (project_path / "sub").mkdir()
        (project_path / "sub" / "bar.py").write_text('import os\n\nx = hello\n')

        yield project_path


@pytest.fixture
def fake_search_tool():
    """Factory for argv lists that replay canned output and exit status."""
    with tempfile.TemporaryDirectory() as temp_dir:
        work = Path(temp_dir)
        script = work / "fake_ag.py"
        script.write_text(FAKE_TOOL_SCRIPT)
        counter = itertools.count()

        def make(stdout, exit_code: int = 0, stderr: str = "", sleep: float = 0.0):
            n = next(counter)
            out_file = work / f"stdout_{n}"
            err_file = work / f"stderr_{n}"
            if isinstance(stdout, str):
                stdout = stdout.encode("utf-8")
            out_file.write_bytes(stdout)
            err_file.write_text(stderr, encoding="utf-8")
            return [
                sys.executable,
                str(script),
                str(out_file),
                str(exit_code),
                str(err_file),
                str(sleep),
            ]

        yield make


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow running"
    )


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location/name."""
    for item in items:
        if "test_process" in item.nodeid or "test_mcp_tools" in item.nodeid:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
