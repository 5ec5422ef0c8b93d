import pytest
from pathlib import Path
from tracecache.workloads import HOMEWORK_WORKLOADS


@pytest.fixture
def hw1():
    return HOMEWORK_WORKLOADS["hw1"]


@pytest.fixture
def write_trace(tmp_path: Path):
    """Writes a list of lines to a trace file and returns its path."""
    def _write(lines, name="addresses.txt"):
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n")
        return path
    return _write
