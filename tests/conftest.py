from pathlib import Path
import pytest


@pytest.fixture
def write_trace(tmp_path: Path):
    """Returns a helper that writes trace lines to a file and returns its path."""
    def _write(lines, name="test.trace"):
        path = tmp_path / name
        path.write_text("".join(f"{line}\n" for line in lines))
        return str(path)
    return _write
