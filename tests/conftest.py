# Shared pytest fixtures
from __future__ import annotations
import io
import tempfile
from pathlib import Path
import pytest

from log2csv.logging.init import reset_logging

SYSLOG_TEXT = (
    "2024-01-01T00:00:00+00:00 host1 kernel: msg A\n"
    "2024-01-01T00:00:01+00:00 host2 kernel: msg B\n"
)


@pytest.fixture(autouse=True)
def _clean_state(monkeypatch):
    reset_logging()
    # setenv -> delenv で undo 対象に登録し、.env 読み込みで増えた値もテスト後に消す
    for name in ("LOG2CSV_REGEXP", "LOG2CSV_CONFIG"):
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """encoding: utf-8
reader:
  max_line_size: 1024
  max_buffer_size: 65536
  peek_size: 4096
  chunk_size: 512
emitter:
  separator: ","
  quote_char: '"'
  flush_each_row: false
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "log2csv.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def syslog_file(temp_workdir: Path) -> Path:
    f = temp_workdir / "data" / "syslog.log"
    f.write_bytes(SYSLOG_TEXT.encode("utf-8"))
    return f


@pytest.fixture()
def stdin_bytes(monkeypatch):
    """Replace sys.stdin with a text wrapper over the given bytes."""
    def _set(data: bytes) -> None:
        monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(data)))
    return _set
