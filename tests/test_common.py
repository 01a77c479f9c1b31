"""Tests for shared helpers."""
from pathlib import Path

from nodeflow.utils.common import format_duration, normalize_path, save_json


def test_format_duration():
    assert format_duration(0) == "00:00:00.000"
    assert format_duration(3723.5) == "01:02:03.500"


def test_normalize_path_strips_quotes(tmp_path):
    quoted = f"'{tmp_path / 'flow.json'}'"
    assert normalize_path(quoted) == (tmp_path / "flow.json").resolve()


def test_normalize_path_expands_user():
    assert normalize_path("~/flow.json") == Path.home().resolve() / "flow.json"


def test_save_json_creates_parents(tmp_path):
    path = tmp_path / "a" / "b.json"
    save_json({"when": Path("x")}, path)
    assert path.read_text(encoding="utf-8") == '{\n  "when": "x"\n}'
