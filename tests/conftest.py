# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path
import pytest

from hai_titers.logging.init import reset_logging

SOURCE_URL = "https://doi.org/10.0000/example.table"


SAMPLE_HTML = """<html><head><meta charset="utf-8"><title>HAI titers</title></head>
<body>
<table id="t1">
  <thead>
    <tr><th>Subject no.</th><th>Age</th><th>Gender</th><th>Vaccine dose</th>
        <th>HAI Day 0</th><th>HAI Day 21</th><th>HAI Day 42</th></tr>
  </thead>
  <tbody>
    <tr><td colspan="7">Group A</td></tr>
    <tr><td>001</td><td>34</td><td>F</td><td>15 µg</td><td>&lt;4</td><td>40</td><td>20</td></tr>
    <tr><td>002</td><td>70</td><td>M</td><td>15 µg</td><td>8</td><td>160</td><td>80</td></tr>
    <tr><td>003</td><td>65</td><td>F</td><td>15 µg</td><td>NS</td><td>80</td><td>40</td></tr>
    <tr><td colspan="7">Group B</td></tr>
    <tr><td>014</td><td>68</td><td>M</td><td>30 µg</td><td>10</td><td>320</td><td>160</td></tr>
    <tr><td>015</td><td>45</td><td>F</td><td>30 µg</td><td>&lt;4</td><td>&lt;4</td><td>NS</td></tr>
    <tr><td>016</td><td>80</td><td>M</td><td>30 µg</td><td>20</td><td>40</td><td></td></tr>
    <tr><td>017</td><td>25</td><td>M</td><td>30 µg</td><td>5</td><td>80</td><td>40</td></tr>
  </tbody>
</table>
<table id="t2"><tr><td>Unrelated</td><td>table</td></tr><tr><td>a</td><td>b</td></tr></table>
</body></html>
"""


@pytest.fixture(autouse=True)
def _fresh_logger():
    # 各テストで stdout (capsys) に紐付いたハンドラを作り直す
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_html() -> str:
    return SAMPLE_HTML


@pytest.fixture()
def sample_config_yaml() -> str:
    return f"""source_url: {SOURCE_URL}
table_index: 0
header_row_index: 0
floor_sentinels:
  "<4": 1
missing_sentinels: [NS]
elderly_age: 65
output: figures/plot.png
figure:
  width: 5
  height: 4
  dpi: 50
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "analysis.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def fake_fetch(sample_html: str):
    calls: list[str] = []

    def _fetch(url, request=None):
        calls.append(url)
        return sample_html.encode("utf-8")

    _fetch.calls = calls  # type: ignore[attr-defined]
    return _fetch
