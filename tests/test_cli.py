from __future__ import annotations

import json
import zipfile
from pathlib import Path
from typing import Any, List

import pytest

from ccsu_result_api import cli
from ccsu_result_api.models import ResultRecord, ResultRequest, SubjectMarks


class _FakeClient:
    instances: List["_FakeClient"] = []
    record = ResultRecord()

    def __init__(self, *, config: Any) -> None:
        self.config = config
        self.requests: List[ResultRequest] = []
        _FakeClient.instances.append(self)

    def fetch_result(self, request: ResultRequest) -> ResultRecord:
        self.requests.append(request)
        return self.record


@pytest.fixture(autouse=True)
def _isolate(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("LOG_FILE", raising=False)
    monkeypatch.delenv("PORTAL_DEBUG_DIR", raising=False)
    _FakeClient.instances = []
    monkeypatch.setattr(cli, "ResultPortalClient", _FakeClient)


def test_fetch_prints_record(capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        _FakeClient,
        "record",
        ResultRecord(candidateName="RAHUL KUMAR", marks={"CS101": SubjectMarks(theory="45")}),
    )

    rc = cli.main(["fetch", "--course", "B.A.", "--year", "2024", "--roll-number", "123456", "--headful"])

    assert rc == 0
    data = json.loads(capsys.readouterr().out)
    assert data["candidateName"] == "RAHUL KUMAR"
    assert data["marks"]["CS101"] == {"theory": "45", "practical": "0", "viva": "0"}

    client = _FakeClient.instances[0]
    assert client.config.headless is False
    assert client.requests == [ResultRequest(course="B.A.", year="2024", roll_number="123456")]


def test_fetch_not_found_exits_1(tmp_path: Path) -> None:
    out = tmp_path / "result.json"

    rc = cli.main(["fetch", "--course", "B.A.", "--year", "2024", "--roll-number", "7", "--out", str(out)])

    assert rc == 1
    assert json.loads(out.read_text(encoding="utf-8")) == {"error": "Result not found. Please verify your input."}


def test_fetch_rejects_bad_roll_number_before_launching(capsys: pytest.CaptureFixture[str]) -> None:
    rc = cli.main(["fetch", "--course", "B.A.", "--year", "2024", "--roll-number", "12a"])

    assert rc == 2
    assert "1–9 digits" in capsys.readouterr().err
    assert _FakeClient.instances == []


def test_debug_bundle_command(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    debug_dir = tmp_path / "dbg"
    debug_dir.mkdir()
    (debug_dir / "failed_1.html").write_text("<html/>", encoding="utf-8")
    (tmp_path / "config.yaml").write_text(f'portal:\n  debug_dir: "{debug_dir.as_posix()}"\n', encoding="utf-8")

    rc = cli.main(["debug-bundle", "--out-dir", str(tmp_path / "bundles")])

    assert rc == 0
    out = Path(capsys.readouterr().out.strip())
    with zipfile.ZipFile(out, "r") as z:
        assert z.namelist() == ["failed/failed_1.html"]
