import json

from HLT_tool.metrics.__main__ import main


def test_smoke_run_writes_health_file(tmp_path, capsys):
    out = tmp_path / "health.json"
    assert main(["--freq", "0.05", "--delay", "0", "--cycles", "2", "--out", str(out)]) == 0

    data = json.loads(out.read_text(encoding="utf-8"))
    assert "heartbeat" in data
    assert "written to:" in capsys.readouterr().out
