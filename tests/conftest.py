import pytest


@pytest.fixture(autouse=True)
def _isolated_logs(tmp_path, monkeypatch):
    """Keep JSON log files out of the working tree."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ERROR_LOG_FILE", str(tmp_path / "logs" / "errors.log"))
    monkeypatch.delenv("REPLAY_ALERT_WEBHOOK", raising=False)
