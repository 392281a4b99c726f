from utils.config import load_config, redact


def test_load_config_creates_data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("PLANNER_HISTORY_DAYS", raising=False)
    monkeypatch.delenv("PLANNER_HISTORY_LIMIT", raising=False)
    monkeypatch.delenv("PLANNER_LOCALE", raising=False)
    cfg = load_config()
    assert cfg.data_dir.exists()
    assert cfg.history_days == 120
    assert cfg.history_limit == 3000
    assert cfg.default_locale == "en"


def test_load_config_reads_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("PLANNER_HISTORY_DAYS", "90")
    monkeypatch.setenv("PLANNER_HISTORY_LIMIT", "500")
    monkeypatch.setenv("PLANNER_LOCALE", "fr_FR")
    monkeypatch.setenv("STRAVA_ACCESS_TOKEN", "abcdef123456")
    cfg = load_config()
    assert cfg.history_days == 90
    assert cfg.history_limit == 500
    assert cfg.default_locale == "fr"
    assert cfg.strava_access_token == "abcdef123456"


def test_unparseable_integers_fall_back(tmp_path, monkeypatch):
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("PLANNER_HISTORY_DAYS", "lots")
    monkeypatch.setenv("PLANNER_HISTORY_LIMIT", "-5")
    cfg = load_config()
    assert cfg.history_days == 120
    assert cfg.history_limit == 3000


def test_redact():
    assert redact(None) == ""
    assert redact("abc") == "***"
    assert redact("abcdef123456") == "***3456"
