import json
from siting.settings import EngineSettings


def test_defaults():
    settings = EngineSettings()
    assert settings.default_target_count == 1000
    assert settings.worker_timeout_seconds == 30.0
    assert settings.history_limit == 10
    assert settings.enforce_boundaries is False


def test_save_and_load(tmp_path):
    path = tmp_path / "config" / "settings.json"
    EngineSettings(default_target_count=250, use_worker=False).save(str(path))

    loaded = EngineSettings.load(str(path))
    assert loaded.default_target_count == 250
    assert loaded.use_worker is False


def test_load_missing_file_gives_defaults(tmp_path):
    assert EngineSettings.load(str(tmp_path / "absent.json")) == EngineSettings()
    assert EngineSettings.load(None) == EngineSettings()


def test_unknown_keys_ignored(tmp_path, caplog):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"history_limit": 3, "colour": "green"}))

    loaded = EngineSettings.load(str(path))
    assert loaded.history_limit == 3
    assert "colour" in caplog.text
