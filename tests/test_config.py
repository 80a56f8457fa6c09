from latelier.config import Config


def test_defaults_without_config_file(tmp_path, monkeypatch):
    for name in ("OPENAI_API_KEY", "API_KEY", "ANALYSIS_MODEL", "TTS_MODEL", "TTS_VOICE", "TTS_SAMPLE_RATE", "DATA_DIR", "HISTORY_LIMIT"):
        monkeypatch.delenv(name, raising=False)
    cfg = Config(str(tmp_path))
    assert cfg.OPENAI_API_KEY == ""
    assert cfg.TTS_SAMPLE_RATE == 24000
    assert cfg.HISTORY_LIMIT == 20
    assert cfg.HISTORY_STORAGE_KEY == "latelier_history_v1"
    assert cfg.PLAYBACK_SPEEDS == (0.5, 0.7, 1.0, 1.2, 1.5)
    assert cfg.LOCAL_STORE_PATH == str(tmp_path / "local_store.json")


def test_config_ini_then_environment_override(tmp_path, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)
    (tmp_path / "config.ini").write_text(
        "[openai]\napi_key = from-ini\nanalysis_model = my model\n\n[tts]\nvoice = alloy\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("TTS_VOICE", "sage")
    monkeypatch.delenv("ANALYSIS_MODEL", raising=False)
    cfg = Config(str(tmp_path))
    assert cfg.OPENAI_API_KEY == "from-ini"
    assert cfg.ANALYSIS_MODEL_ID == "mymodel"
    assert cfg.TTS_VOICE == "sage"
