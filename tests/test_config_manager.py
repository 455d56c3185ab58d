import json

from core.config_manager import ConfigManager, get_app_data_dir


def test_defaults_when_file_missing(tmp_path, monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("CACHE_DIR", raising=False)
    config = ConfigManager(tmp_path / "config.json")

    assert config.get("server.port") == 3000
    assert config.get("translation.default_target_lang") == "fr"
    assert config.get("languages.engine_codes")["en"] == "eng_Latn"
    assert config.get("fetch.user_agent") == "Mozilla/5.0"
    assert config.get("missing.key", "fallback") == "fallback"


def test_file_is_deep_merged_over_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"server": {"port": 8080}, "translation": {"call_timeout": 5}}), encoding="utf-8")

    config = ConfigManager(path)

    assert config.get("server.port") == 8080
    assert config.get("server.host") == "0.0.0.0"
    assert config.get("translation.call_timeout") == 5
    assert config.get("translation.model") == "facebook/nllb-200-distilled-600M"


def test_invalid_json_falls_back_to_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")

    config = ConfigManager(path)

    assert config.get("server.port") == 3000


def test_env_overrides_port_and_cache_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("PORT", "4321")
    monkeypatch.setenv("CACHE_DIR", str(tmp_path / "weights"))

    config = ConfigManager(tmp_path / "config.json")

    assert config.get("server.port") == 4321
    assert config.get_cache_dir() == (tmp_path / "weights").resolve()
    assert (tmp_path / "weights").is_dir()


def test_invalid_port_env_is_ignored(tmp_path, monkeypatch):
    monkeypatch.setenv("PORT", "not-a-port")

    config = ConfigManager(tmp_path / "config.json")

    assert config.get("server.port") == 3000


def test_set_and_save_round_trip(config):
    config.set("translation.default_target_lang", "de")
    config.set("languages.extra.flag", True)
    assert config.save()

    reloaded = ConfigManager(config.config_path)

    assert reloaded.get("translation.default_target_lang") == "de"
    assert reloaded.get("languages.extra.flag") is True


def test_app_data_dir_honours_env(tmp_path, monkeypatch):
    monkeypatch.setenv("TRANSLATION_PROXY_HOME", str(tmp_path / "home"))

    assert get_app_data_dir() == tmp_path / "home"
    assert (tmp_path / "home").is_dir()
