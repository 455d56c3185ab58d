import pytest

from core.config_manager import ConfigManager, DEFAULT_ENGINE_CODES
from core.language_mapper import LanguageMapper


def fake_translate(text, source_code, target_code):
    return f"[{target_code}] {text}"


def fake_loader(model_name, cache_dir):
    return fake_translate


class FakeEngine:
    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.calls = []

    async def translate(self, text, target_lang, source_lang_hint=None):
        self.calls.append((text, target_lang, source_lang_hint))
        if text == self.fail_on:
            raise RuntimeError("engine exploded")
        return f"[{target_lang}] {text}"


@pytest.fixture
def config(tmp_path, monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("CACHE_DIR", raising=False)
    config = ConfigManager(tmp_path / "config.json")
    config.set("translation.cache_dir", str(tmp_path / "model-cache"))
    config.set("server.host", "127.0.0.1")
    return config


@pytest.fixture
def mapper():
    return LanguageMapper(DEFAULT_ENGINE_CODES)
