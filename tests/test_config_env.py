from pathlib import Path
import sys


PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from config import DEFAULT_CONFIG, ENV_KEY_MAP, EnvConfigManager


def _clear_phoneme_env(monkeypatch):
    for env_key in ENV_KEY_MAP.values():
        monkeypatch.delenv(env_key, raising=False)


def test_defaults_apply_without_env(monkeypatch, tmp_path):
    _clear_phoneme_env(monkeypatch)

    manager = EnvConfigManager(env_file_path=tmp_path / ".env")

    assert manager.get_all() == DEFAULT_CONFIG
    assert manager.get_int("server.port") == 8006
    assert manager.get_bool("normalizer.strip_stress") is True


def test_process_env_values_are_coerced_by_default_type(monkeypatch, tmp_path):
    _clear_phoneme_env(monkeypatch)
    monkeypatch.setenv("PHONEME_SERVER_PORT", "9100")
    monkeypatch.setenv("PHONEME_STRIP_STRESS", "off")
    monkeypatch.setenv("PHONEME_LANGUAGE", " EN-GB ")

    manager = EnvConfigManager(env_file_path=tmp_path / ".env")

    assert manager.get("server.port") == 9100
    assert manager.get("normalizer.strip_stress") is False
    assert manager.get_string("phonemizer.language") == "en-gb"


def test_env_file_is_read_and_process_env_wins(monkeypatch, tmp_path):
    _clear_phoneme_env(monkeypatch)
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# local overrides\n"
        "export PHONEME_UI_TITLE=\"Phoneme Lab\"\n"
        "PHONEME_SERVER_HOST=127.0.0.1\n"
        "PHONEME_LOAD_ON_STARTUP=false\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("PHONEME_SERVER_HOST", "10.0.0.5")

    manager = EnvConfigManager(env_file_path=env_file)

    assert manager.get_string("ui.title") == "Phoneme Lab"
    assert manager.get_string("server.host") == "10.0.0.5"
    assert manager.get_bool("phonemizer.load_on_startup") is False


def test_invalid_values_fall_back_to_defaults(monkeypatch, tmp_path):
    _clear_phoneme_env(monkeypatch)
    monkeypatch.setenv("PHONEME_SERVER_PORT", "not-a-port")
    monkeypatch.setenv("PHONEME_LANGUAGE", "   ")

    manager = EnvConfigManager(env_file_path=tmp_path / ".env")

    assert manager.get_int("server.port") == 8006
    assert manager.get_string("phonemizer.language") == "en-us"


def test_get_returns_copies_of_nested_sections(monkeypatch, tmp_path):
    _clear_phoneme_env(monkeypatch)
    manager = EnvConfigManager(env_file_path=tmp_path / ".env")

    section = manager.get("phonemizer")
    section["language"] = "fr-fr"

    assert manager.get_string("phonemizer.language") == "en-us"
    assert manager.get("missing.key", "fallback") == "fallback"
