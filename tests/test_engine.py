from pathlib import Path
import sys

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

import engine
import phonemizer_backend
from phonemizer_backend import PhonemizerUnavailableError


class _FakeEspeakBackend:
    def __init__(self, outputs):
        self.outputs = outputs
        self.calls = []

    def phonemize(self, texts, strip=False):
        self.calls.append((list(texts), strip))
        return [self.outputs[text] for text in texts]


@pytest.fixture
def unloaded_engine(monkeypatch):
    monkeypatch.setattr(engine, "phonemizer", None)
    monkeypatch.setattr(engine, "PHONEMIZER_LOADED", False)
    monkeypatch.setattr(engine, "_LAST_LOAD_ERROR", None)
    return engine


def test_convert_text_to_phonemes_phonemizes_then_normalizes(unloaded_engine, monkeypatch):
    fake_backend = _FakeEspeakBackend({"hello world": "həlˈo^ʊ wˈɜːld"})
    created = []

    def fake_create_phonemizer(**kwargs):
        created.append(kwargs)
        return fake_backend

    monkeypatch.setattr(phonemizer_backend, "create_phonemizer", fake_create_phonemizer)

    assert engine.convert_text_to_phonemes("hello world") == "həlO wɜːld"
    assert engine.PHONEMIZER_LOADED is True
    assert created[0]["language"] == "en-us"
    assert fake_backend.calls == [(["hello world"], True)]


def test_convert_with_metadata_keeps_raw_transcription(unloaded_engine, monkeypatch):
    fake_backend = _FakeEspeakBackend({"chair and": "t^ʃˈɛɹ ˈand"})
    monkeypatch.setattr(
        phonemizer_backend, "create_phonemizer", lambda **kwargs: fake_backend
    )

    normalized, metadata = engine.convert_text_to_phonemes_with_metadata("chair and")

    assert normalized == "ʧɛɹ ænd"
    assert metadata["raw_phonemes"] == "t^ʃˈɛɹ ˈand"
    assert metadata["stress_markers_removed"] == 2


def test_backend_is_created_only_once(unloaded_engine, monkeypatch):
    created = []

    def fake_create_phonemizer(**kwargs):
        created.append(kwargs)
        return _FakeEspeakBackend({"a": "ɐ", "b": "bˈiː"})

    monkeypatch.setattr(phonemizer_backend, "create_phonemizer", fake_create_phonemizer)

    assert engine.initialize_phonemizer() is True
    assert engine.initialize_phonemizer() is True
    engine.convert_text_to_phonemes("a")
    engine.convert_text_to_phonemes("b")

    assert len(created) == 1


def test_unavailable_phonemizer_fails_before_normalizing(unloaded_engine, monkeypatch):
    def unavailable(**kwargs):
        raise PhonemizerUnavailableError("espeak is not installed on this system")

    def must_not_run(phonemes):
        raise AssertionError("normalization must not run without phonemes")

    monkeypatch.setattr(phonemizer_backend, "create_phonemizer", unavailable)
    monkeypatch.setattr(engine, "normalize_phonemes", must_not_run)

    assert engine.initialize_phonemizer() is False
    with pytest.raises(PhonemizerUnavailableError, match="not installed"):
        engine.convert_text_to_phonemes("hello")
    assert engine.get_espeak_version() is None


def test_normalize_phonemes_follows_strip_stress_setting(monkeypatch):
    monkeypatch.setattr(engine, "get_strip_stress", lambda: False)

    normalized, metadata = engine.normalize_phonemes("ˈa^ɪ")

    assert normalized == "ˈI"
    assert metadata["stress_markers_removed"] == 0


def test_initialize_phonemizer_uses_configured_backend_options(unloaded_engine, monkeypatch):
    created = []

    def fake_create_phonemizer(**kwargs):
        created.append(kwargs)
        return _FakeEspeakBackend({})

    monkeypatch.setattr(engine, "get_phonemizer_language", lambda: "en-gb")
    monkeypatch.setattr(engine, "get_preserve_punctuation", lambda: False)
    monkeypatch.setattr(engine, "get_use_bundled_espeak", lambda: False)
    monkeypatch.setattr(phonemizer_backend, "create_phonemizer", fake_create_phonemizer)

    assert engine.initialize_phonemizer() is True
    assert created == [
        {
            "language": "en-gb",
            "preserve_punctuation": False,
            "use_bundled_espeak": False,
        }
    ]


def test_create_phonemizer_reports_missing_espeak(monkeypatch):
    def missing_espeak(language, preserve_punctuation):
        raise RuntimeError("espeak not installed on your system")

    monkeypatch.setattr(phonemizer_backend, "_build_backend", missing_espeak)

    with pytest.raises(PhonemizerUnavailableError):
        phonemizer_backend.create_phonemizer(use_bundled_espeak=False)


def test_phonemize_text_handles_empty_backend_result():
    class EmptyBackend:
        def phonemize(self, texts, strip=False):
            return []

    assert phonemizer_backend.phonemize_text(EmptyBackend(), "hello") == ""
