# File: phonemizer_backend.py
# espeak access through the phonemizer package. Produces the raw, stress-marked,
# tie-joined phoneme strings that phonemes.py normalizes.

import logging
import os
from typing import Optional

from phonemizer.backend import EspeakBackend

logger = logging.getLogger(__name__)

# espeak joins multi-letter phonemes (diphthongs, affricates) with this character.
TIE_CHARACTER = "^"


class PhonemizerUnavailableError(RuntimeError):
    """espeak cannot be used on this platform, so text cannot be phonemized."""


def _use_bundled_espeak() -> None:
    try:
        import espeakng_loader
    except ImportError as exc:
        raise PhonemizerUnavailableError(
            "espeak is not installed and espeakng_loader is not available"
        ) from exc

    from phonemizer.backend.espeak.base import BaseEspeakBackend

    os.environ["ESPEAK_DATA_PATH"] = espeakng_loader.get_data_path()
    BaseEspeakBackend.set_library(espeakng_loader.get_library_path())
    logger.info("System espeak not found; using bundled espeak-ng from espeakng_loader.")


def _build_backend(language: str, preserve_punctuation: bool) -> EspeakBackend:
    return EspeakBackend(
        language=language,
        preserve_punctuation=preserve_punctuation,
        with_stress=True,
        tie=TIE_CHARACTER,
    )


def create_phonemizer(
    language: str = "en-us",
    preserve_punctuation: bool = True,
    use_bundled_espeak: bool = True,
) -> EspeakBackend:
    """
    Build an espeak backend emitting stress marks and ``^`` ties.

    Falls back to the espeak-ng library shipped with espeakng_loader when the
    system library is missing. Raises PhonemizerUnavailableError when no
    espeak can be loaded.
    """
    try:
        return _build_backend(language, preserve_punctuation)
    except RuntimeError as exc:
        if "espeak not installed" not in str(exc).lower():
            raise PhonemizerUnavailableError(str(exc)) from exc
        if not use_bundled_espeak:
            raise PhonemizerUnavailableError(
                "espeak is not installed on this system"
            ) from exc

    _use_bundled_espeak()
    try:
        return _build_backend(language, preserve_punctuation)
    except RuntimeError as exc:
        raise PhonemizerUnavailableError(str(exc)) from exc


def phonemize_text(backend: EspeakBackend, text: str) -> str:
    """Phonemize one utterance and return the raw espeak transcription."""
    phonemes_list = backend.phonemize([text], strip=True)
    return phonemes_list[0] if phonemes_list else ""


def espeak_version() -> Optional[str]:
    try:
        version = EspeakBackend.version()
    except RuntimeError:
        return None
    return ".".join(str(part) for part in version)


# --- End File: phonemizer_backend.py ---
