# File: engine.py
# espeak backend lifecycle and the text → normalized phoneme entrypoints.

import logging
from threading import Lock
from typing import Any, Dict, Optional, Tuple

from phonemes import PhonemeNormalizer
import phonemizer_backend
from phonemizer_backend import PhonemizerUnavailableError

from config import (
    get_phonemizer_language,
    get_preserve_punctuation,
    get_strip_stress,
    get_use_bundled_espeak,
)

logger = logging.getLogger(__name__)

# --- Global Module Variables ---
phonemizer: Optional[Any] = None
PHONEMIZER_LOADED: bool = False
_LAST_LOAD_ERROR: Optional[str] = None
_load_lock = Lock()


def _build_runtime_normalizer() -> PhonemeNormalizer:
    """
    Build the phoneme normalizer using runtime config toggles.
    """
    return PhonemeNormalizer(
        strip_stress=get_strip_stress(),
    )


def normalize_phonemes(phonemes: str) -> Tuple[str, Dict[str, int]]:
    """
    Normalize an already phonemized string. Never touches espeak, so it works
    on every platform.
    """
    normalizer = _build_runtime_normalizer()
    return normalizer.process_with_metadata(phonemes)


def initialize_phonemizer() -> bool:
    """
    Creates the espeak backend once and keeps it for the process lifetime.

    Returns:
        bool: True if the backend is ready, False otherwise.
    """
    global phonemizer, PHONEMIZER_LOADED, _LAST_LOAD_ERROR

    with _load_lock:
        if PHONEMIZER_LOADED:
            logger.info("espeak phonemizer is already loaded.")
            return True

        language = get_phonemizer_language()
        preserve_punctuation = get_preserve_punctuation()
        use_bundled_espeak = get_use_bundled_espeak()

        logger.info(f"Loading espeak phonemizer for language: {language}")
        try:
            phonemizer = phonemizer_backend.create_phonemizer(
                language=language,
                preserve_punctuation=preserve_punctuation,
                use_bundled_espeak=use_bundled_espeak,
            )
        except PhonemizerUnavailableError as e:
            logger.error(f"espeak phonemizer is unavailable on this platform: {e}")
            phonemizer = None
            PHONEMIZER_LOADED = False
            _LAST_LOAD_ERROR = str(e)
            return False
        except Exception as e:
            logger.error(f"Error loading espeak phonemizer: {e}", exc_info=True)
            phonemizer = None
            PHONEMIZER_LOADED = False
            _LAST_LOAD_ERROR = str(e)
            return False

        PHONEMIZER_LOADED = True
        _LAST_LOAD_ERROR = None
        logger.info("espeak phonemizer loaded successfully.")
        return True


def get_espeak_version() -> Optional[str]:
    if not PHONEMIZER_LOADED:
        return None
    return phonemizer_backend.espeak_version()


def convert_text_to_phonemes_with_metadata(text: str) -> Tuple[str, Dict[str, Any]]:
    """
    Phonemizes ``text`` with espeak and normalizes the result.

    Raises:
        PhonemizerUnavailableError: espeak cannot be used here. Raised before
            any normalization happens, so there is never a partial result.
    """
    if not PHONEMIZER_LOADED and not initialize_phonemizer():
        raise PhonemizerUnavailableError(
            _LAST_LOAD_ERROR or "espeak phonemizer is not available on this platform"
        )

    logger.debug(f"Phonemizing text (first 100 chars): '{text[:100]}...'")
    raw_phonemes = phonemizer_backend.phonemize_text(phonemizer, text)
    normalized, metadata = normalize_phonemes(raw_phonemes)
    result_metadata: Dict[str, Any] = dict(metadata)
    result_metadata["raw_phonemes"] = raw_phonemes
    return normalized, result_metadata


def convert_text_to_phonemes(text: str) -> str:
    normalized, _ = convert_text_to_phonemes_with_metadata(text)
    return normalized


# --- End File: engine.py ---
