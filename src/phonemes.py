"""
phonemes.py
Normalization of raw espeak phoneme strings into the compact phoneme alphabet
expected by the synthesis model.

Pipeline:
    raw phonemes → strip stress markers → ordered rule rewrites → normalized phonemes

Everything here works on UTF-8 bytes so multi-byte IPA symbols are never split
and malformed input degrades to U+FFFD instead of raising.
"""

import logging
from functools import lru_cache
from typing import Dict, FrozenSet, NamedTuple, Optional, Tuple, Union

from codec import (
    ENCODED_REPLACEMENT,
    decode_code_point,
    is_continuation_byte,
    is_malformed,
)

logger = logging.getLogger(__name__)


class RuleEntry(NamedTuple):
    pattern: str
    replacement: str


RuleTable = Tuple[RuleEntry, ...]

# Tie-marked diphthongs and affricates collapse to single symbols, then stray
# ties, the literal "and" and length colons are cleaned up. Order matters.
DEFAULT_RULE_TABLE: RuleTable = (
    RuleEntry("a^ɪ", "I"),
    RuleEntry("a^ʊ", "W"),
    RuleEntry("d^z", "ʣ"),
    RuleEntry("d^ʒ", "ʤ"),
    RuleEntry("e^ɪ", "A"),
    RuleEntry("o^ʊ", "O"),
    RuleEntry("s^s", "S"),
    RuleEntry("t^s", "ʦ"),
    RuleEntry("t^ʃ", "ʧ"),
    RuleEntry("ɔ^ɪ", "Y"),
    RuleEntry("ə^ʊ", "Q"),
    RuleEntry("ɜːɹ", "ɜɹ"),
    RuleEntry("ɔː", "ɔɹ"),
    RuleEntry("ɪə", "iə"),
    RuleEntry("^", ""),
    RuleEntry("and", "ænd"),
    RuleEntry(":", ""),
)

# U+02C8 primary stress, U+02CC secondary stress, "_" phoneme separator
STRESS_MARKERS: FrozenSet[int] = frozenset({0x02C8, 0x02CC, ord("_")})


# ─────────────────────────────────────────────
# Stress filter
# ─────────────────────────────────────────────

def _until_nul(data: bytes) -> bytes:
    end = data.find(b"\x00")
    return data if end == -1 else data[:end]


def _filter_code_points(data: bytes, markers: FrozenSet[int]) -> Tuple[bytes, int, int]:
    data = _until_nul(data)
    out = bytearray()
    removed = 0
    replaced = 0
    pos = 0
    end = len(data)

    while pos < end:
        code_point, consumed = decode_code_point(data, pos)
        if code_point in markers:
            removed += 1
        elif is_malformed(code_point, consumed):
            out += ENCODED_REPLACEMENT
            replaced += 1
        else:
            out += data[pos:pos + consumed]
        pos += consumed

    return bytes(out), removed, replaced


def strip_stress_markers(data: bytes) -> bytes:
    """
    Remove stress markers (ˈ, ˌ, _) and keep every other character's bytes as-is.

    Stops at the first NUL byte. Bytes that do not decode are written out as
    U+FFFD. Overlong and surrogate forms decode leniently and are copied (or
    dropped, when they decode to a marker) unchanged, so the result is only
    guaranteed valid UTF-8 when the input has none of them.
    """
    stripped, _, _ = _filter_code_points(data, STRESS_MARKERS)
    return stripped


def count_stress_markers(data: bytes) -> int:
    _, removed, _ = _filter_code_points(data, STRESS_MARKERS)
    return removed


# ─────────────────────────────────────────────
# Rule rewriter
# ─────────────────────────────────────────────

def apply_rule(data: bytes, pattern: bytes, replacement: bytes) -> bytes:
    """
    Replace every occurrence of ``pattern`` in ``data`` with ``replacement``.

    ASCII patterns are located with ``bytes.find`` and a hit is rejected when
    it starts on a continuation byte. Only the start of the hit is checked.
    Patterns holding multi-byte characters are matched by walking ``data`` one
    character at a time and comparing raw bytes at each character start.
    """
    if not pattern:
        return data

    out = bytearray()
    pattern_len = len(pattern)

    if pattern.isascii():
        consumed = 0
        search_from = 0
        while True:
            pos = data.find(pattern, search_from)
            if pos == -1:
                break
            # Start-of-match boundary check. Cannot fire while pattern[0] < 0x80,
            # but it is part of the matching contract; keep it.
            if pos > 0 and is_continuation_byte(data[pos]):
                search_from = pos + 1
                continue
            out += data[consumed:pos]
            out += replacement
            consumed = pos + pattern_len
            search_from = consumed
        out += data[consumed:]
        return bytes(out)

    pos = 0
    end = len(data)
    while pos < end:
        if data.startswith(pattern, pos):
            out += replacement
            pos += pattern_len
        else:
            _, consumed = decode_code_point(data, pos)
            out += data[pos:pos + consumed]
            pos += consumed
    return bytes(out)


@lru_cache(maxsize=8)
def _encoded_rules(table: RuleTable) -> Tuple[Tuple[bytes, bytes], ...]:
    return tuple(
        (entry.pattern.encode("utf-8"), entry.replacement.encode("utf-8"))
        for entry in table
    )


def apply_table(data: bytes, table: RuleTable = DEFAULT_RULE_TABLE) -> bytes:
    """Run each rule over the whole string, in table order."""
    for pattern, replacement in _encoded_rules(table):
        data = apply_rule(data, pattern, replacement)
    return data


# ─────────────────────────────────────────────
# Pipeline
# ─────────────────────────────────────────────

def _as_bytes(raw: Union[str, bytes, bytearray, None]) -> bytes:
    if raw is None:
        return b""
    if isinstance(raw, str):
        # surrogatepass keeps lone surrogates as bytes instead of raising
        return raw.encode("utf-8", errors="surrogatepass")
    return bytes(raw)


def normalize_bytes(raw: Optional[bytes]) -> bytes:
    """
    Byte-exact pipeline. Overlong or surrogate sequences in ``raw`` survive
    into the output; use ``normalize`` when a valid string is required.
    """
    if not raw:
        return b""
    return apply_table(strip_stress_markers(raw), DEFAULT_RULE_TABLE)


def normalize(raw: Union[str, bytes, None]) -> str:
    """
    Convert a raw espeak phoneme transcription into normalized phonemes.

    Examples:
        "ˈa^ɪl"      → "Il"
        "t^ʃæt^s"    → "ʧæʦ"
        "ɔː and"     → "ɔɹ ænd"
        b"a\\x80b"    → "a\\ufffdb"
    """
    data = _as_bytes(raw)
    if not data:
        return ""
    return normalize_bytes(data).decode("utf-8", errors="replace")


class PhonemeNormalizer:
    """
    Configurable phoneme normalization pipeline.

    Usage:
        pn = PhonemeNormalizer()
        pn("ðə kˈæt sˈæt ˈɔːn ðə mˈæt")
        # → "ðə kæt sæt ɔɹn ðə mæt"
    """

    def __init__(
        self,
        rule_table: RuleTable = DEFAULT_RULE_TABLE,
        strip_stress: bool = True,
    ):
        self.rule_table: RuleTable = tuple(RuleEntry(*entry) for entry in rule_table)
        self.config = {"strip_stress": strip_stress, "rule_count": len(self.rule_table)}

    def __call__(self, phonemes: Union[str, bytes, None]) -> str:
        return self.process(phonemes)

    def process(self, phonemes: Union[str, bytes, None]) -> str:
        normalized, _ = self.process_with_metadata(phonemes)
        return normalized

    def process_with_metadata(
        self, phonemes: Union[str, bytes, None]
    ) -> Tuple[str, Dict[str, int]]:
        data = _as_bytes(phonemes)
        metadata = {
            "input_length": len(data),
            "output_length": 0,
            "stress_markers_removed": 0,
            "replacement_characters": 0,
            "rules_applied": 0,
        }
        if not data:
            return "", metadata

        markers = STRESS_MARKERS if self.config["strip_stress"] else frozenset()
        data, removed, replaced = _filter_code_points(data, markers)
        metadata["stress_markers_removed"] = removed
        metadata["replacement_characters"] = replaced

        for pattern, replacement in _encoded_rules(self.rule_table):
            rewritten = apply_rule(data, pattern, replacement)
            if rewritten != data:
                metadata["rules_applied"] += 1
            data = rewritten

        metadata["output_length"] = len(data)
        logger.debug("Phoneme normalization metadata: %s", metadata)
        return data.decode("utf-8", errors="replace"), metadata


# --- End File: phonemes.py ---
