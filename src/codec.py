# File: codec.py
# Byte-level UTF-8 helpers used by the phoneme normalization pipeline.

from typing import Iterator, Tuple

REPLACEMENT_CHARACTER = 0xFFFD
MAX_CODE_POINT = 0x10FFFF


# ─────────────────────────────────────────────
# Byte classification
# ─────────────────────────────────────────────

def is_continuation_byte(byte: int) -> bool:
    """True when the byte's top two bits are ``10``."""
    return (byte & 0xC0) == 0x80


def _continuations_ok(data: bytes, start: int, count: int) -> bool:
    # Running off the end of the buffer counts as a bad continuation byte.
    if start + count > len(data):
        return False
    for i in range(start, start + count):
        if not is_continuation_byte(data[i]):
            return False
    return True


# ─────────────────────────────────────────────
# Decode / encode
# ─────────────────────────────────────────────

def decode_code_point(data: bytes, pos: int = 0) -> Tuple[int, int]:
    """
    Decode one code point from ``data`` starting at ``pos``.

    Returns ``(code_point, bytes_consumed)``. Malformed input never raises:
    the result is ``(U+FFFD, 1)`` so the caller resynchronizes on the next byte.

    Examples:
        b"a"            → (0x61, 1)
        b"\\xc9\\xaa"     → (0x26A, 2)
        b"\\x80"         → (0xFFFD, 1)
        b"\\xe2\\x82"     → (0xFFFD, 1)   # truncated 3-byte sequence
    """
    lead = data[pos]

    if lead < 0x80:
        return lead, 1

    if (lead & 0xE0) == 0xC0 and _continuations_ok(data, pos + 1, 1):
        return ((lead & 0x1F) << 6) | (data[pos + 1] & 0x3F), 2

    if (lead & 0xF0) == 0xE0 and _continuations_ok(data, pos + 1, 2):
        return (
            ((lead & 0x0F) << 12)
            | ((data[pos + 1] & 0x3F) << 6)
            | (data[pos + 2] & 0x3F)
        ), 3

    if (lead & 0xF8) == 0xF0 and _continuations_ok(data, pos + 1, 3):
        code_point = (
            ((lead & 0x07) << 18)
            | ((data[pos + 1] & 0x3F) << 12)
            | ((data[pos + 2] & 0x3F) << 6)
            | (data[pos + 3] & 0x3F)
        )
        # F4 90.. and F5-F7 leads would land above U+10FFFF
        if code_point <= MAX_CODE_POINT:
            return code_point, 4

    return REPLACEMENT_CHARACTER, 1


def encode_code_point(code_point: int) -> bytes:
    """Encode a single code point (0 – 0x10FFFF) as UTF-8 bytes."""
    if code_point < 0:
        raise ValueError(f"Negative code point: {code_point}")
    if code_point < 0x80:
        return bytes((code_point,))
    if code_point < 0x800:
        return bytes((
            0xC0 | (code_point >> 6),
            0x80 | (code_point & 0x3F),
        ))
    if code_point < 0x10000:
        return bytes((
            0xE0 | (code_point >> 12),
            0x80 | ((code_point >> 6) & 0x3F),
            0x80 | (code_point & 0x3F),
        ))
    if code_point <= MAX_CODE_POINT:
        return bytes((
            0xF0 | (code_point >> 18),
            0x80 | ((code_point >> 12) & 0x3F),
            0x80 | ((code_point >> 6) & 0x3F),
            0x80 | (code_point & 0x3F),
        ))
    raise ValueError(f"Code point out of range: {code_point:#x}")


ENCODED_REPLACEMENT = encode_code_point(REPLACEMENT_CHARACTER)


def is_malformed(code_point: int, consumed: int) -> bool:
    """True for the ``(U+FFFD, 1)`` recovery result, as opposed to a real U+FFFD."""
    return code_point == REPLACEMENT_CHARACTER and consumed == 1


def iter_code_points(data: bytes, start: int = 0) -> Iterator[Tuple[int, bytes]]:
    """Yield ``(code_point, original_bytes)`` pairs covering ``data`` once."""
    pos = start
    end = len(data)
    while pos < end:
        code_point, consumed = decode_code_point(data, pos)
        yield code_point, data[pos:pos + consumed]
        pos += consumed


# --- End File: codec.py ---
