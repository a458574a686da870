"""Field element helpers for Starknet values.

Starknet returns every value as a field element (felt) rendered as a hex
string. This module converts between those strings, Python ints and the
fixed-width ``0x`` + 64 hex form used in storage keys, computes entry point
and event selectors, and decodes the string encodings contracts use for
``name``, ``symbol`` and token URIs:

- Cairo 0 short string: one felt holding up to 31 ASCII bytes
- Cairo 0 felt array: ``[len, felt_1, ..., felt_len]`` of short strings
- Cairo 1 ByteArray: ``[n_full, word_1, ..., word_n, pending_word, pending_len]``
"""

from typing import Sequence

from eth_utils import keccak

FELT_HEX_WIDTH = 64
MASK_250 = 2**250 - 1
BYTES_PER_WORD = 31

Felt = int | str


def to_int(value: Felt) -> int:
    """Parse a felt given as int, ``0x`` hex string or decimal string."""
    if isinstance(value, bool):
        raise TypeError("felt cannot be a bool")
    if isinstance(value, int):
        return value
    text = value.strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text)


def format_felt(value: Felt) -> str:
    """Render a felt as ``0x`` followed by 64 zero-padded lowercase hex chars."""
    return f"0x{to_int(value):0{FELT_HEX_WIDTH}x}"


ZERO_FELT = format_felt(0)


def get_selector_from_name(name: str) -> int:
    """Compute the Starknet selector (keccak-256 truncated to 250 bits)."""
    return int.from_bytes(keccak(text=name), "big") & MASK_250


def decode_short_string(value: Felt) -> str:
    """Decode a felt holding a Cairo short string."""
    number = to_int(value)
    if number == 0:
        return ""
    raw = number.to_bytes((number.bit_length() + 7) // 8, "big")
    return raw.replace(b"\x00", b"").decode("utf-8", errors="ignore")


def _decode_byte_array(words: list[int]) -> str:
    full_count = words[0]
    full_words = words[1 : 1 + full_count]
    pending_word = words[1 + full_count]
    pending_len = words[2 + full_count]

    raw = b"".join(word.to_bytes(BYTES_PER_WORD, "big") for word in full_words)
    if pending_len:
        raw += pending_word.to_bytes(pending_len, "big")
    return raw.decode("utf-8", errors="ignore")


def decode_string(words: Sequence[Felt]) -> str:
    """Decode a contract call result into a string.

    The layout is detected from the length prefix. A length-prefixed felt
    array wins over a ByteArray when both would match.
    """
    values = [to_int(word) for word in words]
    if not values:
        return ""

    if len(values) == 1:
        return decode_short_string(values[0])

    if values[0] == len(values) - 1:
        return "".join(decode_short_string(v) for v in values[1:])

    if len(values) >= 3 and values[0] == len(values) - 3 and values[-1] < BYTES_PER_WORD:
        try:
            return _decode_byte_array(values)
        except OverflowError:
            pass

    return "".join(decode_short_string(v) for v in values)
