from __future__ import annotations

import secrets


STREAM_KEY_BYTES = 24


def generate_stream_key() -> str:
    return secrets.token_hex(STREAM_KEY_BYTES)


def is_valid_stream_key(value: str) -> bool:
    if len(value) != STREAM_KEY_BYTES * 2:
        return False
    try:
        bytes.fromhex(value)
    except ValueError:
        return False
    return value == value.lower()
