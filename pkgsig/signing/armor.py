"""
Splitting of concatenated ASCII-armored key blocks.

Keyring exports and distribution key files often hold several armored
public keys back to back, sometimes with free text around them. This is
plain text scanning, independent of the OpenPGP parser.
"""
from __future__ import annotations

from typing import List, Union

BEGIN_MARKER = "-----BEGIN PGP PUBLIC KEY BLOCK-----"
END_MARKER = "-----END PGP PUBLIC KEY BLOCK-----"


def _as_text(raw: Union[bytes, bytearray, str]) -> str:
    if isinstance(raw, str):
        return raw
    # latin-1 maps every byte, so binary noise never raises here
    return bytes(raw).decode("latin-1")


def has_armor(raw: Union[bytes, bytearray, str]) -> bool:
    """True if the input contains at least one armor BEGIN marker."""
    return BEGIN_MARKER in _as_text(raw)


def is_probably_binary(raw: Union[bytes, bytearray, str]) -> bool:
    """
    Guess whether raw bytes are a binary OpenPGP packet stream.

    OpenPGP packet headers always have the high bit of the first octet
    set, which never happens for the first character of ASCII text.
    """
    if isinstance(raw, str) or not raw:
        return False
    return bool(raw[0] & 0x80)


def split_armored_blocks(raw: Union[bytes, bytearray, str]) -> List[str]:
    """
    Extract every armored public key block from the input.

    Text outside BEGIN/END pairs is ignored. A BEGIN marker without a
    matching END yields the truncated remainder as a block, so the
    framing error surfaces when that block fails to parse.

    Args:
        raw: Key file content

    Returns:
        Armored blocks, each including its BEGIN and END lines
    """
    text = _as_text(raw)
    blocks = []
    pos = 0

    while True:
        start = text.find(BEGIN_MARKER, pos)
        if start == -1:
            break

        end = text.find(END_MARKER, start + len(BEGIN_MARKER))
        next_start = text.find(BEGIN_MARKER, start + len(BEGIN_MARKER))

        # A second BEGIN before our END means this block was never closed
        if end == -1 or (next_start != -1 and next_start < end):
            stop = next_start if next_start != -1 else len(text)
            blocks.append(text[start:stop].rstrip())
            if next_start == -1:
                break
            pos = next_start
            continue

        stop = end + len(END_MARKER)
        blocks.append(text[start:stop])
        pos = stop

    return blocks
