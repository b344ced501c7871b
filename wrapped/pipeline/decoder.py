"""
Content-transfer-encoding decoders.

Neither decoder raises: malformed input degrades to best-effort text.
"""
from __future__ import annotations

import base64
import binascii
import re

_SOFT_BREAK = re.compile(r"=\r?\n")
_ESCAPE = re.compile(r"=([0-9A-Fa-f]{2})")


def decode_quoted_printable(text: str) -> str:
    """Decode quoted-printable *text*.

    Soft line breaks are joined, then every ``=XX`` escape becomes one byte.
    The whole byte stream is decoded as UTF-8 at the end so that characters
    spread over several escapes (``=C3=A9``) come out whole. An ``=`` not
    followed by two hex digits stays literal.
    """
    text = _SOFT_BREAK.sub("", text)

    out = bytearray()
    pos = 0
    for m in _ESCAPE.finditer(text):
        out += text[pos:m.start()].encode("utf-8")
        out.append(int(m.group(1), 16))
        pos = m.end()
    out += text[pos:].encode("utf-8")

    return out.decode("utf-8", errors="replace")


def decode_base64(text: str) -> str:
    """Decode a base64 body; undecodable input is returned as-is."""
    compact = re.sub(r"\s+", "", text)
    if not compact:
        return text
    try:
        raw = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError):
        return text
    return raw.decode("utf-8", errors="replace")
