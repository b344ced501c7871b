"""
MIME part extraction.

Splits a raw RFC-2822 message into its header map and the first
``text/plain`` and ``text/html`` bodies, decoding transfer encodings.
"""
from __future__ import annotations

import re

from wrapped.pipeline.decoder import decode_base64, decode_quoted_printable
from wrapped.schemas import EmailParts

_BLANK_LINE = re.compile(r"\r?\n\r?\n")
_FOLDED = re.compile(r"\r?\n[ \t]+")
_HEADER_LINE = re.compile(r"^([^:]+):\s*(.*)$")
_BOUNDARY = re.compile(r"boundary=([^\s;]+)", re.IGNORECASE)

_PLAIN_TYPE = re.compile(r"content-type:\s*text/plain", re.IGNORECASE)
_HTML_TYPE = re.compile(r"content-type:\s*text/html", re.IGNORECASE)
_QP = re.compile(r"quoted-printable", re.IGNORECASE)
_B64 = re.compile(r"content-transfer-encoding:\s*base64", re.IGNORECASE)
_DELIMITER_NEWLINE = re.compile(r"\r?\n\Z")


def parse_headers(raw: str) -> dict[str, str]:
    """Parse the header block (everything before the first blank line)."""
    header_section = _BLANK_LINE.split(raw, maxsplit=1)[0]
    unfolded = _FOLDED.sub(" ", header_section)

    headers: dict[str, str] = {}
    for line in re.split(r"\r?\n", unfolded):
        m = _HEADER_LINE.match(line)
        if m:
            headers[m.group(1).lower()] = m.group(2)
    return headers


def _decode_body(header_block: str, body: str) -> str:
    if _QP.search(header_block):
        return decode_quoted_printable(body)
    if _B64.search(header_block):
        return decode_base64(body)
    return body


def _split_part(part: str) -> tuple[str, str] | None:
    """Return ``(part_headers, content)`` or None when there is no body."""
    m = _BLANK_LINE.search(part)
    if not m:
        return None
    content = _DELIMITER_NEWLINE.sub("", part[m.end():])
    return part[:m.start()], content


def extract_parts(raw: str) -> EmailParts:
    """Split *raw* into headers, plain-text body and HTML body.

    Without a ``boundary=`` parameter the message is single-part and the
    whole body is returned as plain text. Otherwise the first part of each
    content type wins; a missing type yields an empty string.
    """
    headers = parse_headers(raw)
    boundaries = [b.strip('"') for b in _BOUNDARY.findall(raw)]

    if not boundaries:
        sections = _BLANK_LINE.split(raw)
        body = "\n\n".join(sections[1:])
        header_block = sections[0]
        return EmailParts(headers=headers, plain_text=_decode_body(header_block, body))

    # every boundary delimits, so nested multipart/alternative parts surface;
    # longest first so a boundary that prefixes another cannot cut it short
    unique = sorted(dict.fromkeys(boundaries), key=len, reverse=True)
    delimiter = "|".join(re.escape(f"--{b}") for b in unique)
    plain_text = ""
    html_text = ""

    for part in re.split(delimiter, raw)[1:]:
        split = _split_part(part)
        if split is None:
            continue
        part_headers, content = split
        if not plain_text and _PLAIN_TYPE.search(part_headers):
            plain_text = _decode_body(part_headers, content)
        elif not html_text and _HTML_TYPE.search(part_headers):
            html_text = _decode_body(part_headers, content)
        if plain_text and html_text:
            break

    return EmailParts(headers=headers, plain_text=plain_text, html_text=html_text)
