"""
Data URL helpers

Audio crosses the HTTP boundary as ``data:<mime>;base64,<payload>``.
"""
from __future__ import annotations

import base64
import binascii
import mimetypes
from typing import Optional, Tuple

from cleansong.errors import InputError

DEFAULT_INPUT_FORMAT = "mp3"


def parse_data_url(data_url: str) -> Tuple[str, bytes]:
    """Split a data URL into its MIME type and decoded bytes.

    Raises InputError when the value is not a base64 data URL.
    """
    if not isinstance(data_url, str) or not data_url.strip():
        raise InputError("No file provided")
    header, sep, b64 = data_url.strip().partition(",")
    if not sep:
        raise InputError("Invalid file encoding", details="expected data:<mime>;base64,<payload>")

    mime = ""
    if header.startswith("data:"):
        mime = header[len("data:"):].split(";", 1)[0].strip().lower()

    b64 = "".join(b64.split())
    if not b64:
        raise InputError("Invalid file encoding", details="empty payload")
    try:
        raw = base64.b64decode(b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InputError("Invalid file encoding", details=str(e)) from e
    return mime, raw


def to_data_url(data: bytes, mime: str = "audio/mp3") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def input_format(file_type: Optional[str]) -> str:
    """``audio/wav`` -> ``wav``; anything unusable falls back to mp3"""
    subtype = (file_type or "").split("/", 1)[1:] or [""]
    fmt = subtype[0].split(";", 1)[0].strip().lower()
    if fmt in ("mpeg", "mpeg3", "x-mpeg-3"):
        return "mp3"
    if fmt.startswith("x-"):
        fmt = fmt[2:]
    return fmt or DEFAULT_INPUT_FORMAT


def mime_for_path(path: str, default: str = "audio/wav") -> str:
    guessed, _ = mimetypes.guess_type(path)
    return guessed or default
