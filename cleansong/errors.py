"""
Relay error taxonomy.

Every failure a request can hit is one of these, so the blueprint can turn it
into ``{"error", "kind", "details"}`` without guessing.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Optional

DEFAULT_DETAILS_LIMIT = 2000


def clamp_text(s: str, limit: int) -> str:
    return (s or "")[:limit]


def clamp_details(details: Any, limit: int = DEFAULT_DETAILS_LIMIT) -> Any:
    """Bound the size of a remote diagnostic payload.

    Strings are cut to ``limit`` characters. Structured values are kept as-is
    when their JSON form fits, otherwise they are replaced by the truncated
    JSON text.
    """
    if details is None:
        return None
    if isinstance(details, (bytes, bytearray)):
        details = bytes(details).decode("utf-8", errors="replace")
    if isinstance(details, str):
        return clamp_text(details, limit)
    try:
        text = json.dumps(details, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return clamp_text(str(details), limit)
    if len(text) <= limit:
        return details
    return clamp_text(text, limit)


class RelayError(Exception):
    kind = "RelayError"
    status_code = 500

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self, limit: int = DEFAULT_DETAILS_LIMIT) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message, "kind": self.kind}
        details = clamp_details(self.details, limit)
        if details is not None:
            body["details"] = details
        return body


class InputError(RelayError):
    """Missing or malformed payload from the caller"""
    kind = "InputError"
    status_code = 400


class ConfigurationError(RelayError):
    """A required credential or setting is absent"""
    kind = "ConfigurationError"


class JobCreationError(RelayError):
    kind = "JobCreationError"


class UploadError(RelayError):
    kind = "UploadError"


class PollTimeoutError(RelayError):
    kind = "PollTimeoutError"


class CompressionFailedError(RelayError):
    """The remote job reported status ``failed``"""
    kind = "CompressionFailedError"


class NoExportUrlError(RelayError):
    kind = "NoExportUrlError"


class DownloadError(RelayError):
    kind = "DownloadError"


class TransportError(RelayError):
    """Network-level failure talking to a remote service"""
    kind = "TransportError"


class InferenceError(RelayError):
    kind = "InferenceError"


class InternalError(RelayError):
    kind = "InternalError"

    def __init__(self, message: str = "Internal Server Error", details: Optional[Any] = None) -> None:
        super().__init__(message, details)
