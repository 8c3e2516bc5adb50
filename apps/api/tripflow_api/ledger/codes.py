"""Check-in code normalization and generation."""

import secrets
from typing import Optional
from urllib.parse import parse_qs, urlparse

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
EVENT_CODE_LENGTH = 8
SCAN_CODE_MIN_LENGTH = 6
SCAN_CODE_MAX_LENGTH = 10


def _extract_code_param(raw: str) -> str:
    """Pull the code query parameter out of a scanned QR payload URL."""
    if "code=" not in raw:
        return raw

    parsed = urlparse(raw)
    values = parse_qs(parsed.query).get("code")
    if values:
        return values[0]

    # Bare "code=XXXX" without a URL in front of it
    return parse_qs(raw.split("?", 1)[-1]).get("code", [raw])[0]


def normalize_code(raw: Optional[str]) -> str:
    """Return the uppercase alphanumeric token for a scanned or typed code.

    Dashes, whitespace and any other separators are dropped. Returns an empty
    string when nothing usable remains.
    """
    if not raw:
        return ""

    candidate = _extract_code_param(raw.strip())
    return "".join(ch for ch in candidate if ch.isascii() and ch.isalnum()).upper()


def validate_code(
    raw: Optional[str],
    min_length: int = SCAN_CODE_MIN_LENGTH,
    max_length: int = SCAN_CODE_MAX_LENGTH,
) -> Optional[str]:
    """Normalize and length-check a code; None means the caller should log InvalidRequest."""
    code = normalize_code(raw)
    if not code or len(code) < min_length or len(code) > max_length:
        return None
    return code


def generate_code(length: int = EVENT_CODE_LENGTH) -> str:
    """Generate a random check-in code from the unambiguous alphabet."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))
