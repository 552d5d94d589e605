"""
Utility functions for JLS.

Provides base64url framing and RFC 3339 time helpers shared by the
codec, the key parser and the verifier.
"""

import base64
import binascii
import re
from datetime import datetime, timezone
from typing import Union

from .errors import DecodeError

B64URL_PATTERN = re.compile(r'[A-Za-z0-9_-]*')

RFC3339_PATTERN = re.compile(
    r'([0-9]{4}-[0-9]{2}-[0-9]{2})[Tt ]([0-9]{2}:[0-9]{2}):([0-9]{2})'
    r'(?:\.([0-9]+))?([Zz]|[+-][0-9]{2}:[0-9]{2})'
)


def b64url_encode(b: bytes) -> str:
    """URL-safe base64 encode bytes to string (no padding)."""
    return base64.urlsafe_b64encode(b).rstrip(b'=').decode('ascii')


def b64url_decode(s: Union[str, bytes]) -> bytes:
    """
    Strict URL-safe base64 decode (no padding).

    Rejects padding, whitespace, characters outside the URL-safe
    alphabet and non-canonical encodings whose unused trailing bits are
    set, so distinct strings never decode to the same bytes.

    Raises:
        DecodeError: If the input is not canonical unpadded base64url
    """
    if isinstance(s, bytes):
        try:
            s = s.decode('ascii')
        except UnicodeDecodeError as e:
            raise DecodeError("base64url input is not ASCII") from e
    if not isinstance(s, str):
        raise DecodeError(f"base64url input must be a string, got {type(s).__name__}")
    if not B64URL_PATTERN.fullmatch(s):
        raise DecodeError("base64url input contains characters outside the alphabet")
    if len(s) % 4 == 1:
        raise DecodeError("base64url input has an impossible length")

    # Add padding if needed
    padding = 4 - (len(s) % 4)
    if padding != 4:
        s_padded = s + '=' * padding
    else:
        s_padded = s
    try:
        decoded = base64.urlsafe_b64decode(s_padded.encode('ascii'))
    except binascii.Error as e:
        raise DecodeError(f"invalid base64url input: {e}") from e

    if b64url_encode(decoded) != s:
        raise DecodeError("base64url input is not canonically encoded")
    return decoded


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_rfc3339(dt: datetime) -> str:
    """
    Format an aware datetime as RFC 3339 UTC.

    Fractional seconds are omitted when zero, written with 3 digits for
    whole milliseconds and 6 digits otherwise.
    """
    if dt.tzinfo is None or dt.utcoffset() is None:
        raise ValueError("datetime must be timezone-aware")
    dt = dt.astimezone(timezone.utc)
    base = dt.strftime('%Y-%m-%dT%H:%M:%S')
    micros = dt.microsecond
    if micros == 0:
        return f"{base}Z"
    if micros % 1000 == 0:
        return f"{base}.{micros // 1000:03d}Z"
    return f"{base}.{micros:06d}Z"


def parse_rfc3339(s: str) -> datetime:
    """
    Parse an RFC 3339 timestamp with an explicit offset into aware UTC.

    Fractions beyond microsecond precision are truncated. A leap second
    (":60") maps to the last representable microsecond of its minute.

    Raises:
        ValueError: If the string is not an RFC 3339 timestamp with offset,
            or its UTC value falls outside years 1 to 9999
    """
    if not isinstance(s, str):
        raise ValueError(f"timestamp must be a string, got {type(s).__name__}")
    match = RFC3339_PATTERN.fullmatch(s)
    if not match:
        raise ValueError(f"not an RFC 3339 timestamp with offset: {s!r}")

    date_part, hour_minute, second, fraction, offset = match.groups()
    fraction = (fraction or '').ljust(6, '0')[:6]
    if second == '60':
        second, fraction = '59', '999999'
    if offset in ('Z', 'z'):
        offset = '+00:00'

    dt = datetime.fromisoformat(f"{date_part}T{hour_minute}:{second}.{fraction}{offset}")
    try:
        return dt.astimezone(timezone.utc)
    except OverflowError as e:
        raise ValueError(f"timestamp out of range: {s!r}") from e


def ensure_aware(dt: datetime) -> datetime:
    """Reject naive datetimes; naive 'now' values are ambiguous."""
    if not isinstance(dt, datetime):
        raise TypeError(f"expected datetime, got {type(dt).__name__}")
    if dt.tzinfo is None or dt.utcoffset() is None:
        raise ValueError("datetime must be timezone-aware")
    return dt
