"""
JLS Canonical Codec

Converts between a License and the exact bytes carried as the signed
payload: issuer-ordered compact JSON, framed as base64url without
padding. The issuer's form is a fixed external contract, pinned by the
golden vectors in the test suite.
"""

from typing import Union

from .canonicalization import canonical_value, dumps_compact, parse_json
from .errors import DecodeError
from .license import License
from .util import b64url_decode, b64url_encode, format_rfc3339


def license_json(license: License) -> bytes:
    """
    Issuer JSON for a license, before base64url framing.

    Members in the order id, expirationDate, customData; customData keys
    sorted at every depth.
    """
    body = {
        "id": str(license.id),
        "expirationDate": format_rfc3339(license.expiration_date),
        "customData": canonical_value(license.custom_data),
    }
    return dumps_compact(body).encode('utf-8')


def encode(license: License) -> bytes:
    """Encode a License into its signed payload form (ASCII base64url bytes)."""
    return b64url_encode(license_json(license)).encode('ascii')


def encode_str(license: License) -> str:
    """Return the payload encoding as a string."""
    return encode(license).decode('ascii')


def decode(data: Union[bytes, str]) -> License:
    """
    Decode a signed payload back into a License.

    Raises:
        DecodeError: On invalid base64url framing, invalid JSON, or a JSON
            value that does not match the License shape
    """
    raw = b64url_decode(data)
    try:
        parsed = parse_json(raw)
    except ValueError as e:
        raise DecodeError(f"payload is not valid JSON: {e}") from e
    return License.from_dict(parsed)
