"""
JLS license documents.

A verifiable license document carries the human-readable claim next to
a flattened JWS over the canonical payload:

    {
      "license": {"id": ..., "expirationDate": ..., "customData": ...},
      "licenseValidation": {"payload": ..., "protected": ..., "signature": ...}
    }
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .canonicalization import parse_json
from .errors import DecodeError, MalformedDocumentError
from .license import License
from .signing import signing_input
from .util import b64url_decode

ENVELOPE_FIELDS = ("payload", "protected", "signature")


@dataclass(frozen=True)
class SignedEnvelope:
    """Flattened JWS members, each base64url without padding."""
    payload: str
    protected: str
    signature: str

    def signing_input(self) -> bytes:
        return signing_input(self.protected, self.payload)

    def signature_bytes(self) -> bytes:
        """Raises DecodeError on invalid framing."""
        return b64url_decode(self.signature)

    def protected_header(self) -> Optional[Dict[str, Any]]:
        """Decoded protected header, or None if it is unreadable."""
        try:
            header = parse_json(b64url_decode(self.protected))
        except (DecodeError, ValueError):
            return None
        return header if isinstance(header, dict) else None

    def declared_algorithm(self) -> Optional[str]:
        """The untrusted 'alg' from the protected header, if readable."""
        header = self.protected_header()
        if header is None:
            return None
        alg = header.get("alg")
        return alg if isinstance(alg, str) else None

    def to_dict(self) -> Dict[str, str]:
        return {"payload": self.payload, "protected": self.protected, "signature": self.signature}

    @classmethod
    def from_dict(cls, data: Any) -> 'SignedEnvelope':
        if not isinstance(data, dict):
            raise MalformedDocumentError("licenseValidation must be a JSON object")
        missing = [f for f in ENVELOPE_FIELDS if f not in data]
        if missing:
            raise MalformedDocumentError(
                f"licenseValidation is missing {missing}", {"missing": missing}
            )
        for name in ENVELOPE_FIELDS:
            if not isinstance(data[name], str):
                raise MalformedDocumentError(f"licenseValidation.{name} must be a string")
        return cls(payload=data["payload"], protected=data["protected"], signature=data["signature"])


@dataclass(frozen=True)
class VerifiableLicense:
    """The claimed license plus the envelope that should back it."""
    license: License
    license_validation: SignedEnvelope

    def to_dict(self) -> Dict[str, Any]:
        return {
            "license": self.license.to_dict(),
            "licenseValidation": self.license_validation.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> 'VerifiableLicense':
        """
        Parse a caller-supplied document.

        Raises:
            MalformedDocumentError: If either subtree is missing or malformed
        """
        if not isinstance(data, dict):
            raise MalformedDocumentError("document must be a JSON object")
        missing = [f for f in ("license", "licenseValidation") if f not in data]
        if missing:
            raise MalformedDocumentError(f"document is missing {missing}", {"missing": missing})

        try:
            claimed = License.from_dict(data["license"])
        except DecodeError as e:
            raise MalformedDocumentError(f"license is malformed: {e}") from e

        envelope = SignedEnvelope.from_dict(data["licenseValidation"])
        return cls(license=claimed, license_validation=envelope)
