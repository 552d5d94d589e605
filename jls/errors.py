"""
JLS error taxonomy.

Every failure surfaces as a distinct, inspectable kind so that callers
can tell a tampered signature from an expired license from malformed
input. Nothing here is retryable by the library itself.
"""

from enum import Enum
from typing import Any, Dict, Optional


class JLSError(Exception):
    """Base class for all JLS errors."""


class DecodeError(JLSError):
    """Raised when base64url framing or the license JSON shape is invalid."""


class SignatureError(JLSError):
    """Raised on malformed signature framing (as opposed to a mismatch)."""


# ============================================================
# Verifier construction
# ============================================================

class InitFailure(str, Enum):
    """Reasons a LicenseVerifier cannot be constructed."""
    UNSUPPORTED_KEY_TYPE = "UNSUPPORTED_KEY_TYPE"
    MALFORMED_KEY = "MALFORMED_KEY"


class InitError(JLSError):
    """Raised when the issuer public key cannot back a verifier."""
    kind: InitFailure

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"{self.kind.value}: {reason}")


class UnsupportedKeyTypeError(InitError):
    kind = InitFailure.UNSUPPORTED_KEY_TYPE


class MalformedKeyError(InitError):
    kind = InitFailure.MALFORMED_KEY


# ============================================================
# Verification
# ============================================================

class VerificationFailure(str, Enum):
    """
    Verification failure kinds.

    MALFORMED_DOCUMENT: license or licenseValidation missing/malformed
    ALGORITHM_MISMATCH: protected header algorithm differs from the key's
    INVALID_SIGNATURE: signature did not verify or was badly framed
    MALFORMED_PAYLOAD: signed payload does not decode to a license
    PAYLOAD_MISMATCH: claimed license differs from the signed payload
    EXPIRED: license expiration is not strictly in the future
    """
    MALFORMED_DOCUMENT = "MALFORMED_DOCUMENT"
    ALGORITHM_MISMATCH = "ALGORITHM_MISMATCH"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    MALFORMED_PAYLOAD = "MALFORMED_PAYLOAD"
    PAYLOAD_MISMATCH = "PAYLOAD_MISMATCH"
    EXPIRED = "EXPIRED"


class VerificationError(JLSError):
    """Raised from LicenseVerifier.verify; never accompanied by a license."""
    kind: VerificationFailure

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        self.reason = reason
        self.details = details or {}
        super().__init__(f"{self.kind.value}: {reason}")


class MalformedDocumentError(VerificationError):
    kind = VerificationFailure.MALFORMED_DOCUMENT


class AlgorithmMismatchError(VerificationError):
    kind = VerificationFailure.ALGORITHM_MISMATCH


class InvalidSignatureError(VerificationError):
    kind = VerificationFailure.INVALID_SIGNATURE


class MalformedPayloadError(VerificationError):
    kind = VerificationFailure.MALFORMED_PAYLOAD


class PayloadMismatchError(VerificationError):
    kind = VerificationFailure.PAYLOAD_MISMATCH


class LicenseExpiredError(VerificationError):
    kind = VerificationFailure.EXPIRED
