"""
JLS Verification Algorithm

Given a trusted issuer key (at construction) and a candidate license
document (per call), produces the signature-backed License or a typed
failure. A verifier holds no mutable state and can be shared across
threads.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from . import codec
from .errors import (
    AlgorithmMismatchError,
    DecodeError,
    InvalidSignatureError,
    LicenseExpiredError,
    MalformedPayloadError,
    PayloadMismatchError,
    SignatureError,
    VerificationError,
    VerificationFailure,
)
from .envelope import VerifiableLicense
from .keys import PublicKey, load_public_key
from .license import License
from .logging_config import audit_log
from .signing import SignatureEngine, engine_for
from .util import ensure_aware, format_rfc3339, utc_now

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class VerificationResult:
    """Non-raising outcome of a verification: a license or a failure kind."""
    license: Optional[License] = None
    failure: Optional[VerificationFailure] = None
    reason: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def is_valid(self) -> bool:
        return self.failure is None and self.license is not None

    def to_dict(self) -> Dict[str, Any]:
        if self.is_valid():
            return {"valid": True, "license": self.license.to_dict()}
        return {
            "valid": False,
            "failure": self.failure.value,
            "reason": self.reason,
            "details": self.details,
        }

    @classmethod
    def valid(cls, license: License) -> 'VerificationResult':
        return cls(license=license)

    @classmethod
    def invalid(cls, error: VerificationError) -> 'VerificationResult':
        return cls(failure=error.kind, reason=error.reason, details=dict(error.details))


class LicenseVerifier:
    """
    License verifier bound to one issuer public key.

    Checks performed by verify(), all of which must pass:
    1. Document shape (claimed license + flattened JWS)
    2. Protected header algorithm equals the key's pinned algorithm
    3. Signature over "protected.payload" under the issuer key
    4. Signed payload decodes to a License
    5. Decoded license equals the claimed license
    6. Expiration strictly after the verification time
    """

    def __init__(
        self,
        public_key_jwk: Any,
        clock: Optional[Clock] = None,
        min_rsa_bits: Optional[int] = None
    ):
        """
        Initialize verifier.

        Args:
            public_key_jwk: Issuer public key as a parsed JWK object
            clock: Source of the current time (default: UTC wall clock)
            min_rsa_bits: Smallest RSA modulus accepted

        Raises:
            UnsupportedKeyTypeError: Key type/algorithm not supported
            MalformedKeyError: Required key members missing or invalid
        """
        self._public_key = load_public_key(public_key_jwk, min_rsa_bits=min_rsa_bits)
        self._engine: SignatureEngine = engine_for(self._public_key)
        self._clock: Clock = clock or utc_now
        audit_log.verifier_initialized(
            self._public_key.algorithm, self._public_key.key_type, self._public_key.key_id
        )

    @property
    def public_key(self) -> PublicKey:
        return self._public_key

    @property
    def algorithm(self) -> str:
        return self._engine.algorithm

    def verify(self, document: Any, verification_time: Optional[datetime] = None) -> License:
        """
        Verify a license document.

        Args:
            document: Parsed JSON with 'license' and 'licenseValidation'
            verification_time: Time to check expiration against
                (default: the verifier's clock)

        Returns:
            The License decoded from the signed payload (never the
            caller-claimed copy)

        Raises:
            VerificationError: One subclass per failure kind
        """
        claimed_id = _claimed_license_id(document)
        try:
            license = self._verify(document, verification_time)
        except VerificationError as e:
            audit_log.verification_failed(e.kind.value, e.reason, license_id=claimed_id)
            if e.kind in (VerificationFailure.ALGORITHM_MISMATCH,
                          VerificationFailure.PAYLOAD_MISMATCH):
                details = {"license_id": claimed_id, **e.details}
                audit_log.security_event(e.kind.value.lower(), severity="high", **details)
            raise

        audit_log.verification_succeeded(str(license.id), format_rfc3339(license.expiration_date))
        return license

    def check(self, document: Any, verification_time: Optional[datetime] = None) -> VerificationResult:
        """Verify without raising; returns a VerificationResult."""
        try:
            return VerificationResult.valid(self.verify(document, verification_time))
        except VerificationError as e:
            return VerificationResult.invalid(e)

    def _verify(self, document: Any, verification_time: Optional[datetime]) -> License:
        # Step 1: Parse claimed license and envelope
        verifiable = VerifiableLicense.from_dict(document)
        envelope = verifiable.license_validation

        # Step 2: A readable header must declare the pinned algorithm
        declared = envelope.declared_algorithm()
        if declared is not None and not self._engine.accepts(declared):
            raise AlgorithmMismatchError(
                f"protected header declares {declared!r}, key requires {self.algorithm!r}",
                {"declared_algorithm": declared, "key_algorithm": self.algorithm}
            )

        # Step 3: Signature over the encoded protected header and payload
        try:
            signature = envelope.signature_bytes()
            valid = self._engine.verify(envelope.signing_input(), signature)
        except (DecodeError, SignatureError) as e:
            raise InvalidSignatureError(f"malformed signature: {e}") from e
        if not valid:
            raise InvalidSignatureError("signature does not match the issuer key")

        # A valid signature over a header that does not name the pinned
        # algorithm is still rejected
        if declared is None:
            raise AlgorithmMismatchError(
                "protected header does not declare an algorithm",
                {"key_algorithm": self.algorithm}
            )

        # Step 4: Decode the signed payload
        try:
            decoded = codec.decode(envelope.payload)
        except DecodeError as e:
            raise MalformedPayloadError(f"signed payload is not a license: {e}") from e

        # Step 5: Claimed license must be the signed license
        if decoded != verifiable.license:
            raise PayloadMismatchError(
                "claimed license differs from the signed payload",
                {"signed_license_id": str(decoded.id)}
            )

        # Step 6: Expiration
        now = ensure_aware(verification_time if verification_time is not None else self._clock())
        if decoded.is_expired(now):
            raise LicenseExpiredError(
                f"license expired at {format_rfc3339(decoded.expiration_date)}",
                {
                    "expiration_date": format_rfc3339(decoded.expiration_date),
                    "verification_time": format_rfc3339(now),
                }
            )

        return decoded


def _claimed_license_id(document: Any) -> Optional[str]:
    """Best-effort id for logs only; never trusted."""
    if isinstance(document, dict) and isinstance(document.get("license"), dict):
        value = document["license"].get("id")
        if isinstance(value, str):
            return value[:64]
    return None


def verify_license(
    public_key_jwk: Any,
    document: Any,
    now: Optional[datetime] = None
) -> License:
    """
    Convenience function to verify a single license document.

    Builds a throwaway verifier; long-lived callers should construct one
    LicenseVerifier and reuse it.
    """
    verifier = LicenseVerifier(public_key_jwk)
    return verifier.verify(document, verification_time=now)
