"""
JLS Signature Engine

Verifies detached compact signatures with the algorithm pinned by the
trusted issuer key. The algorithm declared in a document is untrusted
metadata: it must match, it never selects anything.

Engines:
- RsaPkcs1Engine: RSASSA-PKCS1-v1_5 (RS256 / RS384 / RS512), cryptography
- Ed25519Engine: EdDSA over Ed25519, PyNaCl
"""

import hmac
from abc import ABC, abstractmethod
from typing import Dict, Optional, Type

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from nacl.exceptions import BadSignatureError

from .errors import SignatureError
from .keys import PublicKey

ED25519_SIGNATURE_BYTES = 64


class SignatureEngine(ABC):
    """Verification for one public key and its single pinned algorithm."""

    def __init__(self, public_key: PublicKey):
        self._public_key = public_key

    @property
    def algorithm(self) -> str:
        return self._public_key.algorithm

    @property
    def public_key(self) -> PublicKey:
        return self._public_key

    def accepts(self, declared_algorithm: Optional[str]) -> bool:
        """
        Whether a document-declared algorithm matches the pinned one.

        Anything that is not exactly the key's algorithm string is
        rejected, including missing or non-string values.
        """
        if not isinstance(declared_algorithm, str):
            return False
        return hmac.compare_digest(declared_algorithm.encode("utf-8"),
                                   self.algorithm.encode("utf-8"))

    @abstractmethod
    def verify(self, signing_input: bytes, signature: bytes) -> bool:
        """
        Verify a detached signature over signing_input.

        Returns:
            True if the signature is valid, False if it does not match

        Raises:
            SignatureError: If the signature is malformed for this algorithm
        """


class RsaPkcs1Engine(SignatureEngine):
    """RSASSA-PKCS1-v1_5 with the SHA-2 hash named by the key's algorithm."""

    HASHES: Dict[str, Type[hashes.HashAlgorithm]] = {
        "RS256": hashes.SHA256,
        "RS384": hashes.SHA384,
        "RS512": hashes.SHA512,
    }

    def __init__(self, public_key: PublicKey):
        super().__init__(public_key)
        if public_key.algorithm not in self.HASHES:
            raise ValueError(f"RSA engine cannot verify {public_key.algorithm}")
        self._hash = self.HASHES[public_key.algorithm]
        self._signature_length = (public_key.key_size + 7) // 8

    def verify(self, signing_input: bytes, signature: bytes) -> bool:
        if len(signature) != self._signature_length:
            raise SignatureError(
                f"{self.algorithm} signature must be {self._signature_length} bytes, "
                f"got {len(signature)}"
            )
        try:
            self._public_key.key.verify(signature, signing_input, padding.PKCS1v15(), self._hash())
            return True
        except InvalidSignature:
            return False


class Ed25519Engine(SignatureEngine):
    """EdDSA over Ed25519."""

    def verify(self, signing_input: bytes, signature: bytes) -> bool:
        if len(signature) != ED25519_SIGNATURE_BYTES:
            raise SignatureError(
                f"EdDSA signature must be {ED25519_SIGNATURE_BYTES} bytes, got {len(signature)}"
            )
        try:
            self._public_key.key.verify(signing_input, signature)
            return True
        except BadSignatureError:
            return False


ENGINE_TYPES: Dict[str, Type[SignatureEngine]] = {
    "RSA": RsaPkcs1Engine,
    "OKP": Ed25519Engine,
}


def engine_for(public_key: PublicKey) -> SignatureEngine:
    """Select the engine from the trusted key's type only."""
    engine_cls = ENGINE_TYPES.get(public_key.key_type)
    if engine_cls is None:
        raise ValueError(f"No signature engine for key type {public_key.key_type}")
    return engine_cls(public_key)


def signing_input(protected: str, payload: str) -> bytes:
    """
    Reconstruct the JWS signing input.

    The signature covers the encoded strings joined by '.', not the
    decoded JSON.
    """
    return f"{protected}.{payload}".encode("utf-8", "surrogatepass")
