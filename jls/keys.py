"""
Issuer key handling for JLS.

Parses JWK-shaped public keys (RFC 7517) into an immutable PublicKey that
pins the verification algorithm. Supported:
- kty RSA with alg RS256 / RS384 / RS512 (cryptography)
- kty OKP, crv Ed25519, alg EdDSA (PyNaCl)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey, RSAPublicNumbers
from nacl.signing import VerifyKey

from . import config
from .errors import DecodeError, MalformedKeyError, UnsupportedKeyTypeError
from .util import b64url_decode, b64url_encode

logger = logging.getLogger(__name__)

RSA_ALGORITHMS = ("RS256", "RS384", "RS512")
OKP_ALGORITHMS = ("EdDSA",)
ED25519_KEY_BYTES = 32


@dataclass(frozen=True)
class PublicKey:
    """Issuer public key plus the single algorithm it verifies."""
    key_type: str
    algorithm: str
    key: Any = field(repr=False)
    key_size: int
    key_id: Optional[str] = None

    def to_jwk(self) -> Dict[str, Any]:
        """Public JWK members."""
        jwk: Dict[str, Any] = {"kty": self.key_type, "alg": self.algorithm}
        if self.key_type == "RSA":
            numbers = self.key.public_numbers()
            jwk["n"] = b64url_encode(_int_to_bytes(numbers.n))
            jwk["e"] = b64url_encode(_int_to_bytes(numbers.e))
        else:
            jwk["crv"] = "Ed25519"
            jwk["x"] = b64url_encode(bytes(self.key))
        if self.key_id:
            jwk["kid"] = self.key_id
        return jwk

    @classmethod
    def from_jwk(cls, jwk: Any, min_rsa_bits: Optional[int] = None) -> 'PublicKey':
        """
        Parse a JWK into a PublicKey.

        Args:
            jwk: Parsed JWK JSON object
            min_rsa_bits: Smallest RSA modulus accepted
                (default: config.MIN_RSA_KEY_BITS)

        Raises:
            MalformedKeyError: Required members missing or invalid
            UnsupportedKeyTypeError: Key type, curve, algorithm, size or
                usage not supported for license verification
        """
        if not isinstance(jwk, Mapping):
            raise MalformedKeyError(f"key must be a JSON object, got {type(jwk).__name__}")

        kty = jwk.get("kty")
        alg = jwk.get("alg")
        if not isinstance(kty, str):
            raise MalformedKeyError("missing or invalid 'kty'")
        if not isinstance(alg, str):
            raise MalformedKeyError("missing or invalid 'alg'")

        _check_usage(jwk)

        kid = jwk.get("kid")
        if kid is not None and not isinstance(kid, str):
            raise MalformedKeyError("'kid' must be a string")

        if kty == "RSA":
            return cls._from_rsa_jwk(jwk, alg, kid, min_rsa_bits)
        if kty == "OKP":
            return cls._from_okp_jwk(jwk, alg, kid)
        raise UnsupportedKeyTypeError(f"key type {kty!r} is not supported")

    @classmethod
    def _from_rsa_jwk(cls, jwk: Mapping, alg: str, kid: Optional[str],
                      min_rsa_bits: Optional[int]) -> 'PublicKey':
        if alg not in RSA_ALGORITHMS:
            raise UnsupportedKeyTypeError(f"algorithm {alg!r} is not supported for RSA keys")

        n = _b64url_uint(jwk, "n")
        e = _b64url_uint(jwk, "e")
        try:
            rsa_key: RSAPublicKey = RSAPublicNumbers(e, n).public_key()
        except ValueError as ex:
            raise MalformedKeyError(f"invalid RSA public key: {ex}") from ex

        min_bits = config.MIN_RSA_KEY_BITS if min_rsa_bits is None else min_rsa_bits
        if rsa_key.key_size < min_bits:
            raise UnsupportedKeyTypeError(
                f"RSA key of {rsa_key.key_size} bits is below the {min_bits}-bit minimum"
            )
        return cls(key_type="RSA", algorithm=alg, key=rsa_key,
                   key_size=rsa_key.key_size, key_id=kid)

    @classmethod
    def _from_okp_jwk(cls, jwk: Mapping, alg: str, kid: Optional[str]) -> 'PublicKey':
        crv = jwk.get("crv")
        if not isinstance(crv, str):
            raise MalformedKeyError("missing or invalid 'crv'")
        if crv != "Ed25519":
            raise UnsupportedKeyTypeError(f"curve {crv!r} is not supported")
        if alg not in OKP_ALGORITHMS:
            raise UnsupportedKeyTypeError(f"algorithm {alg!r} is not supported for Ed25519 keys")

        x = _b64url_member(jwk, "x")
        if len(x) != ED25519_KEY_BYTES:
            raise MalformedKeyError(f"Ed25519 'x' must be {ED25519_KEY_BYTES} bytes, got {len(x)}")
        return cls(key_type="OKP", algorithm=alg, key=VerifyKey(x),
                   key_size=ED25519_KEY_BYTES * 8, key_id=kid)


def _check_usage(jwk: Mapping) -> None:
    use = jwk.get("use")
    if use is not None and use != "sig":
        raise UnsupportedKeyTypeError(f"key use {use!r} is not 'sig'")
    key_ops = jwk.get("key_ops")
    if key_ops is not None:
        if not isinstance(key_ops, list):
            raise MalformedKeyError("'key_ops' must be an array")
        if "verify" not in key_ops:
            raise UnsupportedKeyTypeError("key_ops does not allow 'verify'")


def _b64url_member(jwk: Mapping, name: str) -> bytes:
    value = jwk.get(name)
    if not isinstance(value, str) or not value:
        raise MalformedKeyError(f"missing or invalid {name!r}")
    try:
        return b64url_decode(value)
    except DecodeError as e:
        raise MalformedKeyError(f"{name!r} is not base64url: {e}") from e


def _b64url_uint(jwk: Mapping, name: str) -> int:
    return int.from_bytes(_b64url_member(jwk, name), "big")


def _int_to_bytes(value: int) -> bytes:
    return value.to_bytes((value.bit_length() + 7) // 8 or 1, "big")


def load_public_key(jwk: Any, min_rsa_bits: Optional[int] = None) -> PublicKey:
    """Convenience wrapper around PublicKey.from_jwk with logging."""
    public_key = PublicKey.from_jwk(jwk, min_rsa_bits=min_rsa_bits)
    logger.debug(
        "Loaded %s public key (alg=%s, bits=%d, kid=%s)",
        public_key.key_type, public_key.algorithm, public_key.key_size, public_key.key_id
    )
    return public_key
