"""
JLS: JSON Licensing Scheme

Version: 0.1.0
License: MIT

Verifies software licenses encoded as signed JSON documents. A document
carries a human-readable license body next to a flattened JWS whose
payload is the issuer's canonical encoding of that same body:

    {
      "license": {"id": ..., "expirationDate": ..., "customData": {...}},
      "licenseValidation": {"payload": ..., "protected": ..., "signature": ...}
    }

A license is returned only if the signature verifies under the trusted
issuer key with the key's own algorithm, the signed payload equals the
claimed body, and the license has not expired.

Usage:
    from jls import LicenseVerifier, VerificationError

    verifier = LicenseVerifier(issuer_jwk)      # once per process

    try:
        license = verifier.verify(document)     # per license
    except VerificationError as e:
        print(e.kind, e.reason)
    else:
        owner = license.custom_data["owner"]
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Canonical codec
from .canonicalization import canonicalize, canonicalize_str
from . import codec

# Model
from .license import License, create_license
from .envelope import SignedEnvelope, VerifiableLicense

# Keys and signatures
from .keys import PublicKey, load_public_key
from .signing import (
    SignatureEngine,
    RsaPkcs1Engine,
    Ed25519Engine,
    engine_for,
    signing_input,
)

# Verifier
from .verifier import (
    LicenseVerifier,
    VerificationResult,
    verify_license,
)

# Errors
from .errors import (
    JLSError,
    DecodeError,
    SignatureError,
    InitError,
    InitFailure,
    UnsupportedKeyTypeError,
    MalformedKeyError,
    VerificationError,
    VerificationFailure,
    MalformedDocumentError,
    AlgorithmMismatchError,
    InvalidSignatureError,
    MalformedPayloadError,
    PayloadMismatchError,
    LicenseExpiredError,
)


__all__ = [
    # Version
    "__version__",

    # Codec
    "canonicalize",
    "canonicalize_str",
    "codec",

    # Model
    "License",
    "create_license",
    "SignedEnvelope",
    "VerifiableLicense",

    # Keys and signatures
    "PublicKey",
    "load_public_key",
    "SignatureEngine",
    "RsaPkcs1Engine",
    "Ed25519Engine",
    "engine_for",
    "signing_input",

    # Verifier
    "LicenseVerifier",
    "VerificationResult",
    "verify_license",

    # Errors
    "JLSError",
    "DecodeError",
    "SignatureError",
    "InitError",
    "InitFailure",
    "UnsupportedKeyTypeError",
    "MalformedKeyError",
    "VerificationError",
    "VerificationFailure",
    "MalformedDocumentError",
    "AlgorithmMismatchError",
    "InvalidSignatureError",
    "MalformedPayloadError",
    "PayloadMismatchError",
    "LicenseExpiredError",
]
