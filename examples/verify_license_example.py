#!/usr/bin/env python3
"""
JLS Example - Verifying a License at Application Startup

This example loads the issuer public key once, verifies a license
document and reacts to each failure kind the way an application
typically would.

Run with: python examples/verify_license_example.py [license.json] [issuer.jwk.json]
"""

import json
import sys
from datetime import datetime, timezone
from pathlib import Path

from jls import (
    InitError,
    LicenseVerifier,
    VerificationFailure,
)
from jls.logging_config import configure_logging, set_correlation_id

VECTORS = Path(__file__).resolve().parent.parent / "tests" / "vectors"


def load(path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def main():
    license_path = sys.argv[1] if len(sys.argv) > 1 else VECTORS / "valid_license.json"
    key_path = sys.argv[2] if len(sys.argv) > 2 else VECTORS / "issuer_rs512.jwk.json"

    configure_logging("INFO", json_format=False)
    set_correlation_id()

    print("=" * 60)
    print("JLS License Verification")
    print("=" * 60)

    # Step 1: Build the verifier once from the trusted issuer key
    try:
        verifier = LicenseVerifier(load(key_path))
    except InitError as e:
        print(f"Issuer key rejected ({e.kind.value}): {e.reason}")
        return 2
    print(f"\n[1] Verifier ready: {verifier.algorithm}, {verifier.public_key.key_size}-bit key")

    document = load(license_path)

    # Step 2: Verify now, and at a time before the sample license expired
    for label, at in (
        ("now", None),
        ("2024-09-01", datetime(2024, 9, 1, tzinfo=timezone.utc)),
    ):
        result = verifier.check(document, verification_time=at)
        print(f"\n[2] Verification at {label}:")
        if result.is_valid():
            license = result.license
            print(f"    ✓ License {license.id}")
            print(f"      expires: {license.expiration_date.isoformat()}")
            print(f"      customData: {json.dumps(license.custom_data)}")
        elif result.failure == VerificationFailure.EXPIRED:
            print(f"    ✗ Expired: {result.reason} (ask the customer to renew)")
        elif result.failure in (VerificationFailure.PAYLOAD_MISMATCH,
                                VerificationFailure.ALGORITHM_MISMATCH,
                                VerificationFailure.INVALID_SIGNATURE):
            print(f"    ✗ Tampered license ({result.failure.value}): {result.reason}")
        else:
            print(f"    ✗ Unreadable license ({result.failure.value}): {result.reason}")

    # Step 3: Edit the visible claim and keep the signature
    tampered = json.loads(json.dumps(document))
    tampered["license"]["customData"] = {"owner": "Mallory"}
    result = verifier.check(tampered, verification_time=datetime(2024, 9, 1, tzinfo=timezone.utc))
    print(f"\n[3] Edited claim: {result.failure.value if result.failure else 'VALID'}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
