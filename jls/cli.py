#!/usr/bin/env python3
"""
JLS Command Line Interface

Usage:
    jls verify --key <file> --license <file> [--at <timestamp>] [--json]
    jls decode --license <file>
    jls encode --license <file>
"""

import argparse
import json
import sys

from . import config
from .logging_config import configure_logging, set_correlation_id
from .util import parse_rfc3339

EXIT_VALID = 0
EXIT_INVALID = 1
EXIT_KEY_ERROR = 2


def timestamp(value: str):
    """argparse type for RFC 3339 timestamps."""
    try:
        return parse_rfc3339(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def cmd_verify(args) -> int:
    """Verify a license document against the issuer key."""
    from .errors import InitError
    from .verifier import LicenseVerifier

    key_path = args.key or config.PUBLIC_KEY_PATH
    try:
        verifier = LicenseVerifier(config.load_json(key_path))
    except (OSError, ValueError) as e:
        print(f"✗ Cannot read key {key_path}: {e}", file=sys.stderr)
        return EXIT_KEY_ERROR
    except InitError as e:
        print(f"✗ {e.kind.value}: {e.reason}", file=sys.stderr)
        return EXIT_KEY_ERROR

    try:
        document = config.load_json(args.license)
    except (OSError, ValueError) as e:
        print(f"✗ Cannot read license {args.license}: {e}", file=sys.stderr)
        return EXIT_INVALID

    set_correlation_id()
    result = verifier.check(document, verification_time=args.at)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    elif result.is_valid():
        print(json.dumps(result.license.to_dict(), indent=2))
        print("✓ VALID", file=sys.stderr)
    else:
        print(f"✗ {result.failure.value}: {result.reason}", file=sys.stderr)

    return EXIT_VALID if result.is_valid() else EXIT_INVALID


def cmd_decode(args) -> int:
    """Show the protected header and payload of a document, unverified."""
    from .canonicalization import parse_json
    from .envelope import SignedEnvelope
    from .errors import JLSError
    from .util import b64url_decode

    try:
        document = config.load_json(args.license)
        validation = document.get("licenseValidation") if isinstance(document, dict) else None
        envelope = SignedEnvelope.from_dict(validation)
        header = envelope.protected_header()
        payload = parse_json(b64url_decode(envelope.payload))
    except (JLSError, OSError, ValueError) as e:
        print(f"✗ Cannot decode: {e}", file=sys.stderr)
        return EXIT_INVALID

    print(json.dumps({"protected": header, "payload": payload}, indent=2, ensure_ascii=False))
    print("! UNVERIFIED: contents are not trusted until `jls verify` succeeds", file=sys.stderr)
    return EXIT_VALID


def cmd_encode(args) -> int:
    """Print the canonical payload encoding of a license body."""
    from . import codec
    from .errors import DecodeError
    from .license import License

    try:
        data = config.load_json(args.license)
        if isinstance(data, dict) and "license" in data:
            data = data["license"]
        license = License.from_dict(data)
    except (OSError, ValueError, DecodeError) as e:
        print(f"✗ Invalid license body: {e}", file=sys.stderr)
        return EXIT_INVALID

    if args.json_only:
        print(codec.license_json(license).decode('utf-8'))
    else:
        print(codec.encode_str(license))
    return EXIT_VALID


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jls",
        description="JSON Licensing Scheme verifier",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  jls verify -k issuer.jwk.json -l license.json
  jls verify -k issuer.jwk.json -l license.json --at 2024-09-01T00:00:00Z --json
  jls decode -l license.json
  jls encode -l license_body.json
        """
    )
    parser.add_argument("--log-level", default=config.LOG_LEVEL, type=str.upper,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Log level")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # verify
    verify_parser = subparsers.add_parser("verify", help="Verify a license document")
    verify_parser.add_argument("-k", "--key", help="Issuer public key (JWK) file "
                                                   "(default: JLS_PUBLIC_KEY_PATH)")
    verify_parser.add_argument("-l", "--license", required=True, help="License document JSON file")
    verify_parser.add_argument("--at", type=timestamp, help="Verification time, RFC 3339 (default: now)")
    verify_parser.add_argument("--json", action="store_true", help="Print the result as JSON")

    # decode
    decode_parser = subparsers.add_parser("decode", help="Show header and payload (unverified)")
    decode_parser.add_argument("-l", "--license", required=True, help="License document JSON file")

    # encode
    encode_parser = subparsers.add_parser("encode", help="Canonical payload of a license body")
    encode_parser.add_argument("-l", "--license", required=True, help="License body JSON file")
    encode_parser.add_argument("--json-only", action="store_true",
                               help="Print the canonical JSON instead of base64url")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = "DEBUG" if config.is_debug() else args.log_level
    configure_logging(level, config.use_json_logs(), config.LOG_FILE or None)

    if args.command == "verify":
        return cmd_verify(args)
    elif args.command == "decode":
        return cmd_decode(args)
    elif args.command == "encode":
        return cmd_encode(args)
    else:
        parser.print_help()
        return EXIT_INVALID


if __name__ == "__main__":
    sys.exit(main())
