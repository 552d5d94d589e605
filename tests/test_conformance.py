"""
JLS Conformance Test Suite

The issuer's payload encoding is an external contract: these vectors
pin the exact bytes, the base64url framing and the timestamp form that
a signed payload must reproduce.
"""

import unittest
import uuid
from datetime import datetime, timedelta, timezone

from jls import (
    DecodeError,
    License,
    canonicalize,
    canonicalize_str,
    codec,
    create_license,
)
from jls.canonicalization import MAX_NESTING, parse_json
from jls.util import b64url_decode, b64url_encode, format_rfc3339, parse_rfc3339

from signing_helpers import load_vector

GOLDEN_PAYLOAD = (
    "eyJpZCI6IjBiNWI4OGY1LWEyNjQtNGY5MC04NDA2LTUwYjAxZDk1MTVjOCIsImV4cGlyYXRpb25EYXRl"
    "IjoiMjAyNC0xMC0wMVQwMDowMDowMFoiLCJjdXN0b21EYXRhIjp7Im93bmVyIjoiSm9obiBEb2UifX0"
)
GOLDEN_JSON = (
    b'{"id":"0b5b88f5-a264-4f90-8406-50b01d9515c8",'
    b'"expirationDate":"2024-10-01T00:00:00Z",'
    b'"customData":{"owner":"John Doe"}}'
)
GOLDEN_ID = uuid.UUID("0b5b88f5-a264-4f90-8406-50b01d9515c8")
GOLDEN_EXPIRATION = datetime(2024, 10, 1, tzinfo=timezone.utc)


def nested(depth, leaf="leaf"):
    """Wrap leaf in depth single-element arrays."""
    value = leaf
    for _ in range(depth):
        value = [value]
    return value


class TestCanonicalization(unittest.TestCase):
    """Custom data is serialized with sorted keys and compact separators."""

    def test_key_ordering(self):
        a = {"tier": "pro", "owner": "John Doe", "seats": 5}
        b = {"seats": 5, "tier": "pro", "owner": "John Doe"}
        self.assertEqual(canonicalize(a), canonicalize(b))
        self.assertEqual(canonicalize_str(a), '{"owner":"John Doe","seats":5,"tier":"pro"}')

    def test_nested_objects_sorted(self):
        data = {"b": [{"z": 1, "y": 2}], "a": {"d": None, "c": True}}
        self.assertEqual(canonicalize_str(data), '{"a":{"c":true,"d":null},"b":[{"y":2,"z":1}]}')

    def test_arrays_keep_order(self):
        self.assertEqual(canonicalize_str([3, 1, 2]), "[3,1,2]")

    def test_non_ascii_emitted_raw(self):
        self.assertEqual(canonicalize({"owner": "Jöhn 東京"}), '{"owner":"Jöhn 東京"}'.encode("utf-8"))

    def test_control_characters_escaped(self):
        self.assertEqual(canonicalize_str("a\tb\n\x01"), '"a\\tb\\n\\u0001"')

    def test_json_types_distinguished(self):
        self.assertNotEqual(canonicalize({"v": True}), canonicalize({"v": 1}))
        self.assertNotEqual(canonicalize({"v": 1}), canonicalize({"v": 1.0}))

    def test_non_finite_rejected(self):
        for value in (float("nan"), float("inf"), float("-inf")):
            with self.assertRaises(ValueError):
                canonicalize({"v": value})

    def test_unsupported_types_rejected(self):
        with self.assertRaises(ValueError):
            canonicalize({"v": object()})
        with self.assertRaises(ValueError):
            canonicalize({1: "non-string key"})

    def test_nesting_limit(self):
        self.assertEqual(canonicalize_str(nested(MAX_NESTING)), "[" * MAX_NESTING + '"leaf"' + "]" * MAX_NESTING)
        for depth in (MAX_NESTING + 1, 100000):
            with self.assertRaises(ValueError):
                canonicalize(nested(depth))


class TestStrictJson(unittest.TestCase):

    def test_duplicate_keys_rejected(self):
        with self.assertRaises(ValueError):
            parse_json(b'{"a":1,"a":2}')

    def test_nested_duplicate_keys_rejected(self):
        with self.assertRaises(ValueError):
            parse_json('{"a":{"b":1,"b":1}}')

    def test_non_standard_constants_rejected(self):
        for text in ("NaN", '{"v":Infinity}', "[-Infinity]"):
            with self.assertRaises(ValueError):
                parse_json(text)

    def test_invalid_utf8_rejected(self):
        with self.assertRaises(ValueError):
            parse_json(b'{"a":"\xff"}')

    def test_nesting_limit(self):
        self.assertEqual(parse_json("[" * MAX_NESTING + "]" * MAX_NESTING), nested(MAX_NESTING - 1, []))
        for text in ("[" * (MAX_NESTING + 1) + "]" * (MAX_NESTING + 1),
                     '{"a":' * (MAX_NESTING + 1) + "1" + "}" * (MAX_NESTING + 1)):
            with self.assertRaises(ValueError):
                parse_json(text)

    def test_interpreter_recursion_is_a_value_error(self):
        for text in ("[" * 100000, "[" * 100000 + "]" * 100000):
            with self.assertRaises(ValueError):
                parse_json(text)


class TestBase64Url(unittest.TestCase):
    """Framing is unpadded URL-safe base64 with a single valid spelling."""

    def test_encode_unpadded(self):
        self.assertEqual(b64url_encode(b"A"), "QQ")
        self.assertEqual(b64url_encode(b"\xfb\xff"), "-_8")
        self.assertEqual(b64url_encode(b""), "")

    def test_decode(self):
        self.assertEqual(b64url_decode("QQ"), b"A")
        self.assertEqual(b64url_decode("-_8"), b"\xfb\xff")
        self.assertEqual(b64url_decode(b"QUJD"), b"ABC")
        self.assertEqual(b64url_decode(""), b"")

    def test_padding_rejected(self):
        with self.assertRaises(DecodeError):
            b64url_decode("QQ==")

    def test_standard_alphabet_rejected(self):
        for s in ("+_8", "-/8", "QQ\n", " QQ"):
            with self.assertRaises(DecodeError):
                b64url_decode(s)

    def test_trailing_newline_rejected(self):
        # A newline must not slip past the alphabet check into the decoder
        for s in ("QQ\n", "QUJD\n", b"QUJD\n", "\n", "Q\n"):
            with self.assertRaises(DecodeError):
                b64url_decode(s)

    def test_impossible_length_rejected(self):
        with self.assertRaises(DecodeError):
            b64url_decode("QUJDR")

    def test_non_canonical_trailing_bits_rejected(self):
        # "QR" sets unused low bits; only "QQ" spells b"A"
        with self.assertRaises(DecodeError):
            b64url_decode("QR")

    def test_non_string_rejected(self):
        with self.assertRaises(DecodeError):
            b64url_decode(None)
        with self.assertRaises(DecodeError):
            b64url_decode("QQé")


class TestTimestamps(unittest.TestCase):

    def test_format_whole_seconds(self):
        self.assertEqual(format_rfc3339(GOLDEN_EXPIRATION), "2024-10-01T00:00:00Z")

    def test_format_milliseconds(self):
        dt = datetime(2024, 10, 1, 12, 30, 5, 250000, tzinfo=timezone.utc)
        self.assertEqual(format_rfc3339(dt), "2024-10-01T12:30:05.250Z")

    def test_format_microseconds(self):
        dt = datetime(2024, 10, 1, 12, 30, 5, 250001, tzinfo=timezone.utc)
        self.assertEqual(format_rfc3339(dt), "2024-10-01T12:30:05.250001Z")

    def test_format_normalizes_to_utc(self):
        tz = timezone(timedelta(hours=2))
        self.assertEqual(format_rfc3339(datetime(2024, 10, 1, 2, tzinfo=tz)), "2024-10-01T00:00:00Z")

    def test_format_naive_rejected(self):
        with self.assertRaises(ValueError):
            format_rfc3339(datetime(2024, 10, 1))

    def test_parse_offsets(self):
        self.assertEqual(parse_rfc3339("2024-10-01T02:00:00+02:00"), GOLDEN_EXPIRATION)
        self.assertEqual(parse_rfc3339("2024-09-30T19:00:00-05:00"), GOLDEN_EXPIRATION)
        self.assertEqual(parse_rfc3339("2024-10-01t00:00:00z"), GOLDEN_EXPIRATION)

    def test_parse_truncates_nanoseconds(self):
        dt = parse_rfc3339("2024-10-01T00:00:00.123456789Z")
        self.assertEqual(dt.microsecond, 123456)

    def test_parse_requires_offset(self):
        for s in ("2024-10-01T00:00:00", "2024-10-01", "1727740800", "2024-13-01T00:00:00Z"):
            with self.assertRaises(ValueError):
                parse_rfc3339(s)

    def test_parse_rejects_non_ascii_digits(self):
        for s in ("２０２４-10-01T00:00:00Z", "٢٠٢٤-10-01T00:00:00Z",
                  "2024-10-01T00:00:00.١Z", "2024-10-01T00:00:00+٠٢:00"):
            with self.assertRaises(ValueError):
                parse_rfc3339(s)

    def test_parse_out_of_range_is_a_value_error(self):
        for s in ("9999-12-31T23:59:59-01:00", "0001-01-01T00:00:00+01:00"):
            with self.assertRaises(ValueError):
                parse_rfc3339(s)

    def test_parse_range_edges(self):
        self.assertEqual(parse_rfc3339("9999-12-31T23:59:59Z").year, 9999)
        self.assertEqual(parse_rfc3339("0001-01-01T01:00:00+01:00"), datetime(1, 1, 1, tzinfo=timezone.utc))

    def test_parse_leap_second(self):
        self.assertEqual(
            parse_rfc3339("2016-12-31T23:59:60Z"),
            datetime(2016, 12, 31, 23, 59, 59, 999999, tzinfo=timezone.utc),
        )
        self.assertEqual(
            parse_rfc3339("2016-12-31T23:59:60.5Z"),
            datetime(2016, 12, 31, 23, 59, 59, 999999, tzinfo=timezone.utc),
        )
        with self.assertRaises(ValueError):
            parse_rfc3339("2016-12-31T23:59:61Z")


class TestGoldenPayload(unittest.TestCase):
    """Issuer-produced payload bytes."""

    def setUp(self):
        self.license = License(
            id=GOLDEN_ID,
            expiration_date=GOLDEN_EXPIRATION,
            custom_data={"owner": "John Doe"},
        )

    def test_license_json_bytes(self):
        self.assertEqual(codec.license_json(self.license), GOLDEN_JSON)

    def test_encode_matches_issuer(self):
        self.assertEqual(codec.encode(self.license), GOLDEN_PAYLOAD.encode("ascii"))
        self.assertEqual(codec.encode_str(self.license), GOLDEN_PAYLOAD)

    def test_decode_issuer_payload(self):
        decoded = codec.decode(GOLDEN_PAYLOAD)
        self.assertEqual(decoded, self.license)
        self.assertEqual(decoded, License.from_dict(load_vector("expected_license.json")))

    def test_encode_is_deterministic(self):
        reordered = License.from_dict({
            "customData": {"owner": "John Doe"},
            "expirationDate": "2024-10-01T02:00:00+02:00",
            "id": "0B5B88F5-A264-4F90-8406-50B01D9515C8",
        })
        self.assertEqual(codec.encode_str(reordered), GOLDEN_PAYLOAD)

    def test_nested_custom_data_sorted_in_payload(self):
        license = create_license(
            GOLDEN_EXPIRATION,
            {"b": 1, "a": {"d": 2, "c": 3}},
            license_id=str(GOLDEN_ID),
        )
        self.assertEqual(
            codec.license_json(license),
            b'{"id":"0b5b88f5-a264-4f90-8406-50b01d9515c8",'
            b'"expirationDate":"2024-10-01T00:00:00Z",'
            b'"customData":{"a":{"c":3,"d":2},"b":1}}'
        )


class TestRoundTrip(unittest.TestCase):

    def test_round_trip_preserves_license(self):
        samples = [
            create_license(GOLDEN_EXPIRATION, {"owner": "Jöhn", "features": ["a", "b"], "seats": 10}),
            create_license(GOLDEN_EXPIRATION + timedelta(milliseconds=5), {"nested": {"x": [1, 2.5, None]}}),
            create_license(GOLDEN_EXPIRATION + timedelta(microseconds=7), {}),
            License(id=uuid.uuid4(), expiration_date=GOLDEN_EXPIRATION, custom_data=None),
            License(id=uuid.uuid4(), expiration_date=GOLDEN_EXPIRATION, custom_data=["list", "root"]),
        ]
        for license in samples:
            with self.subTest(license=license):
                self.assertEqual(codec.decode(codec.encode(license)), license)

    def test_reencode_is_stable(self):
        license = create_license(GOLDEN_EXPIRATION, {"z": 0, "a": {"k": "v"}})
        payload = codec.encode_str(license)
        self.assertEqual(codec.encode_str(codec.decode(payload)), payload)


class TestPayloadDecodeErrors(unittest.TestCase):
    """Every malformed payload is a DecodeError, never a partial License."""

    def _payload(self, raw: bytes) -> str:
        return b64url_encode(raw)

    def assertDecodeError(self, payload):
        with self.assertRaises(DecodeError):
            codec.decode(payload)

    def test_invalid_framing(self):
        self.assertDecodeError(GOLDEN_PAYLOAD + "=")
        self.assertDecodeError(GOLDEN_PAYLOAD[:-1] + "+")
        self.assertDecodeError("not base64!")

    def test_not_json(self):
        self.assertDecodeError(self._payload(b"license"))
        self.assertDecodeError(self._payload(b"\xff\xfe"))

    def test_not_an_object(self):
        self.assertDecodeError(self._payload(b'["0b5b88f5-a264-4f90-8406-50b01d9515c8"]'))
        self.assertDecodeError(self._payload(b"null"))

    def test_duplicate_member(self):
        raw = GOLDEN_JSON[:-1] + b',"customData":{"owner":"Mallory"}}'
        self.assertDecodeError(self._payload(raw))

    def test_missing_member(self):
        self.assertDecodeError(self._payload(
            b'{"id":"0b5b88f5-a264-4f90-8406-50b01d9515c8","expirationDate":"2024-10-01T00:00:00Z"}'
        ))

    def test_unknown_member(self):
        self.assertDecodeError(self._payload(GOLDEN_JSON[:-1] + b',"admin":true}'))

    def test_ill_typed_members(self):
        bodies = [
            b'{"id":42,"expirationDate":"2024-10-01T00:00:00Z","customData":{}}',
            b'{"id":"not-a-uuid","expirationDate":"2024-10-01T00:00:00Z","customData":{}}',
            b'{"id":"0b5b88f5-a264-4f90-8406-50b01d9515c8","expirationDate":1727740800,"customData":{}}',
            b'{"id":"0b5b88f5-a264-4f90-8406-50b01d9515c8","expirationDate":"2024-10-01T00:00:00","customData":{}}',
            b'{"id":"0b5b88f5-a264-4f90-8406-50b01d9515c8","expirationDate":"2024-10-01T00:00:00Z","customData":NaN}',
        ]
        for raw in bodies:
            with self.subTest(raw=raw):
                self.assertDecodeError(self._payload(raw))

    def test_out_of_range_expiration(self):
        for stamp in (b"9999-12-31T23:59:59-01:00", b"0001-01-01T00:00:00+01:00"):
            raw = GOLDEN_JSON.replace(b"2024-10-01T00:00:00Z", stamp)
            self.assertDecodeError(self._payload(raw))

    def test_excessive_nesting(self):
        deep = ("[" * MAX_NESTING + "]" * MAX_NESTING).encode("ascii")
        self.assertDecodeError(self._payload(GOLDEN_JSON.replace(b'{"owner":"John Doe"}', deep)))
        self.assertDecodeError(self._payload(b"[" * 100000))
        self.assertDecodeError(self._payload(b'{"id":' * 100000))


if __name__ == "__main__":
    unittest.main()
