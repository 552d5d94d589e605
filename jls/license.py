"""
JLS License model.

The typed, comparable representation of a license body:
    {"id": <UUID>, "expirationDate": <RFC 3339>, "customData": <JSON>}
"""

import copy
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .canonicalization import canonicalize
from .errors import DecodeError
from .util import ensure_aware, format_rfc3339, parse_rfc3339

LICENSE_FIELDS = ("id", "expirationDate", "customData")


@dataclass(frozen=True, eq=False)
class License:
    """
    A software license.

    Fields:
    - id: Unique license identifier
    - expiration_date: Aware datetime, normalized to UTC
    - custom_data: Arbitrary JSON-compatible value (usually an object)

    Equality is structural over all three fields. custom_data is compared
    by its canonical encoding, so key order does not matter but JSON
    types do (true != 1, 1 != 1.0).
    """
    id: uuid.UUID
    expiration_date: datetime
    custom_data: Any

    def __post_init__(self):
        """Validate and normalize fields."""
        self._validate()
        object.__setattr__(self, "expiration_date", self.expiration_date.astimezone(timezone.utc))
        object.__setattr__(self, "custom_data", copy.deepcopy(self.custom_data))

    def _validate(self):
        if not isinstance(self.id, uuid.UUID):
            raise ValueError(f"Invalid id: must be a UUID, got {type(self.id).__name__}")

        if not isinstance(self.expiration_date, datetime):
            raise ValueError("Invalid expiration_date: must be a datetime")
        if self.expiration_date.tzinfo is None or self.expiration_date.utcoffset() is None:
            raise ValueError("Invalid expiration_date: must carry an explicit offset")
        try:
            self.expiration_date.astimezone(timezone.utc)
        except OverflowError as e:
            raise ValueError("Invalid expiration_date: not representable in UTC") from e

        # Raises ValueError for anything JSON cannot represent
        canonicalize(self.custom_data)

    def _custom_data_key(self) -> bytes:
        return canonicalize(self.custom_data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, License):
            return NotImplemented
        return (
            self.id == other.id
            and self.expiration_date == other.expiration_date
            and self._custom_data_key() == other._custom_data_key()
        )

    def __hash__(self) -> int:
        return hash((self.id, self.expiration_date, self._custom_data_key()))

    def is_expired(self, at: datetime) -> bool:
        """A license is valid only while its expiration is strictly in the future."""
        return not self.expiration_date > ensure_aware(at)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire shape, members in issuer order."""
        return {
            "id": str(self.id),
            "expirationDate": format_rfc3339(self.expiration_date),
            "customData": copy.deepcopy(self.custom_data),
        }

    @classmethod
    def from_dict(cls, data: Any) -> 'License':
        """
        Create a License from its parsed JSON shape.

        Raises:
            DecodeError: If members are missing, unknown or ill-typed
        """
        if not isinstance(data, dict):
            raise DecodeError(f"license must be a JSON object, got {type(data).__name__}")

        missing = [f for f in LICENSE_FIELDS if f not in data]
        if missing:
            raise DecodeError(f"Missing required fields: {missing}")
        unknown = sorted(k for k in data if k not in LICENSE_FIELDS)
        if unknown:
            raise DecodeError(f"Unknown fields: {unknown}")

        raw_id = data["id"]
        if not isinstance(raw_id, str) or not raw_id.isascii():
            raise DecodeError("Invalid id: must be an ASCII string")
        try:
            license_id = uuid.UUID(raw_id)
        except ValueError as e:
            raise DecodeError(f"Invalid id: {raw_id!r} is not a UUID") from e

        try:
            expiration = parse_rfc3339(data["expirationDate"])
        except ValueError as e:
            raise DecodeError(f"Invalid expirationDate: {e}") from e

        try:
            return cls(id=license_id, expiration_date=expiration, custom_data=data["customData"])
        except ValueError as e:
            raise DecodeError(f"Invalid customData: {e}") from e


def create_license(
    expiration_date: datetime,
    custom_data: Optional[Dict[str, Any]] = None,
    license_id: Optional[str] = None
) -> License:
    """
    Convenience function to build a License.

    Args:
        expiration_date: Aware expiration timestamp
        custom_data: License payload for the application (default: {})
        license_id: UUID string (default: random UUID4)
    """
    return License(
        id=uuid.UUID(license_id) if license_id else uuid.uuid4(),
        expiration_date=expiration_date,
        custom_data={} if custom_data is None else custom_data,
    )
