"""
Response models for the JLS verification service.

Shapes returned by jls.service; FailureDetail carries the typed
verification failure reported with HTTP 403.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, Optional

from .license import License


class LicenseOut(BaseModel):
    id: str
    expirationDate: str
    customData: Any = None

    @classmethod
    def from_license(cls, license: License) -> 'LicenseOut':
        return cls(**license.to_dict())


class VerifyResponse(BaseModel):
    valid: bool = True
    license: LicenseOut


class FailureDetail(BaseModel):
    failure: str
    reason: str
    details: Dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: str
    algorithm: str
    key_id: Optional[str] = None
