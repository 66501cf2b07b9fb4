"""
License data models for the Licensing Service.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Timestamp used when an optional time field is absent or unparseable.
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

# valid_until sentinel for licenses that never expire.
OPEN_ENDED = -1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Feature(BaseModel):
    """A product capability and its entitlement metadata."""

    model_config = ConfigDict(frozen=True)

    name: str
    active: bool = True
    usage: int = 0
    usage_limit: int = OPEN_ENDED
    route: str = ""


@dataclass
class License:
    """Normalized entitlement record.

    ``data`` holds the residual payload; ``id`` and ``key`` live only on the
    typed attributes.
    """
    id: uuid.UUID
    key: str
    organization_id: uuid.UUID
    plan_name: str
    status: str
    state: str = ""
    free_until: datetime = ZERO_TIME
    valid_from: int = 0
    valid_until: int = 0
    features: Tuple[Feature, ...] = ()
    data: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    last_validated_at: datetime = field(default_factory=utcnow)

    @property
    def is_synthetic(self) -> bool:
        """An empty key means there is no real upstream entitlement behind this record."""
        return self.key == ""

    def is_valid_at(self, now: int) -> bool:
        return self.valid_until == OPEN_ENDED or self.valid_until > now

    def to_gettable(self) -> Dict[str, Any]:
        """API view: the residual payload with the key put back."""
        gettable = dict(self.data)
        gettable["key"] = self.key
        return gettable


@dataclass
class StorableLicense:
    """Persistence projection of a License."""
    id: uuid.UUID
    key: str
    data: Dict[str, Any]
    org_id: uuid.UUID
    last_validated_at: datetime = field(default_factory=utcnow)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def from_license(cls, license: License) -> "StorableLicense":
        return cls(
            id=license.id,
            key=license.key,
            data=dict(license.data),
            org_id=license.organization_id,
            last_validated_at=license.last_validated_at,
            created_at=license.created_at,
            updated_at=license.updated_at
        )


def license_stats(license: License) -> Dict[str, Any]:
    """Observability summary of a license, suitable for structured logs."""
    return {
        "license.id": str(license.id),
        "license.plan.name": license.plan_name,
        "license.state.name": license.state,
        "license.free_until.time": license.free_until.astimezone(timezone.utc).isoformat(),
    }


class PostableLicense(BaseModel):
    """Request model for license activation."""
    key: str = Field(..., description="License key issued by the entitlement authority")

    @field_validator("key")
    @classmethod
    def key_not_empty(cls, value: str) -> str:
        if value == "":
            raise ValueError("license key cannot be empty")
        return value


class PostableSubscription(BaseModel):
    """Request model for checkout and billing-portal sessions."""
    url: str = Field("", description="URL the authority redirects back to")


class GettableSubscription(BaseModel):
    """Response model for checkout and billing-portal sessions."""

    model_config = ConfigDict(populate_by_name=True)

    redirect_url: str = Field(..., serialization_alias="redirectURL")
