"""
License payload parsing.

Turns the loosely typed JSON object served by the entitlement authority (or
kept in storage) into a License. Required fields are validated up front with
pydantic models and reported one field at a time as InvalidInputError;
optional fields fall back to defaults without surfacing an error.
"""

import json
import math
import re
import uuid
from datetime import datetime
from typing import Any, Dict, Optional, Sequence, Type, TypeVar, Union

from pydantic import BaseModel, StrictStr, ValidationError

from shared.errors import InternalError, InvalidInputError
from .catalog import ALL_FEATURES, catalog_as_data
from .models import Feature, License, StorableLicense, ZERO_TIME, utcnow


ModelT = TypeVar("ModelT", bound=BaseModel)

_RFC3339 = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})$"
)

_TYPE_NAMES = {
    "string_type": "string",
    "model_type": "object",
    "model_attributes_type": "object",
    "dict_type": "object",
}


class _LicenseIdentity(BaseModel):
    id: StrictStr
    key: StrictStr


class _Plan(BaseModel):
    name: StrictStr


class _LicenseBody(BaseModel):
    status: StrictStr
    plan: _Plan


def _validate(model: Type[ModelT], data: Dict[str, Any]) -> ModelT:
    """Validate ``data`` against ``model``, reporting the first offending field."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"])
        if error["type"] == "missing":
            message = f"{field} key is missing"
        else:
            expected = _TYPE_NAMES.get(error["type"], error["type"])
            message = f"{field} key is not a valid {expected}"
        raise InvalidInputError(message, details={"field": field}) from None


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def _decode(raw: Union[bytes, str]) -> Dict[str, Any]:
    try:
        data = json.loads(raw, parse_constant=_reject_constant)
    except ValueError as e:
        raise InternalError("failed to unmarshal license data", details={"error": str(e)}) from e
    if not isinstance(data, dict):
        raise InternalError("failed to unmarshal license data", details={"error": "payload is not an object"})
    return data


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC3339 date-time; the offset is mandatory."""
    if not _RFC3339.match(value):
        raise ValueError(f"not an RFC3339 date-time: {value!r}")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _optional_str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


def _optional_epoch(data: Dict[str, Any], key: str) -> int:
    # 0 doubles as "absent"; the selector relies on valid_from == 0 meaning exactly that
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return int(value)


def _optional_time(data: Dict[str, Any], key: str) -> datetime:
    value = data.get(key)
    if not isinstance(value, str):
        return ZERO_TIME
    try:
        return parse_rfc3339(value)
    except ValueError:
        return ZERO_TIME


def _parse_uuid(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise InvalidInputError("id key is not a valid uuid", details={"field": "id"}) from None


def _build(data: Dict[str, Any], features: Sequence[Feature], **attributes: Any) -> License:
    body = _validate(_LicenseBody, data)
    data["features"] = catalog_as_data(features)

    return License(
        data=data,
        plan_name=body.plan.name,
        status=body.status,
        state=_optional_str(data, "state"),
        free_until=_optional_time(data, "free_until"),
        valid_from=_optional_epoch(data, "valid_from"),
        valid_until=_optional_epoch(data, "valid_until"),
        features=tuple(features),
        **attributes
    )


def parse(raw: Union[bytes, str], organization_id: uuid.UUID,
          features: Sequence[Feature] = ALL_FEATURES,
          now: Optional[datetime] = None) -> License:
    """Parse an authority payload into a License owned by ``organization_id``.

    ``id`` and ``key`` are promoted to typed attributes and removed from the
    residual data map. The full feature catalog is attached whatever the
    payload says about entitlements.

    Raises:
        InternalError: the payload is not a JSON object.
        InvalidInputError: a required field is missing or mistyped.
    """
    data = _decode(raw)
    identity = _validate(_LicenseIdentity, data)
    license_id = _parse_uuid(identity.id)
    del data["id"]
    del data["key"]

    now = now or utcnow()
    return _build(
        data,
        features,
        id=license_id,
        key=identity.key,
        organization_id=organization_id,
        created_at=now,
        updated_at=now,
        last_validated_at=now
    )


def parse_from_stored(storable: StorableLicense,
                      features: Sequence[Feature] = ALL_FEATURES) -> License:
    """Rebuild a License from its persisted projection.

    Identity and timestamps come from the stored record; the stored data map
    is copied, never modified.
    """
    data = dict(storable.data)
    data.pop("id", None)
    data.pop("key", None)

    return _build(
        data,
        features,
        id=storable.id,
        key=storable.key,
        organization_id=storable.org_id,
        created_at=storable.created_at,
        updated_at=storable.updated_at,
        last_validated_at=storable.last_validated_at
    )


def apply_payload(license: License, raw: Union[bytes, str],
                  features: Sequence[Feature] = ALL_FEATURES,
                  now: Optional[datetime] = None) -> License:
    """Refresh ``license`` in place from a fresh authority payload.

    The payload is validated exactly as in ``parse``. Identity (id, key,
    organization) and ``created_at`` are kept; data, plan, status, validity
    window and features are replaced and the update/validation times stamped.
    On failure the license is left untouched.
    """
    now = now or utcnow()
    fresh = parse(raw, license.organization_id, features, now=now)

    license.data = fresh.data
    license.plan_name = fresh.plan_name
    license.status = fresh.status
    license.state = fresh.state
    license.free_until = fresh.free_until
    license.valid_from = fresh.valid_from
    license.valid_until = fresh.valid_until
    license.features = fresh.features
    license.updated_at = now
    license.last_validated_at = now
    return license
