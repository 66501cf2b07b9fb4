"""
Synthetic license for organizations without a stored license.

Every tenant is fully entitled, so the stand-in grants the whole catalog and
never expires. Its data map carries the same shape as an authority payload;
only the empty key tells it apart.
"""

import uuid
from typing import Optional, Sequence
from datetime import datetime

from .catalog import ALL_FEATURES, catalog_as_data
from .models import Feature, License, OPEN_ENDED, utcnow

SYNTHETIC_LICENSE_ID = uuid.UUID(int=0)
SYNTHETIC_PLAN_NAME = "cloud"
SYNTHETIC_STATUS = "VALID"
SYNTHETIC_STATE = "ACTIVE"


def synthesize(organization_id: uuid.UUID,
               features: Sequence[Feature] = ALL_FEATURES,
               now: Optional[datetime] = None) -> License:
    now = now or utcnow()
    stamp = now.isoformat()
    data = {
        "status": SYNTHETIC_STATUS,
        "state": SYNTHETIC_STATE,
        "platform": "CLOUD",
        "created_at": stamp,
        "updated_at": stamp,
        "plan": {
            "name": SYNTHETIC_PLAN_NAME,
            "is_active": True,
            "description": "",
            "created_at": stamp,
            "updated_at": stamp,
        },
        "plan_id": "",
        "free_until": "",
        "valid_from": 0,
        "valid_until": OPEN_ENDED,
        "event_queue": {
            "event": "",
            "status": "",
            "scheduled_at": "",
            "created_at": stamp,
            "updated_at": stamp,
        },
        "features": catalog_as_data(features),
    }

    return License(
        id=SYNTHETIC_LICENSE_ID,
        key="",
        organization_id=organization_id,
        plan_name=SYNTHETIC_PLAN_NAME,
        status=SYNTHETIC_STATUS,
        state=SYNTHETIC_STATE,
        valid_from=0,
        valid_until=OPEN_ENDED,
        features=tuple(features),
        data=data,
        created_at=now,
        updated_at=now,
        last_validated_at=now
    )
