"""
Active license selection.

Among all licenses stored for an organization, the active one is the most
recently started license that is still valid:

- a license with ``valid_from == 0`` (never started, or the field was absent)
  is never eligible;
- a license is valid when ``valid_until`` is -1 (open-ended) or lies strictly
  after ``now``;
- among eligible licenses the greatest ``valid_from`` wins, and on equal
  ``valid_from`` the first one encountered is kept.

Selection is start-time based, not row-order based: an expired license is
never picked even if it started last. ``valid_from`` is not compared with
``now``, so an open renewal with a later start wins as soon as it is stored.
"""

import uuid
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from shared.errors import NotFoundError
from shared.logging import get_logger
from .models import License, StorableLicense
from .parser import parse_from_stored


logger = get_logger("licensing.selector")


@dataclass(frozen=True)
class Found:
    license: License


@dataclass(frozen=True)
class Absent:
    organization_id: uuid.UUID

    def raise_for_absence(self):
        raise NotFoundError(
            f"no active license found for the organization {self.organization_id}",
            details={"organization_id": str(self.organization_id)}
        )


Selection = Union[Found, Absent]


def is_eligible(license: License, now: int) -> bool:
    return license.valid_from != 0 and license.is_valid_at(now)


def select_active(licenses: Iterable[License], organization_id: uuid.UUID, now: int) -> Selection:
    """Pick the license in force at ``now`` (epoch seconds) in a single pass."""
    best: Optional[License] = None
    candidates = 0
    for license in licenses:
        candidates += 1
        if not is_eligible(license, now):
            continue
        if best is None or license.valid_from > best.valid_from:
            best = license

    if best is None:
        logger.debug("No eligible license", organization_id=str(organization_id), candidates=candidates)
        return Absent(organization_id)

    logger.debug(
        "Active license selected",
        organization_id=str(organization_id),
        license_id=str(best.id),
        valid_from=best.valid_from,
        candidates=candidates
    )
    return Found(best)


def select_active_from_storables(storables: Iterable[StorableLicense],
                                 organization_id: uuid.UUID, now: int) -> Selection:
    """Parse stored rows and select among them.

    A row that fails to parse aborts the selection with that error.
    """
    return select_active((parse_from_stored(s) for s in storables), organization_id, now)
