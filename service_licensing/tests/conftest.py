"""
Shared fixtures for Licensing Service tests.
"""

import copy
import uuid
from typing import Dict, List, Optional

import pytest

from shared.errors import AlreadyExistsError, NotFoundError
from service_licensing.app.licenses.models import StorableLicense


class InMemoryLicenseStore:
    """LicenseStore keeping rows in a dict, with the same uniqueness rules as the database."""

    def __init__(self):
        self.rows: Dict[uuid.UUID, StorableLicense] = {}
        self.create_error: Optional[Exception] = None

    async def create(self, storable: StorableLicense) -> None:
        if self.create_error is not None:
            raise self.create_error
        if storable.id in self.rows or any(row.key == storable.key for row in self.rows.values()):
            raise AlreadyExistsError("license with the given id or key already exists")
        self.rows[storable.id] = copy.deepcopy(storable)

    async def get(self, organization_id: uuid.UUID, license_id: uuid.UUID) -> StorableLicense:
        row = self.rows.get(license_id)
        if row is None or row.org_id != organization_id:
            raise NotFoundError(f"license {license_id} not found")
        return copy.deepcopy(row)

    async def get_all(self, organization_id: uuid.UUID) -> List[StorableLicense]:
        return [copy.deepcopy(row) for row in self.rows.values() if row.org_id == organization_id]

    async def update(self, organization_id: uuid.UUID, storable: StorableLicense) -> None:
        row = self.rows.get(storable.id)
        if row is None or row.org_id != organization_id:
            raise NotFoundError(f"license {storable.id} not found")
        self.rows[storable.id] = copy.deepcopy(storable)


@pytest.fixture
def organization_id():
    """Tenant used across tests."""
    return uuid.UUID("6a0f3b8e-2d4c-4f71-9c53-1b2e7d9a4c10")


@pytest.fixture
def store():
    return InMemoryLicenseStore()


@pytest.fixture
def make_payload():
    """Factory for authority license payloads.

    Keyword arguments override fields; positional names are dropped.
    """
    def _make(*drop: str, **overrides):
        payload = {
            "id": str(uuid.uuid4()),
            "key": f"key-{uuid.uuid4().hex}",
            "category": "ENTERPRISE",
            "status": "VALID",
            "plan": {"name": "ENTERPRISE"},
            "state": "active",
            "free_until": "2025-01-31T10:00:00Z",
            "valid_from": 1700000000,
            "valid_until": -1,
        }
        payload.update(overrides)
        for name in drop:
            payload.pop(name, None)
        return payload

    return _make
