"""
License store contract.
"""

import uuid
from typing import List, Protocol

from ..licenses.models import StorableLicense


class LicenseStore(Protocol):
    """Persistence for StorableLicense rows.

    ``get_all`` makes no ordering promise. ``create`` must reject a key that
    is already stored, for any organization, with AlreadyExistsError.
    """

    async def create(self, storable: StorableLicense) -> None:
        ...

    async def get(self, organization_id: uuid.UUID, license_id: uuid.UUID) -> StorableLicense:
        """Raises NotFoundError when no such license exists for the organization."""
        ...

    async def get_all(self, organization_id: uuid.UUID) -> List[StorableLicense]:
        ...

    async def update(self, organization_id: uuid.UUID, storable: StorableLicense) -> None:
        ...
