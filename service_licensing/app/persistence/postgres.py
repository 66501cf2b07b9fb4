"""
PostgreSQL persistence layer for licenses.
"""

import json
import uuid
from typing import List, Optional

import asyncpg

from shared.errors import AlreadyExistsError, InternalError, NotFoundError
from shared.logging import get_logger
from ..licenses.models import StorableLicense, utcnow


class PostgresLicenseStore:
    """asyncpg-backed LicenseStore."""

    def __init__(self, dsn: str):
        self.dsn = dsn
        self.logger = get_logger("licensing.persistence.postgres")
        self.pool: Optional[asyncpg.Pool] = None

    async def start(self):
        """Open the pool and make sure the schema exists."""
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=2,
                max_size=10,
                command_timeout=30
            )
            await self._create_tables()
            self.logger.info("PostgreSQL persistence started")

        except (OSError, asyncpg.PostgresError) as e:
            self.logger.error("Failed to start PostgreSQL persistence", error=str(e))
            raise InternalError("failed to start license store", details={"error": str(e)}) from e

    async def stop(self):
        if self.pool:
            await self.pool.close()
            self.logger.info("PostgreSQL persistence stopped")

    async def _create_tables(self):
        async with self.pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS licenses (
                    id UUID PRIMARY KEY,
                    key TEXT NOT NULL UNIQUE,
                    data TEXT NOT NULL,
                    created_at TIMESTAMP WITH TIME ZONE NOT NULL,
                    updated_at TIMESTAMP WITH TIME ZONE NOT NULL,
                    last_validated_at TIMESTAMP WITH TIME ZONE NOT NULL,
                    org_id UUID NOT NULL
                );
            """)
            await conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_licenses_org ON licenses(org_id);
            """)

    async def create(self, storable: StorableLicense) -> None:
        try:
            async with self.pool.acquire() as conn:
                await conn.execute("""
                    INSERT INTO licenses (
                        id, key, data, created_at, updated_at, last_validated_at, org_id
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7)
                """,
                    storable.id, storable.key, json.dumps(storable.data),
                    storable.created_at, storable.updated_at, storable.last_validated_at,
                    storable.org_id
                )
        except asyncpg.UniqueViolationError as e:
            self.logger.warning("License already exists", license_id=str(storable.id),
                                organization_id=str(storable.org_id))
            raise AlreadyExistsError(
                "license with the given id or key already exists",
                details={"license_id": str(storable.id)}
            ) from e

        self.logger.info("License created", license_id=str(storable.id),
                         organization_id=str(storable.org_id))

    async def get(self, organization_id: uuid.UUID, license_id: uuid.UUID) -> StorableLicense:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow("""
                SELECT * FROM licenses WHERE org_id = $1 AND id = $2
            """, organization_id, license_id)

        if not row:
            raise NotFoundError(
                f"license {license_id} not found for the organization {organization_id}",
                details={"license_id": str(license_id), "organization_id": str(organization_id)}
            )
        return self._row_to_storable(row)

    async def get_all(self, organization_id: uuid.UUID) -> List[StorableLicense]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch("""
                SELECT * FROM licenses WHERE org_id = $1
            """, organization_id)

        return [self._row_to_storable(row) for row in rows]

    async def update(self, organization_id: uuid.UUID, storable: StorableLicense) -> None:
        """Refresh data and timestamps of an existing row; identity never changes."""
        storable.updated_at = utcnow()
        async with self.pool.acquire() as conn:
            result = await conn.execute("""
                UPDATE licenses
                SET data = $3, updated_at = $4, last_validated_at = $5
                WHERE org_id = $1 AND id = $2
            """,
                organization_id, storable.id, json.dumps(storable.data),
                storable.updated_at, storable.last_validated_at
            )

        if result != "UPDATE 1":
            raise NotFoundError(
                f"license {storable.id} not found for the organization {organization_id}",
                details={"license_id": str(storable.id), "organization_id": str(organization_id)}
            )
        self.logger.info("License updated", license_id=str(storable.id),
                         organization_id=str(organization_id))

    def _row_to_storable(self, row) -> StorableLicense:
        return StorableLicense(
            id=row['id'],
            key=row['key'],
            data=json.loads(row['data']),
            org_id=row['org_id'],
            created_at=row['created_at'],
            updated_at=row['updated_at'],
            last_validated_at=row['last_validated_at']
        )

    async def health_check(self) -> bool:
        if self.pool is None:
            return False
        try:
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
                return True
        except (OSError, asyncpg.PostgresError) as e:
            self.logger.warning("License store health check failed", error=str(e))
            return False
