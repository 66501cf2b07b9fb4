"""
Licensing service for the access layer.
"""

import uuid
from typing import List, Optional

from fastapi import Depends, Header, Response

from shared.base_service import BaseService
from shared.config import LicensingConfig
from shared.errors import InvalidInputError
from shared.logging import set_organization_context
from shared.retry import RetryConfig

from .flags import ConfigFlagEvaluator, FlagEvaluator
from .licenses.models import Feature, GettableSubscription, PostableLicense, PostableSubscription
from .persistence.postgres import PostgresLicenseStore
from .persistence.store import LicenseStore
from .service import LicensingService
from .upstream.client import EntitlementAuthorityClient


async def organization_id_header(x_organization_id: Optional[str] = Header(None)) -> uuid.UUID:
    """Organization the request acts for, from the X-Organization-Id header."""
    if not x_organization_id:
        raise InvalidInputError("X-Organization-Id header is missing", details={"header": "X-Organization-Id"})
    try:
        organization_id = uuid.UUID(x_organization_id)
    except ValueError:
        raise InvalidInputError(
            "X-Organization-Id header is not a valid uuid",
            details={"header": "X-Organization-Id"}
        ) from None

    set_organization_context(str(organization_id))
    return organization_id


class LicensingAPI(BaseService):
    """HTTP surface of the licensing service."""

    def __init__(self,
                 config: Optional[LicensingConfig] = None,
                 store: Optional[LicenseStore] = None,
                 authority: Optional[EntitlementAuthorityClient] = None,
                 flag_evaluator: Optional[FlagEvaluator] = None):
        super().__init__(config)

        self.store = store if store is not None else PostgresLicenseStore(self.config.postgres_dsn)
        if authority is None:
            authority = EntitlementAuthorityClient(
                self.config.authority_url,
                timeout=self.config.authority_timeout_seconds,
                retry_config=RetryConfig(max_attempts=self.config.authority_max_attempts),
                metrics=self.metrics,
                api_key_header=self.config.authority_api_key_header
            )
        if flag_evaluator is None:
            flag_evaluator = ConfigFlagEvaluator(
                self.config.feature_flags,
                self.config.organization_feature_flags
            )

        self.licensing = LicensingService(
            store=self.store,
            authority=authority,
            flag_evaluator=flag_evaluator,
            dot_metrics_enabled=self.config.dot_metrics_enabled,
            metrics=self.metrics
        )

        self._setup_licensing_routes()

    def _setup_licensing_routes(self):
        """Set up licensing-specific routes."""

        @self.app.post("/api/v3/licenses", status_code=202)
        async def activate_license(body: PostableLicense,
                                   organization_id: uuid.UUID = Depends(organization_id_header)):
            """Activate a license key for the organization."""
            await self.licensing.activate(organization_id, body.key)
            return {"status": "accepted"}

        @self.app.get("/api/v3/licenses/active")
        async def get_active_license(organization_id: uuid.UUID = Depends(organization_id_header)):
            """The license in force, or the synthetic license."""
            license = await self.licensing.get_active(organization_id)
            return license.to_gettable()

        @self.app.put("/api/v3/licenses", status_code=204)
        async def refresh_license(organization_id: uuid.UUID = Depends(organization_id_header)):
            await self.licensing.refresh(organization_id)
            return Response(status_code=204)

        @self.app.post("/api/v1/checkout", status_code=201, response_model=GettableSubscription)
        async def checkout(body: PostableSubscription,
                           organization_id: uuid.UUID = Depends(organization_id_header)):
            return await self.licensing.checkout(organization_id, body)

        @self.app.post("/api/v1/portal", status_code=201, response_model=GettableSubscription)
        async def portal(body: PostableSubscription,
                         organization_id: uuid.UUID = Depends(organization_id_header)):
            return await self.licensing.portal(organization_id, body)

        @self.app.get("/api/v1/features", response_model=List[Feature])
        async def get_feature_flags(organization_id: uuid.UUID = Depends(organization_id_header)):
            return await self.licensing.get_feature_flags(organization_id)

    async def _check_dependencies(self):
        """Check licensing service dependencies."""
        dependencies = {}
        health_check = getattr(self.store, "health_check", None)
        if health_check is not None:
            dependencies["postgres"] = "ok" if await health_check() else "error"
        return dependencies

    async def start(self):
        """Start licensing service components."""
        if isinstance(self.store, PostgresLicenseStore):
            await self.store.start()
        await self.licensing.start()
        self.logger.info("Licensing service started")

    async def stop(self):
        """Stop licensing service components."""
        await self.licensing.stop()
        if isinstance(self.store, PostgresLicenseStore):
            await self.store.stop()
        self.logger.info("Licensing service stopped")


def create_app():
    """Create licensing service application."""
    service = LicensingAPI()
    return service.app


if __name__ == "__main__":
    service = LicensingAPI()
    service.run()
