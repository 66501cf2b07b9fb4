"""
Licensing service facade.

Resolves which license governs an organization and what it may use:

- activate: fetch a payload from the entitlement authority, parse it and
  store it as a new license row.
- get_active: select the active license among the stored rows, or hand out
  the synthetic license when there is none.
- checkout / portal: open billing sessions with the active license's key.
- get_feature_flags: the catalog plus the dynamically evaluated flags.
- update_license: apply a fresh authority payload to a stored row.
- collect: usage stats for telemetry, always empty.

Periodic re-validation does not exist in this edition; validate and refresh
are no-ops.
"""

import time
import uuid
from typing import Any, Callable, Dict, List, Optional, Sequence

from shared.errors import LicensingException, wrap_internal
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .flags import FlagEvaluator, USE_SPAN_METRICS
from .licenses.catalog import ALL_FEATURES, FeatureKey
from .licenses.models import (
    Feature, GettableSubscription, License, PostableSubscription, StorableLicense,
    license_stats
)
from .licenses.parser import apply_payload, parse, parse_from_stored
from .licenses.selector import Found, select_active_from_storables
from .licenses.synthetic import synthesize
from .persistence.store import LicenseStore
from .upstream.client import EntitlementAuthorityClient, redirect_url_from


class LicensingService:
    """Entitlement facade over the store, the authority and the flag evaluator."""

    def __init__(self,
                 store: LicenseStore,
                 authority: EntitlementAuthorityClient,
                 flag_evaluator: FlagEvaluator,
                 catalog: Sequence[Feature] = ALL_FEATURES,
                 dot_metrics_enabled: bool = False,
                 clock: Callable[[], float] = time.time,
                 metrics: Optional[MetricsCollector] = None):
        self.store = store
        self.authority = authority
        self.flag_evaluator = flag_evaluator
        self.catalog = tuple(catalog)
        self.dot_metrics_enabled = dot_metrics_enabled
        self.clock = clock
        self.metrics = metrics
        self.logger = get_logger("licensing.service")

    async def start(self):
        self.logger.debug("Licensing service started")

    async def stop(self):
        self.logger.debug("Licensing service stopped")

    async def validate(self):
        """No-op: licenses are not re-validated against the authority."""

    async def refresh(self, organization_id: uuid.UUID):
        """No-op: licenses are not re-validated against the authority."""

    async def activate(self, organization_id: uuid.UUID, key: str) -> License:
        """Fetch the license for ``key`` and store it for the organization.

        Authority and parse failures surface as InternalError; store errors
        (e.g. AlreadyExistsError for a key activated before) propagate as-is.
        Nothing is recorded unless the store accepts the row.
        """
        try:
            payload = await self.authority.fetch_license(key)
        except LicensingException as e:
            raise wrap_internal(e, "unable to fetch license data with upstream server") from e

        try:
            license = parse(payload, organization_id, self.catalog)
        except LicensingException as e:
            raise wrap_internal(e, "failed to create license entity") from e

        await self.store.create(StorableLicense.from_license(license))

        self.logger.info("License activated", organization_id=str(organization_id), **license_stats(license))
        return license

    async def update_license(self, organization_id: uuid.UUID, license_id: uuid.UUID,
                             payload: bytes) -> License:
        """Apply a fresh authority payload to a stored license.

        The row keeps its id and key. A payload that fails to parse surfaces
        as InternalError and leaves the row unchanged; NotFoundError from the
        store propagates as-is.
        """
        storable = await self.store.get(organization_id, license_id)
        license = parse_from_stored(storable, self.catalog)

        try:
            apply_payload(license, payload, self.catalog)
        except LicensingException as e:
            raise wrap_internal(e, "failed to update license entity") from e

        await self.store.update(organization_id, StorableLicense.from_license(license))

        self.logger.info("License updated", organization_id=str(organization_id), **license_stats(license))
        return license

    async def get_active(self, organization_id: uuid.UUID) -> License:
        """The license in force now; the synthetic license when none is."""
        storables = await self.store.get_all(organization_id)
        selection = select_active_from_storables(storables, organization_id, int(self.clock()))

        if isinstance(selection, Found):
            self._record_resolution("found")
            return selection.license

        self._record_resolution("synthetic")
        self.logger.debug("No active license, using synthetic license", organization_id=str(organization_id))
        return synthesize(organization_id, self.catalog)

    async def checkout(self, organization_id: uuid.UUID,
                       subscription: PostableSubscription) -> GettableSubscription:
        """Open a checkout session. An empty key is sent as-is; the authority decides."""
        license = await self.get_active(organization_id)
        response = await self.authority.fetch_checkout_url(license.key, subscription.model_dump_json().encode())
        return GettableSubscription(redirect_url=redirect_url_from(response))

    async def portal(self, organization_id: uuid.UUID,
                     subscription: PostableSubscription) -> GettableSubscription:
        """Open a billing-portal session. An empty key is sent as-is; the authority decides."""
        license = await self.get_active(organization_id)
        response = await self.authority.fetch_portal_url(license.key, subscription.model_dump_json().encode())
        return GettableSubscription(redirect_url=redirect_url_from(response))

    async def get_feature_flags(self, organization_id: uuid.UUID) -> List[Feature]:
        """Catalog features followed by the dynamic span-metrics flag.

        Works on a fresh list; catalog entries that need a different value are
        replaced by modified copies.
        """
        features = list(self.catalog)

        use_span_metrics = await self.flag_evaluator.boolean_or_empty(USE_SPAN_METRICS, organization_id)
        features.append(Feature(
            name=USE_SPAN_METRICS,
            active=use_span_metrics,
            usage=0,
            usage_limit=-1,
            route=""
        ))

        if self.dot_metrics_enabled:
            features = [
                feature.model_copy(update={"active": True})
                if feature.name == FeatureKey.DOT_METRICS_ENABLED.value else feature
                for feature in features
            ]

        return features

    async def collect(self, organization_id: uuid.UUID) -> Dict[str, Any]:
        """Usage stats for telemetry. Licensing reports none."""
        return {}

    def _record_resolution(self, outcome: str):
        if self.metrics is not None:
            self.metrics.record_license_resolution(outcome)
