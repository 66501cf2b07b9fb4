"""
Unit tests for the feature catalog and the synthetic license.
"""

import uuid
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from service_licensing.app.licenses.catalog import ALL_FEATURES, FeatureKey, catalog_as_data
from service_licensing.app.licenses.models import Feature, OPEN_ENDED
from service_licensing.app.licenses.synthetic import (
    SYNTHETIC_LICENSE_ID, SYNTHETIC_PLAN_NAME, synthesize
)


class TestCatalog:
    """Test cases for the feature catalog."""

    def test_every_feature_active_and_unlimited(self):
        assert len(ALL_FEATURES) == len(FeatureKey)
        for feature in ALL_FEATURES:
            assert feature.active is True
            assert feature.usage == 0
            assert feature.usage_limit == -1
            assert feature.route == ""

    def test_names(self):
        assert [f.name for f in ALL_FEATURES] == [
            "sso", "onboarding", "chat_support", "gateway",
            "premium_support", "anomaly_detection", "dot_metrics_enabled",
        ]

    def test_features_immutable(self):
        with pytest.raises(ValidationError):
            ALL_FEATURES[0].active = False

    def test_as_data(self):
        data = catalog_as_data()

        assert data[0] == {"name": "sso", "active": True, "usage": 0, "usage_limit": -1, "route": ""}
        data[0]["active"] = False
        assert ALL_FEATURES[0].active is True


class TestSynthesize:
    """Test cases for synthesize."""

    def test_shape(self, organization_id):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)

        license = synthesize(organization_id, now=now)

        assert license.id == SYNTHETIC_LICENSE_ID == uuid.UUID(int=0)
        assert license.key == ""
        assert license.is_synthetic
        assert license.organization_id == organization_id
        assert license.plan_name == SYNTHETIC_PLAN_NAME
        assert license.status == "VALID"
        assert license.valid_from == 0
        assert license.valid_until == OPEN_ENDED
        assert license.features == ALL_FEATURES
        assert license.created_at == now

    def test_data_map(self, organization_id):
        license = synthesize(organization_id)

        assert license.data["plan"]["name"] == "cloud"
        assert license.data["status"] == "VALID"
        assert license.data["valid_until"] == -1
        assert license.data["features"] == catalog_as_data()
        assert "id" not in license.data
        assert "key" not in license.data

    def test_custom_catalog(self, organization_id):
        features = (Feature(name="sso", active=False),)

        license = synthesize(organization_id, features)

        assert license.features == features
        assert license.data["features"][0]["active"] is False

    def test_gettable_has_empty_key(self, organization_id):
        gettable = synthesize(organization_id).to_gettable()

        assert gettable["key"] == ""
        assert gettable["plan"]["name"] == "cloud"
