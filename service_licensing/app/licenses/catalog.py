"""
Feature catalog.

Every feature of this product edition is active for every organization. The
catalog is an immutable tuple built once at import; callers that need to add
or change entries copy it first.
"""

from enum import Enum
from typing import Any, Dict, List, Sequence, Tuple

from .models import Feature


class FeatureKey(str, Enum):
    """Known capability identifiers."""
    SSO = "sso"
    ONBOARDING = "onboarding"
    CHAT_SUPPORT = "chat_support"
    GATEWAY = "gateway"
    PREMIUM_SUPPORT = "premium_support"
    ANOMALY_DETECTION = "anomaly_detection"
    DOT_METRICS_ENABLED = "dot_metrics_enabled"


ALL_FEATURES: Tuple[Feature, ...] = tuple(
    Feature(name=key.value, active=True, usage=0, usage_limit=-1, route="")
    for key in FeatureKey
)


def catalog_as_data(features: Sequence[Feature] = ALL_FEATURES) -> List[Dict[str, Any]]:
    """Plain-dict form of the catalog, as written into a license's data map."""
    return [feature.model_dump() for feature in features]
