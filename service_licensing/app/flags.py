"""
Dynamic feature flags.

Boolean flags evaluated per organization at request time, independent of
licensing. Unknown flags evaluate to False.
"""

import uuid
from typing import Dict, Mapping, Optional, Protocol

from shared.logging import get_logger

USE_SPAN_METRICS = "use_span_metrics"


class FlagEvaluator(Protocol):
    async def boolean_or_empty(self, flag: str, organization_id: uuid.UUID) -> bool:
        ...


class ConfigFlagEvaluator:
    """Evaluates flags from configuration: global defaults plus per-organization overrides."""

    def __init__(self, defaults: Optional[Mapping[str, bool]] = None,
                 overrides: Optional[Mapping[str, Mapping[str, bool]]] = None):
        self.defaults: Dict[str, bool] = dict(defaults or {})
        self.overrides: Dict[str, Dict[str, bool]] = {
            org_id.lower(): dict(flags) for org_id, flags in (overrides or {}).items()
        }
        self.logger = get_logger("licensing.flags")

    async def boolean_or_empty(self, flag: str, organization_id: uuid.UUID) -> bool:
        organization_flags = self.overrides.get(str(organization_id), {})
        if flag in organization_flags:
            value = organization_flags[flag]
        else:
            value = self.defaults.get(flag, False)

        self.logger.debug("Flag evaluated", flag=flag, organization_id=str(organization_id), value=value)
        return bool(value)
