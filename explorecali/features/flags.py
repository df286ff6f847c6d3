from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

TOUR_RATINGS = "tour-ratings"
RECOMMENDATIONS = "recommendations"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def env_flag(name: str, default: bool) -> bool:
    """Parse a boolean environment variable, falling back to *default*."""
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return default


def _env_name(flag: str) -> str:
    # "tour-ratings" -> "FEATURES_TOUR_RATINGS"
    return "FEATURES_" + flag.upper().replace("-", "_")


@dataclass(frozen=True)
class FeatureFlags:
    flags: Mapping[str, bool] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> FeatureFlags:
        """Build flags for every known feature; each defaults to enabled."""
        return cls({
            name: env_flag(_env_name(name), True)
            for name in (TOUR_RATINGS, RECOMMENDATIONS)
        })

    def is_enabled(self, name: str) -> bool:
        """Unknown flags are treated as disabled."""
        return self.flags.get(name, False)

    def with_flag(self, name: str, enabled: bool) -> FeatureFlags:
        return FeatureFlags({**self.flags, name: enabled})
