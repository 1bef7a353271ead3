from typing import Mapping, Optional, Protocol

from .config import env_flag


class FeatureFlagSource(Protocol):
    """Anything that can answer whether a named feature is on."""

    def is_enabled(self, flag_name: str) -> bool:
        ...


class StaticFeatureFlags:
    """Feature flags backed by a fixed mapping."""

    def __init__(self, flags: Optional[Mapping[str, bool]] = None):
        self._flags = dict(flags or {})

    def is_enabled(self, flag_name: str) -> bool:
        return bool(self._flags.get(flag_name, False))


class EnvFeatureFlags:
    """
    Feature flags read from the environment on every call.

    "calendar-cache" is looked up as FEATURE_CALENDAR_CACHE.
    """

    def __init__(self, prefix: str = "FEATURE_"):
        self._prefix = prefix

    def variable_name(self, flag_name: str) -> str:
        return self._prefix + flag_name.upper().replace("-", "_")

    def is_enabled(self, flag_name: str) -> bool:
        return env_flag(self.variable_name(flag_name), False)
