"""
Capability maps: capability key -> feature keys, capability key -> staff permission.
"""

from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

from shared.errors import UnknownFeatureError
from .models import StaffPermissionKey


class CapabilityMap:
    """Fixed tables linking UI/back-office capability keys to the engine's axes."""

    def __init__(self, features: Mapping[str, Iterable[str]],
                 permissions: Mapping[str, StaffPermissionKey]):
        self._features: Mapping[str, Tuple[str, ...]] = MappingProxyType(
            {key: tuple(feature_keys) for key, feature_keys in features.items()}
        )
        self._permissions: Mapping[str, StaffPermissionKey] = MappingProxyType(
            {key: StaffPermissionKey(permission) for key, permission in permissions.items()}
        )

    def features_for(self, capability_key: str) -> Optional[Tuple[str, ...]]:
        """Mapped feature keys; None for capability keys that are not mapped at all."""
        return self._features.get(capability_key)

    def permission_for(self, capability_key: str) -> Optional[StaffPermissionKey]:
        return self._permissions.get(capability_key)

    def validate(self, registry) -> None:
        """Raise ``UnknownFeatureError`` for the first mapped feature missing from ``registry``."""
        for feature_keys in self._features.values():
            for feature_key in feature_keys:
                if feature_key not in registry:
                    raise UnknownFeatureError(feature_key)
