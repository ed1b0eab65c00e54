"""
Read model for the feature settings editor.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..catalog.models import FeatureDefinition, FeatureGroup, Plan
from ..catalog.registry import FeatureRegistry
from .entitlement import EntitlementResolver


@dataclass(frozen=True)
class FeatureState:
    """A feature as shown in the settings editor for one tenant."""
    definition: FeatureDefinition
    enabled: bool
    entitled: bool
    required_plan: Optional[Plan]

    @property
    def usable(self) -> bool:
        return self.enabled and self.entitled


@dataclass(frozen=True)
class FeatureGroupState:
    group: FeatureGroup
    label: str
    features: Tuple[FeatureState, ...]


class FeatureSettingsView:
    """Every feature, grouped in registry order, with the tenant's current state."""

    def __init__(self, registry: FeatureRegistry, entitlements: EntitlementResolver):
        self.registry = registry
        self.entitlements = entitlements

    def groups(self, tenant_id: str, plan: Plan) -> List[FeatureGroupState]:
        toggles = self.entitlements.toggles.snapshot(tenant_id)
        states = []
        for group in self.registry.definitions_by_group():
            features = []
            for definition in group.features:
                result = self.entitlements.explain(tenant_id, plan, definition.key, toggles)
                features.append(FeatureState(
                    definition=definition,
                    enabled=result.enabled,
                    entitled=result.entitled,
                    required_plan=result.required_plan,
                ))
            states.append(FeatureGroupState(group=group.group, label=group.label, features=tuple(features)))
        return states
