"""
Plan-and-toggle entitlement axis.
"""

from dataclasses import dataclass
from typing import Optional

from ..catalog.models import Plan
from ..catalog.plans import PlanCatalog
from .toggles import TenantToggles, ToggleStore


@dataclass(frozen=True)
class FeatureUsability:
    """Both halves of ``is_usable`` for one feature."""
    feature_key: str
    entitled: bool
    enabled: bool
    required_plan: Optional[Plan]

    @property
    def usable(self) -> bool:
        return self.entitled and self.enabled


class EntitlementResolver:
    """Composes the plan catalog with the toggle store. Holds no state of its own."""

    def __init__(self, plans: PlanCatalog, toggles: ToggleStore):
        self.plans = plans
        self.toggles = toggles

    def is_entitled(self, tenant_plan: Plan, feature_key: str) -> bool:
        required = self.plans.required_plan(feature_key)
        return required is None or self.plans.at_least(tenant_plan, required)

    def explain(self, tenant_id: str, tenant_plan: Plan, feature_key: str,
                toggles: Optional[TenantToggles] = None) -> FeatureUsability:
        # Toggle lookup always runs so unknown keys fail loud even when the plan denies
        enabled = self.toggles.effective_enabled(tenant_id, feature_key, toggles)
        return FeatureUsability(
            feature_key=feature_key,
            entitled=self.is_entitled(tenant_plan, feature_key),
            enabled=enabled,
            required_plan=self.plans.required_plan(feature_key),
        )

    def is_usable(self, tenant_id: str, tenant_plan: Plan, feature_key: str,
                  toggles: Optional[TenantToggles] = None) -> bool:
        return self.explain(tenant_id, tenant_plan, feature_key, toggles).usable
