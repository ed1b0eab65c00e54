"""
Top-level access resolution shared by menu rendering and route guards.
"""

from typing import Iterable, List, Optional

from shared.logging import get_logger
from ..catalog.capabilities import CapabilityMap
from ..catalog.models import (
    AccessDecision, AccessSubject, DenialReason, NavSection, Plan, SubjectRole,
)
from .entitlement import EntitlementResolver
from .staff import StaffPermissionResolver
from .tenants import TenantStore


class AccessResolver:
    """Single place where the entitlement and staff axes are combined.

    A capability is entitled when it maps to no feature at all, or when any
    of its mapped features is usable (plan and toggle). The result is that
    AND the staff permission check. Capability keys absent from the map are
    treated as unmapped and therefore open; customers are denied outright
    since none of these capabilities belong to the public surface.
    """

    def __init__(self, capabilities: CapabilityMap, entitlements: EntitlementResolver,
                 staff_permissions: StaffPermissionResolver, tenants: TenantStore):
        self.capabilities = capabilities
        self.entitlements = entitlements
        self.staff_permissions = staff_permissions
        self.tenants = tenants
        self.logger = get_logger("entitlements.access")

    def decide(self, subject: AccessSubject, capability_key: str) -> AccessDecision:
        if subject.role == SubjectRole.CUSTOMER:
            return AccessDecision(
                capability_key=capability_key,
                allowed=False,
                entitled=False,
                permitted=False,
                reason=DenialReason.ROLE,
            )

        plan = self.tenants.get_plan(subject.tenant_id)
        feature_keys = self.capabilities.features_for(capability_key)

        entitled = True
        reason: Optional[DenialReason] = None
        required_plan: Optional[Plan] = None

        if feature_keys:
            toggles = self.entitlements.toggles.snapshot(subject.tenant_id)
            results = [
                self.entitlements.explain(subject.tenant_id, plan, feature_key, toggles)
                for feature_key in feature_keys
            ]
            entitled = any(result.usable for result in results)
            if not entitled:
                if any(result.entitled for result in results):
                    reason = DenialReason.DISABLED
                else:
                    reason = DenialReason.PLAN
                    required_plan = self.entitlements.plans.cheapest(
                        result.required_plan for result in results
                    )

        permitted = self.staff_permissions.is_permitted(subject, capability_key)
        if entitled and not permitted:
            reason = DenialReason.PERMISSION

        decision = AccessDecision(
            capability_key=capability_key,
            allowed=entitled and permitted,
            entitled=entitled,
            permitted=permitted,
            reason=reason,
            required_plan=required_plan,
        )

        if not decision.allowed:
            self.logger.debug(
                "Capability denied",
                tenant_id=subject.tenant_id,
                role=subject.role.value,
                capability=capability_key,
                reason=reason.value if reason else None,
                plan=plan.value
            )

        return decision

    def can_access(self, subject: AccessSubject, capability_key: str) -> bool:
        return self.decide(subject, capability_key).allowed

    def visible_sections(self, subject: AccessSubject, sections: Iterable[NavSection]) -> List[NavSection]:
        """Filter navigation entries, keeping their order."""
        return [section for section in sections if self.can_access(subject, section.key)]
